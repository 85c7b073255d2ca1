"""
Shared dataclasses for the Slash About pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class EntityKind(str, Enum):
    USER = "user"
    CHANNEL = "channel"
    KEYWORD = "keyword"

    @property
    def label(self) -> str:
        """Capitalised name used in user-facing messages ("User", "Channel")."""
        return self.value.capitalize()


@dataclass(frozen=True)
class AboutCommandRequest:
    """An /about invocation reduced to what the pipeline consumes."""

    kind: EntityKind
    raw_identifier: str


@dataclass(frozen=True)
class KeywordMatch:
    vertex_id: str
    keyword: str


@dataclass(frozen=True)
class ResolvedEntity:
    """
    A graph node (or, for keywords, a set of nodes) an /about request refers to.

    ``external_id`` is the Slack id used to build mention links; keyword
    entities have none. For keywords ``vertex_id`` is the first match and
    ``keyword_matches`` holds every match in store order.
    """

    kind: EntityKind
    vertex_id: str
    display_name: str
    external_id: Optional[str] = None
    keyword_matches: Tuple[KeywordMatch, ...] = ()

    @property
    def vertex_ids(self) -> List[str]:
        if self.keyword_matches:
            return [match.vertex_id for match in self.keyword_matches]
        return [self.vertex_id]


class StatMetric(str, Enum):
    """Tags for individual statistic query results."""

    USER_CHANNEL_COUNT = "user_channel_count"
    USER_TOP_CHANNELS = "user_top_channels"
    CHANNEL_MOST_ACTIVE_USERS = "channel_most_active_users"
    CHANNEL_MEMBER_COUNT = "channel_member_count"
    CHANNEL_MENTIONED_IN = "channel_mentioned_in"
    CHANNEL_MENTIONS = "channel_mentions"
    KEYWORD_USERS = "keyword_users"
    KEYWORD_CHANNELS = "keyword_channels"


@dataclass(frozen=True)
class StatResult:
    metric: StatMetric
    value: Any


@dataclass(frozen=True)
class PlatformRef:
    """A Slack user or channel: platform id plus display name."""

    id: str
    name: str


@dataclass(frozen=True)
class MentionSummary:
    channel_count: int = 0
    top_channels: Tuple[str, ...] = ()


@dataclass(frozen=True)
class UserStats:
    channel_count: int = 0
    top_channels: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ChannelStats:
    member_count: int = 0
    most_active_users: Tuple[str, ...] = ()
    mentioned_in: MentionSummary = field(default_factory=MentionSummary)
    mentions: MentionSummary = field(default_factory=MentionSummary)


@dataclass(frozen=True)
class KeywordStats:
    users: Tuple[PlatformRef, ...] = ()
    channels: Tuple[PlatformRef, ...] = ()


StatRecord = Union[UserStats, ChannelStats, KeywordStats]


@dataclass(frozen=True)
class Attachment:
    text: str


@dataclass(frozen=True)
class DisplayMessage:
    """Slack message payload: headline plus ordered attachment blocks."""

    text: str
    attachments: Tuple[Attachment, ...] = ()
    response_type: str = "ephemeral"
    mrkdwn: bool = True

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "response_type": self.response_type,
            "text": self.text,
            "mrkdwn": self.mrkdwn,
        }
        if self.attachments:
            payload["attachments"] = [
                {"text": attachment.text, "mrkdwn_in": ["text"]}
                for attachment in self.attachments
            ]
        return payload


@dataclass(frozen=True)
class Acknowledgement:
    """Immediate reply to the invoking HTTP layer."""

    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return self.status_code == 200
