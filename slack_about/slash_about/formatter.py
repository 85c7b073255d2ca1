"""
Renders /about statistics as Slack messages.

For Slack message formatting details refer to
https://api.slack.com/docs/formatting#message_formatting
"""

from __future__ import annotations

from .models import (
    Attachment,
    ChannelStats,
    DisplayMessage,
    EntityKind,
    KeywordStats,
    ResolvedEntity,
    StatRecord,
    UserStats,
)
from ..utils.slack import (
    CHANNEL_SIGIL,
    LIST_SEPARATOR,
    USER_SIGIL,
    channel_mention,
    join_names,
    user_mention,
)


def format_message(entity: ResolvedEntity, record: StatRecord) -> DisplayMessage:
    """Pure rendering; block order depends only on the entity kind."""
    if entity.kind == EntityKind.USER:
        return _format_user(entity, _expect(record, UserStats))
    if entity.kind == EntityKind.CHANNEL:
        return _format_channel(entity, _expect(record, ChannelStats))
    return _format_keyword(entity, _expect(record, KeywordStats))


def format_failure_notice(entity: ResolvedEntity) -> DisplayMessage:
    return DisplayMessage(
        text=f"Activity summary for {entity.kind.value} *{entity.display_name}* could not be created. Please try again later.",
    )


def _headline(entity: ResolvedEntity) -> str:
    return f"Statistics for {entity.kind.value} *{entity.display_name}*."


def _format_user(entity: ResolvedEntity, stats: UserStats) -> DisplayMessage:
    return DisplayMessage(
        text=_headline(entity),
        attachments=(
            Attachment(f"Member in {stats.channel_count} channels."),
            Attachment(f"Most active in {join_names(stats.top_channels, prefix=CHANNEL_SIGIL)}"),
        ),
    )


def _format_channel(entity: ResolvedEntity, stats: ChannelStats) -> DisplayMessage:
    return DisplayMessage(
        text=_headline(entity),
        attachments=(
            Attachment(f"Total members: {stats.member_count}"),
            Attachment(f"Most active members: {join_names(stats.most_active_users, prefix=USER_SIGIL)}"),
            Attachment(
                f"Most frequently mentioned in: {join_names(stats.mentioned_in.top_channels, prefix=CHANNEL_SIGIL)}"
            ),
            Attachment(
                f"Most frequently mentioned: {join_names(stats.mentions.top_channels, prefix=CHANNEL_SIGIL)}"
            ),
        ),
    )


def _format_keyword(entity: ResolvedEntity, stats: KeywordStats) -> DisplayMessage:
    users = LIST_SEPARATOR.join(user_mention(user.id, user.name) for user in stats.users)
    channels = LIST_SEPARATOR.join(channel_mention(channel.id, channel.name) for channel in stats.channels)
    block = "\n".join(
        [
            f"Keyword *{entity.display_name}*",
            f"Mentioned by these users: {users}",
            f"Mentioned in these channels: {channels}",
        ]
    )
    return DisplayMessage(text=_headline(entity), attachments=(Attachment(block),))


def _expect(record: StatRecord, record_type: type):
    if not isinstance(record, record_type):
        raise TypeError(f"Expected {record_type.__name__}, got {type(record).__name__}")
    return record
