"""
Parser for /about command text.
"""

from __future__ import annotations

from typing import Optional

from ..utils.slack import CHANNEL_SIGIL, USER_SIGIL, strip_sigil
from .models import AboutCommandRequest, EntityKind

USAGE_TEXT = "\n".join(
    [
        "Specify @user, #channel or a keyword:",
        "`/about @userName` displays statistics for a Slack user",
        "`/about #channelName` displays statistics for a Slack channel",
        "`/about keyword` lists the users and channels that used a keyword",
    ]
)


def parse_command_text(text: Optional[str]) -> Optional[AboutCommandRequest]:
    """
    Split /about text into an entity kind and raw identifier.

    Returns None when no text was given (usage requested). Multi-word
    user/channel names are passed through; the resolver rejects them.
    """
    if not text or not text.strip():
        return None
    stripped = text.strip()
    if stripped.startswith(USER_SIGIL):
        return AboutCommandRequest(EntityKind.USER, strip_sigil(stripped, USER_SIGIL))
    if stripped.startswith(CHANNEL_SIGIL):
        return AboutCommandRequest(EntityKind.CHANNEL, strip_sigil(stripped, CHANNEL_SIGIL))
    return AboutCommandRequest(EntityKind.KEYWORD, stripped)
