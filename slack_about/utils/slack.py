"""
Slack-specific formatting helpers shared across the formatter and the API layer.
"""

from __future__ import annotations

from typing import Iterable, Optional

USER_SIGIL = "@"
CHANNEL_SIGIL = "#"
LIST_SEPARATOR = ", "


def join_names(names: Iterable[str], *, prefix: str = "") -> str:
    """
    Render names as a comma separated list, e.g. ``#general, #dev``.

    An empty iterable renders as an empty string.
    """
    return LIST_SEPARATOR.join(f"{prefix}{name}" for name in names)


def user_mention(user_id: str, user_name: Optional[str] = None) -> str:
    """Slack user mention token: ``<@U123|alice>``."""
    if user_name:
        return f"<@{user_id}|{user_name}>"
    return f"<@{user_id}>"


def channel_mention(channel_id: str, channel_name: Optional[str] = None) -> str:
    """Slack channel link token: ``<#C123|general>``."""
    if channel_name:
        return f"<#{channel_id}|{channel_name}>"
    return f"<#{channel_id}>"


def strip_sigil(text: str, sigil: str) -> str:
    if text.startswith(sigil):
        return text[len(sigil):]
    return text
