"""
heykudos.engine.router — Inbound Message Classification
========================================================

Every inbound chat message is normalized into an :class:`InboundMessage`
and classified into exactly one :class:`Intent`.  Classification is pure;
the async dispatch that acts on the intent lives in
:mod:`heykudos.bot.router`.

Commands are addressed to the bot by mention::

    @bot enable                 → Intent.ENABLE       (exact text)
    @bot disable                → Intent.DISABLE      (exact text)
    @bot leaderboard [:e: …]    → Intent.LEADERBOARD  (prefix)
    @bot stats [:e: …]          → Intent.PERSONAL_STATS (prefix)
    @bot help                   → Intent.HELP         (prefix)
    anything else               → Intent.GRANT
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

__all__ = ["InboundMessage", "Intent", "classify"]

_NICK_MENTION_RE = re.compile(r"<@!([a-zA-Z0-9]+)>")


class Intent(enum.StrEnum):
    """Closed set of classification outcomes for one message."""
    ENABLE = "enable"
    DISABLE = "disable"
    LEADERBOARD = "leaderboard"
    PERSONAL_STATS = "personal_stats"
    HELP = "help"
    GRANT = "grant"
    IGNORED = "ignored"

    @property
    def requires_enabled_channel(self) -> bool:
        """Only ``enable`` is processed in channels that never opted in."""
        return self not in (Intent.ENABLE, Intent.IGNORED)


@dataclass(frozen=True, slots=True)
class InboundMessage:
    """Platform-neutral view of one chat message."""

    message_id: str
    channel_id: str
    author_handle: str
    text: str
    author_is_bot: bool = False
    jump_url: str = ""


def classify(message: InboundMessage, bot_handle: str) -> Intent:
    """Return the :class:`Intent` for *message* addressed to *bot_handle*."""
    if message.author_is_bot or message.author_handle == bot_handle:
        return Intent.IGNORED

    text = _NICK_MENTION_RE.sub(r"<@\1>", message.text).strip()
    if not text:
        return Intent.IGNORED

    mention = f"<@{bot_handle}>"
    if text == f"{mention} enable":
        return Intent.ENABLE
    if text == f"{mention} disable":
        return Intent.DISABLE
    if text.startswith(f"{mention} leaderboard"):
        return Intent.LEADERBOARD
    if text.startswith(f"{mention} stats"):
        return Intent.PERSONAL_STATS
    if text.startswith(f"{mention} help"):
        return Intent.HELP
    return Intent.GRANT
