"""
heykudos.engine.tokens — Mention & Emoji Token Extraction
==========================================================

Pure parsing of raw message text.  Inline-code spans are dropped before
anything is matched, so pasting `` `:shrug:` `` or `` `<@123>` `` as
literal text never counts as a grant attempt.

Emoji tokens are *syntactic candidates* only; whether ``:name:`` is a
real emoji is decided later by the emoji catalog.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

__all__ = ["Tokens", "extract", "extract_filter_emojis", "strip_code", "unique"]

# ``` fenced blocks first, then single-backtick spans
_CODE_RE = re.compile(r"```.*?```|`[^`]*`", re.DOTALL)
# Discord renders nickname mentions as <@!id>
_MENTION_RE = re.compile(r"<@!?([a-zA-Z0-9]+)>")
_EMOJI_RE = re.compile(r":([a-zA-Z0-9_\-+']+):")


@dataclass(frozen=True, slots=True)
class Tokens:
    """Candidate tokens found in one message."""

    mentions: tuple[str, ...]
    emojis: tuple[str, ...]


def unique(items: Iterable[str]) -> list[str]:
    """Drop repeated values, keeping the order of first appearance."""
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def strip_code(text: str) -> str:
    """Replace every inline-code span with a single space."""
    return _CODE_RE.sub(" ", text)


def extract(text: str) -> Tokens:
    """Return the mention handles and emoji names in *text*.

    Mentions are de-duplicated; emoji names are not, because repeating an
    emoji is how a sender gives more than one of it.
    """
    visible = strip_code(text)
    mentions = unique(_MENTION_RE.findall(visible))
    # Consume the mention markup so ids never pair up with colons
    emojis = _EMOJI_RE.findall(_MENTION_RE.sub(" ", visible))
    return Tokens(mentions=tuple(mentions), emojis=tuple(emojis))


def extract_filter_emojis(text: str) -> list[str]:
    """Unique emoji names, used as a leaderboard / stats filter."""
    return unique(extract(text).emojis)
