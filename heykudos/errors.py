"""
heykudos.errors — Kudos Error Taxonomy
=======================================

Every failure the engine can surface while handling a single message.
User-facing errors carry the exact text that is sent back to the sender.
"""

from __future__ import annotations


class KudosError(Exception):
    """Base class for all HeyKudos errors."""


# ---------------------------------------------------------------------------
# Validation — malformed or ambiguous grants (user-facing, non-retryable)
# ---------------------------------------------------------------------------
class ValidationError(KudosError):
    """A grant attempt that cannot be interpreted."""


class NothingToGive(ValidationError):
    """No valid emoji or no resolvable recipient; dropped without a reply."""


class SelfGrantError(ValidationError):
    """The sender mentioned themself as a recipient."""

    def __init__(self) -> None:
        super().__init__("Sorry, but you can't give yourself kudos!")


class ShapeMismatchError(ValidationError):
    """More than one recipient and more than one emoji, with unequal counts."""

    hint = (
        "You can list only one emoji which will go to everyone, or multiple emojis "
        "to go to one person. But multiple emojis to multiple people have to match counts!"
    )

    def __init__(self, recipients: int, emojis: int) -> None:
        self.recipients = recipients
        self.emojis = emojis
        super().__init__(
            "Sorry, but I couldn't figure out how to give your kudos. You listed "
            "more than one recipient and more than one emoji, but the number of "
            f"each doesn't match! I saw `{recipients}` recipients and `{emojis}` emojis."
        )


# ---------------------------------------------------------------------------
# Quota — daily limit reached or would be exceeded
# ---------------------------------------------------------------------------
class QuotaExceeded(KudosError):
    """The sender's daily quota does not cover the requested grant."""

    def __init__(self, *, quota: int, remaining: int, requested: int) -> None:
        self.quota = quota
        self.remaining = remaining
        self.requested = requested
        if remaining <= 0:
            message = (
                "Sorry, you're out of kudos to give for now. "
                f"You can only give {quota} every 24 hours."
            )
        else:
            message = (
                f"Sorry, you tried to give {requested} kudos, but you only have "
                f"{remaining} kudos left to give today."
            )
        super().__init__(message)


# ---------------------------------------------------------------------------
# Lookup / storage
# ---------------------------------------------------------------------------
class UserLookupError(KudosError, LookupError):
    """The platform could not identify a handle."""

    def __init__(self, handle: str) -> None:
        self.handle = handle
        super().__init__(f"Unknown user handle: {handle!r}")


class StorageError(KudosError):
    """The durable store was unavailable or a write failed."""
