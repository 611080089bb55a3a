"""
heykudos.engine.shapes — Recipient ↔ Emoji Shape Matching
==========================================================

Decides how the recipients and emojis of one message pair up into
discrete grants:

* one recipient      → every emoji goes to that recipient
* one emoji          → that emoji goes to every recipient
* N recipients, N emojis → emoji *i* goes to recipient *i*
* anything else      → :class:`ShapeMismatchError`

Pure logic: inputs are already-resolved recipients and already-validated
emoji names.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from heykudos.database.models import User
from heykudos.errors import NothingToGive, SelfGrantError, ShapeMismatchError

__all__ = ["Allotment", "GrantPlan", "plan_grant"]


@dataclass(frozen=True, slots=True)
class Allotment:
    """Everything one recipient receives from a single message."""

    recipient: User
    emojis: tuple[str, ...]

    def coalesced(self) -> dict[str, int]:
        """emoji → count, preserving first-appearance order."""
        return dict(Counter(self.emojis))


@dataclass(frozen=True, slots=True)
class GrantPlan:
    """The resolved shape of one grant attempt."""

    sender: User
    allotments: tuple[Allotment, ...]

    @property
    def to_give(self) -> int:
        """Number of kudos this plan charges against the sender's quota."""
        return sum(len(a.emojis) for a in self.allotments)


def plan_grant(sender: User, recipients: Sequence[User], emojis: Sequence[str]) -> GrantPlan:
    """Build a :class:`GrantPlan` or raise a :class:`ValidationError`.

    Raises
    ------
    NothingToGive
        No emojis or no recipients; the message is dropped silently.
    SelfGrantError
        The sender is among the recipients.
    ShapeMismatchError
        Several recipients and several emojis with different counts.
    """
    if not emojis:
        raise NothingToGive("no valid emoji")
    if any(r.id == sender.id for r in recipients):
        raise SelfGrantError()
    if not recipients:
        raise NothingToGive("no recipients")

    r_count, e_count = len(recipients), len(emojis)
    if r_count == 1:
        allotments = (Allotment(recipients[0], tuple(emojis)),)
    elif e_count == 1:
        allotments = tuple(Allotment(r, (emojis[0],)) for r in recipients)
    elif r_count == e_count:
        allotments = tuple(Allotment(r, (e,)) for r, e in zip(recipients, emojis))
    else:
        raise ShapeMismatchError(r_count, e_count)

    return GrantPlan(sender=sender, allotments=allotments)
