"""
heykudos.services.ledger — Rate-Limited Kudos Ledger
=====================================================

Validates a proposed grant against the sender's daily quota and records
it in the ``kudos`` ledger.

Quota reservation is a single conditional upsert on ``kudos_rate``::

    INSERT … ON CONFLICT (user_id, day)
    DO UPDATE SET count = kudos_rate.count + excluded.count
    WHERE kudos_rate.count + excluded.count <= :quota
    RETURNING count

The database row lock makes the check-and-increment atomic per sender:
two concurrent grants can never both observe spare quota and both
succeed past the limit.  No row returned means the grant would exceed the
quota and nothing was changed.

:meth:`KudosLedger.grant` runs the reservation and every ledger upsert of
one message in **one transaction**: a failure anywhere rolls back the
whole attempt, so a grant is never billed without being recorded (or
recorded without being billed).

All public methods are synchronous; call them via ``run_db``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime

from sqlalchemy import Date, Engine, bindparam, delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from heykudos.database.models import RateCounter, User
from heykudos.engine.shapes import GrantPlan, plan_grant
from heykudos.errors import QuotaExceeded, StorageError

logger = logging.getLogger(__name__)

_RESERVE_SQL = text("""
    INSERT INTO kudos_rate (user_id, day, count)
    VALUES (:user_id, :day, :amount)
    ON CONFLICT (user_id, day)
    DO UPDATE SET count = kudos_rate.count + excluded.count
    WHERE kudos_rate.count + excluded.count <= :quota
    RETURNING count
""").bindparams(bindparam("day", type_=Date))

_RECORD_SQL = text("""
    INSERT INTO kudos (sender_id, recipient_id, emoji, count)
    VALUES (:sender_id, :recipient_id, :emoji, :amount)
    ON CONFLICT (sender_id, recipient_id, emoji)
    DO UPDATE SET count = kudos.count + excluded.count
""")


def utc_today() -> date:
    return datetime.now(UTC).date()


@dataclass(frozen=True, slots=True)
class Delivery:
    """What one recipient got from a recorded grant."""

    recipient: User
    counts: dict[str, int]  # emoji → amount, in first-appearance order


@dataclass(frozen=True, slots=True)
class GrantReceipt:
    """Result of a recorded grant."""

    sender: User
    deliveries: tuple[Delivery, ...]
    remaining: int


class KudosLedger:
    """Quota-enforcing front end for the ``kudos`` ledger.

    Parameters
    ----------
    engine:
        SQLAlchemy engine.
    daily_quota:
        Kudos a sender may give per calendar day (UTC).
    is_known_emoji:
        Emoji validator; tokens it rejects are dropped before planning.
    today:
        Clock returning the current day; injectable for tests.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        daily_quota: int,
        is_known_emoji: Callable[[str], bool] | None = None,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self.engine = engine
        self.daily_quota = daily_quota
        self.is_known_emoji = is_known_emoji
        self.today = today

    # -------------------------------------------------------------------
    # Pre-validation
    # -------------------------------------------------------------------
    def valid_emojis(self, emojis: Sequence[str]) -> list[str]:
        """Drop emoji tokens the validator does not recognise."""
        if self.is_known_emoji is None:
            return list(emojis)
        return [e for e in emojis if self.is_known_emoji(e)]

    def plan(self, sender: User, recipients: Sequence[User], emojis: Sequence[str]) -> GrantPlan:
        """Validate emojis and shape; see :func:`plan_grant` for the errors raised."""
        return plan_grant(sender, recipients, self.valid_emojis(emojis))

    # -------------------------------------------------------------------
    # Quota
    # -------------------------------------------------------------------
    def _reserve(self, session: Session, user_id: int, amount: int) -> int:
        """Reserve *amount* kudos for *user_id* inside *session*'s transaction.

        Returns the quota left afterwards; raises :class:`QuotaExceeded`
        without changing the counter.
        """
        today = self.today()
        session.execute(
            delete(RateCounter).where(RateCounter.user_id == user_id, RateCounter.day < today)
        )

        new_count = None
        if amount <= self.daily_quota:
            new_count = session.execute(
                _RESERVE_SQL,
                {"user_id": user_id, "day": today, "amount": amount, "quota": self.daily_quota},
            ).scalar()

        if new_count is None:
            current = session.scalar(
                select(RateCounter.count).where(
                    RateCounter.user_id == user_id, RateCounter.day == today,
                )
            ) or 0
            logger.info(
                "User %d rate limited: %d given today, asked for %d of %d",
                user_id, current, amount, self.daily_quota,
            )
            raise QuotaExceeded(
                quota=self.daily_quota,
                remaining=max(0, self.daily_quota - current),
                requested=amount,
            )
        return self.daily_quota - new_count

    def remaining(self, user_id: int) -> int:
        """Kudos *user_id* can still give today."""
        try:
            with Session(self.engine) as session:
                given = session.scalar(
                    select(RateCounter.count).where(
                        RateCounter.user_id == user_id, RateCounter.day == self.today(),
                    )
                ) or 0
        except SQLAlchemyError as exc:
            raise StorageError("failed to read quota") from exc
        return max(0, self.daily_quota - given)

    def reserve(self, sender: User, recipients: Sequence[User], emojis: Sequence[str]) -> int:
        """Validate a grant and reserve its quota without recording it.

        Returns the quota remaining after the reservation.

        Raises
        ------
        ValidationError
            Bad shape, self-grant, or nothing to give.
        QuotaExceeded
            The reservation would exceed the daily quota.
        StorageError
            The store failed; nothing was reserved.
        """
        plan = self.plan(sender, recipients, emojis)
        try:
            with Session(self.engine) as session, session.begin():
                return self._reserve(session, sender.id, plan.to_give)
        except SQLAlchemyError as exc:
            raise StorageError("quota reservation failed") from exc

    # -------------------------------------------------------------------
    # Grant
    # -------------------------------------------------------------------
    def grant(self, sender: User, recipients: Sequence[User], emojis: Sequence[str]) -> GrantReceipt:
        """Validate, reserve quota and record a grant in one transaction.

        Duplicate emojis for the same recipient are coalesced into a single
        increment of the ledger row.

        Raises
        ------
        ValidationError, QuotaExceeded
            As for :meth:`reserve`; nothing is written.
        StorageError
            The store failed; the whole attempt, quota included, was rolled back.
        """
        plan = self.plan(sender, recipients, emojis)
        deliveries = tuple(Delivery(a.recipient, a.coalesced()) for a in plan.allotments)
        try:
            with Session(self.engine) as session, session.begin():
                remaining = self._reserve(session, sender.id, plan.to_give)
                for delivery in deliveries:
                    for emoji, amount in delivery.counts.items():
                        session.execute(_RECORD_SQL, {
                            "sender_id": sender.id,
                            "recipient_id": delivery.recipient.id,
                            "emoji": emoji,
                            "amount": amount,
                        })
        except SQLAlchemyError as exc:
            logger.error("Failed to record kudos from %s: %s", sender.display_name, exc)
            raise StorageError("failed to record kudos") from exc

        logger.info(
            "Kudos recorded: %s → %s (%d given, %d left)",
            sender.display_name,
            ", ".join(d.recipient.display_name for d in deliveries),
            plan.to_give,
            remaining,
        )
        return GrantReceipt(sender=sender, deliveries=deliveries, remaining=remaining)
