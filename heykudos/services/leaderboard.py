"""
heykudos.services.leaderboard — Ranked Kudos Summaries
=======================================================

Read-only aggregation over the ``kudos`` ledger.

* :func:`top_users` — global ranking by total count, ties broken by
  username **ascending**.
* :func:`personal_history` — one user's kudos grouped by counterpart,
  groups ranked by total with ties broken by counterpart username
  **descending**.

An empty emoji filter means "all emojis".  Store failures surface as
:class:`~heykudos.errors.StorageError`.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import Engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from heykudos.database.models import KudosGrant, User
from heykudos.errors import StorageError

logger = logging.getLogger(__name__)


class Direction(enum.StrEnum):
    """Which side of the ledger a query looks at."""
    GIVEN = "given"
    RECEIVED = "received"


@dataclass(frozen=True, slots=True)
class UserTotal:
    username: str
    total: int


@dataclass(frozen=True, slots=True)
class EmojiCount:
    emoji: str
    count: int


@dataclass(frozen=True, slots=True)
class CounterpartKudos:
    """Everything exchanged with one counterpart, broken down by emoji."""

    username: str
    emojis: tuple[EmojiCount, ...]
    total: int


def top_users(
    engine: Engine,
    direction: Direction,
    emojis: Sequence[str] = (),
    limit: int = 10,
) -> list[UserTotal]:
    """Users ranked by total kudos given or received."""
    user_col = KudosGrant.recipient_id if direction is Direction.RECEIVED else KudosGrant.sender_id
    total = func.sum(KudosGrant.count).label("total")
    stmt = (
        select(User.display_name, total)
        .select_from(KudosGrant)
        .join(User, User.id == user_col)
        .group_by(User.id, User.display_name)
        .order_by(total.desc(), User.display_name.asc(), User.id.asc())
        .limit(limit)
    )
    if emojis:
        stmt = stmt.where(KudosGrant.emoji.in_(list(emojis)))

    try:
        with Session(engine) as session:
            rows = session.execute(stmt).all()
    except SQLAlchemyError as exc:
        raise StorageError("leaderboard query failed") from exc
    return [UserTotal(username=r[0], total=int(r[1])) for r in rows]


def top_givers(engine: Engine, emojis: Sequence[str] = (), limit: int = 10) -> list[UserTotal]:
    return top_users(engine, Direction.GIVEN, emojis, limit)


def top_recipients(engine: Engine, emojis: Sequence[str] = (), limit: int = 10) -> list[UserTotal]:
    return top_users(engine, Direction.RECEIVED, emojis, limit)


def personal_history(
    engine: Engine,
    user_id: int,
    direction: Direction,
    emojis: Sequence[str] = (),
) -> list[CounterpartKudos]:
    """Kudos *user_id* received (or gave), grouped by the other party.

    Each group's emoji breakdown is ordered by count descending.
    """
    if direction is Direction.RECEIVED:
        own_col, other_col = KudosGrant.recipient_id, KudosGrant.sender_id
    else:
        own_col, other_col = KudosGrant.sender_id, KudosGrant.recipient_id

    stmt = (
        select(other_col, User.display_name, KudosGrant.emoji, KudosGrant.count)
        .select_from(KudosGrant)
        .join(User, User.id == other_col)
        .where(own_col == user_id)
    )
    if emojis:
        stmt = stmt.where(KudosGrant.emoji.in_(list(emojis)))

    try:
        with Session(engine) as session:
            rows = session.execute(stmt).all()
    except SQLAlchemyError as exc:
        raise StorageError("personal history query failed") from exc

    grouped: dict[int, tuple[str, list[EmojiCount]]] = {}
    for other_id, name, emoji, count in rows:
        grouped.setdefault(other_id, (name, []))[1].append(EmojiCount(emoji, count))

    history = [
        CounterpartKudos(
            username=name,
            emojis=tuple(sorted(counts, key=lambda ec: (-ec.count, ec.emoji))),
            total=sum(ec.count for ec in counts),
        )
        for name, counts in grouped.values()
    ]
    # Stable sorts: username descending first, then total descending
    history.sort(key=lambda ck: ck.username, reverse=True)
    history.sort(key=lambda ck: ck.total, reverse=True)
    return history
