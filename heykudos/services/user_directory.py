"""
heykudos.services.user_directory — Handle → User Resolution
============================================================

Maps a platform handle (a Discord user snowflake, as a string) to the
internal :class:`User` row, creating the row the first time a handle is
seen.  The profile for a new handle is fetched from the chat session.

The unique constraint on ``users.platform_handle`` is the authority when
two messages race to create the same user: the losing insert re-reads the
winner's row instead of surfacing the constraint violation.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from heykudos.database.engine import run_db
from heykudos.database.models import User
from heykudos.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UserProfile:
    """What the chat platform knows about a handle."""

    handle: str
    display_name: str


# ---------------------------------------------------------------------------
# Sync helpers (run via run_db)
# ---------------------------------------------------------------------------
def find_user(engine: Engine, handle: str) -> User | None:
    """Return the detached User for *handle*, or None."""
    try:
        with Session(engine, expire_on_commit=False) as session:
            return session.scalar(select(User).where(User.platform_handle == handle))
    except SQLAlchemyError as exc:
        raise StorageError(f"user lookup failed for {handle!r}") from exc


def insert_user(engine: Engine, profile: UserProfile) -> User:
    """Insert a User for *profile*, or return the existing row if one won the race."""
    try:
        with Session(engine, expire_on_commit=False) as session:
            user = User(platform_handle=profile.handle, display_name=profile.display_name)
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                existing = session.scalar(
                    select(User).where(User.platform_handle == profile.handle)
                )
                if existing is None:
                    raise
                logger.debug("Lost insert race for handle %s; using existing row", profile.handle)
                return existing
            logger.info("Registered new user %s (%s) as id %d", profile.display_name, profile.handle, user.id)
            return user
    except SQLAlchemyError as exc:
        raise StorageError(f"user insert failed for {profile.handle!r}") from exc


# ---------------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------------
class UserDirectory:
    """Lookup-or-create front end for :class:`User` rows.

    Parameters
    ----------
    engine:
        SQLAlchemy engine for the users table.
    fetch_profile:
        Async callable returning the :class:`UserProfile` for a handle.
        Raises :class:`~heykudos.errors.UserLookupError` for unknown handles.
    """

    def __init__(
        self,
        engine: Engine,
        fetch_profile: Callable[[str], Awaitable[UserProfile]],
    ) -> None:
        self.engine = engine
        self.fetch_profile = fetch_profile

    async def resolve(self, handle: str) -> User:
        """Return the User for *handle*, creating it on first sight.

        Raises
        ------
        UserLookupError
            The platform cannot identify *handle*.
        StorageError
            The store failed.
        """
        user = await run_db(find_user, self.engine, handle)
        if user is not None:
            return user
        profile = await self.fetch_profile(handle)
        return await run_db(insert_user, self.engine, profile)
