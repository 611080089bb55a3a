"""
heykudos.database.models — SQLAlchemy 2.0 Data Models
======================================================

Tables:
- users            — Community members, created lazily on first sight
- kudos            — Accumulating ledger: one row per (sender, recipient, emoji)
- kudos_rate       — Per-user, per-day count of kudos given (quota counter)
- enabled_channels — Channels where kudos commands are processed
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all HeyKudos ORM models."""


# ---------------------------------------------------------------------------
# Users — one row per platform member ever seen
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    platform_handle: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} handle={self.platform_handle!r} name={self.display_name!r}>"


# ---------------------------------------------------------------------------
# KudosGrant — accumulate-only ledger
# ---------------------------------------------------------------------------
class KudosGrant(Base):
    """Total count of one emoji given from one user to another, ever.

    Rows are only ever inserted or incremented; nothing deletes them.
    """
    __tablename__ = "kudos"

    sender_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), primary_key=True
    )
    recipient_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), primary_key=True
    )
    emoji: Mapped[str] = mapped_column(String(100), primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("count >= 0", name="ck_kudos_count_non_negative"),
        Index("ix_kudos_recipient", "recipient_id"),
        Index("ix_kudos_emoji", "emoji"),
    )

    def __repr__(self) -> str:
        return (
            f"<KudosGrant {self.sender_id}→{self.recipient_id} "
            f":{self.emoji}: x{self.count}>"
        )


# ---------------------------------------------------------------------------
# RateCounter — kudos given per user per day
# ---------------------------------------------------------------------------
class RateCounter(Base):
    """Quota counter.  Rows for days before today are reclaimed lazily."""
    __tablename__ = "kudos_rate"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), primary_key=True
    )
    day: Mapped[date] = mapped_column(Date, primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<RateCounter user={self.user_id} day={self.day} count={self.count}>"


# ---------------------------------------------------------------------------
# ChannelState — per-channel enablement
# ---------------------------------------------------------------------------
class ChannelState(Base):
    __tablename__ = "enabled_channels"

    channel_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<ChannelState channel={self.channel_id!r} enabled={self.enabled}>"
