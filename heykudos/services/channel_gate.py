"""
heykudos.services.channel_gate — Per-Channel Enablement
========================================================

Kudos commands are only processed in channels that opted in with
``@bot enable``.  The flag lives in the ``enabled_channels`` table and is
cached in memory for the life of the process:

* **Read-through** — a cache miss reads the table and caches the answer,
  including "no row" (→ disabled).
* **Write-through after commit** — the cache changes only once the durable
  write has committed, so a failed write never leaves the cache claiming a
  state the store does not hold.

The cache is never the source of truth; every state change goes through
:meth:`ChannelGate.set_enabled`.
"""

from __future__ import annotations

import logging
import threading

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from heykudos.database.engine import get_session
from heykudos.database.models import ChannelState
from heykudos.errors import StorageError

logger = logging.getLogger(__name__)


class ChannelGate:
    """Thread-safe read-through cache of :class:`ChannelState`.

    Both methods are synchronous; call them via ``run_db``.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._lock = threading.Lock()
        self._cache: dict[str, bool] = {}

    def is_enabled(self, channel_id: str) -> bool:
        """True if kudos are enabled in *channel_id*.

        A store failure is logged and answered with False without caching,
        so the next message retries the read.
        """
        cached = self._cache.get(channel_id)
        if cached is not None:
            return cached

        try:
            with Session(self._engine) as session:
                state = session.get(ChannelState, channel_id)
                enabled = bool(state is not None and state.enabled)
        except SQLAlchemyError:
            logger.exception("Error while querying enabled_channels for %s", channel_id)
            return False

        with self._lock:
            # A writer may have committed while we were reading; keep its value
            return self._cache.setdefault(channel_id, enabled)

    def set_enabled(self, channel_id: str, enabled: bool) -> None:
        """Persist the flag for *channel_id*, then update the cache.

        Raises
        ------
        StorageError
            The durable write failed; the cache is left untouched.
        """
        with self._lock:
            try:
                with get_session(self._engine) as session:
                    state = session.get(ChannelState, channel_id)
                    if state is None:
                        session.add(ChannelState(channel_id=channel_id, enabled=enabled))
                    else:
                        state.enabled = enabled
            except SQLAlchemyError as exc:
                raise StorageError(
                    f"failed to {'enable' if enabled else 'disable'} channel {channel_id}"
                ) from exc
            self._cache[channel_id] = enabled

        logger.info("%s channel %s", "Enabled" if enabled else "Disabled", channel_id)
