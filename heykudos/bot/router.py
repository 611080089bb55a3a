"""
heykudos.bot.router — Intent Dispatch
======================================

Acts on the :class:`~heykudos.engine.router.Intent` of one inbound
message.

Pipeline:
1. Classify the message (pure, :func:`classify`).
2. Every intent except ``enable`` requires the Channel Gate to report the
   channel enabled; otherwise the message is silently ignored.
3. Run the intent's handler.

Failure policy, per message:
- validation / quota errors → DM to the sender with the exact reason
- unknown mentioned handles → that token is skipped
- storage errors while granting → generic failure DM
- storage errors while querying → logged only, no reply
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from heykudos.database.engine import run_db
from heykudos.engine.router import InboundMessage, Intent, classify
from heykudos.engine.tokens import extract, extract_filter_emojis
from heykudos.errors import (
    NothingToGive,
    QuotaExceeded,
    SelfGrantError,
    ShapeMismatchError,
    StorageError,
    UserLookupError,
)
from heykudos.services import formatting
from heykudos.services.leaderboard import Direction, personal_history, top_recipients

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from heykudos.bot.session import DiscordSession
    from heykudos.config import KudosConfig
    from heykudos.services.channel_gate import ChannelGate
    from heykudos.services.emoji_catalog import EmojiCatalog
    from heykudos.services.ledger import KudosLedger
    from heykudos.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)


class KudosRouter:
    """Routes classified messages to their handlers."""

    def __init__(
        self,
        *,
        cfg: KudosConfig,
        engine: Engine,
        session: DiscordSession,
        gate: ChannelGate,
        catalog: EmojiCatalog,
        ledger: KudosLedger,
        directory: UserDirectory,
        bot_handle: str,
        bot_name: str = "heykudos",
    ) -> None:
        self.cfg = cfg
        self.engine = engine
        self.session = session
        self.gate = gate
        self.catalog = catalog
        self.ledger = ledger
        self.directory = directory
        self.bot_handle = bot_handle
        self.bot_name = bot_name

        self._handlers: dict[Intent, Callable[[InboundMessage], Awaitable[None]]] = {
            Intent.ENABLE: self._enable,
            Intent.DISABLE: self._disable,
            Intent.LEADERBOARD: self._leaderboard,
            Intent.PERSONAL_STATS: self._personal_stats,
            Intent.HELP: self._help,
            Intent.GRANT: self._grant,
        }

    async def handle(self, message: InboundMessage) -> Intent:
        """Classify and act on *message*; returns the intent that ran."""
        intent = classify(message, self.bot_handle)
        if intent is Intent.IGNORED:
            return intent
        if intent.requires_enabled_channel and not await run_db(
            self.gate.is_enabled, message.channel_id
        ):
            return Intent.IGNORED

        await self._handlers[intent](message)
        return intent

    # -------------------------------------------------------------------
    # Channel toggles
    # -------------------------------------------------------------------
    async def _enable(self, message: InboundMessage) -> None:
        info = await self.session.channel_info(message.channel_id)
        if info.is_direct:
            logger.info("Not enabling %s, not a normal channel", message.channel_id)
            await self.session.send_direct(message.author_handle, formatting.ENABLE_REFUSED)
            return
        if await self._store_toggle(message, True):
            await self._notify_toggle(message, True, info.name if info.is_private else None)

    async def _disable(self, message: InboundMessage) -> None:
        # Disable first; the channel lookup only names the notice
        if not await self._store_toggle(message, False):
            return
        info = await self.session.channel_info(message.channel_id)
        await self._notify_toggle(message, False, info.name if info.is_private else None)

    async def _store_toggle(self, message: InboundMessage, enabled: bool) -> bool:
        try:
            await run_db(self.gate.set_enabled, message.channel_id, enabled)
        except StorageError:
            logger.exception("Failed to toggle channel %s", message.channel_id)
            return False
        return True

    async def _notify_toggle(
        self, message: InboundMessage, enabled: bool, private_name: str | None,
    ) -> None:
        await self.session.send_direct(
            message.author_handle,
            formatting.channel_toggle_notice(enabled, message.channel_id, private_name=private_name),
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    async def _leaderboard(self, message: InboundMessage) -> None:
        emojis = extract_filter_emojis(self.catalog.normalize(message.text))
        try:
            rows = await run_db(top_recipients, self.engine, emojis, self.cfg.leaderboard_size)
        except StorageError:
            logger.exception("Error while querying for leaderboard")
            return
        await self.session.post(
            message.channel_id,
            formatting.format_leaderboard(rows),
            title=formatting.leaderboard_title(self.cfg.team_name, emojis),
        )

    async def _personal_stats(self, message: InboundMessage) -> None:
        emojis = extract_filter_emojis(self.catalog.normalize(message.text))
        try:
            user = await self.directory.resolve(message.author_handle)
            boards = [
                (direction, await run_db(personal_history, self.engine, user.id, direction, emojis))
                for direction in (Direction.RECEIVED, Direction.GIVEN)
            ]
        except (StorageError, UserLookupError):
            logger.exception("Error while querying personal stats for %s", message.author_handle)
            return

        for direction, history in boards:
            await self.session.post_private(
                message.channel_id,
                message.author_handle,
                formatting.format_personal_board(history),
                title=formatting.personal_board_title(self.cfg.team_name, direction, emojis),
            )

    async def _help(self, message: InboundMessage) -> None:
        await self.session.post_private(
            message.channel_id,
            message.author_handle,
            formatting.help_text(self.bot_name, self.cfg.daily_quota),
        )

    # -------------------------------------------------------------------
    # Grants
    # -------------------------------------------------------------------
    async def _grant(self, message: InboundMessage) -> None:
        tokens = extract(self.catalog.normalize(message.text))
        if not tokens.emojis or not tokens.mentions:
            return

        author = message.author_handle
        try:
            sender = await self.directory.resolve(author)
            recipients = []
            for handle in tokens.mentions:
                try:
                    recipients.append(await self.directory.resolve(handle))
                except UserLookupError:
                    continue  # Not every <@…> has to be a real user
        except (StorageError, UserLookupError):
            logger.exception("Failed to resolve users for message %s", message.message_id)
            return

        try:
            receipt = await run_db(self.ledger.grant, sender, recipients, tokens.emojis)
        except NothingToGive:
            return
        except ShapeMismatchError as exc:
            await self.session.send_direct(author, str(exc))
            await self.session.send_direct(author, exc.hint)
            return
        except (SelfGrantError, QuotaExceeded) as exc:
            await self.session.send_direct(author, str(exc))
            return
        except StorageError:
            await self.session.send_direct(author, formatting.GRANT_FAILED)
            return

        for delivery in receipt.deliveries:
            await self.session.send_direct(
                sender.platform_handle,
                formatting.sent_notice(
                    delivery.recipient.display_name, delivery.counts, receipt.remaining,
                ),
            )
            await self.session.send_direct(
                delivery.recipient.platform_handle,
                formatting.received_notice(sender.display_name, delivery.counts, message.jump_url),
            )
