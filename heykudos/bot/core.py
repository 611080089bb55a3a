"""
heykudos.bot.core — Bot Instance & Cog Loader
==============================================

Defines :class:`KudosBot`, a ``commands.Bot`` subclass that:

1. Carries the shared config, DB engine, channel gate, emoji catalog,
   ledger and task dispatcher so every Cog can reach them via
   ``self.bot.*``.  Nothing is module-global; everything is built once in
   :mod:`heykudos.bot.__main__` and passed in.
2. Loads every Cog listed in :data:`EXTENSIONS`.
3. Warms the emoji catalog once connected.

Kudos commands are plain mentions (``@bot leaderboard``) handled by the
Kudos cog, so prefix-command processing is switched off.
"""

from __future__ import annotations

import logging

import discord
from discord.ext import commands
from sqlalchemy import Engine

from heykudos.bot.dispatch import TaskDispatcher
from heykudos.config import KudosConfig
from heykudos.database.engine import run_db
from heykudos.services.channel_gate import ChannelGate
from heykudos.services.emoji_catalog import EmojiCatalog
from heykudos.services.ledger import KudosLedger

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "heykudos.bot.cogs.kudos",
]


class KudosBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state."""

    def __init__(
        self,
        cfg: KudosConfig,
        engine: Engine,
        *,
        gate: ChannelGate,
        catalog: EmojiCatalog,
        ledger: KudosLedger,
    ) -> None:
        intents = discord.Intents.default()
        intents.message_content = True    # Privileged: needed to read mentions + emojis
        intents.presences = False

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
            description=f"{cfg.team_name} kudos",
        )

        self.cfg = cfg
        self.engine = engine
        self.gate = gate
        self.catalog = catalog
        self.ledger = ledger
        self.dispatcher = TaskDispatcher(cfg.max_concurrent_messages)

        # Custom emojis come from every guild the bot can see
        self.catalog.custom_source = lambda: [e.name for e in self.emojis]

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load Cog extensions; one broken Cog shouldn't take down the bot."""
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated."""
        assert self.user is not None
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)
        await run_db(self.catalog.refresh)

    async def on_message(self, message: discord.Message) -> None:
        """Mention commands are handled by the Kudos cog, not the command framework."""

    async def close(self) -> None:
        """Graceful shutdown — let in-flight messages finish first."""
        logger.info("Bot shutting down…")
        await self.dispatcher.drain()
        await super().close()
