"""
heykudos.bot.cogs.kudos — Message Listener
===========================================

Listens for ``on_message``, normalizes each message into an
:class:`InboundMessage` and hands it to the :class:`KudosRouter` through
the bot's :class:`TaskDispatcher`.  Every message is handled on its own
task; a failure in one never affects another.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from heykudos.bot.router import KudosRouter
from heykudos.bot.session import DiscordSession
from heykudos.engine.router import InboundMessage
from heykudos.services.user_directory import UserDirectory

if TYPE_CHECKING:
    from heykudos.bot.core import KudosBot

logger = logging.getLogger(__name__)


def to_inbound(message: discord.Message) -> InboundMessage:
    """Build an :class:`InboundMessage` from a Discord message."""
    return InboundMessage(
        message_id=str(message.id),
        channel_id=str(message.channel.id),
        author_handle=str(message.author.id),
        text=message.content,
        author_is_bot=message.author.bot or message.type not in (
            discord.MessageType.default, discord.MessageType.reply,
        ),
        jump_url=message.jump_url,
    )


class Kudos(commands.Cog, name="Kudos"):
    """Turns mentions + emojis into kudos, and answers kudos commands."""

    def __init__(self, bot: KudosBot) -> None:
        self.bot = bot
        self.router: KudosRouter | None = None

    async def cog_load(self) -> None:
        """Wire the router once the bot has logged in (``bot.user`` is set)."""
        assert self.bot.user is not None  # setup_hook runs after login
        session = DiscordSession(self.bot)
        self.router = KudosRouter(
            cfg=self.bot.cfg,
            engine=self.bot.engine,
            session=session,
            gate=self.bot.gate,
            catalog=self.bot.catalog,
            ledger=self.bot.ledger,
            directory=UserDirectory(self.bot.engine, session.fetch_profile),
            bot_handle=str(self.bot.user.id),
            bot_name=self.bot.user.name,
        )

    async def cog_unload(self) -> None:
        self.bot.dispatcher.stop()

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        """Dispatch every message; classification decides what to do with it."""
        if self.router is None:
            return
        logger.debug(
            "Gateway event: MESSAGE %s from %s in %s",
            message.id, message.author.name, getattr(message.channel, "name", "DM"),
        )
        self.bot.dispatcher.submit(
            self.router.handle(to_inbound(message)), name=f"kudos-{message.id}",
        )


async def setup(bot: KudosBot) -> None:
    await bot.add_cog(Kudos(bot))
