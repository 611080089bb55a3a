"""
heykudos.bot.session — Discord Adapter for the Chat Session
============================================================

The kudos router never touches ``discord.py`` directly.  It talks to a
:class:`DiscordSession`, which knows how to:

* resolve a handle (user snowflake) to a profile,
* describe a channel (normal, private, direct, group-direct),
* deliver a direct message, a channel post, or a private reply.

Discord has no ephemeral replies outside of interactions, so
:meth:`DiscordSession.post_private` falls back to a direct message.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

import discord

from heykudos.errors import UserLookupError
from heykudos.services.user_directory import UserProfile

logger = logging.getLogger(__name__)

# Leaderboard accent
BOARD_COLOR = discord.Color(0x0C9FE8)


class ChannelKind(enum.StrEnum):
    TEXT = "text"
    PRIVATE = "private"
    DIRECT = "direct"
    GROUP_DIRECT = "group_direct"


@dataclass(frozen=True, slots=True)
class ChannelInfo:
    channel_id: str
    kind: ChannelKind
    name: str = ""

    @property
    def is_direct(self) -> bool:
        return self.kind in (ChannelKind.DIRECT, ChannelKind.GROUP_DIRECT)

    @property
    def is_private(self) -> bool:
        return self.kind is ChannelKind.PRIVATE


def _build_embed(text: str, title: str | None) -> discord.Embed:
    return discord.Embed(title=title, description=text, color=BOARD_COLOR)


class DiscordSession:
    """Chat-session capabilities backed by a connected ``discord.Client``."""

    def __init__(self, client: discord.Client) -> None:
        self.client = client

    async def _get_user(self, handle: str) -> discord.User:
        try:
            user_id = int(handle)
        except ValueError:
            raise UserLookupError(handle) from None
        user = self.client.get_user(user_id)
        if user is not None:
            return user
        try:
            return await self.client.fetch_user(user_id)
        except (discord.NotFound, discord.HTTPException) as exc:
            raise UserLookupError(handle) from exc

    async def fetch_profile(self, handle: str) -> UserProfile:
        """Profile for *handle*; raises :class:`UserLookupError` if unknown."""
        user = await self._get_user(handle)
        return UserProfile(handle=str(user.id), display_name=user.name)

    async def channel_info(self, channel_id: str) -> ChannelInfo:
        """Describe *channel_id*; raises ``discord.HTTPException`` if unreachable."""
        channel = self.client.get_channel(int(channel_id))
        if channel is None:
            channel = await self.client.fetch_channel(int(channel_id))

        if isinstance(channel, discord.DMChannel):
            return ChannelInfo(channel_id, ChannelKind.DIRECT)
        if isinstance(channel, discord.GroupChannel):
            return ChannelInfo(channel_id, ChannelKind.GROUP_DIRECT, channel.name or "")

        name = getattr(channel, "name", "") or ""
        guild = getattr(channel, "guild", None)
        if guild is not None and not channel.permissions_for(guild.default_role).view_channel:
            return ChannelInfo(channel_id, ChannelKind.PRIVATE, name)
        return ChannelInfo(channel_id, ChannelKind.TEXT, name)

    async def send_direct(self, handle: str, text: str, *, title: str | None = None) -> None:
        """DM *handle*.  Bots are skipped; delivery failures are logged."""
        try:
            user = await self._get_user(handle)
        except UserLookupError:
            logger.warning("Failed to get user info for %s", handle)
            return
        if user.bot:
            return

        logger.debug("Sending direct message to %s: %s", user.name, text)
        try:
            if title is None:
                await user.send(text)
            else:
                await user.send(embed=_build_embed(text, title))
        except discord.HTTPException as exc:
            logger.warning("Failed to send message to user %s: %s", user.name, exc)

    async def post(self, channel_id: str, text: str, *, title: str | None = None) -> None:
        """Post to *channel_id*; delivery failures are logged."""
        channel = self.client.get_channel(int(channel_id))
        try:
            if channel is None:
                channel = await self.client.fetch_channel(int(channel_id))
            if title is None:
                await channel.send(text)
            else:
                await channel.send(embed=_build_embed(text, title))
        except discord.HTTPException as exc:
            logger.warning("Error while sending message to %s: %s", channel_id, exc)

    async def post_private(
        self, channel_id: str, handle: str, text: str, *, title: str | None = None,
    ) -> None:
        """Reply visible only to *handle* (a DM on Discord)."""
        await self.send_direct(handle, text, title=title)
