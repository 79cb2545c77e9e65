"""
Discord Client (Chat Transport)

This module owns the Discord connection itself.

Responsibilities:
- connect to Discord and stay connected (reconnect indefinitely)
- wrap every inbound message as a ChatMessage event on the bridge queue
- expose send(channel, text) for the event router
- expose a clean async run() / shutdown() contract

IMPORTANT:
- This client MUST be driven by the Scheduler
- This client MUST NOT create its own event loop
- Self-message filtering is the router's job (relay identity check)
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import discord

from services.discord.runtime.lifecycle import DiscordRuntimeLifecycle
from shared.chat.events import BridgeEvent, ChatMessage
from shared.logging.logger import get_logger

log = get_logger("discord.client")

MESSAGE_LIMIT = 2000

# Authentication / configuration problems: retrying cannot help.
FATAL_ERRORS = (discord.LoginFailure, discord.PrivilegedIntentsRequired)


def split_message(text: str, limit: int = MESSAGE_LIMIT) -> List[str]:
    """
    Split text into Discord-sized chunks.

    Returns an empty list for text Discord would reject as empty.
    """
    if not text.strip():
        return []
    return [text[i:i + limit] for i in range(0, len(text), limit)]


class DiscordClient:
    """
    Thin wrapper around discord.Client.

    This class provides:
    - async run() entrypoint with the reconnect loop
    - async send() for outbound relay
    - async shutdown()
    - lifecycle event logging
    """

    def __init__(
        self,
        *,
        token: str,
        queue: "asyncio.Queue[BridgeEvent]",
        lifecycle: Optional[DiscordRuntimeLifecycle] = None,
    ):
        if not token:
            raise RuntimeError("Discord token is required")

        log.info(f"Discord bot token present: {bool(token)}")

        self._token: str = token
        self._queue = queue
        self._ready_event = asyncio.Event()
        self._closing: bool = False
        self._channels: Dict[int, discord.abc.Messageable] = {}

        self.lifecycle = lifecycle or DiscordRuntimeLifecycle()
        self._bot: discord.Client = self._build_bot()

    # --------------------------------------------------

    def _build_bot(self) -> discord.Client:
        """
        Construct the discord.py Client instance and wire its events.
        """

        intents = discord.Intents.default()
        intents.guilds = True
        intents.messages = True
        intents.message_content = True  # privileged; enable in the developer portal

        bot = discord.Client(
            intents=intents,
            allowed_mentions=discord.AllowedMentions.none(),
        )

        # --------------------------------------------------
        # Lifecycle Events
        # --------------------------------------------------

        @bot.event
        async def on_ready():
            log.info(
                f"Discord connected as {bot.user} "
                f"(id={bot.user.id}) "
                f"guilds={len(bot.guilds)}"
            )
            self.lifecycle.mark_ready()
            self._ready_event.set()

        @bot.event
        async def on_resumed():
            log.info("Discord connection resumed")
            self.lifecycle.mark_ready()

        @bot.event
        async def on_disconnect():
            log.warning("Discord connection lost")
            self.lifecycle.mark_disconnected()

        # --------------------------------------------------
        # Inbound Messages
        # --------------------------------------------------

        @bot.event
        async def on_message(message: discord.Message):
            await self._handle_message(message)

        return bot

    async def _handle_message(self, message: Any) -> None:
        event = ChatMessage(
            author=message.author.name,
            body=message.content,
            channel=message.channel,
        )
        log.debug(f"Discord message from {event.author}: {event.body}")
        await self._queue.put(event)

    # --------------------------------------------------

    async def run(self) -> None:
        """
        Keep the Discord session alive until cancelled.

        Disconnects and transport errors are retried with capped backoff;
        authentication failures propagate.
        """
        log.info("Initializing Discord client")

        try:
            while not self._closing:
                self.lifecycle.mark_attempt()

                try:
                    await self._bot.start(self._token)
                    if self._closing:
                        break
                    log.warning("Discord session ended")
                except asyncio.CancelledError:
                    log.info("Discord client task cancelled")
                    raise
                except FATAL_ERRORS as e:
                    log.error(f"Discord login rejected: {e}")
                    raise
                except Exception as e:
                    log.warning(f"Discord connection failed: {e}")

                await self._reset_bot()

                delay = self.lifecycle.mark_failure()
                log.info(f"Reconnecting to Discord in {delay:.0f}s")
                await asyncio.sleep(delay)
        finally:
            log.info("Discord client stopped")

    async def _reset_bot(self) -> None:
        self._ready_event.clear()
        self._channels.clear()

        try:
            await self._bot.close()
        except Exception as e:
            log.warning(f"Discord close error ignored: {e}")

        self._bot.clear()

    # --------------------------------------------------

    async def send(self, channel: Any, text: str) -> None:
        """
        Send text to a channel id or a message reply handle.

        Waits for the client to be ready. Transport errors propagate.
        """
        chunks = split_message(text)
        if not chunks:
            log.debug(f"Skipping empty message for channel {channel!r}")
            return

        await self._ready_event.wait()
        target = await self._resolve_channel(channel)

        for chunk in chunks:
            await target.send(chunk)

    async def _resolve_channel(self, channel: Any) -> discord.abc.Messageable:
        if not isinstance(channel, int):
            return channel

        cached = self._channels.get(channel)
        if cached is not None:
            return cached

        resolved = self._bot.get_channel(channel)
        if resolved is None:
            resolved = await self._bot.fetch_channel(channel)

        if not isinstance(resolved, discord.abc.Messageable):
            raise RuntimeError(f"Discord channel {channel} is not messageable")

        self._channels[channel] = resolved
        return resolved

    # --------------------------------------------------

    async def shutdown(self) -> None:
        """
        Gracefully close the Discord connection. Idempotent.
        """
        if self._closing:
            return

        self._closing = True
        log.info("Closing Discord connection")

        try:
            await self._bot.close()
        except Exception as e:
            log.warning(f"Discord close error ignored: {e}")

        self._ready_event.clear()
        self.lifecycle.mark_disconnected()

    # --------------------------------------------------

    @property
    def bot(self) -> discord.Client:
        """
        Expose the discord.py client (read-only) for diagnostics.
        """
        return self._bot

    @property
    def ready(self) -> bool:
        return self._ready_event.is_set()
