"""
Event Router

The single consumer of the bridge event queue. Drains events in arrival
order and reacts to each one:

- ChatMessage  -> "!online" reply, or "/say [author]: body" to the server
- ProcessLine  -> console echo, raw mirror to the server channel, and a
                  general-channel notification for recognised log lines
- ConsoleLine  -> forwarded verbatim to the server

The router exclusively owns the presence tracker and is the only writer to
the server stdin and console stdout sinks.

Output failures are not caught here: they end the router task and, through
the scheduler, the whole bridge.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from typing import Any, Dict, Optional

from core.ports import ChatSender, LineWriter
from services.minecraft.log_classifier import (
    PlayerJoined,
    PlayerQuit,
    Unrecognized,
    classify,
)
from services.minecraft.presence import PresenceTracker
from shared.chat.events import BridgeEvent, ChatMessage, ConsoleLine, ProcessLine
from shared.logging.logger import get_logger

log = get_logger("core.router")

RELAY_IDENTITY = "mc-sync"
ONLINE_COMMAND = "!online"


class EventRouter:
    def __init__(
        self,
        *,
        chat: ChatSender,
        server_stdin: LineWriter,
        console: LineWriter,
        general_channel: Any,
        server_channel: Any,
        presence: Optional[PresenceTracker] = None,
        relay_identity: str = RELAY_IDENTITY,
        online_command: str = ONLINE_COMMAND,
    ):
        self._chat = chat
        self._server_stdin = server_stdin
        self._console = console
        self._general_channel = general_channel
        self._server_channel = server_channel
        self._relay_identity = relay_identity
        self._online_command = online_command

        self.presence = presence if presence is not None else PresenceTracker()
        self._handled: Counter = Counter()

    # --------------------------------------------------
    # Loop
    # --------------------------------------------------

    async def run(self, queue: "asyncio.Queue[BridgeEvent]") -> None:
        """
        Receive / dispatch until cancelled or an output call fails.
        """
        log.info("Event router started")

        try:
            while True:
                event = await queue.get()
                try:
                    await self.dispatch(event)
                finally:
                    queue.task_done()
        finally:
            log.info(f"Event router stopped: {self.stats()}")

    async def dispatch(self, event: BridgeEvent) -> None:
        if isinstance(event, ChatMessage):
            if event.author == self._relay_identity:
                self._handled["chat_ignored"] += 1
                return
            await self._handle_chat(event)
        elif isinstance(event, ProcessLine):
            await self._handle_process_line(event)
        elif isinstance(event, ConsoleLine):
            await self._handle_console_line(event)
        else:
            raise TypeError(f"Unsupported event: {event!r}")

        self._handled[event.kind] += 1

    # --------------------------------------------------
    # Handlers
    # --------------------------------------------------

    async def _handle_chat(self, message: ChatMessage) -> None:
        if message.body.strip() == self._online_command:
            reply = self.presence.format_online()
            log.debug(f"{self._online_command} requested by {message.author}: {reply}")
            await self._chat.send(message.channel, reply)
            return

        # server stdin is line-oriented: one /say per body line
        for line in message.body.splitlines() or [message.body]:
            log.debug(f"Discord -> server: [{message.author}]: {line}")
            await self._server_stdin.write_line(f"/say [{message.author}]: {line}")

    async def _handle_process_line(self, line: ProcessLine) -> None:
        text = line.text

        await self._console.write_line(text)
        await self._chat.send(self._server_channel, text)

        record = classify(text)
        if isinstance(record, Unrecognized):
            return

        if isinstance(record, PlayerJoined):
            self.presence.record_join(record.name)
        elif isinstance(record, PlayerQuit):
            self.presence.record_quit(record.name)

        announcement = record.announcement()
        log.debug(f"Server -> general: {announcement}")
        await self._chat.send(self._general_channel, announcement)

    async def _handle_console_line(self, line: ConsoleLine) -> None:
        log.debug(f"Console -> server: {line.text}")
        await self._server_stdin.write_line(line.text)

    # --------------------------------------------------
    # Introspection
    # --------------------------------------------------

    def stats(self) -> Dict[str, Any]:
        return {
            "chat": self._handled["chat"],
            "chat_ignored": self._handled["chat_ignored"],
            "process": self._handled["process"],
            "console": self._handled["console"],
            "online": len(self.presence),
        }
