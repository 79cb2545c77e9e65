"""Ports (interfaces) used by the event router.

The router only talks to these contracts, so the Discord client, the server
process and the console writer can be swapped for fakes in tests.
"""

from __future__ import annotations

from typing import Any, Protocol


class ChatSender(Protocol):
    """Outbound chat delivery."""

    async def send(self, channel: Any, text: str) -> None:
        """Send text to a channel id or a reply handle from an inbound message."""
        ...


class LineWriter(Protocol):
    """Line-oriented text sink (server stdin, console stdout)."""

    async def write_line(self, text: str) -> None:
        """Write text plus a newline and flush."""
        ...
