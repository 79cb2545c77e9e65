"""Bridge event schema.

Every producer (Discord, server stdout, console stdin) wraps what it reads
into one of these events and pushes it onto the shared event queue. The
router is the only consumer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class ChatMessage:
    """
    Inbound Discord message.

    `channel` is the transport's reply handle. The router never inspects it,
    it only hands it back to the chat sender when answering a command.
    """

    author: str
    body: str
    channel: Any = field(default=None, compare=False, repr=False)

    kind = "chat"


@dataclass(frozen=True)
class ProcessLine:
    """One line read from the server's stdout."""

    text: str

    kind = "process"


@dataclass(frozen=True)
class ConsoleLine:
    """One line typed by the operator on the console."""

    text: str

    kind = "console"


BridgeEvent = Union[ChatMessage, ProcessLine, ConsoleLine]


__all__ = [
    "BridgeEvent",
    "ChatMessage",
    "ConsoleLine",
    "ProcessLine",
]
