"""
Line Source

Turns a readable asyncio stream into a lazy sequence of decoded lines and
pumps each line, wrapped as a bridge event, into the shared event queue.

Rules:
- lines are split on "\\n"; a "\\r" before the newline is dropped too
- a final line without a newline is still emitted at EOF
- line length is unbounded (the reader's buffer limit is not a line limit)
- decoding is strict UTF-8; invalid input raises out of the source
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Callable, List

from shared.chat.events import BridgeEvent
from shared.logging.logger import get_logger

log = get_logger("io.line_source")


class LineSource:
    """
    Producer task for one line-oriented stream.

    The source is not restartable: once the stream reaches EOF (or fails)
    run() returns (or raises) and the instance is spent.
    """

    def __init__(
        self,
        name: str,
        reader: asyncio.StreamReader,
        queue: "asyncio.Queue[BridgeEvent]",
        wrap: Callable[[str], BridgeEvent],
        *,
        encoding: str = "utf-8",
    ):
        self.name = name
        self._reader = reader
        self._queue = queue
        self._wrap = wrap
        self._encoding = encoding
        self._lines_read = 0

    # --------------------------------------------------

    async def _read_raw_line(self) -> bytes:
        """
        Read up to and including the next newline.

        Returns b"" at EOF. Lines longer than the reader limit are
        accumulated chunk by chunk instead of failing.
        """
        chunks: List[bytes] = []

        while True:
            try:
                chunk = await self._reader.readuntil(b"\n")
            except asyncio.IncompleteReadError as e:
                chunks.append(e.partial)
                break
            except asyncio.LimitOverrunError as e:
                chunks.append(await self._reader.readexactly(e.consumed))
                continue

            chunks.append(chunk)
            break

        return b"".join(chunks)

    async def iter_lines(self) -> AsyncIterator[str]:
        """
        Yield decoded lines until EOF.
        """
        while True:
            raw = await self._read_raw_line()
            if not raw:
                return

            if raw.endswith(b"\n"):
                raw = raw[:-1]
                if raw.endswith(b"\r"):
                    raw = raw[:-1]

            yield raw.decode(self._encoding)

    # --------------------------------------------------

    async def run(self) -> None:
        """
        Pump every line into the event queue. Blocks while the queue is full.
        """
        log.info(f"Line source '{self.name}' started")

        try:
            async for line in self.iter_lines():
                self._lines_read += 1
                await self._queue.put(self._wrap(line))
        except UnicodeDecodeError as e:
            log.error(f"Line source '{self.name}' received undecodable input: {e}")
            raise

        log.info(
            f"Line source '{self.name}' reached end of input "
            f"after {self._lines_read} line(s)"
        )

    @property
    def lines_read(self) -> int:
        return self._lines_read
