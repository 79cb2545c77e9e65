"""
Console plumbing.

- open_console_reader(): feeds process stdin into an asyncio StreamReader so a
  LineSource can consume operator input without blocking the loop
- ConsoleWriter: the router's stdout sink, one flushed line per call

stdin is read on a daemon thread with blocking reads. A terminal shares one
file description between stdin and stdout, so stdin must never be switched
to non-blocking mode while ConsoleWriter writes synchronously.
"""

from __future__ import annotations

import asyncio
import sys
import threading
from typing import BinaryIO, Optional

from shared.logging.logger import get_logger

log = get_logger("console.stdio")


def _pump_stdin(
    stream: BinaryIO,
    reader: asyncio.StreamReader,
    loop: asyncio.AbstractEventLoop,
) -> None:
    try:
        while True:
            try:
                chunk = stream.readline()
            except (OSError, ValueError) as e:
                loop.call_soon_threadsafe(reader.set_exception, e)
                return

            if not chunk:
                break
            loop.call_soon_threadsafe(reader.feed_data, chunk)

        loop.call_soon_threadsafe(reader.feed_eof)
    except RuntimeError:
        # loop already closed
        return


async def open_console_reader(
    stream: Optional[BinaryIO] = None,
) -> asyncio.StreamReader:
    """
    Attach a StreamReader to stdin (pipe, file or terminal).
    """
    stream = stream if stream is not None else sys.stdin.buffer

    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()

    thread = threading.Thread(
        target=_pump_stdin,
        args=(stream, reader, loop),
        name="console-stdin",
        daemon=True,
    )
    thread.start()

    log.debug("Console reader attached to stdin")
    return reader


class ConsoleWriter:
    """
    Writes server transcript lines to stdout and flushes after each one.
    """

    def __init__(self, stream: Optional[BinaryIO] = None):
        self._stream = stream if stream is not None else sys.stdout.buffer

    async def write_line(self, text: str) -> None:
        self._stream.write(text.encode("utf-8") + b"\n")
        self._stream.flush()
