"""
Server process wrapper.

Spawns the game server once with piped stdin / stdout, exposes stdout as a
stream reader for a LineSource and stdin as a line writer for the router,
and tears the process down on shutdown. stderr is inherited.
"""

from __future__ import annotations

import asyncio
import shlex
from typing import List, Optional, Sequence, Union

from shared.logging.logger import get_logger

log = get_logger("minecraft.process")


def split_command(command: Union[str, Sequence[str]]) -> List[str]:
    """
    Normalize a server command into an argv list.

    A single string is split shell-style; a sequence of one string is split
    the same way; longer sequences are used as-is.
    """
    if isinstance(command, str):
        argv = shlex.split(command)
    elif len(command) == 1:
        argv = shlex.split(command[0])
    else:
        argv = list(command)

    if not argv:
        raise ValueError("Server command is empty")

    return argv


class ServerProcess:
    """
    Owns the server subprocess lifecycle.

    - start() spawns the child
    - write_line() is the router's stdin sink
    - shutdown() is idempotent: close stdin, terminate, then kill after the
      grace period
    """

    def __init__(
        self,
        command: Union[str, Sequence[str]],
        *,
        stop_timeout: float = 10.0,
    ):
        self._argv = split_command(command)
        self._stop_timeout = stop_timeout
        self._process: Optional[asyncio.subprocess.Process] = None

    # --------------------------------------------------
    # Lifecycle
    # --------------------------------------------------

    async def start(self) -> None:
        if self._process is not None:
            raise RuntimeError("Server process already started")

        log.info(f"Launching server: {shlex.join(self._argv)}")

        try:
            self._process = await asyncio.create_subprocess_exec(
                *self._argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            log.error(f"Failed to launch server: {e}")
            raise

        log.info(f"Server started (pid={self._process.pid})")

    async def shutdown(self) -> None:
        process = self._process
        if process is None or process.returncode is not None:
            if process is not None:
                log.info(f"Server already exited (code={process.returncode})")
            return

        log.info(f"Stopping server (pid={process.pid})")

        if process.stdin and not process.stdin.is_closing():
            process.stdin.close()

        try:
            process.terminate()
        except ProcessLookupError:
            pass

        try:
            await asyncio.wait_for(process.wait(), timeout=self._stop_timeout)
        except asyncio.TimeoutError:
            log.warning(
                f"Server did not exit within {self._stop_timeout}s; killing"
            )
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()

        log.info(f"Server stopped (code={process.returncode})")

    # --------------------------------------------------
    # I/O
    # --------------------------------------------------

    @property
    def stdout(self) -> asyncio.StreamReader:
        if self._process is None or self._process.stdout is None:
            raise RuntimeError("Server process not started")
        return self._process.stdout

    async def write_line(self, text: str) -> None:
        """
        Write one command line to the server and flush it.
        """
        if self._process is None or self._process.stdin is None:
            raise RuntimeError("Server process not started")

        stdin = self._process.stdin
        stdin.write(text.encode("utf-8") + b"\n")
        await stdin.drain()

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode if self._process else None
