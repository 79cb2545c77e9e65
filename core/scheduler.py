"""
Bridge Scheduler

Owns every runtime task of the bridge and their joint lifetime.

Tasks:
- router          (EventRouter.run, sole queue consumer)
- server-stdout   (LineSource over the server's stdout)
- console-stdin   (LineSource over the operator console)
- discord         (DiscordClient.run, reconnect loop)

The tasks share fate: the first one to finish, normally or with an error,
ends the run. Remaining tasks are cancelled, the Discord client and the
server process are shut down, and the first error (if any) is re-raised.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

from shared.logging.logger import get_logger

log = get_logger("core.scheduler")

ShutdownHook = Callable[[], Awaitable[None]]


class Scheduler:
    def __init__(self):
        # name -> task
        self._tasks: Dict[str, asyncio.Task] = {}

        # run in registration order during teardown
        self._shutdown_hooks: List[tuple[str, ShutdownHook]] = []

        self._stopped_by: Optional[str] = None

    # ------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------

    def spawn(self, name: str, coro: Awaitable[None]) -> asyncio.Task:
        if name in self._tasks:
            raise RuntimeError(f"Task already scheduled: {name}")

        task = asyncio.ensure_future(coro)
        task.set_name(name)
        self._tasks[name] = task
        log.debug(f"Task scheduled: {name}")
        return task

    def on_shutdown(self, name: str, hook: ShutdownHook) -> None:
        self._shutdown_hooks.append((name, hook))

    # ------------------------------------------------------------
    # Supervision
    # ------------------------------------------------------------

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Block until the first task finishes or stop_event is set, then tear
        everything down. Re-raises the first task error.
        """
        if not self._tasks:
            raise RuntimeError("No tasks scheduled")

        waiters = set(self._tasks.values())
        stop_waiter: Optional[asyncio.Task] = None
        if stop_event is not None:
            stop_waiter = asyncio.ensure_future(stop_event.wait())
            waiters.add(stop_waiter)

        error: Optional[BaseException] = None

        try:
            done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            error = self._first_outcome(done, stop_waiter)
        finally:
            if stop_waiter is not None and not stop_waiter.done():
                stop_waiter.cancel()
            await self.shutdown()

        if error is not None:
            raise error

    def _first_outcome(
        self,
        done: set,
        stop_waiter: Optional[asyncio.Task],
    ) -> Optional[BaseException]:
        error: Optional[BaseException] = None

        for name, task in self._tasks.items():
            if task not in done:
                continue

            if task.cancelled():
                log.warning(f"Task '{name}' was cancelled")
            elif task.exception() is not None:
                exc = task.exception()
                log.error(f"Task '{name}' failed: {exc!r}")
                if error is None:
                    error = exc
            else:
                log.info(f"Task '{name}' finished")

            if self._stopped_by is None:
                self._stopped_by = name

        if self._stopped_by is None and stop_waiter is not None and stop_waiter in done:
            self._stopped_by = "stop signal"
            log.info("Stop signal received")

        return error

    # ------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------

    async def shutdown(self) -> None:
        log.info(f"Scheduler shutdown initiated (stopped by: {self._stopped_by})")

        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()

        if pending:
            results = await asyncio.gather(*pending, return_exceptions=True)
            for task, result in zip(pending, results):
                if isinstance(result, Exception):
                    log.warning(f"Task '{task.get_name()}' raised during cancel: {result!r}")

        for name, hook in self._shutdown_hooks:
            try:
                await hook()
            except Exception as e:
                log.warning(f"Shutdown hook '{name}' error ignored: {e}")

        self._shutdown_hooks.clear()
        log.info("Scheduler shutdown complete")

    # ------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------

    @property
    def stopped_by(self) -> Optional[str]:
        return self._stopped_by

    @property
    def task_count(self) -> int:
        return len(self._tasks)
