"""
======================================================================
 mc-sync — Version v0.3.0 (Build 2026.10)
======================================================================

Bridge entrypoint.

Owns:
- event loop creation
- wiring of queue, sources, router and Discord client
- orderly startup and shutdown
- exit status (0 on a normal stop, 1 on a fatal error)
"""

import asyncio
import signal
import sys
from typing import Optional, Sequence

from core.config import BridgeConfig, load_config
from core.router import EventRouter
from core.scheduler import Scheduler
from runtime.version import as_string
from services.console.stdio import ConsoleWriter, open_console_reader
from services.discord.client import DiscordClient
from services.minecraft.process import ServerProcess
from shared.chat.events import ConsoleLine, ProcessLine
from shared.io.line_source import LineSource
from shared.logging.logger import get_logger, setup_logging

log = get_logger("core.app")


# ----------------------------------------------------------------------
# MAIN ASYNC ENTRYPOINT
# ----------------------------------------------------------------------

async def main(config: BridgeConfig, stop_event: asyncio.Event):
    log.info(f"{as_string()} booting")
    log.info(f"Configuration: {config.summary()}")

    queue: asyncio.Queue = asyncio.Queue(maxsize=config.queue_size)
    scheduler = Scheduler()

    # --------------------------------------------------
    # SERVER PROCESS
    # --------------------------------------------------
    server = ServerProcess(config.command, stop_timeout=config.stop_timeout)
    await server.start()
    scheduler.on_shutdown("server", server.shutdown)

    # --------------------------------------------------
    # DISCORD
    # --------------------------------------------------
    discord_client = DiscordClient(token=config.discord_token, queue=queue)
    scheduler.on_shutdown("discord", discord_client.shutdown)

    # --------------------------------------------------
    # ROUTER + SOURCES
    # --------------------------------------------------
    router = EventRouter(
        chat=discord_client,
        server_stdin=server,
        console=ConsoleWriter(),
        general_channel=config.general_channel,
        server_channel=config.server_channel,
        relay_identity=config.relay_name,
    )

    server_source = LineSource("server-stdout", server.stdout, queue, ProcessLine)
    try:
        console_reader = await open_console_reader()
    except (AttributeError, OSError, ValueError) as e:
        log.error(f"Failed to attach console input: {e}")
        await scheduler.shutdown()
        raise
    console_source = LineSource("console-stdin", console_reader, queue, ConsoleLine)

    scheduler.spawn("router", router.run(queue))
    scheduler.spawn("server-stdout", server_source.run())
    scheduler.spawn("console-stdin", console_source.run())
    scheduler.spawn("discord", discord_client.run())

    log.info("Bridge running")

    # --------------------------------------------------
    # BLOCK UNTIL FIRST TASK ENDS OR SHUTDOWN SIGNAL
    # --------------------------------------------------
    await scheduler.run(stop_event)

    log.info("Bridge stopped")


# ----------------------------------------------------------------------
# SIGNAL HANDLING
# ----------------------------------------------------------------------

def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    stop_event: asyncio.Event,
):
    """
    Ctrl+C / SIGTERM handler.
    Uses signal.signal + asyncio.Event to unwind cleanly.
    """

    def _handler(signum, frame):
        try:
            loop.call_soon_threadsafe(stop_event.set)
        except RuntimeError:
            stop_event.set()

    try:
        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
    except (ValueError, OSError) as e:
        log.debug(f"Signal handlers not installed: {e}")


# ----------------------------------------------------------------------
# ENTRYPOINT
# ----------------------------------------------------------------------

def run(argv: Optional[Sequence[str]] = None) -> int:
    config = load_config(argv)
    setup_logging(config.log_level, config.log_dir)

    stop_event = asyncio.Event()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    _install_signal_handlers(loop, stop_event)

    exit_code = 0

    try:
        loop.run_until_complete(main(config, stop_event))

    except KeyboardInterrupt:
        log.info("KeyboardInterrupt received — shutdown initiated")

    except Exception:
        log.exception("Bridge terminated by fatal error")
        exit_code = 1

    finally:
        # --------------------------------------------------
        # CANCEL REMAINING TASKS (CLEANLY)
        # --------------------------------------------------
        pending = [t for t in asyncio.all_tasks(loop) if not t.done()]
        for task in pending:
            task.cancel()

        if pending:
            loop.run_until_complete(
                asyncio.gather(*pending, return_exceptions=True)
            )

        # --------------------------------------------------
        # FINAL LOOP CLEANUP
        # --------------------------------------------------
        loop.run_until_complete(loop.shutdown_asyncgens())

        asyncio.set_event_loop(None)
        loop.close()

    return exit_code


if __name__ == "__main__":
    sys.exit(run())
