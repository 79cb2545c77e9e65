import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

DEFAULT_RUNTIME = "mc-sync"

_LOGGERS = {}
_CONFIGURED = set()

_FORMATTER = logging.Formatter(
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
)


def get_logger(
    name: str,
    *,
    runtime: str = DEFAULT_RUNTIME,
) -> logging.Logger:
    """
    Create or retrieve a named logger.

    Parameters:
    - name: logger namespace (e.g. core.router, discord.client)
    - runtime: parent namespace and log file prefix

    Loggers propagate to the runtime logger, which receives its handlers
    from setup_logging(). Safe to call at import time.
    """
    cache_key = f"{runtime}.{name}"
    if cache_key in _LOGGERS:
        return _LOGGERS[cache_key]

    logger = logging.getLogger(cache_key)
    _LOGGERS[cache_key] = logger

    return logger


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[str] = "logs",
    *,
    runtime: str = DEFAULT_RUNTIME,
) -> logging.Logger:
    """
    Install console + per-run file handlers on the runtime logger.

    The console handler writes to stderr: stdout is reserved for the
    server transcript. An empty log_dir disables the file handler.
    """
    root = logging.getLogger(runtime)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if runtime in _CONFIGURED:
        return root

    # ------------------------------
    # Console handler
    # ------------------------------
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(_FORMATTER)
    root.addHandler(console)

    # ------------------------------
    # File handler (one per run)
    # ------------------------------
    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        logfile = directory / f"{runtime}-{timestamp}.log"

        file_handler = logging.FileHandler(logfile, encoding="utf-8")
        file_handler.setFormatter(_FORMATTER)
        root.addHandler(file_handler)

    root.propagate = False
    _CONFIGURED.add(runtime)

    return root
