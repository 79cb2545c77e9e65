"""
Discord Runtime Lifecycle

Passive connection state tracker for the Discord transport.

Owned by DiscordClient, which records every transition; the scheduler only
reads snapshots for diagnostics. This module does NOT:
- start asyncio tasks
- own the Discord client
- perform network I/O
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from shared.logging.logger import get_logger

log = get_logger("discord.runtime.lifecycle")

INITIAL_BACKOFF = 1.0
MAX_BACKOFF = 60.0


class DiscordRuntimeLifecycle:
    """
    Connection state and reconnect backoff for the Discord runtime.
    """

    def __init__(
        self,
        *,
        initial_backoff: float = INITIAL_BACKOFF,
        max_backoff: float = MAX_BACKOFF,
    ):
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff

        self._started_at: Optional[datetime] = None
        self._ready_at: Optional[datetime] = None
        self._disconnected_at: Optional[datetime] = None
        self._connected: bool = False
        self._attempts: int = 0
        self._failures: int = 0

    # --------------------------------------------------
    # Transitions
    # --------------------------------------------------

    def mark_attempt(self):
        """
        Mark the start of a connection attempt.
        """
        self._attempts += 1
        if self._started_at is None:
            self._started_at = datetime.now(timezone.utc)
        log.debug(f"Discord connection attempt #{self._attempts}")

    def mark_ready(self):
        """
        Mark the client connected and ready; resets the backoff.
        """
        self._ready_at = datetime.now(timezone.utc)
        self._connected = True
        self._failures = 0

    def mark_disconnected(self):
        self._disconnected_at = datetime.now(timezone.utc)
        self._connected = False

    def mark_failure(self) -> float:
        """
        Record a failed or ended session and return the delay before the
        next attempt.
        """
        self.mark_disconnected()
        delay = min(
            self._initial_backoff * (2 ** self._failures),
            self._max_backoff,
        )
        self._failures += 1
        return delay

    # --------------------------------------------------
    # Introspection
    # --------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "ready_at": self._ready_at.isoformat() if self._ready_at else None,
            "disconnected_at": (
                self._disconnected_at.isoformat() if self._disconnected_at else None
            ),
            "connected": self._connected,
            "attempts": self._attempts,
            "consecutive_failures": self._failures,
        }

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def attempts(self) -> int:
        return self._attempts
