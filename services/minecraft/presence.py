"""
Presence Tracker

In-memory record of which players are online, derived only from observed
join / quit log lines. Owned by the event router; nothing else mutates it.
Starts empty on every boot.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Tuple

from shared.logging.logger import get_logger

log = get_logger("minecraft.presence")

SEPARATOR = ", "


class PresenceTracker:
    """
    Insertion-ordered set of online player names.

    record_join / record_quit are idempotent and report whether the set
    actually changed.
    """

    def __init__(self):
        # dict keeps insertion order, values unused
        self._online: Dict[str, None] = {}

    # --------------------------------------------------
    # Mutation (router only)
    # --------------------------------------------------

    def record_join(self, name: str) -> bool:
        if name in self._online:
            log.debug(f"Join for already-online player ignored: {name!r}")
            return False

        self._online[name] = None
        log.info(f"Player online: {name} (count={len(self._online)})")
        return True

    def record_quit(self, name: str) -> bool:
        if name not in self._online:
            log.debug(f"Quit for offline player ignored: {name!r}")
            return False

        del self._online[name]
        log.info(f"Player offline: {name} (count={len(self._online)})")
        return True

    # --------------------------------------------------
    # Introspection
    # --------------------------------------------------

    def snapshot(self) -> Tuple[int, List[str]]:
        names = list(self._online)
        return len(names), names

    def format_online(self) -> str:
        """
        Render the "!online" reply, e.g. "2 online: Alice, Bob".
        """
        count, names = self.snapshot()
        return f"{count} online: {SEPARATOR.join(names)}"

    def __len__(self) -> int:
        return len(self._online)

    def __contains__(self, name: object) -> bool:
        return name in self._online

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._online))
