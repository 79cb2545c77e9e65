"""
Server log line classifier.

Maps one raw server stdout line to a structured record. Pure and total:
every input yields a record, unmatched lines become Unrecognized.

Patterns are tried top to bottom and the first match wins:
join, quit, advancement, chat.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

SERVER_INFO = r".*\[Server thread/INFO\]: "


@dataclass(frozen=True)
class PlayerJoined:
    name: str

    def announcement(self) -> str:
        return f"{self.name} joined the server!"


@dataclass(frozen=True)
class PlayerQuit:
    name: str

    def announcement(self) -> str:
        return f"{self.name} left the server."


@dataclass(frozen=True)
class AchievementUnlocked:
    name: str
    achievement: str

    def announcement(self) -> str:
        return f"{self.name} unlocked achievement [{self.achievement}]!"


@dataclass(frozen=True)
class ChatRelay:
    name: str
    body: str

    def announcement(self) -> str:
        return f"[{self.name}]: {self.body}"


@dataclass(frozen=True)
class Unrecognized:
    line: str

    def announcement(self) -> Optional[str]:
        return None


LogRecord = Union[
    PlayerJoined,
    PlayerQuit,
    AchievementUnlocked,
    ChatRelay,
    Unrecognized,
]


# The bracketed connection suffix ("Steve[/127.0.0.1:51234]") is optional.
JOIN = re.compile(
    SERVER_INFO + r"(.*?)(?:\[[^\]]*\])? logged in with entity id .* at .*"
)
QUIT = re.compile(SERVER_INFO + r"(.*) left the game")
ACHIEVEMENT = re.compile(
    SERVER_INFO + r"(.*) has made the advancement \[(.*)\]"
)
MESSAGE = re.compile(SERVER_INFO + r"<([^ \]]*)> (.*)")

_RULES: List[Tuple[re.Pattern, Callable[[re.Match], LogRecord]]] = [
    (JOIN, lambda m: PlayerJoined(name=m.group(1))),
    (QUIT, lambda m: PlayerQuit(name=m.group(1))),
    (ACHIEVEMENT, lambda m: AchievementUnlocked(name=m.group(1), achievement=m.group(2))),
    (MESSAGE, lambda m: ChatRelay(name=m.group(1), body=m.group(2))),
]


def classify(line: str) -> LogRecord:
    """
    Classify a raw server log line.
    """
    for pattern, build in _RULES:
        match = pattern.search(line)
        if match:
            return build(match)

    return Unrecognized(line=line)


__all__ = [
    "AchievementUnlocked",
    "ChatRelay",
    "LogRecord",
    "PlayerJoined",
    "PlayerQuit",
    "Unrecognized",
    "classify",
]
