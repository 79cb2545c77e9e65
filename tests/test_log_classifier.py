from __future__ import annotations

from services.minecraft.log_classifier import (
    AchievementUnlocked,
    ChatRelay,
    PlayerJoined,
    PlayerQuit,
    Unrecognized,
    classify,
)

PREFIX = "[12:00:00] [Server thread/INFO]: "


def test_join_without_connection_suffix() -> None:
    record = classify(PREFIX + "Steve logged in with entity id 5 at (1.0, 2.0, 3.0)")

    assert record == PlayerJoined(name="Steve")
    assert record.announcement() == "Steve joined the server!"


def test_join_strips_bracketed_connection_suffix() -> None:
    record = classify(
        PREFIX + "Alex[/127.0.0.1:51234] logged in with entity id 312 at (-4.5, 64.0, 12.25)"
    )

    assert record == PlayerJoined(name="Alex")


def test_quit() -> None:
    record = classify(PREFIX + "Steve left the game")

    assert record == PlayerQuit(name="Steve")
    assert record.announcement() == "Steve left the server."


def test_achievement() -> None:
    record = classify(PREFIX + "Steve has made the advancement [Stone Age]")

    assert record == AchievementUnlocked(name="Steve", achievement="Stone Age")
    assert record.announcement() == "Steve unlocked achievement [Stone Age]!"


def test_chat_relay() -> None:
    record = classify(PREFIX + "<Steve> hello world")

    assert record == ChatRelay(name="Steve", body="hello world")
    assert record.announcement() == "[Steve]: hello world"


def test_chat_body_whitespace_is_preserved() -> None:
    record = classify(PREFIX + "<Steve>   spaced  out ")

    assert record == ChatRelay(name="Steve", body="  spaced  out ")


def test_chat_name_may_not_contain_spaces() -> None:
    record = classify(PREFIX + "<Not A Name> hi")

    assert isinstance(record, Unrecognized)


def test_quit_takes_precedence_over_chat() -> None:
    record = classify(PREFIX + "<Steve> Bob left the game")

    assert record == PlayerQuit(name="<Steve> Bob")


def test_other_threads_are_not_classified() -> None:
    record = classify("[12:00:00] [Worker-Main-1/INFO]: Steve left the game")

    assert isinstance(record, Unrecognized)


def test_unrecognized_keeps_raw_line() -> None:
    line = PREFIX + "Done (3.512s)! For help, type \"help\""
    record = classify(line)

    assert record == Unrecognized(line=line)
    assert record.announcement() is None


def test_partial_join_falls_through() -> None:
    record = classify(PREFIX + "Steve logged in with entity id 5")

    assert isinstance(record, Unrecognized)


def test_empty_and_odd_input_is_total() -> None:
    assert isinstance(classify(""), Unrecognized)
    assert isinstance(classify("\x00�[]<>"), Unrecognized)
