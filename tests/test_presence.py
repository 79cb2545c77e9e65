from __future__ import annotations

from services.minecraft.presence import PresenceTracker


def test_empty_snapshot() -> None:
    presence = PresenceTracker()

    assert presence.snapshot() == (0, [])
    assert presence.format_online() == "0 online: "


def test_join_is_idempotent() -> None:
    presence = PresenceTracker()

    assert presence.record_join("Alice") is True
    assert presence.record_join("Alice") is False
    assert len(presence) == 1


def test_quit_is_idempotent() -> None:
    presence = PresenceTracker()
    presence.record_join("Alice")

    assert presence.record_quit("Bob") is False
    assert len(presence) == 1
    assert presence.record_quit("Alice") is True
    assert presence.record_quit("Alice") is False
    assert len(presence) == 0


def test_snapshot_keeps_insertion_order() -> None:
    presence = PresenceTracker()
    presence.record_join("Alice")
    presence.record_join("Bob")

    assert presence.snapshot() == (2, ["Alice", "Bob"])
    assert presence.format_online() == "2 online: Alice, Bob"
    assert "Bob" in presence
    assert list(presence) == ["Alice", "Bob"]


def test_rejoin_moves_to_end() -> None:
    presence = PresenceTracker()
    for name in ("Alice", "Bob"):
        presence.record_join(name)
    presence.record_quit("Alice")
    presence.record_join("Alice")

    assert presence.format_online() == "2 online: Bob, Alice"
