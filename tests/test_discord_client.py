from __future__ import annotations

import asyncio
from types import SimpleNamespace

import discord
import pytest

from services.discord.client import MESSAGE_LIMIT, DiscordClient, split_message
from services.discord.runtime.lifecycle import DiscordRuntimeLifecycle
from shared.chat.events import ChatMessage


class FakeChannel(discord.abc.Messageable):
    def __init__(self) -> None:
        self.sent: list[str] = []

    async def send(self, content: str) -> None:
        self.sent.append(content)


def test_split_message_limits() -> None:
    assert split_message("hello") == ["hello"]
    assert split_message("") == []
    assert split_message("   ") == []

    chunks = split_message("a" * (MESSAGE_LIMIT * 2 + 5))
    assert [len(chunk) for chunk in chunks] == [MESSAGE_LIMIT, MESSAGE_LIMIT, 5]


def test_token_is_required() -> None:
    async def _run() -> None:
        DiscordClient(token="", queue=asyncio.Queue())

    with pytest.raises(RuntimeError):
        asyncio.run(_run())


def test_inbound_message_is_queued() -> None:
    async def _run() -> ChatMessage:
        queue: asyncio.Queue = asyncio.Queue()
        client = DiscordClient(token="token", queue=queue)
        channel = FakeChannel()
        message = SimpleNamespace(
            author=SimpleNamespace(name="alice"),
            content="!online",
            channel=channel,
        )
        await client._handle_message(message)
        return queue.get_nowait()

    event = asyncio.run(_run())

    assert event.author == "alice"
    assert event.body == "!online"
    assert isinstance(event.channel, FakeChannel)


def test_send_to_reply_handle_splits_long_text() -> None:
    async def _run() -> FakeChannel:
        client = DiscordClient(token="token", queue=asyncio.Queue())
        client._ready_event.set()
        channel = FakeChannel()
        await client.send(channel, "x" * (MESSAGE_LIMIT + 1))
        return channel

    channel = asyncio.run(_run())

    assert channel.sent == ["x" * MESSAGE_LIMIT, "x"]


def test_send_resolves_and_caches_channel_ids() -> None:
    lookups: list[int] = []
    channel = FakeChannel()

    def _get_channel(channel_id: int) -> FakeChannel:
        lookups.append(channel_id)
        return channel

    async def _run() -> None:
        client = DiscordClient(token="token", queue=asyncio.Queue())
        client._ready_event.set()
        client.bot.get_channel = _get_channel
        await client.send(42, "first")
        await client.send(42, "second")

    asyncio.run(_run())

    assert channel.sent == ["first", "second"]
    assert lookups == [42]


def test_channel_id_must_be_messageable() -> None:
    async def _run() -> None:
        client = DiscordClient(token="token", queue=asyncio.Queue())
        client._ready_event.set()
        client.bot.get_channel = lambda channel_id: object()
        await client.send(7, "hello")

    with pytest.raises(RuntimeError):
        asyncio.run(_run())


def test_empty_text_is_skipped_without_waiting_for_ready() -> None:
    async def _run() -> FakeChannel:
        client = DiscordClient(token="token", queue=asyncio.Queue())
        channel = FakeChannel()
        await asyncio.wait_for(client.send(channel, ""), timeout=1)
        return channel

    assert asyncio.run(_run()).sent == []


def test_send_waits_until_ready() -> None:
    async def _run() -> tuple[list[str], list[str]]:
        client = DiscordClient(token="token", queue=asyncio.Queue())
        channel = FakeChannel()
        task = asyncio.create_task(client.send(channel, "queued"))
        await asyncio.sleep(0)
        before = list(channel.sent)
        client._ready_event.set()
        await task
        return before, channel.sent

    before, after = asyncio.run(_run())

    assert before == []
    assert after == ["queued"]


def test_lifecycle_backoff_grows_and_resets() -> None:
    lifecycle = DiscordRuntimeLifecycle(initial_backoff=1.0, max_backoff=5.0)

    delays = [lifecycle.mark_failure() for _ in range(5)]
    assert delays == [1.0, 2.0, 4.0, 5.0, 5.0]
    assert lifecycle.connected is False

    lifecycle.mark_ready()
    assert lifecycle.connected is True
    assert lifecycle.mark_failure() == 1.0


def test_lifecycle_snapshot_counts_attempts() -> None:
    lifecycle = DiscordRuntimeLifecycle()
    lifecycle.mark_attempt()
    lifecycle.mark_attempt()

    snapshot = lifecycle.snapshot()
    assert snapshot["attempts"] == 2
    assert snapshot["started_at"] is not None
    assert snapshot["connected"] is False


class RecordingLifecycle(DiscordRuntimeLifecycle):
    def __init__(self) -> None:
        super().__init__(initial_backoff=0.01, max_backoff=0.05)
        self.delays: list[float] = []

    def mark_failure(self) -> float:
        delay = super().mark_failure()
        self.delays.append(delay)
        return delay


class StubBot:
    def __init__(self, outcomes: list, client: "DiscordClient | None" = None) -> None:
        self.outcomes = outcomes
        self.client = client
        self.tokens: list[str] = []
        self.closes = 0
        self.clears = 0

    async def start(self, token: str) -> None:
        self.tokens.append(token)
        outcome = self.outcomes.pop(0)
        if outcome is not None:
            raise outcome
        await self.client.shutdown()

    async def close(self) -> None:
        self.closes += 1

    def clear(self) -> None:
        self.clears += 1


def test_run_retries_transport_errors_with_backoff() -> None:
    lifecycle = RecordingLifecycle()

    async def _run() -> StubBot:
        client = DiscordClient(token="token", queue=asyncio.Queue(), lifecycle=lifecycle)
        bot = StubBot([ConnectionError("gateway unreachable"), OSError("reset"), None], client)
        client._bot = bot
        await asyncio.wait_for(client.run(), timeout=5)
        return bot

    bot = asyncio.run(_run())

    assert bot.tokens == ["token", "token", "token"]
    assert lifecycle.delays == [0.01, 0.02]
    assert lifecycle.attempts == 3
    assert bot.clears == 2


def test_run_login_failure_is_fatal() -> None:
    lifecycle = RecordingLifecycle()

    async def _run() -> None:
        client = DiscordClient(token="bad-token", queue=asyncio.Queue(), lifecycle=lifecycle)
        client._bot = StubBot([discord.LoginFailure("Improper token has been passed.")], client)
        await asyncio.wait_for(client.run(), timeout=5)

    with pytest.raises(discord.LoginFailure):
        asyncio.run(_run())

    assert lifecycle.delays == []
    assert lifecycle.attempts == 1
