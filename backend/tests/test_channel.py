"""
Tests for live event channels.
"""

import asyncio
import json

import httpx
import pytest

from playoff_odds.realtime import (
    ChannelError,
    FatalChannelError,
    GameStart,
    QueueEventChannel,
    ScoreUpdate,
    StreamingEventChannel,
)


FEED_URL = "https://feed.example.com/live"


def _sse(*events):
    lines = []
    for event in events:
        lines.append(event if isinstance(event, str) else f"data: {json.dumps(event)}")
        lines.append("")
    return ("\n".join(lines) + "\n").encode()


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def _collect(channel):
    received = []
    with pytest.raises(ChannelError):
        async for event in channel.events():
            received.append(event)
    return received


class TestQueueEventChannel:
    """Tests for QueueEventChannel."""

    @pytest.mark.asyncio
    async def test_publish_and_iterate(self):
        """Test that published events come out in order and close ends iteration."""
        channel = QueueEventChannel(maxsize=10)
        await channel.connect()
        await channel.publish(GameStart(team_id="A"))
        channel.publish_nowait(ScoreUpdate(team_id="B", current_score=12))
        await channel.close()

        received = [event async for event in channel.events()]
        assert [e.team_id for e in received] == ["A", "B"]
        assert not channel.connected

    @pytest.mark.asyncio
    async def test_full_queue_raises(self):
        channel = QueueEventChannel(maxsize=1)
        channel.publish_nowait(GameStart(team_id="A"))
        with pytest.raises(asyncio.QueueFull):
            channel.publish_nowait(GameStart(team_id="B"))
        assert channel.qsize() == 1

    @pytest.mark.asyncio
    async def test_close_when_full(self):
        """Test that closing a full channel still stops the reader."""
        channel = QueueEventChannel(maxsize=1)
        await channel.connect()
        channel.publish_nowait(GameStart(team_id="A"))
        await channel.close()

        assert [event async for event in channel.events()] == []

    @pytest.mark.asyncio
    async def test_reconnect_drops_stale_close_marker(self):
        """Test that reopening a closed channel keeps queued events but not the old close."""
        channel = QueueEventChannel(maxsize=10)
        await channel.connect()
        await channel.close()
        channel.publish_nowait(GameStart(team_id="A"))

        await channel.connect()
        await channel.publish(GameStart(team_id="B"))
        await channel.close()

        received = [event async for event in channel.events()]
        assert [e.team_id for e in received] == ["A", "B"]


class TestStreamingEventChannel:
    """Tests for StreamingEventChannel."""

    @pytest.mark.asyncio
    async def test_reads_data_lines(self):
        """Test that data lines are parsed and other lines ignored."""
        body = _sse(
            ": keep-alive",
            {"kind": "game_start", "team_id": "A"},
            "event: ping",
            {"kind": "score_update", "team_id": "B", "current_score": 44.0},
        )

        def handler(request):
            assert request.headers["accept"] == "text/event-stream"
            return httpx.Response(200, content=body)

        async with _client(handler) as client:
            channel = StreamingEventChannel(FEED_URL, client=client)
            await channel.connect()
            received = await _collect(channel)

        assert [type(e) for e in received] == [GameStart, ScoreUpdate]
        assert received[1].current_score == 44.0

    @pytest.mark.asyncio
    async def test_malformed_lines_dropped(self):
        """Test that bad JSON and unknown events are skipped, not fatal."""
        body = _sse(
            "data: {not json",
            {"kind": "mystery", "team_id": "A"},
            {"kind": "game_start", "team_id": "C"},
        )

        async with _client(lambda request: httpx.Response(200, content=body)) as client:
            channel = StreamingEventChannel(FEED_URL, client=client)
            await channel.connect()
            received = await _collect(channel)

        assert [e.team_id for e in received] == ["C"]

    @pytest.mark.asyncio
    async def test_auth_failure_is_fatal(self):
        async with _client(lambda request: httpx.Response(401)) as client:
            channel = StreamingEventChannel(FEED_URL, client=client)
            with pytest.raises(FatalChannelError):
                await channel.connect()

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self):
        async with _client(lambda request: httpx.Response(503)) as client:
            channel = StreamingEventChannel(FEED_URL, client=client)
            with pytest.raises(ChannelError) as exc_info:
                await channel.connect()
            assert not isinstance(exc_info.value, FatalChannelError)

    @pytest.mark.asyncio
    async def test_connection_refused_is_transient(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            channel = StreamingEventChannel(FEED_URL, client=client)
            with pytest.raises(ChannelError) as exc_info:
                await channel.connect()
            assert not isinstance(exc_info.value, FatalChannelError)

    @pytest.mark.asyncio
    async def test_events_before_connect(self):
        async with _client(lambda request: httpx.Response(200)) as client:
            channel = StreamingEventChannel(FEED_URL, client=client)
            with pytest.raises(ChannelError):
                async for _ in channel.events():
                    pass

    @pytest.mark.asyncio
    async def test_custom_headers_sent(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, content=b"")

        async with _client(handler) as client:
            channel = StreamingEventChannel(FEED_URL, client=client, headers={"Authorization": "Bearer abc"})
            await channel.connect()
            await channel.close()

        assert seen["authorization"] == "Bearer abc"
