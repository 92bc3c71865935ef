"""
Live event channels.

A channel delivers parsed live events to the updater. ``QueueEventChannel``
is fed in-process (the API's event intake pushes into it);
``StreamingEventChannel`` reads server-sent events from a live scoring feed.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, Dict, Optional

import httpx
from pydantic import ValidationError

from .events import LiveEvent, parse_event


logger = logging.getLogger(__name__)

# Feed responses that retrying will not fix
FATAL_STATUS_CODES = (401, 403, 404)


class ChannelError(Exception):
    """Transient channel failure; the caller may reconnect."""
    pass


class FatalChannelError(ChannelError):
    """Unrecoverable channel failure (bad credentials, unknown feed)."""
    pass


class LiveEventChannel(ABC):
    """Source of live events for the real-time updater."""

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the channel.

        Raises:
            ChannelError: if the channel cannot be opened right now
            FatalChannelError: if it will never open
        """
        pass

    @abstractmethod
    def events(self) -> AsyncIterator[LiveEvent]:
        """
        Iterate events until the channel closes.

        Raises:
            ChannelError: when the connection drops
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        pass


class QueueEventChannel(LiveEventChannel):
    """In-process channel backed by a bounded asyncio queue."""

    _CLOSED = object()

    def __init__(self, maxsize: int = 1000):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.connected = False

    async def connect(self) -> None:
        # Drop close markers left behind by an earlier session
        pending = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is not self._CLOSED:
                pending.append(item)
        for item in pending:
            self._queue.put_nowait(item)
        self.connected = True

    async def publish(self, event: LiveEvent) -> None:
        """Enqueue an event, waiting while the queue is full."""
        await self._queue.put(event)

    def publish_nowait(self, event: LiveEvent) -> None:
        """
        Enqueue an event without waiting.

        Raises:
            asyncio.QueueFull: if the queue is at capacity
        """
        self._queue.put_nowait(event)

    def qsize(self) -> int:
        return self._queue.qsize()

    async def events(self) -> AsyncIterator[LiveEvent]:
        while True:
            item = await self._queue.get()
            if item is self._CLOSED:
                return
            yield item

    async def close(self) -> None:
        if self.connected:
            self.connected = False
            try:
                self._queue.put_nowait(self._CLOSED)
            except asyncio.QueueFull:
                # Reader is behind; drop the oldest event to make room for the sentinel
                self._queue.get_nowait()
                self._queue.put_nowait(self._CLOSED)


class StreamingEventChannel(LiveEventChannel):
    """
    Reads ``data: {json}`` lines from a server-sent-event feed over httpx.

    Malformed lines are logged and skipped; the stream ending or a transport
    error raises ChannelError so the updater can reconnect.
    """

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        self.url = url
        self.headers = {"Accept": "text/event-stream", **(headers or {})}
        self._client = client
        self._owns_client = client is None
        self._response: Optional[httpx.Response] = None

    async def connect(self) -> None:
        await self._close_response()
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(10.0, read=None))

        try:
            request = self._client.build_request("GET", self.url, headers=self.headers)
            response = await self._client.send(request, stream=True)
        except httpx.RequestError as e:
            raise ChannelError(f"Failed to connect to live feed: {e}")

        if response.status_code in FATAL_STATUS_CODES:
            await response.aclose()
            raise FatalChannelError(f"Live feed rejected connection: HTTP {response.status_code}")
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            await response.aclose()
            raise ChannelError(f"Live feed error: HTTP {e.response.status_code}")

        self._response = response
        logger.info(f"Connected to live feed {self.url}")

    async def events(self) -> AsyncIterator[LiveEvent]:
        if self._response is None:
            raise ChannelError("Channel is not connected")

        try:
            async for line in self._response.aiter_lines():
                if not line.startswith("data:"):
                    continue
                payload = line[len("data:"):].strip()
                if not payload:
                    continue
                try:
                    yield parse_event(json.loads(payload))
                except (json.JSONDecodeError, ValidationError) as e:
                    logger.warning(f"Dropping malformed live event: {e}")
        except httpx.HTTPError as e:
            raise ChannelError(f"Live feed connection lost: {e}")
        finally:
            await self._close_response()

        raise ChannelError("Live feed stream ended")

    async def close(self) -> None:
        await self._close_response()
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _close_response(self) -> None:
        if self._response is not None:
            response, self._response = self._response, None
            await response.aclose()
