from contextlib import asynccontextmanager
from typing import AsyncIterator, Generic, TypeVar

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from loguru import logger

from moment_client.core.constants import Realtime

T = TypeVar("T")


class Broadcaster(Generic[T]):
    """
    Fan-out channel delivering every published event to every subscriber.

    Each subscriber owns a bounded buffer. ``publish`` never waits: a full
    buffer drops the event for that subscriber only, so a slow consumer can
    neither block the others nor the socket read loop that publishes.
    """

    def __init__(self, name: str, max_buffer_size: int = Realtime.SUBSCRIBER_BUFFER_SIZE):
        self.name = name
        self.max_buffer_size = max_buffer_size
        self._subscribers: set[MemoryObjectSendStream[T]] = set()
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: T) -> None:
        """
        Deliver ``event`` to the current subscribers without blocking.
        """
        if self._closed:
            logger.debug(f"Channel {self.name} is closed, dropping {event!r}")
            return

        for stream in list(self._subscribers):
            try:
                stream.send_nowait(event)
            except anyio.WouldBlock:
                logger.warning(f"Subscriber buffer full on {self.name}, dropping {event!r}")
            except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                self._subscribers.discard(stream)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[MemoryObjectReceiveStream[T]]:
        """
        Subscribe to events published from now on.

        Example:
            ```python
            async with client.match_events.subscribe() as events:
                async for event in events:
                    ...
            ```

        Yields:
            MemoryObjectReceiveStream: Stream that ends when the channel is closed
        """
        send_stream, receive_stream = anyio.create_memory_object_stream(
            max_buffer_size=self.max_buffer_size
        )

        if self._closed:
            send_stream.close()
        else:
            self._subscribers.add(send_stream)

        try:
            async with receive_stream:
                yield receive_stream
        finally:
            self._subscribers.discard(send_stream)
            send_stream.close()

    def close(self) -> None:
        """End every subscription; later publishes are dropped."""
        self._closed = True

        for stream in self._subscribers:
            stream.close()

        self._subscribers.clear()
