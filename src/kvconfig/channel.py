"""Bounded async channel used for watch event streams."""

import asyncio
from typing import Generic, TypeVar

T = TypeVar('T')

_CLOSED = object()


class Channel(Generic[T]):
    """Single-consumer, bounded, closable FIFO channel.

    ``send`` blocks while the channel is full, so a slow consumer slows the
    producer down instead of losing items. ``close`` never blocks: items
    already queued are still delivered, after which iteration stops.

    Usage:
        channel = Channel(maxsize=1)
        await channel.send(item)
        channel.close()

        async for item in channel:
            ...
    """

    def __init__(self, maxsize: int = 1):
        if maxsize < 1:
            raise ValueError(f"maxsize must be >= 1, got {maxsize}")
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    def qsize(self) -> int:
        return self._queue.qsize()

    async def send(self, item: T) -> bool:
        """Queue an item, waiting for space if needed.

        Returns:
            False if the channel was already closed and the item was dropped
        """
        if self._closed:
            return False
        await self._queue.put(item)
        return True

    def close(self) -> None:
        """Mark the channel closed and wake a waiting consumer."""
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # The consumer sees the closed flag once it drains the queue.
            pass

    async def receive(self) -> T:
        """Return the next item.

        Raises:
            StopAsyncIteration: If the channel is closed and drained
        """
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    def __aiter__(self) -> "Channel[T]":
        return self

    async def __anext__(self) -> T:
        return await self.receive()
