"""Translation of raw key-value watch events into config change events."""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from .channel import Channel
from .interfaces import ChangeEventType, ConfigChangeEvent, KVEvent, KVEventType
from .paths import strip_prefix

logger = logging.getLogger(__name__)

_CHANGE_TYPES = {
    KVEventType.PUT: ChangeEventType.PUT,
    KVEventType.DELETE: ChangeEventType.DELETE,
}


class WatchState(Enum):
    """Lifecycle of a component config watch."""
    IDLE = "idle"
    WATCHING = "watching"
    CLOSED = "closed"


def translate_event(raw: KVEvent, key_prefix: str) -> Optional[ConfigChangeEvent]:
    """Convert one raw event, or return None if it must be dropped.

    Only PUT and DELETE are forwarded. The attribute name is the raw key
    with ``key_prefix`` removed; an empty remainder is a valid attribute.
    """
    change_type = _CHANGE_TYPES.get(raw.event_type)
    if change_type is None:
        return None
    return ConfigChangeEvent(change_type, strip_prefix(raw.key, key_prefix))


class ConfigWatch:
    """A running watch on one component config subtree.

    Owns the background task that reads the raw event channel and writes
    typed events to the outbound channel, one per forwarded raw event and in
    the same order. The outbound channel is bounded, so a slow consumer
    blocks the task rather than losing events.

    The watch ends when the raw channel is closed by the backend or when
    ``cancel()`` is called. Either way the outbound channel is closed, so
    consumers iterating the watch observe completion, and the backend
    subscription is released.

    Usage:
        watch = await component_config.monitor()
        async with watch:
            async for event in watch:
                ...
    """

    def __init__(
        self,
        raw_events: Channel[KVEvent],
        key_prefix: str,
        release: Callable[[Channel[KVEvent]], Awaitable[None]],
        buffer_size: int = 1,
        on_closed: Optional[Callable[["ConfigWatch"], None]] = None,
    ):
        """Start translating events.

        Must be called from a running event loop.

        Args:
            raw_events: Channel of raw events from the backend watch
            key_prefix: Full key prefix stripped from raw keys
            release: Coroutine function unsubscribing the backend watch
            buffer_size: Capacity of the outbound channel
            on_closed: Callback invoked once the watch has finished
        """
        self.key_prefix = key_prefix
        self._raw = raw_events
        self._events: Channel[ConfigChangeEvent] = Channel(maxsize=buffer_size)
        self._release = release
        self._on_closed = on_closed
        self._finished = False
        self._task = asyncio.create_task(self._process_events())

    @property
    def events(self) -> Channel[ConfigChangeEvent]:
        """Outbound channel of typed events."""
        return self._events

    @property
    def done(self) -> bool:
        return self._task.done()

    async def _process_events(self) -> None:
        logger.debug(f"Processing watch events for {self.key_prefix}")
        try:
            async for raw in self._raw:
                event = translate_event(raw, self.key_prefix)
                if event is None:
                    logger.warning(
                        f"Dropping {raw.event_type.value} event from kv store watch on {self.key_prefix}"
                    )
                    continue
                logger.debug(f"Config change on {self.key_prefix}: {event.change_type.value} {event.attribute!r}")
                await self._events.send(event)
        finally:
            await self._finish()

    async def _finish(self) -> None:
        # Runs from the task, or from join() when the task was cancelled
        # before it started.
        if self._finished:
            return
        self._finished = True
        self._events.close()
        try:
            await self._release(self._raw)
        finally:
            logger.debug(f"Watch on {self.key_prefix} closed")
            if self._on_closed is not None:
                self._on_closed(self)

    def cancel(self) -> None:
        """Stop watching without waiting for the upstream stream to close."""
        self._events.close()
        self._task.cancel()

    async def join(self) -> None:
        """Wait for the watch to finish and release its backend subscription.

        Returns normally when the watch ended because of ``cancel()``.
        Cancelling the caller does not cancel the watch.
        """
        try:
            await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise
        await self._finish()

    async def aclose(self) -> None:
        """Cancel the watch and wait for its cleanup."""
        self.cancel()
        await self.join()

    def __aiter__(self) -> Channel[ConfigChangeEvent]:
        return self._events

    async def __aenter__(self) -> "ConfigWatch":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
