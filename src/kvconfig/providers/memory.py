"""In-memory key-value client."""

import logging

from .base import KVClient, ProviderHealth, ProviderStatus
from ..channel import Channel
from ..config.providers import StoreConfig
from ..interfaces import KVEvent, KVEventType

logger = logging.getLogger(__name__)


class InMemoryKVClient(KVClient[StoreConfig]):
    """In-memory key-value store for testing and development.

    Watches are notified synchronously from put/delete, so a watcher whose
    channel is full slows writers down rather than missing events.
    """

    def __init__(self, config: StoreConfig):
        super().__init__(config)
        self._data: dict[str, str] = {}
        self._watches: list[tuple[str, Channel[KVEvent]]] = []

    async def initialize(self) -> None:
        self._initialized = True

    async def shutdown(self) -> None:
        for _, channel in self._watches:
            channel.close()
        self._watches.clear()
        self._data.clear()
        self._initialized = False

    async def health_check(self) -> ProviderHealth:
        return ProviderHealth(
            status=ProviderStatus.HEALTHY,
            latency_ms=0.1,
            message=f"In-memory store with {len(self._data)} keys, {len(self._watches)} watches"
        )

    async def put(self, key: str, value: str) -> None:
        self._data[key] = value
        await self._publish(KVEvent(KVEventType.PUT, key, value))

    async def delete(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            await self._publish(KVEvent(KVEventType.DELETE, key))

    async def list(self, prefix: str) -> dict[str, str]:
        return {k: v for k, v in sorted(self._data.items()) if k.startswith(prefix)}

    async def watch(self, prefix: str, buffer_size: int = 100) -> Channel[KVEvent]:
        channel: Channel[KVEvent] = Channel(maxsize=buffer_size)
        self._watches.append((prefix, channel))
        return channel

    async def cancel_watch(self, channel: Channel[KVEvent]) -> None:
        self._watches = [(p, c) for p, c in self._watches if c is not channel]
        channel.close()

    @property
    def watch_count(self) -> int:
        return len(self._watches)

    async def _publish(self, event: KVEvent) -> None:
        for prefix, channel in list(self._watches):
            if event.key.startswith(prefix):
                logger.debug(f"Publishing {event.event_type.value} for {event.key} to watch on {prefix}")
                await channel.send(event)
