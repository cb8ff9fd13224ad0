"""Key-value backend adapter.

Thin façade over a KVClient that carries the connection parameters and
prepends the store path prefix to every key.
"""

import logging

from .channel import Channel
from .config.providers import StoreConfig, StoreKind
from .interfaces import KVEvent
from .paths import PATH_SEPARATOR
from .providers.base import KVClient, ProviderHealth

logger = logging.getLogger(__name__)


class Backend:
    """Key-value backend bound to one store client and path prefix.

    Keys given to the backend are relative to ``path_prefix``. Keys returned
    from ``list`` and carried by watch events are full store keys.
    """

    def __init__(self, client: KVClient, store: StoreConfig):
        self.client = client
        self.store = store

    @property
    def store_kind(self) -> StoreKind:
        return self.store.kind

    @property
    def host(self) -> str:
        return self.store.host

    @property
    def port(self) -> int:
        return self.store.port

    @property
    def timeout_seconds(self) -> float:
        return self.store.timeout_seconds

    @property
    def path_prefix(self) -> str:
        return self.store.path_prefix

    def make_path(self, key: str) -> str:
        """Return the full store key for a backend-relative key."""
        return self.path_prefix.rstrip(PATH_SEPARATOR) + PATH_SEPARATOR + key

    async def put(self, key: str, value: str) -> None:
        path = self.make_path(key)
        logger.debug(f"Putting {path}={value!r}")
        await self.client.put(path, value)

    async def delete(self, key: str) -> None:
        path = self.make_path(key)
        logger.debug(f"Deleting {path}")
        await self.client.delete(path)

    async def list(self, key: str) -> dict[str, str]:
        """Return every full key under ``key`` mapped to its value."""
        path = self.make_path(key)
        logger.debug(f"Listing {path}")
        return await self.client.list(path)

    async def create_watch_for_subkeys(self, key: str) -> Channel[KVEvent]:
        """Watch every key below ``key``.

        Only subkeys are watched; a key equal to ``key`` itself is not.
        """
        path = self.make_path(key) + PATH_SEPARATOR
        logger.debug(f"Creating watch on {path}")
        return await self.client.watch(path, buffer_size=self.store.watch_buffer_size)

    async def delete_watch(self, key: str, channel: Channel[KVEvent]) -> None:
        logger.debug(f"Deleting watch on {self.make_path(key)}")
        await self.client.cancel_watch(channel)

    async def health_check(self) -> ProviderHealth:
        return await self.client.health_check()

    async def close(self) -> None:
        await self.client.shutdown()
