"""Dependency injection container for kvconfig."""

import logging
from typing import Optional

from ..config import SystemConfig, StoreKind
from ..errors import UnsupportedStoreKind
from ..manager import ConfigManager
from ..providers.base import KVClient, ProviderHealth

logger = logging.getLogger(__name__)


class Container:
    """Dependency injection container.

    Creates the key-value client for the configured store kind, wires it
    into a ConfigManager and owns the lifecycle of both.

    Usage:
        container = Container(config)
        await container.initialize()

        manager = container.config_manager

        await container.shutdown()
    """

    def __init__(self, config: SystemConfig):
        self.config = config
        self._client: Optional[KVClient] = None
        self._config_manager: Optional[ConfigManager] = None
        self._initialized = False

    async def initialize(self) -> None:
        """Create and initialize the store client and the config manager.

        Raises:
            ValueError: If the configuration is invalid
            UnsupportedStoreKind: If no client exists for the store kind
        """
        if self._initialized:
            return

        errors = self.config.validate()
        if errors:
            raise ValueError(f"Invalid configuration: {errors}")

        store = self.config.store
        logger.info(f"Initializing container for {store.kind.value} store at {store.address}")

        self._client = self._create_kv_client()
        await self._client.initialize()

        self._config_manager = ConfigManager(
            self._client,
            store,
            config_prefix=self.config.config_prefix,
            event_buffer_size=self.config.event_buffer_size,
        )

        self._initialized = True
        logger.info("Container initialized successfully")

    async def shutdown(self) -> None:
        """Close the config manager's backend, ending all watches."""
        if not self._initialized:
            return

        logger.info("Shutting down container")
        await self._config_manager.close()
        self._config_manager = None
        self._client = None

        self._initialized = False
        logger.info("Container shutdown complete")

    async def health_check(self) -> dict[str, ProviderHealth]:
        """Check health of the store client."""
        results = {}
        if self._client:
            results["store"] = await self._client.health_check()
        return results

    @property
    def config_manager(self) -> ConfigManager:
        """Get the config manager."""
        if not self._config_manager:
            raise RuntimeError("Container not initialized. Call initialize() first.")
        return self._config_manager

    @property
    def client(self) -> KVClient:
        """Get the key-value client."""
        if not self._client:
            raise RuntimeError("Container not initialized. Call initialize() first.")
        return self._client

    def _create_kv_client(self) -> KVClient:
        """Create key-value client based on config."""
        from ..providers.etcd import EtcdKVClient
        from ..providers.memory import InMemoryKVClient

        cfg = self.config.store

        if cfg.kind == StoreKind.ETCD:
            return EtcdKVClient(cfg)
        elif cfg.kind == StoreKind.MEMORY:
            return InMemoryKVClient(cfg)
        else:
            raise UnsupportedStoreKind(f"Unsupported kv store kind: {cfg.kind}")

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()
