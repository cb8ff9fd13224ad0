"""Pytest fixtures for kvconfig tests."""

import pytest

from kvconfig.config import StoreConfig, StoreKind
from kvconfig.manager import ConfigManager
from kvconfig.providers.memory import InMemoryKVClient


@pytest.fixture
def store_config():
    """Provide in-memory store settings with the default path prefix."""
    return StoreConfig(kind=StoreKind.MEMORY)


@pytest.fixture
async def kv_client(store_config):
    """Provide an initialized in-memory key-value client."""
    client = InMemoryKVClient(store_config)
    await client.initialize()
    yield client
    await client.shutdown()


@pytest.fixture
def manager(kv_client, store_config):
    """Provide a config manager over the in-memory client."""
    return ConfigManager(kv_client, store_config)
