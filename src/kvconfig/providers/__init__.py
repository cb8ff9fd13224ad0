"""Key-value client providers.

Providers are swappable store clients that implement the KVClient interface.
"""

from .base import (
    KVClient,
    Provider,
    ProviderHealth,
    ProviderStatus,
)
from .etcd import EtcdKVClient
from .memory import InMemoryKVClient

__all__ = [
    # Base interfaces
    "Provider",
    "KVClient",
    "ProviderHealth",
    "ProviderStatus",
    # Store clients
    "EtcdKVClient",
    "InMemoryKVClient",
]
