"""Key-value store configuration."""

from dataclasses import dataclass
from enum import Enum


class StoreKind(Enum):
    """Available key-value store clients."""
    ETCD = "etcd"
    MEMORY = "memory"
    # Future: CONSUL = "consul"


@dataclass
class StoreConfig:
    """Connection settings for the key-value store.

    Attributes:
        kind: Which key-value client to use
        host: Store host name or address
        port: Store port
        timeout_seconds: Per-request timeout applied by the client
        path_prefix: Prefix prepended to every key by the backend adapter
        watch_buffer_size: Capacity of the raw event channel of each watch
    """
    kind: StoreKind = StoreKind.ETCD
    host: str = "127.0.0.1"
    port: int = 2379
    timeout_seconds: float = 5.0
    path_prefix: str = "/service/voltha"
    watch_buffer_size: int = 100

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"
