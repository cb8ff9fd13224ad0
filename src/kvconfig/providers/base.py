"""Abstract base classes for key-value client providers.

These define the contracts that store client implementations must satisfy.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, Optional, TypeVar

from ..channel import Channel
from ..interfaces import KVEvent


# Type variable for provider-specific configuration
TConfig = TypeVar('TConfig')


class ProviderStatus(Enum):
    """Provider health status."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"
    INITIALIZING = "initializing"


@dataclass
class ProviderHealth:
    """Health check result for a provider."""
    status: ProviderStatus
    latency_ms: Optional[float] = None
    message: Optional[str] = None
    last_check: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Provider(ABC, Generic[TConfig]):
    """Base class for all providers.

    Provides common functionality:
    - Configuration management
    - Health checking
    - Lifecycle management (init/shutdown)
    """

    def __init__(self, config: TConfig):
        self.config = config
        self._initialized = False

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the provider. Called once before first use."""
        pass

    @abstractmethod
    async def shutdown(self) -> None:
        """Gracefully shutdown the provider."""
        pass

    @abstractmethod
    async def health_check(self) -> ProviderHealth:
        """Check provider health and connectivity."""
        pass

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def __aenter__(self):
        if not self._initialized:
            await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()


class KVClient(Provider[TConfig]):
    """Abstract hierarchical key-value store client.

    Keys passed to and returned from a client are full store keys; the
    backend adapter is responsible for adding the store path prefix.

    Implementations raise ``BackendUnavailable`` for transport failures
    and ``WriteRejected`` when the store refuses a put or delete.
    """

    @abstractmethod
    async def put(self, key: str, value: str) -> None:
        """Create or replace the value stored at key."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete key. Deleting a missing key is not an error."""
        pass

    @abstractmethod
    async def list(self, prefix: str) -> dict[str, str]:
        """Return every key starting with prefix mapped to its value."""
        pass

    @abstractmethod
    async def watch(self, prefix: str, buffer_size: int = 100) -> Channel[KVEvent]:
        """Subscribe to changes of every key starting with prefix.

        Returns:
            Channel delivering events in the order the store applied them.
            The client closes it on disconnect, shutdown or cancel_watch.
        """
        pass

    @abstractmethod
    async def cancel_watch(self, channel: Channel[KVEvent]) -> None:
        """Unsubscribe a watch previously created by watch()."""
        pass
