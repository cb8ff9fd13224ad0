"""System-wide configuration."""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from .providers import StoreConfig, StoreKind
from ..errors import UnsupportedStoreKind

DEFAULT_CONFIG_PREFIX = "config"


def parse_store_kind(value: str | StoreKind) -> StoreKind:
    """Convert a store kind name into a StoreKind.

    Raises:
        UnsupportedStoreKind: If no client exists for the name
    """
    if isinstance(value, StoreKind):
        return value
    try:
        return StoreKind(value.strip().lower())
    except ValueError:
        supported = ", ".join(k.value for k in StoreKind)
        raise UnsupportedStoreKind(
            f"Unsupported kv store kind {value!r} (supported: {supported})"
        ) from None


@dataclass
class SystemConfig:
    """Complete kvconfig configuration.

    Attributes:
        config_prefix: Path segment under which all component configs live
        store: Key-value store connection settings
        event_buffer_size: Capacity of the typed event channel of each watch
        debug: Enable debug logging
    """
    config_prefix: str = DEFAULT_CONFIG_PREFIX
    store: StoreConfig = field(default_factory=StoreConfig)
    event_buffer_size: int = 1
    debug: bool = False

    @classmethod
    def from_env(cls, prefix: str = "KVCONFIG") -> "SystemConfig":
        """Load configuration from environment variables.

        Environment variables:
            {prefix}_STORE_KIND: etcd|memory
            {prefix}_STORE_HOST: Store host
            {prefix}_STORE_PORT: Store port
            {prefix}_STORE_TIMEOUT: Request timeout in seconds
            {prefix}_STORE_PATH_PREFIX: Key prefix inside the store
            {prefix}_CONFIG_PREFIX: Config subtree name
            {prefix}_EVENT_BUFFER_SIZE: Watch event channel capacity
            {prefix}_DEBUG: Enable debug mode
        """
        def get(key: str, default: str = None) -> Optional[str]:
            return os.environ.get(f"{prefix}_{key}", default)

        def get_int(key: str, default: int) -> int:
            val = get(key)
            return int(val) if val else default

        def get_float(key: str, default: float) -> float:
            val = get(key)
            return float(val) if val else default

        defaults = StoreConfig()
        store = StoreConfig(
            kind=parse_store_kind(get("STORE_KIND", defaults.kind.value)),
            host=get("STORE_HOST", defaults.host),
            port=get_int("STORE_PORT", defaults.port),
            timeout_seconds=get_float("STORE_TIMEOUT", defaults.timeout_seconds),
            path_prefix=get("STORE_PATH_PREFIX", defaults.path_prefix),
        )

        debug = get("DEBUG")
        return cls(
            config_prefix=get("CONFIG_PREFIX", DEFAULT_CONFIG_PREFIX),
            store=store,
            event_buffer_size=get_int("EVENT_BUFFER_SIZE", 1),
            debug=debug is not None and debug.lower() in ("true", "1", "yes"),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "SystemConfig":
        """Load configuration from a YAML file.

        A missing file yields the default configuration.
        """
        path = Path(path).expanduser()
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SystemConfig":
        """Create configuration from a dictionary.

        Raises:
            ValueError: If the store mapping has keys StoreConfig does not define

        Example:
            config_prefix: config
            event_buffer_size: 1
            store:
              kind: etcd
              host: 127.0.0.1
              port: 2379
        """
        store_data = dict(data.get("store") or {})
        unknown = sorted(str(k) for k in set(store_data) - {f.name for f in fields(StoreConfig)})
        if unknown:
            raise ValueError(f"Unknown store settings: {', '.join(unknown)}")
        if "kind" in store_data:
            store_data["kind"] = parse_store_kind(store_data["kind"])

        return cls(
            config_prefix=data.get("config_prefix", DEFAULT_CONFIG_PREFIX),
            store=StoreConfig(**store_data) if store_data else StoreConfig(),
            event_buffer_size=data.get("event_buffer_size", 1),
            debug=bool(data.get("debug", False)),
        )

    @classmethod
    def for_testing(cls) -> "SystemConfig":
        """Create a configuration backed by the in-memory store."""
        return cls(
            store=StoreConfig(kind=StoreKind.MEMORY),
            debug=True,
        )

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.config_prefix or not self.config_prefix.strip():
            errors.append("config_prefix cannot be empty")
        elif "/" in self.config_prefix:
            errors.append(f"config_prefix cannot contain '/', got {self.config_prefix!r}")

        if not self.store.path_prefix.startswith("/"):
            errors.append(f"store.path_prefix must be absolute, got {self.store.path_prefix!r}")
        elif len(self.store.path_prefix) > 1 and self.store.path_prefix.endswith("/"):
            errors.append(f"store.path_prefix cannot end with '/', got {self.store.path_prefix!r}")

        if not self.store.host:
            errors.append("store.host cannot be empty")
        if not (1 <= self.store.port <= 65535):
            errors.append(f"store.port must be between 1 and 65535, got {self.store.port}")
        if self.store.timeout_seconds <= 0:
            errors.append(f"store.timeout_seconds must be positive, got {self.store.timeout_seconds}")
        if self.store.watch_buffer_size < 1:
            errors.append(f"store.watch_buffer_size must be >= 1, got {self.store.watch_buffer_size}")
        if self.event_buffer_size < 1:
            errors.append(f"event_buffer_size must be >= 1, got {self.event_buffer_size}")

        return errors
