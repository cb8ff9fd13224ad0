"""kvconfig - per-component runtime configuration in a hierarchical key-value store.

Configuration is addressed by (component, config type, attribute) and
stored under::

    <store path prefix>/<config prefix>/<component>/<config type>/<attribute>

Usage:
    from kvconfig import Container, SystemConfig, ConfigType

    async with Container(SystemConfig.from_env()) as container:
        log_config = container.config_manager.init_component_config(
            "rw-core", ConfigType.LOG_LEVEL
        )
        await log_config.save("default", "DEBUG")

        async with await log_config.monitor() as watch:
            async for event in watch:
                print(event.change_type, event.attribute)
"""

from .config import SystemConfig, StoreConfig, StoreKind
from .container import Container
from .errors import (
    BackendUnavailable,
    ConfigError,
    InvalidAttributeValue,
    InvalidComponentLabel,
    MalformedKey,
    UnsupportedStoreKind,
    WriteRejected,
)
from .interfaces import ChangeEventType, ConfigChangeEvent, ConfigListEntry, ConfigType
from .loglevel import LogLevel, LogLevelService
from .manager import ComponentConfig, ConfigManager
from .watch import ConfigWatch, WatchState

__all__ = [
    "SystemConfig",
    "StoreConfig",
    "StoreKind",
    "Container",
    "ConfigManager",
    "ComponentConfig",
    "ConfigWatch",
    "WatchState",
    "ConfigType",
    "ChangeEventType",
    "ConfigChangeEvent",
    "ConfigListEntry",
    "LogLevel",
    "LogLevelService",
    # Errors
    "ConfigError",
    "BackendUnavailable",
    "WriteRejected",
    "MalformedKey",
    "UnsupportedStoreKind",
    "InvalidAttributeValue",
    "InvalidComponentLabel",
]
