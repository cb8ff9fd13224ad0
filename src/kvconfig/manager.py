"""Config manager and per-component config handles.

Configuration of a component is stored in the key-value store as a flat
list of key/value pairs below::

    <store path prefix>/<config prefix>/<component>/<config type>/

For example, rw-core log level entries live under
``/service/voltha/config/rw-core/loglevel/``. One ComponentConfig handle
exists per (component, config type) pair, so the same component may have
several handles pointing at different categories of configuration.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from .backend import Backend
from .config.providers import StoreConfig
from .config.system import DEFAULT_CONFIG_PREFIX
from .errors import MalformedKey
from .interfaces import ConfigListEntry, ConfigType
from .paths import (
    PATH_SEPARATOR,
    parse_component_from_key,
    resolve_attribute_path,
    resolve_base_path,
    strip_prefix,
    validate_component_label,
)
from .providers.base import KVClient
from .watch import ConfigWatch, WatchState

logger = logging.getLogger(__name__)

T = TypeVar('T')


def _unquote(value: str) -> str:
    """Strip the quotes some writers wrap string values in."""
    return value.strip('"')


async def _with_deadline(operation: Awaitable[T], timeout: Optional[float]) -> T:
    if timeout is None:
        return await operation
    try:
        return await asyncio.wait_for(operation, timeout)
    except asyncio.TimeoutError as e:
        # asyncio.TimeoutError is only the builtin from Python 3.11 on.
        raise TimeoutError(f"kv store operation exceeded {timeout}s deadline") from e


class ConfigManager:
    """Factory for component config handles sharing one backend.

    The manager owns its Backend; callers close it with ``close()`` at
    shutdown. Apart from the backend connection it holds no mutable state,
    so handles may be created and used concurrently.

    Usage:
        manager = ConfigManager(client, StoreConfig(host="etcd", port=2379))
        log_config = manager.init_component_config("rw-core", ConfigType.LOG_LEVEL)
        await log_config.save("default", "DEBUG")
    """

    def __init__(
        self,
        client: KVClient,
        store: StoreConfig,
        config_prefix: str = DEFAULT_CONFIG_PREFIX,
        event_buffer_size: int = 1,
    ):
        """Bind a manager to a store client. Performs no I/O.

        Args:
            client: Initialized key-value client
            store: Connection settings and path prefix for the backend
            config_prefix: Subtree holding all component configs
            event_buffer_size: Outbound channel capacity for watches
        """
        self.backend = Backend(client, store)
        self.config_prefix = config_prefix
        self.event_buffer_size = event_buffer_size

    def init_component_config(self, component_label: str, config_type: ConfigType) -> "ComponentConfig":
        """Create a handle for one component and config type. Performs no I/O.

        Raises:
            InvalidComponentLabel: If the label cannot be stored unambiguously
        """
        validate_component_label(component_label, config_type)
        return ComponentConfig(self, component_label, config_type)

    async def retrieve_component_list(
        self,
        config_type: ConfigType,
        timeout: Optional[float] = None,
    ) -> list[str]:
        """Return the sorted names of components that have config of this type."""
        data = await _with_deadline(
            self.backend.list(self.config_prefix + PATH_SEPARATOR), timeout
        )

        components = set()
        prefix = self.backend.make_path(self.config_prefix)
        for key in data:
            try:
                component, _ = parse_component_from_key(key, prefix, config_type)
            except MalformedKey:
                continue
            components.add(component)
        return sorted(components)

    async def close(self) -> None:
        """Close the backend connection, ending all active watches."""
        await self.backend.close()


class ComponentConfig:
    """Configuration of one config type for one component.

    Created through ``ConfigManager.init_component_config``.
    """

    def __init__(self, manager: ConfigManager, component_label: str, config_type: ConfigType):
        self.manager = manager
        self.component_label = component_label
        self.config_type = config_type
        self._watch: Optional[ConfigWatch] = None
        self._watch_state = WatchState.IDLE

    @property
    def base_path(self) -> str:
        """Backend-relative path of this config, without trailing separator."""
        return resolve_base_path(self.manager.config_prefix, self.component_label, self.config_type)

    @property
    def key_prefix(self) -> str:
        """Full store key prefix of this config's attributes."""
        return self.manager.backend.make_path(self.base_path) + PATH_SEPARATOR

    @property
    def watch_state(self) -> WatchState:
        return self._watch_state

    async def save(self, attribute: str, value: str, timeout: Optional[float] = None) -> None:
        """Store value under attribute, replacing any previous value.

        Raises:
            BackendUnavailable: If the store cannot be reached
            WriteRejected: If the store refuses the write
            TimeoutError: If timeout expires first
        """
        key = resolve_attribute_path(self.base_path, attribute)
        logger.debug(f"Saving {key}={value!r}")
        try:
            await _with_deadline(self.manager.backend.put(key, value), timeout)
        except Exception as e:
            logger.error(f"Unable to save {key} in kv store: {e}")
            raise

    async def delete(self, attribute: str, timeout: Optional[float] = None) -> None:
        """Delete attribute. Deleting an attribute that does not exist succeeds."""
        key = resolve_attribute_path(self.base_path, attribute)
        logger.debug(f"Deleting {key}")
        try:
            await _with_deadline(self.manager.backend.delete(key), timeout)
        except Exception as e:
            logger.error(f"Unable to delete {key} from kv store: {e}")
            raise

    async def retrieve_all(self, timeout: Optional[float] = None) -> dict[str, str]:
        """Return every attribute of this config mapped to its value.

        For example the key ``/service/voltha/config/rw-core/loglevel/default``
        with value ``"DEBUG"`` is returned as ``{"default": "DEBUG"}``.
        """
        logger.debug(f"Retrieving all attributes under {self.base_path}")
        try:
            data = await _with_deadline(
                self.manager.backend.list(self.base_path + PATH_SEPARATOR), timeout
            )
        except Exception as e:
            logger.error(f"Unable to get data from kv store: {e}")
            raise

        prefix = self.key_prefix
        return {strip_prefix(key, prefix): _unquote(value) for key, value in data.items()}

    async def retrieve_list(self, timeout: Optional[float] = None) -> list[ConfigListEntry]:
        """List this config type across every component under the config prefix.

        Keys belonging to other config types are skipped.
        """
        manager = self.manager
        logger.debug(f"Retrieving {self.config_type.value} list under {manager.config_prefix}")
        try:
            data = await _with_deadline(
                manager.backend.list(manager.config_prefix + PATH_SEPARATOR), timeout
            )
        except Exception as e:
            logger.error(f"Unable to get data from kv store: {e}")
            raise

        prefix = manager.backend.make_path(manager.config_prefix)
        entries = []
        for key, value in data.items():
            try:
                component, attribute = parse_component_from_key(key, prefix, self.config_type)
            except MalformedKey as e:
                logger.debug(f"Skipping key outside {self.config_type.value} config: {e}")
                continue
            entries.append(ConfigListEntry(component, attribute, _unquote(value)))
        return entries

    async def monitor(self) -> ConfigWatch:
        """Start watching this config for changes.

        Returns:
            ConfigWatch yielding a ConfigChangeEvent for every PUT or DELETE
            of an attribute, in the order the store applied them.

        Raises:
            RuntimeError: If a watch on this handle is still running
        """
        if self._watch_state is WatchState.WATCHING:
            raise RuntimeError(
                f"{self.component_label}/{self.config_type.value} is already being monitored"
            )

        base_path = self.base_path
        logger.debug(f"Monitoring {base_path} for config changes")
        backend = self.manager.backend
        raw_events = await backend.create_watch_for_subkeys(base_path)

        async def release(channel):
            await backend.delete_watch(base_path, channel)

        self._watch = ConfigWatch(
            raw_events,
            key_prefix=self.key_prefix,
            release=release,
            buffer_size=self.manager.event_buffer_size,
            on_closed=self._watch_closed,
        )
        self._watch_state = WatchState.WATCHING
        return self._watch

    def _watch_closed(self, watch: ConfigWatch) -> None:
        if watch is self._watch:
            self._watch_state = WatchState.CLOSED

    def __repr__(self) -> str:
        return f"ComponentConfig(component={self.component_label!r}, type={self.config_type.value})"
