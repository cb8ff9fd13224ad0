"""Core data model for kvconfig.

These types are shared by the path resolver, the backend adapter, the
component config handles and the watch translator.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ConfigType(Enum):
    """Category of configuration stored under one subtree per component.

    The value is used verbatim as a path segment in persisted keys, so
    existing values must never be renamed.
    """
    LOG_LEVEL = "loglevel"
    KAFKA = "kafka"

    def __str__(self) -> str:
        return self.value


class ChangeEventType(Enum):
    """Kind of change delivered to a config watch consumer."""
    PUT = "put"
    DELETE = "delete"


class KVEventType(Enum):
    """Event kinds a key-value client may emit on a watch stream."""
    PUT = "put"
    DELETE = "delete"
    CONNECTION_DOWN = "connection_down"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class KVEvent:
    """Raw watch event as produced by a key-value client.

    Attributes:
        event_type: Backend-native event kind
        key: Full key in the store, including the store path prefix
        value: New value for PUT events, None otherwise
    """
    event_type: KVEventType
    key: str
    value: Optional[str] = None


@dataclass(frozen=True)
class ConfigChangeEvent:
    """Typed change event for one attribute of a component config.

    Attributes:
        change_type: PUT or DELETE
        attribute: Bare attribute name relative to the component's
                   config path. Empty when the change targets the
                   config path itself.
    """
    change_type: ChangeEventType
    attribute: str


@dataclass(frozen=True)
class ConfigListEntry:
    """Denormalized row used for cross-component listing."""
    component: str
    attribute: str
    value: str


# Every ConfigType member must map to a distinct, non-empty path segment.
_segments = [member.value for member in ConfigType]
if len(set(_segments)) != len(_segments) or not all(_segments):
    raise RuntimeError(f"ConfigType path segments must be unique and non-empty: {_segments}")
del _segments
