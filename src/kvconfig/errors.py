"""Exception hierarchy for kvconfig."""

from typing import Optional


class ConfigError(Exception):
    """Base class for all kvconfig errors."""


class BackendUnavailable(ConfigError):
    """The key-value store could not be reached (transport failure or timeout)."""


class WriteRejected(ConfigError):
    """The key-value store answered a write or delete with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedKey(ConfigError):
    """A raw key does not have the expected config path layout."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Malformed config key {key!r}: {reason}")
        self.key = key
        self.reason = reason


class UnsupportedStoreKind(ConfigError):
    """No key-value client implementation exists for the requested store kind."""


class InvalidAttributeValue(ConfigError, ValueError):
    """A value failed caller-level validation (e.g. an unknown log level)."""


class InvalidComponentLabel(ConfigError, ValueError):
    """A component label cannot be mapped onto a config path unambiguously."""
