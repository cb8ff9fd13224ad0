"""Log level configuration service.

Log levels are stored with config type ``loglevel``: one attribute per
package, plus the ``default`` attribute for the component as a whole. The
``global`` component holds the default level for every component.

Packages are addressed as ``<component>#<package>`` on the command line.
Separators inside the package name are stored as ``#`` and shown as ``/``
again when listing.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import InvalidAttributeValue
from .interfaces import ConfigListEntry, ConfigType
from .manager import ConfigManager
from .paths import ESCAPE_CHAR, decode_attribute, encode_attribute

logger = logging.getLogger(__name__)

DEFAULT_COMPONENT = "global"
DEFAULT_PACKAGE = "default"


class LogLevel(Enum):
    """Log levels accepted in the key-value store."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"

    @classmethod
    def from_string(cls, value: str) -> "LogLevel":
        """Parse a level name in any case.

        Raises:
            InvalidAttributeValue: If the name is not a known level
        """
        try:
            return cls(value.strip().upper())
        except (ValueError, AttributeError):
            allowed = ",".join(f"<{level.value}>" for level in cls)
            raise InvalidAttributeValue(
                f"Unknown log level {value}. Allowed values are {allowed}"
            ) from None

    @classmethod
    def is_valid(cls, value: str) -> bool:
        try:
            cls.from_string(value)
        except InvalidAttributeValue:
            return False
        return True

    def to_logging_level(self) -> int:
        """Return the equivalent stdlib logging level."""
        return _LOGGING_LEVELS[self]


_LOGGING_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.FATAL: logging.CRITICAL,
}


@dataclass(frozen=True)
class LogLevelTarget:
    """Component and stored package name a log level applies to."""
    component: str
    package: str = DEFAULT_PACKAGE


@dataclass
class LogLevelResult:
    """Outcome of setting or clearing the level of one target."""
    component: str
    success: bool
    error: Optional[str] = None

    @property
    def status(self) -> str:
        return "Success" if self.success else "Failure"


def parse_target(argument: str) -> LogLevelTarget:
    """Parse a ``component[#package]`` argument.

    Only the first ``#`` separates component and package. Separators in the
    package name are escaped for storage.
    """
    component, found, package = argument.partition(ESCAPE_CHAR)
    if not found:
        return LogLevelTarget(component)
    return LogLevelTarget(component, encode_attribute(package))


class LogLevelService:
    """Read and write component log levels through a ConfigManager.

    Operations over several components attempt every component, collecting
    one result each, so a failure for one does not prevent the others.
    """

    def __init__(self, manager: ConfigManager):
        self.manager = manager

    def _config(self, component: str):
        return self.manager.init_component_config(component, ConfigType.LOG_LEVEL)

    def _targets(self, components: Optional[list[str]]) -> list[LogLevelTarget]:
        if not components:
            return [LogLevelTarget(DEFAULT_COMPONENT)]
        return [parse_target(c) for c in components]

    async def set_levels(self, level: str, components: Optional[list[str]] = None) -> list[LogLevelResult]:
        """Set a log level for each ``component[#package]`` given.

        With no components the global default is set.

        Raises:
            InvalidAttributeValue: If level is not a known log level
        """
        level = LogLevel.from_string(level).value

        async def save(target: LogLevelTarget) -> None:
            await self._config(target.component).save(target.package, level)

        return await self._apply(self._targets(components), save)

    async def clear_levels(self, components: Optional[list[str]] = None) -> list[LogLevelResult]:
        """Remove the log level of each ``component[#package]`` given."""
        async def clear(target: LogLevelTarget) -> None:
            await self._config(target.component).delete(target.package)

        return await self._apply(self._targets(components), clear)

    async def _apply(self, targets, operation) -> list[LogLevelResult]:
        outcomes = await asyncio.gather(
            *(operation(target) for target in targets), return_exceptions=True
        )

        results = []
        for target, outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning(f"Log level update failed for {target.component}: {outcome}")
                results.append(LogLevelResult(target.component, False, str(outcome)))
            else:
                results.append(LogLevelResult(target.component, True))
        return results

    async def global_level(self) -> Optional[str]:
        """Return the global default level, or None if unset or invalid."""
        config = await self._config(DEFAULT_COMPONENT).retrieve_all()
        level = config.get(DEFAULT_PACKAGE)
        if level is not None and LogLevel.is_valid(level):
            return level
        return None

    async def retrieve_component_config(
        self,
        component: str,
        global_level: Optional[str] = None,
    ) -> dict[str, str]:
        """Return a component's package levels with the global default layered in.

        The global level fills the ``default`` package unless the component
        sets its own.

        Args:
            component: Component name
            global_level: Global default; looked up when None. Pass an
                          empty string to skip layering.
        """
        if global_level is None:
            global_level = await self.global_level()

        config = await self._config(component).retrieve_all()
        if global_level:
            config.setdefault(DEFAULT_PACKAGE, global_level)
        return config

    async def list_levels(self, components: Optional[list[str]] = None) -> list[ConfigListEntry]:
        """List package levels for the given components, or for all of them.

        Entries with an invalid level or an empty package are skipped.
        Package names are returned in display form.
        """
        if not components:
            components = await self.manager.retrieve_component_list(ConfigType.LOG_LEVEL)

        global_level = await self.global_level()

        entries = []
        for component in components:
            config = await self.retrieve_component_config(component, global_level or "")
            for package, level in config.items():
                if not package or not LogLevel.is_valid(level):
                    continue
                entries.append(ConfigListEntry(component, decode_attribute(package), level))

        entries.sort(key=lambda e: (e.component, e.attribute))
        return entries
