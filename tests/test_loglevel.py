"""Tests for the log level service."""

import logging

import pytest

from kvconfig.errors import InvalidAttributeValue, WriteRejected
from kvconfig.interfaces import ConfigListEntry, ConfigType
from kvconfig.loglevel import (
    LogLevel,
    LogLevelResult,
    LogLevelService,
    LogLevelTarget,
    parse_target,
)


class TestLogLevel:
    """Tests for LogLevel parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("DEBUG", LogLevel.DEBUG),
        ("debug", LogLevel.DEBUG),
        (" Warn ", LogLevel.WARN),
        ("fatal", LogLevel.FATAL),
    ])
    def test_from_string(self, value, expected):
        assert LogLevel.from_string(value) is expected

    def test_unknown_level(self):
        with pytest.raises(InvalidAttributeValue, match="Allowed values are <DEBUG>"):
            LogLevel.from_string("verbose")

    def test_invalid_level_is_value_error(self):
        with pytest.raises(ValueError):
            LogLevel.from_string("")

    def test_is_valid(self):
        assert LogLevel.is_valid("INFO")
        assert not LogLevel.is_valid("TRACE")

    def test_to_logging_level(self):
        assert LogLevel.WARN.to_logging_level() == logging.WARNING
        assert LogLevel.FATAL.to_logging_level() == logging.CRITICAL


class TestParseTarget:
    """Tests for component[#package] arguments."""

    def test_component_only(self):
        assert parse_target("rw-core") == LogLevelTarget("rw-core", "default")

    def test_component_and_package(self):
        assert parse_target("rw-core#main") == LogLevelTarget("rw-core", "main")

    def test_package_separators_are_escaped(self):
        target = parse_target("rw-core#github.com/opencord/voltha-go/rw_core/core")
        assert target == LogLevelTarget("rw-core", "github.com#opencord#voltha-go#rw_core#core")

    def test_only_first_hash_splits(self):
        assert parse_target("rw-core#pkgA#pkgB") == LogLevelTarget("rw-core", "pkgA#pkgB")


class TestLogLevelResult:
    def test_status(self):
        assert LogLevelResult("rw-core", True).status == "Success"
        assert LogLevelResult("rw-core", False, "boom").status == "Failure"


class TestLogLevelService:
    """Tests for LogLevelService against the in-memory store."""

    @pytest.fixture
    def service(self, manager):
        return LogLevelService(manager)

    @pytest.fixture
    def stored(self, manager):
        async def read(component):
            return await manager.init_component_config(component, ConfigType.LOG_LEVEL).retrieve_all()
        return read

    async def test_set_global_default(self, service, stored):
        """Test no components sets the global default."""
        results = await service.set_levels("debug")

        assert results == [LogLevelResult("global", True)]
        assert await stored("global") == {"default": "DEBUG"}
        assert await service.global_level() == "DEBUG"

    async def test_set_packages(self, service, stored):
        results = await service.set_levels("WARN", ["rw-core", "rw-core#pkg/sub", "adapter"])

        assert [r.component for r in results] == ["rw-core", "rw-core", "adapter"]
        assert all(r.success for r in results)
        assert await stored("rw-core") == {"default": "WARN", "pkg#sub": "WARN"}
        assert await stored("adapter") == {"default": "WARN"}

    async def test_set_rejects_invalid_level_before_writing(self, service, kv_client):
        with pytest.raises(InvalidAttributeValue):
            await service.set_levels("LOUD", ["rw-core"])
        assert await kv_client.list("/") == {}

    async def test_set_collects_failures(self, service, kv_client, stored):
        """Test one failing component does not stop the others."""
        original_put = kv_client.put

        async def put(key, value):
            if "/adapter/" in key:
                raise WriteRejected("permission denied")
            await original_put(key, value)

        kv_client.put = put

        results = await service.set_levels("INFO", ["rw-core", "adapter", "ofagent"])

        assert [(r.component, r.success) for r in results] == [
            ("rw-core", True),
            ("adapter", False),
            ("ofagent", True),
        ]
        assert "permission denied" in results[1].error
        assert await stored("ofagent") == {"default": "INFO"}

    async def test_clear_every_component(self, service, stored):
        """Test clear handles each component given, not just the first."""
        await service.set_levels("DEBUG", ["rw-core", "adapter", "adapter#pkg"])

        results = await service.clear_levels(["rw-core", "adapter#pkg"])

        assert all(r.success for r in results)
        assert await stored("rw-core") == {}
        assert await stored("adapter") == {"default": "DEBUG"}

    async def test_clear_missing_is_success(self, service):
        results = await service.clear_levels(["never-set"])
        assert results == [LogLevelResult("never-set", True)]

    async def test_clear_global(self, service):
        await service.set_levels("ERROR")
        await service.clear_levels()
        assert await service.global_level() is None

    async def test_global_level_ignores_invalid_value(self, service, manager):
        await manager.init_component_config("global", ConfigType.LOG_LEVEL).save("default", "LOUD")
        assert await service.global_level() is None

    async def test_component_config_inherits_global_default(self, service):
        await service.set_levels("DEBUG")
        await service.set_levels("INFO", ["rw-core#pkg"])

        config = await service.retrieve_component_config("rw-core")

        assert config == {"pkg": "INFO", "default": "DEBUG"}

    async def test_component_default_shadows_global(self, service):
        """Test a component's own default wins over the global one."""
        await service.set_levels("DEBUG")
        await service.set_levels("ERROR", ["rw-core"])

        config = await service.retrieve_component_config("rw-core")

        assert config == {"default": "ERROR"}

    async def test_component_config_without_layering(self, service):
        await service.set_levels("DEBUG")
        assert await service.retrieve_component_config("rw-core", global_level="") == {}

    async def test_list_all_components(self, service):
        await service.set_levels("WARN")
        await service.set_levels("DEBUG", ["rw-core#pkg/sub"])
        await service.set_levels("ERROR", ["adapter"])

        entries = await service.list_levels()

        assert entries == [
            ConfigListEntry("adapter", "default", "ERROR"),
            ConfigListEntry("global", "default", "WARN"),
            ConfigListEntry("rw-core", "default", "WARN"),
            ConfigListEntry("rw-core", "pkg/sub", "DEBUG"),
        ]

    async def test_list_selected_components(self, service):
        await service.set_levels("DEBUG", ["rw-core", "adapter"])
        entries = await service.list_levels(["adapter"])
        assert entries == [ConfigListEntry("adapter", "default", "DEBUG")]

    async def test_list_skips_invalid_entries(self, service, manager):
        """Test invalid levels and empty package names are not listed."""
        handle = manager.init_component_config("rw-core", ConfigType.LOG_LEVEL)
        await handle.save("bad", "LOUD")
        await handle.save("", "DEBUG")
        await handle.save("good", "INFO")

        entries = await service.list_levels(["rw-core"])

        assert entries == [ConfigListEntry("rw-core", "good", "INFO")]

    async def test_list_empty_store(self, service):
        assert await service.list_levels() == []
