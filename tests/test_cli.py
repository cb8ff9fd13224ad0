"""Tests for the kvconfig CLI (loglevel set, list, clear)."""

import argparse

import pytest
from unittest.mock import patch

from kvconfig.cli import build_parser, load_config, main
from kvconfig.config import StoreConfig, StoreKind
from kvconfig.container import Container
from kvconfig.errors import WriteRejected
from kvconfig.providers.memory import InMemoryKVClient


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep ambient KVCONFIG_* variables out of the tests."""
    for name in (
        "KVCONFIG_CONFIG",
        "KVCONFIG_STORE_KIND",
        "KVCONFIG_STORE_HOST",
        "KVCONFIG_STORE_PORT",
        "KVCONFIG_STORE_TIMEOUT",
        "KVCONFIG_STORE_PATH_PREFIX",
        "KVCONFIG_CONFIG_PREFIX",
        "KVCONFIG_EVENT_BUFFER_SIZE",
        "KVCONFIG_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def seeded_client():
    """In-memory client the CLI container will use instead of creating one."""
    client = InMemoryKVClient(StoreConfig(kind=StoreKind.MEMORY))
    with patch.object(Container, "_create_kv_client", return_value=client):
        yield client


def run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(["--store-kind", "memory", *argv])
    return exc_info.value.code


def output_rows(captured: str) -> list[list[str]]:
    return [line.split("\t") for line in captured.splitlines()]


class TestParser:
    """Tests for argument parsing."""

    def test_set_arguments(self):
        args = build_parser().parse_args(["loglevel", "set", "DEBUG", "rw-core", "adapter#pkg"])

        assert args.command == "loglevel"
        assert args.action == "set"
        assert args.level == "DEBUG"
        assert args.components == ["rw-core", "adapter#pkg"]

    def test_list_without_components(self):
        args = build_parser().parse_args(["loglevel", "list"])
        assert args.components == []

    def test_loglevel_requires_action(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["loglevel"])

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
        assert "loglevel" in capsys.readouterr().out


class TestLoadConfig:
    """Tests for settings resolution."""

    def _args(self, *argv):
        return build_parser().parse_args([*argv, "loglevel", "list"])

    def test_defaults_from_environment(self, monkeypatch):
        monkeypatch.setenv("KVCONFIG_STORE_HOST", "etcd.env")

        config = load_config(self._args())

        assert config.store.kind == StoreKind.ETCD
        assert config.store.host == "etcd.env"

    def test_flags_override(self, monkeypatch):
        monkeypatch.setenv("KVCONFIG_STORE_HOST", "etcd.env")

        config = load_config(self._args(
            "--store-kind", "memory",
            "--store-host", "etcd.flag",
            "--store-port", "32379",
            "--store-timeout", "1.5",
        ))

        assert config.store.kind == StoreKind.MEMORY
        assert config.store.host == "etcd.flag"
        assert config.store.port == 32379
        assert config.store.timeout_seconds == 1.5

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "kvconfig.yaml"
        path.write_text("config_prefix: settings\nstore:\n  host: etcd.file\n")

        config = load_config(self._args("-c", str(path)))

        assert config.config_prefix == "settings"
        assert config.store.host == "etcd.file"

    def test_yaml_file_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "kvconfig.yaml"
        path.write_text("store:\n  port: 12379\n")
        monkeypatch.setenv("KVCONFIG_CONFIG", str(path))

        assert load_config(self._args()).store.port == 12379

    def test_load_config_accepts_namespace(self):
        args = argparse.Namespace(
            config=None, store_kind=None, store_host=None, store_port=None, store_timeout=None
        )
        assert load_config(args).store.port == 2379


class TestLogLevelCommand:
    """Tests for `kvconfig loglevel`."""

    def test_set_prints_result_table(self, capsys):
        code = run(["loglevel", "set", "debug", "rw-core", "adapter#pkg/sub"])

        assert code == 0
        assert output_rows(capsys.readouterr().out) == [
            ["COMPONENTNAME", "STATUS", "ERROR"],
            ["rw-core", "Success", ""],
            ["adapter", "Success", ""],
        ]

    def test_set_writes_escaped_package(self, seeded_client):
        # The CLI shuts the client down, which clears its data, so record puts.
        written = {}
        original_put = seeded_client.put

        async def put(key, value):
            written[key] = value
            await original_put(key, value)

        seeded_client.put = put

        assert run(["loglevel", "set", "WARN", "rw-core#pkg/sub"]) == 0
        assert written == {"/service/voltha/config/rw-core/loglevel/pkg#sub": "WARN"}

    def test_set_invalid_level(self, capsys):
        code = run(["loglevel", "set", "LOUD", "rw-core"])

        assert code == 1
        assert "Unknown log level LOUD" in capsys.readouterr().err

    def test_set_partial_failure_exits_nonzero(self, seeded_client, capsys):
        original_put = seeded_client.put

        async def put(key, value):
            if "/adapter/" in key:
                raise WriteRejected("permission denied")
            await original_put(key, value)

        seeded_client.put = put

        code = run(["loglevel", "set", "INFO", "rw-core", "adapter"])

        assert code == 1
        rows = output_rows(capsys.readouterr().out)
        assert rows[1] == ["rw-core", "Success", ""]
        assert rows[2][:2] == ["adapter", "Failure"]
        assert "permission denied" in rows[2][2]

    def test_list(self, seeded_client, capsys):
        """Test list shows stored levels with the global default layered in."""
        seeded_client._data.update({
            "/service/voltha/config/global/loglevel/default": "WARN",
            "/service/voltha/config/rw-core/loglevel/pkg#sub": '"DEBUG"',
            "/service/voltha/config/adapter/loglevel/default": "ERROR",
            "/service/voltha/config/adapter/kafka/brokers": "kafka:9092",
        })

        code = run(["loglevel", "list"])

        assert code == 0
        assert output_rows(capsys.readouterr().out) == [
            ["COMPONENTNAME", "PACKAGENAME", "LEVEL"],
            ["adapter", "default", "ERROR"],
            ["global", "default", "WARN"],
            ["rw-core", "default", "WARN"],
            ["rw-core", "pkg/sub", "DEBUG"],
        ]

    def test_list_selected_component(self, seeded_client, capsys):
        seeded_client._data.update({
            "/service/voltha/config/rw-core/loglevel/default": "INFO",
            "/service/voltha/config/adapter/loglevel/default": "ERROR",
        })

        assert run(["loglevel", "list", "rw-core"]) == 0
        assert output_rows(capsys.readouterr().out)[1:] == [["rw-core", "default", "INFO"]]

    def test_list_empty_store(self, capsys):
        assert run(["loglevel", "list"]) == 0
        assert output_rows(capsys.readouterr().out) == [["COMPONENTNAME", "PACKAGENAME", "LEVEL"]]

    def test_clear(self, seeded_client, capsys):
        deleted = []
        original_delete = seeded_client.delete

        async def delete(key):
            deleted.append(key)
            await original_delete(key)

        seeded_client.delete = delete

        code = run(["loglevel", "clear", "rw-core", "adapter#pkg"])

        assert code == 0
        assert deleted == [
            "/service/voltha/config/rw-core/loglevel/default",
            "/service/voltha/config/adapter/loglevel/pkg",
        ]
        rows = output_rows(capsys.readouterr().out)
        assert [row[:2] for row in rows[1:]] == [["rw-core", "Success"], ["adapter", "Success"]]

    def test_unknown_setting_in_config_file(self, tmp_path, capsys):
        """Test a bad YAML store setting exits with an error, not a traceback."""
        path = tmp_path / "kvconfig.yaml"
        path.write_text("store:\n  hostname: etcd\n")

        code = run(["-c", str(path), "loglevel", "list"])

        assert code == 1
        assert "Unknown store settings: hostname" in capsys.readouterr().err

    def test_invalid_configuration(self, capsys):
        code = run(["--store-port", "70000", "loglevel", "list"])

        assert code == 1
        assert "Invalid configuration" in capsys.readouterr().err
