"""kvconfig CLI - manage component log levels in the key-value store.

Usage:
    kvconfig loglevel set DEBUG                      # global default level
    kvconfig loglevel set DEBUG rw-core              # rw-core default package
    kvconfig loglevel set WARN rw-core#pkg/sub       # one package of rw-core
    kvconfig loglevel list [COMPONENT...]
    kvconfig loglevel clear [COMPONENT[#PACKAGE]...]
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional

from .config import SystemConfig, parse_store_kind
from .container import Container
from .errors import ConfigError
from .loglevel import LogLevelResult, LogLevelService

CONFIG_ENV_VAR = "KVCONFIG_CONFIG"

RESULT_HEADER = ("COMPONENTNAME", "STATUS", "ERROR")
LIST_HEADER = ("COMPONENTNAME", "PACKAGENAME", "LEVEL")


def load_config(args: argparse.Namespace) -> SystemConfig:
    """Resolve settings: command line flags, then YAML file, then environment."""
    config_path = args.config or os.environ.get(CONFIG_ENV_VAR)
    if config_path:
        config = SystemConfig.from_file(config_path)
    else:
        config = SystemConfig.from_env()

    if args.store_kind:
        config.store.kind = parse_store_kind(args.store_kind)
    if args.store_host:
        config.store.host = args.store_host
    if args.store_port:
        config.store.port = args.store_port
    if args.store_timeout:
        config.store.timeout_seconds = args.store_timeout
    return config


def _print_table(header: tuple[str, ...], rows: list[tuple[str, ...]]) -> None:
    print("\t".join(header))
    for row in rows:
        print("\t".join(row))


def _print_results(results: list[LogLevelResult]) -> int:
    _print_table(RESULT_HEADER, [(r.component, r.status, r.error or "") for r in results])
    return 0 if all(r.success for r in results) else 1


async def run_loglevel(args: argparse.Namespace, config: SystemConfig) -> int:
    """Execute a ``loglevel`` subcommand against the configured store."""
    async with Container(config) as container:
        service = LogLevelService(container.config_manager)

        if args.action == "set":
            results = await service.set_levels(args.level, args.components)
            return _print_results(results)

        if args.action == "clear":
            results = await service.clear_levels(args.components)
            return _print_results(results)

        entries = await service.list_levels(args.components)
        _print_table(LIST_HEADER, [(e.component, e.attribute, e.value) for e in entries])
        return 0


def cmd_loglevel(args: argparse.Namespace) -> int:
    """Run a loglevel subcommand and map errors to an exit status."""
    try:
        config = load_config(args)
        return asyncio.run(run_loglevel(args, config))
    except (ConfigError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kvconfig",
        description="kvconfig - component configuration in a key-value store",
    )
    parser.add_argument("--config", "-c", type=str, default=None,
                        help=f"YAML config file (default: ${CONFIG_ENV_VAR})")
    parser.add_argument("--store-kind", type=str, default=None,
                        help="Key-value store kind (etcd, memory)")
    parser.add_argument("--store-host", type=str, default=None)
    parser.add_argument("--store-port", type=int, default=None)
    parser.add_argument("--store-timeout", type=float, default=None,
                        help="Store request timeout in seconds")
    parser.add_argument("--log-level", type=str, default="warning",
                        choices=["debug", "info", "warning", "error"])
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    loglevel_parser = subparsers.add_parser(
        "loglevel", help="List, set and clear log levels of components"
    )
    actions = loglevel_parser.add_subparsers(dest="action", required=True)

    set_parser = actions.add_parser("set", help="Set the log level of components")
    set_parser.add_argument("level", help="DEBUG, INFO, WARN, ERROR or FATAL")
    set_parser.add_argument("components", nargs="*", metavar="COMPONENT[#PACKAGE]")

    list_parser = actions.add_parser("list", help="List log levels of components")
    list_parser.add_argument("components", nargs="*", metavar="COMPONENT")

    clear_parser = actions.add_parser("clear", help="Clear log levels of components")
    clear_parser.add_argument("components", nargs="*", metavar="COMPONENT[#PACKAGE]")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "loglevel":
        sys.exit(cmd_loglevel(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
