"""Command line entry point: load config, set up logging, run the bot."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger

from golem import __version__
from golem.config.loader import get_config_path, load_config
from golem.config.schema import GolemConfig
from golem.core.dispatcher import Golem
from golem.errors import GolemError
from golem.plugins.registry import PLUGIN_FACTORIES, check_plugin_names

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level="DEBUG", rotation="10 MB", retention=5)


async def run_bot(config: GolemConfig) -> None:
    golem = await Golem.from_config(config)
    try:
        await golem.run()
    finally:
        await golem.connection.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="golem", description="Run the golem IRC bot.")
    parser.add_argument(
        "-c", "--config", type=Path, default=None,
        help=f"Config file (default: {get_config_path()})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    parser.add_argument(
        "--check", action="store_true",
        help="Validate the config and plugin names, then exit",
    )
    parser.add_argument(
        "--list-plugins", action="store_true", help="List the available plugins and exit",
    )
    parser.add_argument("--version", action="version", version=f"golem {__version__}")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    if args.list_plugins:
        for name in sorted(PLUGIN_FACTORIES):
            print(name)
        return

    try:
        config = load_config(args.config)
        check_plugin_names(config.plugins)
        if args.check:
            print(f"Config OK, plugins: {', '.join(config.plugins) or 'none'}")
            return
        asyncio.run(run_bot(config))
    except GolemError:
        logger.exception("golem stopped")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, bye")
