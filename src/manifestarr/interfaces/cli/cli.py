from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from manifestarr.infrastructure.config import load_config
from manifestarr.infrastructure.logging.setup import configure_logging
from manifestarr.interfaces.app import create_app

log = structlog.get_logger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000

# argparse dest -> flat config key understood by load_config()
_OVERRIDE_FLAGS: dict[str, str] = {
    "embed_domain": "embed_domain",
    "resolve_timeout": "resolve_timeout_seconds",
    "cache_ttl": "cache_ttl_seconds",
    "single_flight": "single_flight",
    "headed": "browser_headless",
    "stealth": "browser_stealth",
    "log_level": "log_level",
    "log_format": "log_format",
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manifestarr",
        description="Serve /api/video: embed identifier -> .m3u8 manifest URL.",
    )

    server = parser.add_argument_group("server")
    server.add_argument("--host", help=f"Bind host (env HOST, default {DEFAULT_HOST}).")
    server.add_argument(
        "--port", type=int, help=f"Bind port (env PORT, default {DEFAULT_PORT})."
    )

    sources = parser.add_argument_group("configuration sources")
    sources.add_argument("--config", type=Path, help="YAML config file.")
    sources.add_argument("--dotenv", type=Path, help=".env file with MANIFESTARR_* vars.")

    resolver = parser.add_argument_group("resolver")
    resolver.add_argument("--embed-domain", help="Domain serving the embed pages.")
    resolver.add_argument(
        "--resolve-timeout",
        type=float,
        metavar="SECONDS",
        help="Deadline for the manifest request after navigation.",
    )
    resolver.add_argument(
        "--cache-ttl", type=int, metavar="SECONDS", help="Resolution cache TTL."
    )
    resolver.add_argument(
        "--single-flight",
        action="store_true",
        default=None,
        help="Share one live resolution between concurrent requests for an id.",
    )

    browser = parser.add_argument_group("browser")
    browser.add_argument(
        "--headed",
        action="store_false",
        default=None,
        help="Show the Chromium window (debugging).",
    )
    browser.add_argument(
        "--stealth",
        action="store_true",
        default=None,
        help="Apply playwright-stealth evasions.",
    )

    logging_group = parser.add_argument_group("logging")
    logging_group.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    logging_group.add_argument("--log-format", choices=["json", "console"])

    return parser


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Flags the user actually passed, keyed for load_config()."""
    return {
        config_key: getattr(args, dest)
        for dest, config_key in _OVERRIDE_FLAGS.items()
        if getattr(args, dest) is not None
    }


def _resolve_port(cli_port: int | None) -> int:
    if cli_port is not None:
        return cli_port
    return int(os.getenv("PORT", str(DEFAULT_PORT)))


def start(argv: Sequence[str] | None = None) -> None:
    """Console-script entrypoint: load config once, set up logging, serve."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    config = load_config(
        config_path=args.config,
        dotenv_path=args.dotenv,
        cli_overrides=_cli_overrides(args),
    )
    log_config = configure_logging(config)

    host = args.host or os.getenv("HOST", DEFAULT_HOST)
    port = _resolve_port(args.port)
    log.info(
        "server_starting",
        host=host,
        port=port,
        embed_domain=config.resolver.embed_domain,
        environment=config.environment,
    )

    uvicorn.run(create_app(config), host=host, port=port, log_config=log_config)


if __name__ == "__main__":
    raise SystemExit(start())
