"""``balkanod`` command: load configuration once and serve the addon."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from balkanod.infrastructure.config import load_config
from balkanod.infrastructure.logging.setup import configure_logging
from balkanod.interfaces.app import create_app

log = structlog.get_logger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 7000

# argparse dest -> flat config key understood by load_config()
_OVERRIDE_FLAGS: dict[str, str] = {
    "content": "content_path",
    "environment": "environment",
    "cache_backend": "cache_backend",
    "cache_ttl": "cache_ttl_seconds",
    "tmdb_api_key": "tmdb_api_key",
    "log_level": "log_level",
    "log_format": "log_format",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="balkanod",
        description="Stremio addon for a curated Balkan film and series catalog.",
    )

    server = parser.add_argument_group("server")
    server.add_argument("--host", help="Bind host (default: $HOST or 0.0.0.0).")
    server.add_argument(
        "--port", type=int, help="Bind port (default: $PORT or 7000)."
    )

    files = parser.add_argument_group("configuration files")
    files.add_argument("--config", type=Path, help="YAML config file.")
    files.add_argument("--dotenv", type=Path, help=".env file read into the environment.")

    overrides = parser.add_argument_group("overrides (beat YAML and env)")
    overrides.add_argument("--content", help="Content snapshot (JSON).")
    overrides.add_argument("--environment", choices=["dev", "test", "prod"])
    overrides.add_argument(
        "--cache-backend", choices=["memory", "diskcache", "redis"]
    )
    overrides.add_argument(
        "--cache-ttl", type=int, help="Stream resolution TTL in seconds, 0 disables."
    )
    overrides.add_argument("--tmdb-api-key", help="Use TMDB for metadata enrichment.")
    overrides.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    overrides.add_argument("--log-format", choices=["json", "console"])
    return parser


def cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Flat override layer from the flags that were actually given."""
    out: dict[str, Any] = {}
    for dest, key in _OVERRIDE_FLAGS.items():
        value = getattr(args, dest, None)
        if value is not None:
            out[key] = value
    return out


def bind_address(
    args: argparse.Namespace, environ: dict[str, str] | None = None
) -> tuple[str, int]:
    """Flags first, then the HOST/PORT variables hosting platforms set.

    Raises:
        ValueError: the port is not an integer in 1-65535.
    """
    env = os.environ if environ is None else environ
    host = args.host or env.get("HOST") or DEFAULT_HOST
    if args.port is not None:
        port = args.port
    else:
        raw = env.get("PORT") or str(DEFAULT_PORT)
        try:
            port = int(raw)
        except ValueError as e:
            raise ValueError(f"invalid PORT environment value: {raw!r}") from e
    if not 0 < port < 65536:
        raise ValueError(f"port out of range: {port}")
    return host, port


def start(argv: Iterable[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(list(sys.argv[1:] if argv is None else argv))
    try:
        host, port = bind_address(args)
    except ValueError as e:
        parser.error(str(e))

    config = load_config(
        config_path=args.config,
        dotenv_path=args.dotenv,
        cli_overrides=cli_overrides(args),
    )
    log_config = configure_logging(config)
    log.info(
        "server_starting",
        host=host,
        port=port,
        environment=config.environment,
        content=str(config.content_path),
    )

    uvicorn.run(create_app(config), host=host, port=port, log_config=log_config)


if __name__ == "__main__":
    raise SystemExit(start())
