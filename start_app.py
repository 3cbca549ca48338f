# start_app.py
"""Validate relay settings and launch the API server."""

from __future__ import annotations

import argparse
import sys

import uvicorn
from dotenv import load_dotenv

import config


def main(argv: list[str] | None = None) -> None:
    """Load settings, validate them, then start the relay."""

    parser = argparse.ArgumentParser()
    parser.add_argument("--host", default="0.0.0.0")  # nosec B104: bind for container use
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate configuration and exit without serving",
    )
    args = parser.parse_args(argv)

    load_dotenv()  # load environment variables from a .env file
    config.get_settings.cache_clear()
    settings = config.get_settings()

    from api.app.config.validate import validate_on_boot

    try:
        validate_on_boot(settings)
    except RuntimeError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        raise SystemExit(1)

    if args.check_config:
        print("configuration ok")
        return

    uvicorn.run(
        "api.app.main:app",
        host=args.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
