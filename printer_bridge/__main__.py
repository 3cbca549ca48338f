"""Command line entry point: ``python -m printer_bridge``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv
from pydantic import ValidationError

from api.app.obs.logging import configure_logging

from . import __version__
from .client import BridgeClient
from .config import BridgeSettings
from .printer import probe_printer
from .receipt import ReceiptRenderer

logger = logging.getLogger("printer_bridge")


def _banner(settings: BridgeSettings) -> str:
    rule = "=" * 44
    return "\n".join(
        [
            rule,
            f"  Printer bridge v{__version__}",
            f"  Relay   : {settings.redacted_url()}",
            f"  Printer : {settings.printer_interface}",
            rule,
        ]
    )


def _check_printer(settings: BridgeSettings) -> bool:
    found = probe_printer(settings.printer_interface, settings.printer_timeout)
    if found:
        logger.info("thermal printer found on %s", settings.printer_interface)
    else:
        logger.warning(
            "cannot reach printer on %s; check the cable and PRINTER_INTERFACE in .env",
            settings.printer_interface,
        )
    return found


async def _serve(settings: BridgeSettings) -> None:
    client = BridgeClient(settings, ReceiptRenderer(settings))
    try:
        await client.run()
    finally:
        await client.stop()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="printer-bridge")
    parser.add_argument(
        "--once-probe",
        action="store_true",
        help="Only check that the printer is reachable, then exit",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    load_dotenv()
    try:
        settings = BridgeSettings()
    except ValidationError as exc:
        configure_logging(args.log_level or "INFO")
        missing = ", ".join(str(e["loc"][0]).upper() for e in exc.errors())
        logger.error("invalid bridge configuration: %s", missing)
        return 1

    configure_logging(args.log_level or settings.log_level)
    logger.info("printer bridge v%s starting\n%s", __version__, _banner(settings))

    found = _check_printer(settings)
    if args.once_probe:
        return 0 if found else 1

    try:
        asyncio.run(_serve(settings))
    except KeyboardInterrupt:
        logger.info("printer bridge stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
