"""Startup configuration validation for the relay server."""

from __future__ import annotations

import logging
import os

from config import Settings, get_settings

MIN_SECRET_LENGTH = 16

logger = logging.getLogger("api.config")


def _mask(value: str) -> str:
    """Return a masked representation of ``value`` for logging."""
    if len(value) <= 4:
        return "*" * len(value)
    return value[:2] + "*" * (len(value) - 4) + value[-2:]


def validate_on_boot(settings: Settings | None = None) -> Settings:
    """Validate the printer bridge settings before serving traffic.

    Logs masked values for audit and raises :class:`RuntimeError` when a
    required value is missing or malformed. A short bridge secret is only a
    warning outside ``APP_ENV=prod``.
    """

    settings = settings or get_settings()
    env = os.getenv("APP_ENV", "dev")

    missing: list[str] = []
    if not settings.printer_bridge_secret:
        missing.append("PRINTER_BRIDGE_SECRET")
    if env == "prod" and settings.secret_key in {"", "change-me"}:
        missing.append("SECRET_KEY")
    if missing:
        raise RuntimeError(
            "Missing required environment variables: " + ", ".join(sorted(missing))
        )

    if not settings.printer_ws_path.startswith("/"):
        raise RuntimeError("PRINTER_WS_PATH must start with '/'")

    secret = settings.printer_bridge_secret
    if len(secret) < MIN_SECRET_LENGTH:
        if env == "prod":
            raise RuntimeError(
                f"PRINTER_BRIDGE_SECRET must be at least {MIN_SECRET_LENGTH} characters long"
            )
        logger.warning("PRINTER_BRIDGE_SECRET is shorter than %d characters", MIN_SECRET_LENGTH)

    logger.info("PRINTER_BRIDGE_SECRET=%s", _mask(secret))
    logger.info("PRINTER_WS_PATH=%s", settings.printer_ws_path)
    return settings
