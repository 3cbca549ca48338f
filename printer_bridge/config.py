"""Settings for the bridge process running on the restaurant PC.

Values come from the environment or a ``.env`` file next to the process.
``RELAY_URL`` (or the older ``RAILWAY_URL``) and ``PRINTER_BRIDGE_SECRET``
are required.
"""

from __future__ import annotations

from urllib.parse import quote

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BridgeSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    relay_url: str = Field(
        validation_alias=AliasChoices("relay_url", "RELAY_URL", "RAILWAY_URL")
    )
    printer_bridge_secret: str
    printer_ws_path: str = "/printer-ws"
    printer_interface: str = "//./COM3"
    reconnect_delay: float = Field(5.0, gt=0)
    heartbeat_interval: float = Field(30.0, gt=0)
    printer_timeout: float = Field(5.0, gt=0)

    restaurant_name: str = "SHIVANYA RESTAURANT"
    restaurant_tagline: str = "www.shivanya.com"
    receipt_timezone: str = "Asia/Kolkata"
    currency_prefix: str = "Rs."
    paper_width: int = Field(48, ge=24)
    log_level: str = "INFO"

    @field_validator("relay_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("ws://", "wss://")):
            raise ValueError("relay_url must start with ws:// or wss://")
        return value

    def redacted_url(self) -> str:
        """Tunnel URL without credentials, safe to log."""
        return f"{self.relay_url}{self.printer_ws_path}"

    def ws_url(self) -> str:
        return f"{self.redacted_url()}?secret={quote(self.printer_bridge_secret, safe='')}"
