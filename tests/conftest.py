import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from api.app.printing.messages import PrintJob  # noqa: E402
from printer_bridge.config import BridgeSettings  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def bridge_settings() -> BridgeSettings:
    return BridgeSettings(
        relay_url="wss://relay.example.com/",
        printer_bridge_secret="s3cret/with+chars",
        printer_interface="dummy",
        _env_file=None,
    )


@pytest.fixture
def job() -> PrintJob:
    return PrintJob(
        id="3f6c1a9e-5b7d-4c1e-9a2b-7d8e9f0a1b2c",
        order_id_string="ord_clx9k2m7p0001ab12cd34",
        customer_name="Asha Verma",
        customer_mobile="9876543210",
        type="DELIVERY",
        address="12 MG Road, Pune",
        total_amount=430.0,
        items=[
            {"name": "Paneer Tikka", "quantity": 2, "price": 150.0},
            {"name": "Masala Chai", "quantity": 2, "price": 65.0},
        ],
        created_at=datetime(2026, 10, 19, 13, 30, 5, tzinfo=timezone.utc),
    )
