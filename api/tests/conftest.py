import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[2]))

from config import Settings  # noqa: E402
from api.app.auth import create_access_token  # noqa: E402
from api.app.main import create_app  # noqa: E402

BRIDGE_SECRET = "s3cret-bridge-token-abcdef"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(printer_bridge_secret=BRIDGE_SECRET, secret_key="x" * 32)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": "admin@example.com", "role": "super_admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def order_payload() -> dict:
    return {
        "id": "3f6c1a9e-5b7d-4c1e-9a2b-7d8e9f0a1b2c",
        "orderIdString": "ord_clx9k2m7p0001ab12cd34",
        "customerName": "Asha Verma",
        "customerMobile": "9876543210",
        "type": "DINE_IN",
        "tableNumber": "T4",
        "totalAmount": 430.0,
        "items": [
            {"name": "Paneer Tikka", "quantity": 2, "price": 150.0},
            {"name": "Masala Chai", "quantity": 2, "price": 65.0},
        ],
        "createdAt": datetime(2026, 10, 19, 13, 30, tzinfo=timezone.utc).isoformat(),
    }
