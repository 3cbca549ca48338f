import logging

import pytest
from starlette.testclient import WebSocketDenialResponse

from prometheus_client import REGISTRY

BRIDGE_SECRET = "s3cret-bridge-token-abcdef"


def _ws_url(secret: str = BRIDGE_SECRET) -> str:
    return f"/printer-ws?secret={secret}"


def _status(client) -> dict:
    return client.get("/api/print").json()


def _auth_failures() -> float:
    return REGISTRY.get_sample_value("printer_auth_failures_total") or 0.0


@pytest.mark.parametrize(
    "secret",
    [
        "wrong",
        "",
        BRIDGE_SECRET[:-1],
        BRIDGE_SECRET.upper(),
        BRIDGE_SECRET[:-1] + ("x" if BRIDGE_SECRET[-1] != "x" else "y"),
    ],
)
def test_bad_secret_rejected_with_401(client, secret):
    before = _auth_failures()
    with pytest.raises(WebSocketDenialResponse) as exc_info:
        with client.websocket_connect(_ws_url(secret)):
            pass
    assert exc_info.value.status_code == 401
    assert _status(client) == {
        "connected": False,
        "status": "Printer bridge NOT connected",
    }
    assert _auth_failures() == before + 1


def test_missing_secret_rejected(client):
    with pytest.raises(WebSocketDenialResponse) as exc_info:
        with client.websocket_connect("/printer-ws"):
            pass
    assert exc_info.value.status_code == 401
    assert _status(client)["connected"] is False


def test_secret_accepted_from_header(client):
    with client.websocket_connect(
        "/printer-ws", headers={"X-Printer-Secret": BRIDGE_SECRET}
    ):
        assert _status(client)["connected"] is True


def test_status_follows_bridge_lifecycle(client):
    assert _status(client)["connected"] is False
    with client.websocket_connect(_ws_url()):
        assert _status(client) == {
            "connected": True,
            "status": "Printer bridge connected",
        }
    assert _status(client)["connected"] is False

    with client.websocket_connect(_ws_url()):
        assert _status(client)["connected"] is True
    assert _status(client)["connected"] is False


def test_ping_answered_with_pong(client):
    with client.websocket_connect(_ws_url()) as ws:
        ws.send_json({"type": "PING"})
        assert ws.receive_json() == {"type": "PONG"}


def test_garbage_frame_keeps_connection(client):
    with client.websocket_connect(_ws_url()) as ws:
        ws.send_text("not json")
        ws.send_json({"type": "NOPE"})
        ws.send_json({"type": "PING"})
        assert ws.receive_json() == {"type": "PONG"}
        assert _status(client)["connected"] is True


def test_manual_print_reaches_bridge(client, admin_headers, order_payload):
    with client.websocket_connect(_ws_url()) as ws:
        resp = client.post(
            "/api/print", json={"order": order_payload}, headers=admin_headers
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Print job sent to bridge"}
        frame = ws.receive_json()
    assert frame["type"] == "ORDER_PRINT"
    assert frame["order"]["orderIdString"] == order_payload["orderIdString"]
    assert frame["order"]["customerName"] == "Asha Verma"
    assert frame["order"]["items"][0] == {
        "name": "Paneer Tikka",
        "quantity": 2,
        "price": 150.0,
    }


def test_manual_print_without_bridge_is_503(client, admin_headers, order_payload):
    resp = client.post(
        "/api/print", json={"order": order_payload}, headers=admin_headers
    )
    assert resp.status_code == 503
    assert resp.json() == {
        "success": False,
        "error": "Printer bridge not connected. Is printer-bridge running on the restaurant PC?",
    }


def test_manual_print_requires_token(client, order_payload):
    resp = client.post("/api/print", json={"order": order_payload})
    assert resp.status_code == 401


def test_manual_print_requires_admin_role(client, order_payload):
    from api.app.auth import create_access_token

    token = create_access_token({"sub": "waiter@example.com", "role": "waiter"})
    resp = client.post(
        "/api/print",
        json={"order": order_payload},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert resp.status_code == 403


def test_newer_bridge_replaces_older(client):
    with client.websocket_connect(_ws_url()) as first:
        with client.websocket_connect(_ws_url()) as second:
            second.send_json({"type": "PING"})
            assert second.receive_json() == {"type": "PONG"}
            first.close()
            assert _status(client)["connected"] is True
        assert _status(client)["connected"] is False


def test_failed_print_status_is_logged(client, caplog):
    with caplog.at_level(logging.INFO, logger="api.print"):
        with client.websocket_connect(_ws_url()) as ws:
            ws.send_json(
                {
                    "type": "PRINT_STATUS",
                    "orderId": "ord_clx9k2m7p0001ab12cd34",
                    "status": "FAILED",
                    "error": "Printer offline",
                }
            )
            # a PONG means the status frame before it was handled
            ws.send_json({"type": "PING"})
            assert ws.receive_json() == {"type": "PONG"}
    failed = [
        r
        for r in caplog.records
        if r.levelno == logging.WARNING and "FAILED" in r.getMessage()
    ]
    assert failed
    assert "ord_clx9k2m7p0001ab12cd34" in failed[0].getMessage()
    assert "Printer offline" in failed[0].getMessage()


def test_health_reports_bridge(client):
    resp = client.get("/health")
    assert resp.json() == {"ok": True, "data": {"printer_connected": False}}
    with client.websocket_connect(_ws_url()):
        assert client.get("/health").json()["data"]["printer_connected"] is True


def test_other_websocket_paths_refused(client):
    from starlette.websockets import WebSocketDisconnect

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/ws?secret={BRIDGE_SECRET}"):
            pass
    assert _status(client)["connected"] is False


def test_custom_ws_path(settings):
    from fastapi.testclient import TestClient

    from api.app.main import create_app

    app = create_app(settings.model_copy(update={"printer_ws_path": "/bridge-tunnel"}))
    with TestClient(app) as client:
        with client.websocket_connect(f"/bridge-tunnel?secret={BRIDGE_SECRET}"):
            assert _status(client)["connected"] is True
