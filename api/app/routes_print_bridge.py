"""Printer bridge tunnel endpoint and admin print routes.

``WS /printer-ws`` accepts the restaurant bridge after a shared-secret check.
``GET /api/print`` reports whether a bridge is attached and ``POST /api/print``
lets an admin (re)print an order by hand.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, WebSocket, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from config import DEFAULT_WS_PATH
from .auth import User, role_required
from .printing.messages import PrintJob
from .printing.registry import BridgeConnection
from .printing.relay import PrinterRelay, extract_secret, verify_secret
from .routes_metrics import printer_auth_failures_total

CONNECTED_STATUS = "Printer bridge connected"
DISCONNECTED_STATUS = "Printer bridge NOT connected"
NOT_CONNECTED_ERROR = (
    "Printer bridge not connected. Is printer-bridge running on the restaurant PC?"
)

logger = logging.getLogger("api.print")


class PrinterConnectionStatus(BaseModel):
    connected: bool
    status: str


class PrintRequest(BaseModel):
    order: PrintJob


def get_relay(request: Request) -> PrinterRelay:
    return request.app.state.printer_relay


async def _deny(websocket: WebSocket) -> None:
    """Refuse the upgrade with ``401`` before the handshake completes."""
    try:
        await websocket.send_denial_response(
            PlainTextResponse("Unauthorized", status_code=status.HTTP_401_UNAUTHORIZED)
        )
    except RuntimeError:
        # Server without the websocket denial-response extension.
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)


async def printer_ws(websocket: WebSocket) -> None:
    """Authenticate the bridge, register it, and serve its frames."""

    settings = websocket.app.state.settings
    relay: PrinterRelay = websocket.app.state.printer_relay
    peer = websocket.client.host if websocket.client else "?"

    if not verify_secret(extract_secret(websocket), settings.printer_bridge_secret):
        printer_auth_failures_total.inc()
        logger.warning("unauthorized printer bridge attempt from %s rejected", peer)
        await _deny(websocket)
        return

    # Registered before the accept frame goes out; is_open flips with it.
    conn = BridgeConnection(websocket)
    relay.attach(conn)
    reason = "closed"
    try:
        await websocket.accept()
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                reason = f"code {message.get('code', 1000)}"
                break
            raw = message.get("text") or message.get("bytes")
            if raw:
                await relay.handle_message(conn, raw)
    except Exception as exc:
        reason = f"error: {exc}"
        logger.exception("printer bridge socket from %s failed", peer)
    finally:
        relay.detach(conn, reason)


def create_router(ws_path: str = DEFAULT_WS_PATH) -> APIRouter:
    """Return the print router with the tunnel mounted at ``ws_path``."""

    router = APIRouter()
    router.add_api_websocket_route(ws_path, printer_ws, name="printer_ws")

    @router.get("/api/print", response_model=PrinterConnectionStatus)
    async def printer_status(
        relay: PrinterRelay = Depends(get_relay),
    ) -> PrinterConnectionStatus:
        """Return whether the restaurant bridge is attached."""
        connected = relay.is_printer_connected()
        return PrinterConnectionStatus(
            connected=connected,
            status=CONNECTED_STATUS if connected else DISCONNECTED_STATUS,
        )

    @router.post("/api/print")
    async def print_order(
        payload: PrintRequest,
        relay: PrinterRelay = Depends(get_relay),
        user: User = Depends(role_required()),
    ) -> JSONResponse:
        """Send ``payload.order`` to the bridge on behalf of an admin."""
        sent = await relay.send_to_printer(payload.order)
        if not sent:
            return JSONResponse(
                {"success": False, "error": NOT_CONNECTED_ERROR},
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        logger.info(
            "manual print of order #%s requested by %s",
            payload.order.display_id,
            user.username,
        )
        return JSONResponse({"success": True, "message": "Print job sent to bridge"})

    return router


router = create_router()
