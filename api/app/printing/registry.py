"""Holder for the single live printer bridge connection.

The relay accepts at most one bridge per process. The registry is a small
injectable object rather than a module global so tests can build their own
and a multi-outlet deployment can key several of them by tenant.
"""

from __future__ import annotations

import threading
from typing import Optional

from starlette.websockets import WebSocket, WebSocketState


class BridgeConnection:
    """Wrap the websocket of an authenticated bridge client."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self._closed = False

    @property
    def peer(self) -> str:
        client = self.websocket.client
        return f"{client.host}:{client.port}" if client else "?"

    @property
    def is_open(self) -> bool:
        if self._closed:
            return False
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def mark_closed(self) -> None:
        self._closed = True

    async def send_text(self, data: str) -> None:
        await self.websocket.send_text(data)


class BridgeRegistry:
    """Atomically swappable reference to the current :class:`BridgeConnection`."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: Optional[BridgeConnection] = None

    def current(self) -> Optional[BridgeConnection]:
        return self._current

    def replace(self, conn: BridgeConnection) -> Optional[BridgeConnection]:
        """Make ``conn`` current and return the connection it superseded."""
        with self._lock:
            previous, self._current = self._current, conn
        return previous

    def clear(self, conn: Optional[BridgeConnection] = None) -> bool:
        """Drop the current connection.

        When ``conn`` is given the registry is only cleared if ``conn`` is
        still current, so a late close of a superseded socket cannot
        disconnect its replacement. Returns ``True`` when a reference was
        removed.
        """
        with self._lock:
            if self._current is None:
                return False
            if conn is not None and self._current is not conn:
                return False
            self._current = None
            return True

    def is_connected(self) -> bool:
        conn = self._current
        return conn is not None and conn.is_open
