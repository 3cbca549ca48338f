"""Outbound tunnel from the restaurant PC to the relay server.

:class:`BridgeClient` is a small state machine driven by one task::

    DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED -> ...

All transitions happen inside :meth:`BridgeClient.run`, so socket events,
the heartbeat and print jobs never race on the state. A dropped or refused
connection is retried after a constant ``reconnect_delay``. Jobs sent while
the tunnel is down are lost; the relay reports them as not printed.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from enum import Enum
from typing import Any, AsyncContextManager, Awaitable, Callable, Optional, Protocol

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidStatus, InvalidURI

from api.app.printing.messages import (
    MessageError,
    OrderPrintMessage,
    PingMessage,
    PongMessage,
    PrintJob,
    PrintStatus,
    PrintStatusMessage,
    encode_message,
    parse_message,
)

from .config import BridgeSettings
from .receipt import PrintError

# Extra time granted to the worker thread on top of the driver timeout.
PRINT_TIMEOUT_SLACK = 2.0

logger = logging.getLogger("printer_bridge")


class BridgeState(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    STOPPED = "STOPPED"


class Renderer(Protocol):
    def render(self, job: PrintJob) -> None: ...


Connector = Callable[[str], AsyncContextManager[Any]]


def default_connector(settings: BridgeSettings) -> Connector:
    """Return a websockets connector with protocol-level pings disabled.

    Liveness is tracked with application ``PING``/``PONG`` frames instead.
    """
    return functools.partial(
        ws_connect,
        open_timeout=settings.printer_timeout * 2,
        close_timeout=settings.printer_timeout,
        ping_interval=None,
    )


class BridgeClient:
    """Keep a self-healing connection to the relay and print what it sends."""

    def __init__(
        self,
        settings: BridgeSettings,
        renderer: Renderer,
        connect: Optional[Connector] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_state_change: Optional[Callable[[BridgeState], None]] = None,
    ) -> None:
        self.settings = settings
        self.renderer = renderer
        self._connect = connect or default_connector(settings)
        self._sleep = sleep
        self._on_state_change = on_state_change
        self.state = BridgeState.DISCONNECTED
        self.last_disconnect_reason: Optional[str] = None
        self._stopping = False
        self._socket: Any = None

    def _set_state(self, state: BridgeState) -> None:
        if state is self.state:
            return
        logger.debug("bridge state %s -> %s", self.state.value, state.value)
        self.state = state
        if self._on_state_change is not None:
            self._on_state_change(state)

    async def stop(self) -> None:
        """Ask :meth:`run` to finish after the current step."""
        self._stopping = True
        socket = self._socket
        if socket is not None:
            await socket.close()

    async def run(self) -> None:
        """Connect, serve and reconnect until :meth:`stop` is called."""
        try:
            while not self._stopping:
                self._set_state(BridgeState.CONNECTING)
                logger.info("connecting to relay %s", self.settings.redacted_url())
                reason = await self._session()
                self.last_disconnect_reason = reason
                self._set_state(BridgeState.DISCONNECTED)
                if self._stopping:
                    break
                logger.warning(
                    "disconnected (%s); reconnecting in %ss",
                    reason,
                    self.settings.reconnect_delay,
                )
                await self._sleep(self.settings.reconnect_delay)
        finally:
            self._set_state(BridgeState.STOPPED)

    async def _session(self) -> str:
        """Run one connection from handshake to close and return why it ended."""
        try:
            async with self._connect(self.settings.ws_url()) as ws:
                self._socket = ws
                self._set_state(BridgeState.CONNECTED)
                logger.info("connected to relay; waiting for print jobs")
                heartbeat = asyncio.create_task(self._heartbeat(ws))
                try:
                    async for raw in ws:
                        await self._handle(ws, raw)
                finally:
                    self._socket = None
                    heartbeat.cancel()
                    try:
                        await heartbeat
                    except asyncio.CancelledError:
                        pass
                    except Exception:
                        logger.exception("heartbeat task failed")
            return f"code {getattr(ws, 'close_code', None) or 1000}"
        except ConnectionClosed as exc:
            return f"connection closed: {exc}"
        except InvalidStatus as exc:
            return f"rejected by relay: HTTP {exc.response.status_code}"
        except (InvalidHandshake, InvalidURI, OSError, asyncio.TimeoutError) as exc:
            return f"error: {exc}"

    async def _heartbeat(self, ws: Any) -> None:
        ping = encode_message(PingMessage())
        try:
            while True:
                await asyncio.sleep(self.settings.heartbeat_interval)
                await ws.send(ping)
        except ConnectionClosed:
            logger.debug("heartbeat stopped: connection closed")

    async def _handle(self, ws: Any, raw: str | bytes) -> None:
        try:
            message = parse_message(raw)
        except MessageError as exc:
            logger.error("failed to process message: %s", exc)
            return

        if isinstance(message, PongMessage):
            return
        if isinstance(message, OrderPrintMessage):
            report = await self.print_job(message.order)
            await ws.send(encode_message(report))
            return
        logger.debug("ignoring %s frame from relay", message.type)

    async def print_job(self, job: PrintJob) -> PrintStatusMessage:
        """Render ``job`` off the event loop and build the status report."""
        logger.info("new print job received: order #%s", job.display_id)
        timeout = self.settings.printer_timeout + PRINT_TIMEOUT_SLACK
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self.renderer.render, job), timeout=timeout
            )
        except PrintError as exc:
            error = str(exc)
        except asyncio.TimeoutError:
            error = f"Printer did not respond within {timeout:g}s"
        except Exception as exc:
            logger.exception("unexpected renderer failure")
            error = str(exc) or exc.__class__.__name__
        else:
            return PrintStatusMessage(
                order_id=job.order_id_string, status=PrintStatus.SUCCESS
            )
        logger.error("print failed for order #%s: %s", job.display_id, error)
        return PrintStatusMessage(
            order_id=job.order_id_string, status=PrintStatus.FAILED, error=error
        )
