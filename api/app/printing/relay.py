"""Cloud side of the printer tunnel.

The relay owns no printer. It keeps the socket of the restaurant bridge in a
:class:`~.registry.BridgeRegistry` and writes ``ORDER_PRINT`` frames to it.
Dispatch is best effort and at most once: a missing or broken socket turns
into ``False``, never into an exception for the order placement path.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import hmac
import logging
from typing import Optional

from starlette.websockets import WebSocket

from ..routes_metrics import (
    print_jobs_dispatched_total,
    print_status_total,
    printer_bridge_connected,
)
from .messages import (
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
from .registry import BridgeConnection, BridgeRegistry

SECRET_QUERY_PARAM = "secret"
SECRET_HEADER = "x-printer-secret"

logger = logging.getLogger("api.print")


def verify_secret(provided: Optional[str], expected: Optional[str]) -> bool:
    """Compare ``provided`` against ``expected`` in constant time.

    Empty values never match. ``hmac.compare_digest`` does not stop at the
    first differing byte, so a value of the right length that differs in one
    position costs the same as a completely wrong one.
    """
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def extract_secret(websocket: WebSocket) -> Optional[str]:
    """Return the credential from the query string or ``X-Printer-Secret``."""
    secret = websocket.query_params.get(SECRET_QUERY_PARAM)
    if secret:
        return secret
    return websocket.headers.get(SECRET_HEADER)


class PrinterRelay:
    """Dispatch print jobs to the registered bridge and answer its frames."""

    def __init__(self, registry: BridgeRegistry) -> None:
        self.registry = registry
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: set = set()

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Remember the server loop that owns the bridge socket."""
        self._loop = loop

    def is_printer_connected(self) -> bool:
        return self.registry.is_connected()

    def attach(self, conn: BridgeConnection) -> None:
        previous = self.registry.replace(conn)
        if previous is not None and previous is not conn:
            logger.info(
                "printer bridge %s replaced previous bridge %s",
                conn.peer,
                previous.peer,
            )
        else:
            logger.info("printer bridge connected from %s", conn.peer)
        printer_bridge_connected.set(1)

    def detach(self, conn: BridgeConnection, reason: str = "closed") -> None:
        conn.mark_closed()
        if self.registry.clear(conn):
            printer_bridge_connected.set(0)
            logger.info("printer bridge %s disconnected (%s)", conn.peer, reason)
        else:
            logger.debug("superseded printer bridge %s closed (%s)", conn.peer, reason)

    async def send_to_printer(self, job: PrintJob) -> bool:
        """Write ``job`` to the bridge socket.

        Returns ``False`` without writing when no open bridge is registered,
        and ``False`` when encoding or the socket write fails. Never raises.
        """
        conn = self.registry.current()
        if conn is None or not conn.is_open:
            logger.warning(
                "no printer bridge connected; order #%s not printed", job.display_id
            )
            print_jobs_dispatched_total.labels(result="unavailable").inc()
            return False
        try:
            await conn.send_text(encode_message(OrderPrintMessage(order=job)))
        except Exception:
            logger.exception("failed to send print job for order #%s", job.display_id)
            print_jobs_dispatched_total.labels(result="error").inc()
            return False
        logger.info("print job sent: order #%s", job.display_id)
        print_jobs_dispatched_total.labels(result="sent").inc()
        return True

    def dispatch(
        self, job: PrintJob
    ) -> Optional[asyncio.Task | concurrent.futures.Future]:
        """Spawn :meth:`send_to_printer` without awaiting it.

        Safe to call from the event loop or from a worker thread (plain
        ``def`` routes). Work is scheduled on the loop bound with
        :meth:`bind_loop`, falling back to the caller's running loop. When
        neither exists the job is dropped and ``None`` is returned. The
        scheduled work has its own error boundary; callers may drop the
        returned task or future.
        """

        async def _run() -> bool:
            try:
                return await self.send_to_printer(job)
            except Exception:  # pragma: no cover - send_to_printer never raises
                logger.exception("print dispatch crashed for order #%s", job.display_id)
                return False

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        target = running
        if self._loop is not None and not self._loop.is_closed():
            target = self._loop
        if target is None:
            logger.error(
                "no event loop to dispatch order #%s; not printed", job.display_id
            )
            print_jobs_dispatched_total.labels(result="error").inc()
            return None

        if target is running:
            pending = running.create_task(_run())
        else:
            pending = asyncio.run_coroutine_threadsafe(_run(), target)
        self._tasks.add(pending)
        pending.add_done_callback(self._tasks.discard)
        return pending

    async def handle_message(self, conn: BridgeConnection, raw: str) -> None:
        """React to one frame received from the bridge."""
        try:
            message = parse_message(raw)
        except MessageError as exc:
            logger.debug("ignoring frame from %s: %s", conn.peer, exc)
            return

        if isinstance(message, PingMessage):
            await conn.send_text(encode_message(PongMessage()))
        elif isinstance(message, PrintStatusMessage):
            self._log_status(message)
        else:
            logger.debug("ignoring %s frame from bridge", message.type)

    def _log_status(self, message: PrintStatusMessage) -> None:
        print_status_total.labels(status=message.status.value).inc()
        if message.status is PrintStatus.FAILED:
            logger.warning(
                "print status [%s]: FAILED %s",
                message.order_id,
                message.error or "",
            )
        else:
            logger.info("print status [%s]: %s", message.order_id, message.status.value)
