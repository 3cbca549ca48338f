# order_print.py
"""Hook run by order placement to send the new order to the kitchen printer."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from ..printing.messages import PrintJob
from ..printing.relay import PrinterRelay

logger = logging.getLogger("api.print")


def build_print_job(order: Mapping[str, Any]) -> PrintJob:
    """Snapshot an order record into a :class:`PrintJob`.

    ``order`` uses the camelCase keys of the order layer. Missing totals are
    computed from the items and a missing ``createdAt`` defaults to now.
    """
    data = dict(order)
    items = [
        {"name": i["name"], "quantity": i["quantity"], "price": i.get("price") or 0}
        for i in data.get("items", [])
    ]
    data["items"] = items
    if data.get("totalAmount") is None:
        data["totalAmount"] = sum(i["price"] * i["quantity"] for i in items)
    data.setdefault("orderIdString", data.get("id"))
    data.setdefault("createdAt", datetime.now(timezone.utc))
    return PrintJob.model_validate(data)


def on_order_created(
    relay: PrinterRelay, order: Mapping[str, Any]
) -> Optional[asyncio.Task | concurrent.futures.Future]:
    """Fire-and-forget print of ``order``.

    Callable from async routes and from plain ``def`` routes running in the
    threadpool. Returns the pending dispatch, or ``None`` when the order could
    not be turned into a print job or no server loop is available. Nothing
    here raises into the caller.
    """
    try:
        job = build_print_job(order)
    except (KeyError, TypeError, ValidationError) as exc:
        logger.error("order %s not printable: %s", order.get("id"), exc)
        return None
    return relay.dispatch(job)
