"""Turn a :class:`PrintJob` into an ESC/POS kitchen ticket."""

from __future__ import annotations

import logging
import textwrap
from datetime import datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from escpos.escpos import Escpos

from api.app.printing.messages import OrderType, PrintJob

from .config import BridgeSettings
from .printer import close_printer, open_printer

ITEM_COLUMN_RATIO = 0.72

TYPE_LABELS = {
    OrderType.DINE_IN: "Dine In",
    OrderType.TAKEAWAY: "Takeaway",
    OrderType.DELIVERY: "Delivery",
}
LOCATION_LABELS = {
    OrderType.DINE_IN: "Table  ",
    OrderType.DELIVERY: "Addr   ",
    OrderType.TAKEAWAY: "Pickup ",
}

logger = logging.getLogger("printer_bridge.receipt")


class PrintError(Exception):
    """Printing failed; ``str(exc)`` is shown to staff and sent to the relay."""


def format_money(value: float, prefix: str = "Rs.") -> str:
    return f"{prefix}{value:.2f}"


def format_timestamp(value: datetime, tz: str) -> str:
    """Render ``value`` like ``19/10/2026, 7:05:09 pm`` in ``tz``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    local = value.astimezone(ZoneInfo(tz))
    hour = local.hour % 12 or 12
    meridiem = "am" if local.hour < 12 else "pm"
    return f"{local:%d/%m/%Y}, {hour}:{local:%M:%S} {meridiem}"


def two_columns(left: str, right: str, width: int, ratio: float) -> list[str]:
    """Lay out ``left`` and ``right`` as table rows ``width`` characters wide.

    The left cell wraps inside its share of the line; the right cell is
    right-aligned on the first row.
    """
    right_width = max(len(right), width - int(width * ratio))
    left_width = width - right_width
    chunks = textwrap.wrap(left, left_width) or [""]
    rows = [chunks[0].ljust(left_width) + right.rjust(right_width)]
    rows.extend(chunks[1:])
    return rows


class ReceiptRenderer:
    """Compose tickets and send them to the configured printer."""

    def __init__(
        self,
        settings: BridgeSettings,
        printer_factory: Callable[[str, float], Escpos] = open_printer,
    ) -> None:
        self.settings = settings
        self._printer_factory = printer_factory

    def _rule(self, printer: Escpos) -> None:
        printer.textln("-" * self.settings.paper_width)

    def _money(self, value: float) -> str:
        return format_money(value, self.settings.currency_prefix)

    def compose(self, job: PrintJob, printer: Escpos) -> None:
        """Write the ticket for ``job`` to ``printer``."""
        s = self.settings
        width = s.paper_width

        # Header
        printer.set_with_default(
            align="center", bold=True, double_height=True, double_width=True
        )
        printer.textln(s.restaurant_name)
        printer.set_with_default(align="center")
        if s.restaurant_tagline:
            printer.textln(s.restaurant_tagline)
        self._rule(printer)

        # Order info
        printer.set_with_default(align="left")
        printer.textln(f"Order  : #{job.display_id}")
        printer.textln(f"Date   : {format_timestamp(job.created_at, s.receipt_timezone)}")
        printer.textln(f"Type   : {TYPE_LABELS[job.type]}")
        if job.location:
            printer.textln(f"{LOCATION_LABELS[job.type]}: {job.location}")
        printer.textln(f"Name   : {job.customer_name}")
        printer.textln(f"Phone  : {job.customer_mobile}")
        self._rule(printer)

        # Items
        printer.set(bold=True)
        printer.textln("ITEMS:")
        printer.set(bold=False)
        for item in job.items:
            for row in two_columns(
                f"{item.name} x{item.quantity}",
                self._money(item.line_total),
                width,
                ITEM_COLUMN_RATIO,
            ):
                printer.textln(row)
        self._rule(printer)

        printer.set(bold=True)
        for row in two_columns("TOTAL", self._money(job.total_amount), width, 0.5):
            printer.textln(row)
        printer.set(bold=False)
        self._rule(printer)

        # Footer
        printer.set_with_default(align="center")
        printer.textln("Thank you for dining with us!")
        printer.textln("Visit again :)")
        printer.ln()
        printer.cut()

    def render(self, job: PrintJob) -> None:
        """Print ``job`` on the configured device.

        Every driver or hardware failure is raised as :class:`PrintError`.
        """
        interface = self.settings.printer_interface
        try:
            printer = self._printer_factory(interface, self.settings.printer_timeout)
        except Exception as exc:
            raise PrintError(f"Cannot reach printer on {interface}: {exc}") from exc
        try:
            self.compose(job, printer)
        except Exception as exc:
            raise PrintError(f"Printer error: {exc}") from exc
        finally:
            close_printer(printer)
        logger.info("printed order #%s", job.display_id)
