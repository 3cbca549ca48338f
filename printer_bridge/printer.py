"""Resolve a printer interface string to a python-escpos device.

Accepted identifiers::

    tcp://192.168.1.50[:9100]   network printer (raw port 9100 by default)
    usb://0x04b8:0x0202         USB vendor/product id
    //./COM3, COM3, serial:COM3 serial port (Windows)
    /dev/ttyUSB0                serial port (Linux)
    file:/dev/usb/lp0           character device written as a file
    win32:EPSON TM-T20          Windows print spooler queue
    cups:TM-T20                 CUPS queue
    dummy                       in-memory buffer, nothing is printed
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from escpos import printer as escpos_printer
from escpos.escpos import Escpos

DEFAULT_NETWORK_PORT = 9100

logger = logging.getLogger("printer_bridge.printer")

_COM_RE = re.compile(r"^(?://\./|\\\\\.\\)?(COM\d+)$", re.I)


class PrinterConfigError(ValueError):
    """Raised for printer interface strings that cannot be understood."""


@dataclass(frozen=True)
class PrinterTarget:
    kind: str
    kwargs: dict[str, Any] = field(default_factory=dict)


def parse_interface(interface: str, timeout: float = 5.0) -> PrinterTarget:
    value = interface.strip()
    if not value:
        raise PrinterConfigError("printer interface is empty")
    lowered = value.lower()

    if lowered == "dummy":
        return PrinterTarget("dummy")
    if lowered.startswith("tcp://"):
        host, _, port = value[len("tcp://"):].partition(":")
        if not host:
            raise PrinterConfigError(f"missing host in {interface!r}")
        try:
            port_num = int(port) if port else DEFAULT_NETWORK_PORT
        except ValueError:
            raise PrinterConfigError(f"invalid port in {interface!r}") from None
        return PrinterTarget(
            "network", {"host": host, "port": port_num, "timeout": timeout}
        )
    if lowered.startswith("usb://"):
        vendor, _, product = value[len("usb://"):].partition(":")
        try:
            return PrinterTarget(
                "usb",
                {
                    "idVendor": int(vendor, 16),
                    "idProduct": int(product, 16),
                    "timeout": int(timeout * 1000),
                },
            )
        except ValueError:
            raise PrinterConfigError(f"invalid USB ids in {interface!r}") from None
    if lowered.startswith("serial:"):
        value = value[len("serial:"):]
    com = _COM_RE.match(value)
    if com:
        return PrinterTarget("serial", {"devfile": com.group(1).upper(), "timeout": timeout})
    if value.startswith("/dev/tty"):
        return PrinterTarget("serial", {"devfile": value, "timeout": timeout})
    if lowered.startswith("file:"):
        return PrinterTarget("file", {"devfile": value[len("file:"):]})
    if value.startswith("/dev/"):
        return PrinterTarget("file", {"devfile": value})
    if lowered.startswith("win32:"):
        return PrinterTarget("win32", {"printer_name": value[len("win32:"):]})
    if lowered.startswith("cups:"):
        return PrinterTarget("cups", {"printer_name": value[len("cups:"):]})
    raise PrinterConfigError(f"unsupported printer interface {interface!r}")


_FACTORIES = {
    "dummy": escpos_printer.Dummy,
    "network": escpos_printer.Network,
    "usb": escpos_printer.Usb,
    "serial": escpos_printer.Serial,
    "file": escpos_printer.File,
    "win32": escpos_printer.Win32Raw,
    "cups": escpos_printer.CupsPrinter,
}


def open_printer(interface: str, timeout: float = 5.0) -> Escpos:
    """Instantiate and open the device behind ``interface``.

    Driver errors propagate to the caller.
    """
    target = parse_interface(interface, timeout)
    device = _FACTORIES[target.kind](**target.kwargs)
    if target.kind != "dummy":
        device.open()
    return device


def close_printer(device: Escpos) -> None:
    try:
        device.close()
    except Exception as exc:
        logger.debug("closing printer failed: %s", exc)


def probe_printer(interface: str, timeout: float = 5.0) -> bool:
    """Return ``True`` when the printer can be opened. Never raises."""
    try:
        device = open_printer(interface, timeout)
    except Exception as exc:
        logger.debug("printer probe on %s failed: %s", interface, exc)
        return False
    close_printer(device)
    return True
