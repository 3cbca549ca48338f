"""Observability helpers."""

from .logging import JsonFormatter, configure_logging  # re-export

__all__ = ["JsonFormatter", "configure_logging"]
