# main.py

"""FastAPI application relaying order tickets to the restaurant printer bridge."""

from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings

from .config.validate import validate_on_boot
from .middlewares import LoggingMiddleware, PrometheusMiddleware, RequestIdMiddleware
from .obs.logging import configure_logging
from .printing.registry import BridgeRegistry
from .printing.relay import PrinterRelay
from .routes_metrics import router as metrics_router
from .routes_print_bridge import create_router as create_print_router
from .utils.responses import err, ok

logger = logging.getLogger("api")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the relay application around a fresh bridge registry."""

    settings = settings or get_settings()
    app = FastAPI(title="Neo printer relay")
    app.state.settings = settings
    app.state.bridge_registry = BridgeRegistry()
    app.state.printer_relay = PrinterRelay(app.state.bridge_registry)

    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(create_print_router(settings.printer_ws_path))
    app.include_router(metrics_router)

    @app.on_event("startup")
    async def check_settings() -> None:
        validate_on_boot(app.state.settings)
        app.state.printer_relay.bind_loop(asyncio.get_running_loop())
        logger.info("printer websocket endpoint: %s", settings.printer_ws_path)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        return JSONResponse(
            err(exc.status_code, str(exc.detail)),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.get("/health")
    async def health() -> dict:
        return ok({"printer_connected": app.state.printer_relay.is_printer_connected()})

    return app


configure_logging(get_settings().log_level)
app = create_app()
