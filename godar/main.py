from __future__ import annotations

import contextlib
import logging
import os
import time

from fastapi import FastAPI, Request

from godar.api import api_router
from godar.config import ConfigError, load_settings, settings
from godar.services import build_monitor

logging.basicConfig(
    level="DEBUG" if settings.debug else settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("godar")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown lifecycle."""

    if settings.monitor_enabled:
        try:
            config = load_settings(os.getenv("GODAR_CONFIG_FILE"))
        except (ConfigError, RuntimeError) as exc:
            logger.error("Monitor enabled but configuration is invalid; skipping startup: %s", exc)
        else:
            app.state.monitor = build_monitor(config)
            app.state.monitor.start()
            logger.info("Aircraft monitor started")

    try:
        yield
    finally:
        monitor = getattr(app.state, "monitor", None)
        if monitor:
            await monitor.stop()


app = FastAPI(title="godar", lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log basic request information for observability."""

    start_time = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "HTTP %s %s -> %s (%.2f ms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


app.include_router(api_router)


@app.get("/", summary="Root")
def read_root() -> dict[str, str]:
    """Basic root endpoint for quick verification."""

    return {"message": "godar aircraft monitor is running"}
