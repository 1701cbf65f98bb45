"""FastAPI application factory + lifespan lifecycle.

create_app() builds the blocker components eagerly, so an invalid blocklist,
template or audit log path refuses startup before the server accepts a single
connection. The blocker is registered as the outermost middleware; everything
it lets through reaches the /health route or the forwarding catch-all.

Startup (lifespan):
  1. create_http_client() → app.state.http_client
  2. app.state.ready = True

Shutdown (reverse):
  app.state.ready = False → close http client → close audit sink

Run with uvicorn in factory mode (see sfblocker/run.py):
  uvicorn --factory sfblocker.main:create_app
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI

from sfblocker.config import AppConfig, load_config
from sfblocker.errors import CloseError
from sfblocker.health import router as health_router
from sfblocker.middleware import SensitiveFileBlocker, build_components
from sfblocker.proxy import create_http_client, router as proxy_router
from sfblocker.utils.logger import configure_logging, get_logger

# ─── Logging Setup ────────────────────────────────────────────────────────────
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
JSON_LOGS = os.getenv("JSON_LOGS", "true").lower() == "true"

configure_logging(log_level=LOG_LEVEL, json_output=JSON_LOGS)
logger = get_logger(__name__)


# ─── Lifespan ─────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Sensitive files blocker starting up...")

    app.state.http_client = create_http_client()
    app.state.ready = True
    logger.info("Sensitive files blocker ready", middleware=app.state.config.blocker.name)

    try:
        yield
    finally:
        app.state.ready = False
        logger.info("Sensitive files blocker shutting down...")

        await app.state.http_client.aclose()

        try:
            app.state.audit_sink.close()
        except CloseError as exc:
            logger.error("Audit sink close failed", error=str(exc))

        logger.info("Shutdown complete")


# ─── Application factory ──────────────────────────────────────────────────────


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Build the application.

    Args:
        config: Pre-built configuration (tests). Loaded via load_config() when None.

    Raises:
        ConfigurationError: the blocker section is invalid (empty rule set,
                            bad pattern, bad template, audit log not writable).
        SystemExit(1):      the config file itself is invalid.
    """
    if config is None:
        config = load_config()

    rules, renderer, audit_sink = build_components(config.blocker)

    try:
        application = FastAPI(
            title="Sensitive Files Blocker",
            lifespan=lifespan,
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )
        application.state.ready = False
        application.state.config = config
        application.state.rules = rules
        application.state.renderer = renderer
        application.state.audit_sink = audit_sink

        application.include_router(health_router)
        application.include_router(proxy_router)

        application.add_middleware(
            SensitiveFileBlocker,
            rules=rules,
            renderer=renderer,
            audit_sink=audit_sink,
            name=config.blocker.name,
        )
    except BaseException:
        audit_sink.close()
        raise
    return application
