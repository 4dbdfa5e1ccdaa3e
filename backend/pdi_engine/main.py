# backend/pdi_engine/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .domain.errors import PDIError
from .logging_config import configure_logging
from .middleware import RequestIDMiddleware, StructuredLoggingMiddleware

from .routers.health import router as health_router
from .routers.dashboard import router as dashboard_router
from .routers.templates import router as templates_router
from .routers.inspections import router as inspections_router

API_PREFIX = "/api"

log = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    val = getattr(settings, "cors_allow_origins", ["*"])
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


async def pdi_error_handler(request: Request, exc: PDIError) -> JSONResponse:
    body = exc.as_dict()
    body["request_id"] = getattr(request.state, "request_id", None)
    return JSONResponse(status_code=exc.http_status, content=body)


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Dealer PDI Engine",
        version=settings.app_version,
    )

    # Structured logging sits inside request-id so every line carries it.
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PDIError, pdi_error_handler)

    # Core
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(dashboard_router, prefix=API_PREFIX)

    # PDI
    app.include_router(templates_router, prefix=API_PREFIX)
    app.include_router(inspections_router, prefix=API_PREFIX)

    log.info("pdi engine app created", extra={"event_type": "app_started"})
    return app


app = create_app()
