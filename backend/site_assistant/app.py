"""FastAPI application setup for Site Assistant."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from site_assistant.api.dependencies import (
    get_answer_generator,
    get_app_settings,
    get_index_builder,
    get_index_handle,
    get_query_service,
)
from site_assistant.api.routes_admin import router as admin_router
from site_assistant.api.routes_index import router as index_router
from site_assistant.api.routes_query import router as query_router
from site_assistant.core.errors import AssistantError
from site_assistant.core.logging import configure_logging
from site_assistant.core.metrics import REQUEST_COUNT

configure_logging()
logger = logging.getLogger(__name__)


class SettingsCORSMiddleware(CORSMiddleware):
    """CORS with origins from settings, read when the middleware stack is built."""

    def __init__(self, app, **options) -> None:
        super().__init__(app, allow_origins=get_app_settings().cors_origins, **options)


app = FastAPI(
    title="Site Assistant",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    SettingsCORSMiddleware,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(index_router, prefix="/api", tags=["index"])
app.include_router(query_router, prefix="/api", tags=["query"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.exception_handler(AssistantError)
async def assistant_error_handler(request: Request, exc: AssistantError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("Request failed: %s", exc.message, extra={"ctx_path": request.url.path, "ctx_code": exc.code})
    else:
        logger.info("Rejected request: %s", exc.message, extra={"ctx_path": request.url.path, "ctx_code": exc.code})
    REQUEST_COUNT.labels(endpoint=request.url.path, status=exc.code).inc()
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons and load any persisted index."""
    get_app_settings()
    get_index_handle()
    get_index_builder()
    get_query_service()
    get_answer_generator()
