"""
DocSummarizer Backend: FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       lifespan() handles startup/shutdown.
Who:   uvicorn (uvicorn docsummarizer.main:app) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────┐ ┌──────┐ ┌─────────┐ │
    │  │  Req ID  │→│  Logging    │→│ GZip │→│  CORS   │ │
    │  └──────────┘ └─────────────┘ └──────┘ └─────────┘ │
    │                                                     │
    │  Routes (/api/v1):                                  │
    │  ┌────────────────┐ ┌──────────────┐ ┌───────────┐ │
    │  │ POST upload    │ │ GET list/get │ │ DELETE    │ │
    │  │ POST analyze   │ │              │ │           │ │
    │  └────────────────┘ └──────────────┘ └───────────┘ │
    │  GET /health                                        │
    │                                                     │
    │  Exception Handlers:                                │
    │  DocSummarizerError → its status_code               │
    │  RequestValidationError → 400 │ Exception → 500     │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Validate configuration (logged, not fatal; /health reports it)
    3. Fail analyses left in ANALYZING by a previous process
    Shutdown:
    1. Close the analysis client's HTTP pool
    2. Dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from docsummarizer import __version__, messages
from docsummarizer.config import settings
from docsummarizer.database import async_session_factory, dispose_engine
from docsummarizer.dependencies import (
    close_analysis_client,
    get_analysis_client,
    get_blob_store,
    get_text_extractor,
)
from docsummarizer.exceptions import AnalysisError, DocSummarizerError
from docsummarizer.middleware.logging import RequestLoggingMiddleware
from docsummarizer.middleware.request_id import (
    RequestIDLogFilter,
    RequestIDMiddleware,
    request_id_var,
)
from docsummarizer.repositories.document_repository import DocumentRepository
from docsummarizer.routes import documents, health
from docsummarizer.services.document_service import DocumentService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s
    The request id comes from RequestIDLogFilter attached to the stdout handler.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("pypdf").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

async def recover_stale_analyses() -> int:
    """Fails documents stuck in ANALYZING since before this process started."""
    async with async_session_factory() as session:
        service = DocumentService(
            repository=DocumentRepository(session),
            blob_store=get_blob_store(),
            text_extractor=get_text_extractor(),
            analysis_client=get_analysis_client(),
            config=settings,
        )
        return await service.recover_stale_analyses(settings.stale_analysis_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("DocSummarizer Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: upload/get/list work without an LLM key
        logger.error("Configuration error: %s", str(e))

    try:
        await recover_stale_analyses()
    except DocSummarizerError as e:
        logger.error("Stale analysis sweep failed: %s | %s", e.message, e.context)

    logger.info("LLM provider: %s", settings.llm_provider)
    logger.info("Storage root: %s", settings.storage_root)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("DocSummarizer Backend shutting down...")
    await close_analysis_client()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "") or request_id_var.get("")


def _error_body(request: Request, error: str, message: str, details: Optional[dict] = None) -> dict:
    body = {"error": error, "message": message, "request_id": _request_id(request)}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Every DocSummarizerError renders as
        {"error": <error_code>, "message": <client-safe message>,
         "details": <context, 4xx only>, "request_id": ...}
    with the exception's own status_code. Context of 5xx errors may hold
    paths, SQL error types or provider bodies and is only logged.
    """

    @app.exception_handler(AnalysisError)
    async def handle_analysis_error(request: Request, exc: AnalysisError):
        logger.error("[%s] Analysis failed: %s | %s", _request_id(request), exc.kind.value, exc.context)
        details = {"kind": exc.kind.value}
        headers = {}
        if exc.retry_after:
            details["retry_after"] = exc.retry_after
            headers["Retry-After"] = str(exc.retry_after)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.error_code, exc.message, details),
            headers=headers,
        )

    @app.exception_handler(DocSummarizerError)
    async def handle_app_error(request: Request, exc: DocSummarizerError):
        status = exc.status_code
        rid = _request_id(request)
        if status >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, exc.error_code, exc.message, exc.context)
            details = None
        else:
            logger.warning("[%s] %s: %s", rid, exc.error_code, exc.message)
            details = exc.context
        return JSONResponse(
            status_code=status,
            content=_error_body(request, exc.error_code, exc.message, details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Malformed query parameters or body: 400 in the common error format."""
        fields = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=_error_body(request, "validation_error", messages.VALIDATION_ERROR, {"fields": fields}),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all; the stack trace is logged server-side only."""
        logger.error("[%s] Unexpected error: %s", _request_id(request), str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(request, "internal_error", messages.INTERNAL_SERVER_ERROR),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="DocSummarizer API",
        description=(
            "Upload PDF or DOCX documents, extract their text and get an "
            "LLM-generated summary, category and metadata."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in reverse order of addition:
    # RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(documents.router, prefix=settings.api_prefix)
    app.include_router(health.router)

    return app


app = create_app()
