"""LoteVivo Production API: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# structlog must be configured before any module calls structlog.get_logger()
from lotevivo.core.config import get_settings
from lotevivo.core.logging import configure_structlog

_boot_settings = get_settings()
configure_structlog(
    log_level="DEBUG" if _boot_settings.debug else _boot_settings.log_level,
    json_logs=not _boot_settings.debug,
)

import structlog  # noqa: E402
from fastapi import FastAPI, HTTPException, Request  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402

from lotevivo.api.routes import api_router  # noqa: E402
from lotevivo.core.exceptions import LoteVivoError  # noqa: E402
from lotevivo.db import close_db, close_redis, init_db, init_redis  # noqa: E402
from lotevivo.middleware.correlation import get_correlation_id, setup_correlation_middleware  # noqa: E402

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect PostgreSQL (and Redis when the lot lock is on), then drain on SIGTERM."""
    app.state.shutting_down = False

    def handle_sigterm(signum, frame):
        # /api/health answers 503 from here on so the load balancer stops routing
        app.state.shutting_down = True
        logger.info("sigterm_received")

    signal.signal(signal.SIGTERM, handle_sigterm)

    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, lot_lock_enabled=settings.lot_lock_enabled)

    await init_db()
    if settings.lot_lock_enabled:
        await init_redis()
    logger.info("startup_complete")

    yield

    await close_redis()
    await close_db()
    logger.info("shutdown_complete")


def _request_context(request: Request) -> dict:
    return {
        "correlation_id": get_correlation_id(),
        "path": request.url.path,
        "method": request.method,
        "user_id": getattr(request.state, "user_id", None),
        "tenant_id": getattr(request.state, "tenant_id", None),
    }


async def lotevivo_error_handler(request: Request, exc: LoteVivoError) -> JSONResponse:
    """Domain errors: ``{detail, code, debug_id}`` with the error's own status.

    Clients branch on ``code`` (e.g. lot_already_in_stage vs stage_inactive).
    """
    debug_id = str(uuid.uuid4())
    logger.info(
        "request_rejected",
        status_code=exc.status_code,
        code=exc.code,
        detail=exc.message,
        debug_id=debug_id,
        **_request_context(request),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code, "debug_id": debug_id},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """HTTPException (auth failures mostly): ``{detail, debug_id}``."""
    debug_id = str(uuid.uuid4())
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        debug_id=debug_id,
        **_request_context(request),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "debug_id": debug_id},
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unexpected: full traceback in the logs, a bare 500 for the client."""
    debug_id = str(uuid.uuid4())
    logger.error(
        "unhandled_exception",
        error_type=type(exc).__name__,
        debug_id=debug_id,
        exc_info=exc,
        **_request_context(request),
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "debug_id": debug_id},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LoteVivoError, lotevivo_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Production stage lifecycle: stage catalog, lot transitions, kanban and balances",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, *settings.cors_allowed_origins],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    # Added last so it wraps CORS and sees every request first
    setup_correlation_middleware(app)

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("lotevivo.main:app", host="0.0.0.0", port=8000, reload=_boot_settings.debug)
