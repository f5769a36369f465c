"""
SkillGate Competency Engine

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from skillgate.api.middleware.request_id import RequestIdMiddleware
from skillgate.api.v1 import router as api_v1_router
from skillgate.config import get_settings
from skillgate.context import build_context
from skillgate.logging_config import configure_logging, get_logger
from skillgate.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Builds the engagement context (unless one was injected) and starts sync.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    ctx = getattr(app.state, "context", None)
    if ctx is None:
        ctx = await build_context(settings)
        app.state.context = ctx
    await ctx.start()
    logger.info("Engagement context ready", extra={"sync_enabled": ctx.sync_enabled})

    yield

    logger.info("Shutting down...")
    await ctx.close()
    app.state.context = None


app = FastAPI(
    title=settings.project_name,
    description="""
    SkillGate Competency Engine

    Behavioral telemetry capture and competency-based feature gating.

    ## Features

    - **Telemetry**: Durable local capture of interactions, actions, exports, sessions and tool changes
    - **Sync**: Batched, retrying delivery to a remote collector with offline support
    - **Profiles**: Behavioral profiles derived from the full local history
    - **Assessment**: Domain scores, competency level, velocity and time-to-next-level
    - **Gating**: Capability access under strict, progressive, adaptive and collaborative strategies
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

_cors_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
]

# Last added = outermost
app.add_middleware(RequestIdMiddleware, slow_request_ms=settings.slow_request_ms)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _request_id(request: Request) -> dict:
    req_id = getattr(request.state, "request_id", None)
    return {"X-Request-ID": req_id} if req_id else {}


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    headers = _request_id(request)
    content = {"detail": exc.detail}
    if headers and exc.status_code >= 500:
        content["request_id"] = headers["X-Request-ID"]
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    headers = _request_id(request)
    content = {"detail": "Validation error", "errors": errors}
    if headers:
        content["request_id"] = headers["X-Request-ID"]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=content,
        headers=headers,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    headers = _request_id(request)
    req_id = headers.get("X-Request-ID")
    if settings.debug:
        content = {
            "detail": str(exc),
            "type": type(exc).__name__,
            "request_id": req_id,
        }
    else:
        content = {"detail": "Internal server error", "request_id": req_id}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        headers=headers,
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Check application health."""
    ctx = getattr(request.app.state, "context", None)
    return HealthResponse(
        status="ok" if ctx is not None else "starting",
        version=settings.version,
        database="connected" if ctx is not None else "unavailable",
        sync_enabled=bool(ctx and ctx.sync_enabled),
    )


app.include_router(
    api_v1_router,
    prefix=settings.api_v1_prefix,
)


def main() -> None:
    import uvicorn

    uvicorn.run(
        "skillgate.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
