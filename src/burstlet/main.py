"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from burstlet import __version__
from burstlet.api.routes import analytics, billing, generation, health
from burstlet.config import settings
from burstlet.cors import ALLOWED_HEADERS, ALLOWED_METHODS, allowed_origins
from burstlet.errors import GenerationError, ProviderError
from burstlet.logging import get_logger, setup_logging
from burstlet.status import root_payload

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("application_starting", version=__version__, environment=settings.environment)

    # Startup: verify database connection and create tables
    try:
        from burstlet.db.session import init_db

        init_db()
        logger.info("database_connected")
    except Exception as e:
        logger.error("database_connection_failed", error=str(e))
        # Don't raise - let health checks report the issue

    yield

    # Shutdown
    logger.info("application_shutting_down")


# Create FastAPI app
app = FastAPI(
    title="Burstlet API",
    description="AI content generation: videos, blog posts and social media posts",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins(),
    allow_credentials=True,
    allow_methods=ALLOWED_METHODS,
    allow_headers=ALLOWED_HEADERS,
)


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
    """Serialize domain errors as ``{error, code, provider?, details?}``."""
    body = exc.to_dict()
    status_code = exc.status_code
    if isinstance(exc, ProviderError):
        # The upstream status belongs to the vendor, not to this API
        body["upstream_status"] = exc.status_code
        status_code = 502

    log = logger.warning if status_code < 500 else logger.error
    log(
        "request_failed",
        path=request.url.path,
        code=str(exc.code),
        status_code=status_code,
        error=exc.message,
    )
    return JSONResponse(status_code=status_code, content=body)


# Register routers
app.include_router(health.router)
app.include_router(generation.router, prefix="/api/v1")
app.include_router(analytics.router, prefix="/api/v1")
app.include_router(billing.router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    """Service info."""
    return root_payload("full")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "burstlet.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
