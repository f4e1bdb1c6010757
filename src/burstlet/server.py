"""Process entry: serve the full API, or the minimal responder if it cannot load."""

from burstlet.config import settings
from burstlet.logging import get_logger, setup_logging

logger = get_logger(__name__)


def load_full_app() -> object | None:
    """Import the FastAPI application, or return None if its stack is missing."""
    try:
        import uvicorn  # noqa: F401

        from burstlet.main import app
    except ImportError as e:
        logger.warning("full_api_unavailable", error=str(e), missing=getattr(e, "name", None))
        return None
    return app


def serve(
    host: str | None = None,
    port: int | None = None,
    reload: bool | None = None,
    minimal: bool = False,
) -> str:
    """Run the API server until shutdown.

    Returns:
        The mode that was served, "full" or "minimal".
    """
    setup_logging()
    host = host or settings.api_host
    port = settings.api_port if port is None else port

    app = None if minimal else load_full_app()
    if app is None:
        from burstlet.fallback import run_fallback

        run_fallback(host, port)
        return "minimal"

    import uvicorn

    uvicorn.run(
        "burstlet.main:app",
        host=host,
        port=port,
        reload=settings.api_reload if reload is None else reload,
    )
    return "full"
