"""CORS origin resolution."""

from collections.abc import Iterable

from burstlet.config import settings

FALLBACK_ORIGIN = "https://burstlet.vercel.app"

ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization", "X-User-Id"]


def allowed_origins(
    origins: Iterable[str] | None = None,
    frontend_url: str | None = None,
) -> list[str]:
    """The configured allow-list plus FRONTEND_URL, without duplicates."""
    result = list(settings.allowed_origins if origins is None else origins)
    frontend_url = frontend_url if frontend_url is not None else settings.frontend_url
    if frontend_url and frontend_url not in result:
        result.append(frontend_url)
    return result


def resolve_allowed_origin(
    origin: str | None,
    origins: Iterable[str] | None = None,
    frontend_url: str | None = None,
) -> str:
    """Value for Access-Control-Allow-Origin.

    A known origin is echoed back. Anything else gets FRONTEND_URL when it is
    configured, otherwise the production dashboard origin.
    """
    frontend_url = frontend_url if frontend_url is not None else settings.frontend_url
    if origin and origin in allowed_origins(origins, frontend_url=""):
        return origin
    return frontend_url or FALLBACK_ORIGIN
