"""Minimal HTTP responder used when the full API stack cannot be loaded.

Serves ``/health`` and ``/`` only, with the same CORS allow-list as the full
application. Built on the standard library so it runs with nothing but the
core configuration and logging packages installed.
"""

import json
import signal
import threading
from datetime import datetime, timezone
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import urlsplit

from burstlet.config import settings
from burstlet.cors import ALLOWED_HEADERS, ALLOWED_METHODS, resolve_allowed_origin
from burstlet.logging import get_logger
from burstlet.status import health_payload, root_payload

logger = get_logger(__name__)

MODE = "minimal"


def cors_headers(origin: str | None) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": resolve_allowed_origin(origin),
        "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
        "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
        "Access-Control-Allow-Credentials": "true",
        "Vary": "Origin",
    }


def respond(method: str, target: str, origin: str | None = None) -> tuple[int, dict[str, str], bytes]:
    """Status, headers and body for one request."""
    headers = cors_headers(origin)
    if method == "OPTIONS":
        return HTTPStatus.NO_CONTENT, headers, b""

    path = urlsplit(target).path
    body: dict[str, Any]
    if path == "/health":
        status, body = HTTPStatus.OK, health_payload(MODE)
    elif path == "/":
        status, body = HTTPStatus.OK, root_payload(MODE)
    else:
        status, body = HTTPStatus.NOT_FOUND, {
            "error": "Not Found",
            "message": f"Cannot {method} {path}",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    headers["Content-Type"] = "application/json"
    return status, headers, json.dumps(body).encode()


class FallbackHandler(BaseHTTPRequestHandler):
    """Routes every method through ``respond``."""

    server_version = "Burstlet"

    def _handle(self) -> None:
        status, headers, body = respond(self.command, self.path, self.headers.get("Origin"))
        self.send_response(status)
        for name, value in headers.items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body and self.command != "HEAD":
            self.wfile.write(body)

    do_GET = _handle
    do_HEAD = _handle
    do_POST = _handle
    do_PUT = _handle
    do_PATCH = _handle
    do_DELETE = _handle
    do_OPTIONS = _handle

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("fallback_request", request=format % args)


def create_server(host: str | None = None, port: int | None = None) -> ThreadingHTTPServer:
    return ThreadingHTTPServer(
        (host or settings.api_host, settings.api_port if port is None else port),
        FallbackHandler,
    )


def install_shutdown_handlers(server: ThreadingHTTPServer) -> None:
    """Close ``server`` on SIGTERM or SIGINT."""

    def _shutdown(signum: int, frame: Any) -> None:
        logger.info("fallback_shutdown_requested", signal=signal.Signals(signum).name)
        # shutdown() blocks until serve_forever returns, so it cannot run on
        # the thread that is serving
        threading.Thread(target=server.shutdown, daemon=True).start()

    signal.signal(signal.SIGTERM, _shutdown)
    signal.signal(signal.SIGINT, _shutdown)


def run_fallback(host: str | None = None, port: int | None = None) -> None:
    """Serve the minimal responder until a shutdown signal arrives."""
    server = create_server(host, port)
    install_shutdown_handlers(server)
    address, bound_port = server.server_address[:2]
    logger.info(
        "fallback_server_started",
        host=address,
        port=bound_port,
        environment=settings.environment,
        frontend_url=settings.frontend_url or "Not configured",
    )
    try:
        server.serve_forever()
    finally:
        server.server_close()
        logger.info("fallback_server_closed")
