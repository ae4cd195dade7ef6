"""Health check endpoints for the operator."""

from __future__ import annotations

import threading
from typing import Any

from prometheus_client import make_wsgi_app
from werkzeug.serving import make_server
from werkzeug.wrappers import Request, Response

_ready = threading.Event()


def set_ready(ready: bool = True) -> None:
    """Mark the operator as ready (or not) to serve /readyz."""
    if ready:
        _ready.set()
    else:
        _ready.clear()


def is_ready() -> bool:
    return _ready.is_set()


def _health_response(path: str) -> Response | None:
    if path == "/healthz":
        return Response('{"status":"ok"}', mimetype="application/json", status=200)
    if path == "/readyz":
        if is_ready():
            return Response('{"status":"ready"}', mimetype="application/json", status=200)
        return Response('{"status":"starting"}', mimetype="application/json", status=503)
    return None


def health_check_app(environ: dict[str, Any], start_response: Any) -> list[bytes]:
    """WSGI application for the health check endpoints alone."""
    request = Request(environ)
    response = _health_response(request.path)
    if response is None:
        response = Response('{"error":"not found"}', mimetype="application/json", status=404)
    return response(environ, start_response)


def create_combined_wsgi_app() -> Any:
    """Create a WSGI app that combines metrics and health check endpoints.

    Returns:
        Combined WSGI application
    """
    metrics_app = make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> list[bytes]:
        """Route /healthz and /readyz, delegate everything else to prometheus."""
        response = _health_response(environ.get("PATH_INFO", ""))
        if response is not None:
            return response(environ, start_response)
        return metrics_app(environ, start_response)

    return combined_app


def start_server(port: int) -> threading.Thread:
    """Serve metrics and health endpoints from a background thread."""
    server = make_server("", port, create_combined_wsgi_app(), threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return thread
