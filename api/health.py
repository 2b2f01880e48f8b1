"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler

from src.utils.http import send_json


def do_GET(request: BaseHTTPRequestHandler) -> None:
    """Report liveness plus the live-update subscriber count."""
    app = request.server.app
    send_json(request, 200, {
        "status": "ok",
        "service": "family-todo-backend",
        "store": app.config.store_backend,
        "subscribers": app.broadcaster.subscriber_count,
    })


def do_POST(request: BaseHTTPRequestHandler) -> None:
    """Handle POST request (same as GET for health check)."""
    do_GET(request)
