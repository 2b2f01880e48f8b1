"""Local HTTP server: one threaded server routing to the api/ endpoint modules."""

from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from types import ModuleType
from typing import Optional
from urllib.parse import urlsplit

from api import events, health, todos
from src.app import TodoApp
from src.utils.http import send_empty, send_error_json, send_status
from src.utils.logging import correlation_context, get_structured_logger, setup_logging
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)

ROUTES: list[tuple[str, ModuleType]] = [
    ("/api/health", health),
    ("/api/events", events),
    ("/api/todos", todos),
]


def resolve_route(path: str) -> Optional[ModuleType]:
    """Find the endpoint module owning a request path."""
    for prefix, module in ROUTES:
        if path == prefix or path.startswith(prefix + "/"):
            return module
    return None


class TodoRequestHandler(BaseHTTPRequestHandler):
    """Dispatch each request to ``do_<METHOD>`` of the matching api module."""

    server_version = "FamilyTodo/1.0"

    def _dispatch(self, method: str) -> None:
        incoming_id = self.headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER) or None
        with correlation_context(incoming_id):
            module = resolve_route(urlsplit(self.path).path)
            if module is None:
                send_status(self, HTTPStatus.NOT_FOUND)
                return

            route = getattr(module, f"do_{method}", None)
            if route is None:
                send_status(self, HTTPStatus.METHOD_NOT_ALLOWED)
                return

            try:
                route(self)
            except Exception as e:
                send_error_json(self, e)

    def do_GET(self):
        self._dispatch("GET")

    def do_POST(self):
        self._dispatch("POST")

    def do_PUT(self):
        self._dispatch("PUT")

    def do_DELETE(self):
        self._dispatch("DELETE")

    def do_OPTIONS(self):
        """Answer CORS preflight requests."""
        with correlation_context(self.headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER) or None):
            send_empty(self, HTTPStatus.NO_CONTENT)

    def log_message(self, format, *args):
        logger.debug("HTTP request", client=self.address_string(), request_line=format % args)


class TodoHTTPServer(ThreadingHTTPServer):
    """Threaded HTTP server carrying the composed app for its handlers."""

    daemon_threads = True

    def __init__(self, server_address, app: TodoApp, handler_class=TodoRequestHandler):
        self.app = app
        super().__init__(server_address, handler_class)


def create_server(app: TodoApp, host: Optional[str] = None, port: Optional[int] = None) -> TodoHTTPServer:
    host = app.config.host if host is None else host
    port = app.config.port if port is None else port
    return TodoHTTPServer((host, port), app)


def main() -> None:
    setup_logging()
    app = TodoApp.from_env()
    server = create_server(app)
    host, port = server.server_address[:2]
    logger.info("Server running", url=f"http://{host}:{port}", store=app.config.store_backend)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        app.close()
        server.server_close()


if __name__ == "__main__":
    main()
