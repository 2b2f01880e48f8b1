"""HTTP helpers shared by the api handlers: JSON bodies, responses and error mapping."""

import asyncio
import json
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler
from typing import Any, Coroutine, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from src.utils.errors import NotFoundError, ValidationError
from src.utils.logging import get_correlation_id, get_structured_logger
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)

T = TypeVar("T")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion from a (threaded) request handler."""
    return asyncio.run(coro)


def read_json_body(request: BaseHTTPRequestHandler) -> Any:
    """Read and parse the request body; an empty body parses as ``{}``."""
    try:
        content_length = int(request.headers.get('Content-Length', 0) or 0)
    except ValueError as e:
        raise ValidationError("Invalid Content-Length header") from e

    try:
        raw_body = request.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""
    except UnicodeDecodeError as e:
        raise ValidationError("Request body is not valid UTF-8") from e

    if not raw_body.strip():
        return {}
    try:
        return json.loads(raw_body)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Malformed JSON body: {e.msg}") from e


def _send_common_headers(request: BaseHTTPRequestHandler) -> None:
    for name, value in CORS_HEADERS.items():
        request.send_header(name, value)
    correlation_id = get_correlation_id()
    if correlation_id:
        request.send_header(LoggingConfig.LOG_CORRELATION_ID_HEADER, correlation_id)


def send_json(request: BaseHTTPRequestHandler, status: int, payload: Any) -> None:
    body = json.dumps(payload).encode('utf-8')
    request.send_response(status)
    request.send_header('Content-Type', 'application/json')
    request.send_header('Content-Length', str(len(body)))
    _send_common_headers(request)
    request.end_headers()
    request.wfile.write(body)


def send_empty(request: BaseHTTPRequestHandler, status: int = HTTPStatus.NO_CONTENT) -> None:
    request.send_response(status)
    request.send_header('Content-Length', '0')
    _send_common_headers(request)
    request.end_headers()


def send_stream_headers(request: BaseHTTPRequestHandler) -> None:
    """Start a Server-Sent Events response."""
    request.send_response(HTTPStatus.OK)
    request.send_header('Content-Type', 'text/event-stream')
    request.send_header('Cache-Control', 'no-cache')
    request.send_header('Connection', 'keep-alive')
    request.send_header('X-Accel-Buffering', 'no')
    _send_common_headers(request)
    request.end_headers()


def status_for_error(error: BaseException) -> int:
    """Map an exception to the HTTP status reported to the client."""
    if isinstance(error, (ValidationError, PydanticValidationError)):
        return HTTPStatus.BAD_REQUEST
    if isinstance(error, NotFoundError):
        return HTTPStatus.NOT_FOUND
    return HTTPStatus.INTERNAL_SERVER_ERROR


def error_payload(error: BaseException) -> dict[str, Any]:
    status = status_for_error(error)
    if status == HTTPStatus.INTERNAL_SERVER_ERROR:
        # Store and unexpected failures stay opaque to clients
        return {"error": "internal error"}
    if isinstance(error, PydanticValidationError):
        return {
            "error": "validation failed",
            "details": error.errors(include_url=False, include_context=False, include_input=False),
        }
    return {"error": str(error)}


def send_error_json(request: BaseHTTPRequestHandler, error: BaseException) -> None:
    status = status_for_error(error)
    if status == HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error(
            "Request failed",
            method=request.command,
            path=request.path,
            error=str(error),
            error_type=type(error).__name__,
            exc_info=True,
        )
    else:
        logger.info(
            "Request rejected",
            method=request.command,
            path=request.path,
            status=int(status),
            error=str(error),
        )
    send_json(request, status, error_payload(error))


def send_status(request: BaseHTTPRequestHandler, status: int, message: Optional[str] = None) -> None:
    """Send a bare JSON error for routing failures (404/405)."""
    send_json(request, status, {"error": message or HTTPStatus(status).phrase.lower()})
