"""Live-update stream (Server-Sent Events).

Each client gets a ``connected`` frame, then one ``data:`` frame per committed
mutation in publish order, with keepalive comments in between. The stream ends
when the client goes away, the subscriber is dropped for falling behind, or the
service shuts down; clients reconnect and refetch ``/api/todos``.
"""

from http.server import BaseHTTPRequestHandler

from src.models.event import MutationEvent
from src.utils.http import send_stream_headers
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

KEEPALIVE_FRAME = b": keepalive\n\n"


def format_event(event: MutationEvent) -> bytes:
    return f"data: {event.to_json()}\n\n".encode('utf-8')


def do_GET(request: BaseHTTPRequestHandler) -> None:
    app = request.server.app
    subscription = app.broadcaster.subscribe()
    frames_sent = 0
    streaming = False

    try:
        send_stream_headers(request)
        streaming = True
        request.wfile.write(format_event(MutationEvent.connected()))
        request.wfile.flush()

        while not subscription.closed:
            event = subscription.next_event(timeout=app.config.sse_keepalive_seconds)
            if event is None:
                if subscription.closed:
                    break
                request.wfile.write(KEEPALIVE_FRAME)
            else:
                request.wfile.write(format_event(event))
                frames_sent += 1
            request.wfile.flush()
    except (BrokenPipeError, ConnectionResetError, ConnectionAbortedError) as e:
        logger.info(
            "Live-update client disconnected",
            subscriber_id=subscription.subscriber_id,
            error_type=type(e).__name__,
        )
    except Exception as e:
        if not streaming:
            raise
        # Headers already sent, so end the stream rather than answer again
        logger.error(
            "Live-update stream failed",
            subscriber_id=subscription.subscriber_id,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
    finally:
        app.broadcaster.unsubscribe(subscription)
        logger.info(
            "Live-update stream closed",
            subscriber_id=subscription.subscriber_id,
            frames_sent=frames_sent,
        )
