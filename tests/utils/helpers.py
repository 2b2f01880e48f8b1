"""Test helper functions for talking to a live server."""

import json
import queue
import socket
import threading
import http.client
from typing import Any, Dict, Optional
from urllib.parse import urlsplit


def api_request(
    base_url: str,
    method: str,
    path: str,
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    raw_body: Optional[bytes] = None,
) -> tuple[int, Dict[str, str], Any]:
    """Send one request; returns (status, headers, parsed JSON body or None)."""
    parts = urlsplit(base_url)
    conn = http.client.HTTPConnection(parts.hostname, parts.port, timeout=5)
    try:
        request_headers = {"Content-Type": "application/json"}
        request_headers.update(headers or {})
        if raw_body is None and body is not None:
            raw_body = json.dumps(body).encode("utf-8")
        conn.request(method, path, body=raw_body, headers=request_headers)
        response = conn.getresponse()
        data = response.read()
        parsed = json.loads(data) if data else None
        return response.status, dict(response.getheaders()), parsed
    finally:
        conn.close()


class SSEClient:
    """Reads ``data:`` frames from /api/events on a background thread."""

    def __init__(self, base_url: str, path: str = "/api/events"):
        parts = urlsplit(base_url)
        self.conn = http.client.HTTPConnection(parts.hostname, parts.port, timeout=10)
        self.conn.connect()
        self._sock = self.conn.sock
        self.conn.request("GET", path)
        self.response = self.conn.getresponse()
        self.messages: "queue.Queue[dict]" = queue.Queue()
        self._thread = threading.Thread(target=self._read, daemon=True)
        self._thread.start()

    def _read(self) -> None:
        try:
            for raw_line in self.response:
                line = raw_line.decode("utf-8").rstrip("\r\n")
                if line.startswith("data: "):
                    self.messages.put(json.loads(line[len("data: "):]))
        except (OSError, ValueError, AttributeError):
            pass

    def next_message(self, timeout: float = 2.0) -> Optional[dict]:
        try:
            return self.messages.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.response.close()
        self._sock.close()
        self.conn.close()
