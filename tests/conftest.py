"""Shared pytest fixtures and configuration."""

import os
import threading
import pytest
from unittest.mock import MagicMock

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("TODO_STORE_BACKEND", "memory")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")

from src.app import TodoApp
from src.config import TodoConfig
from src.server import create_server
from src.services.broadcaster import Broadcaster
from src.services.todo_service import TodoService
from src.services.todo_store import InMemoryTodoStore


@pytest.fixture
def memory_store():
    """Empty in-memory todo store."""
    return InMemoryTodoStore()


@pytest.fixture
def broadcaster():
    """Broadcaster with a small buffer so overflow is easy to provoke."""
    b = Broadcaster(buffer_size=8)
    yield b
    b.close()


@pytest.fixture
def service(memory_store, broadcaster):
    """Todo service over the in-memory store."""
    return TodoService(memory_store, broadcaster)


@pytest.fixture
def subscription(broadcaster):
    """A subscriber registered before the test body runs."""
    sub = broadcaster.subscribe()
    yield sub
    broadcaster.unsubscribe(sub)


@pytest.fixture
def test_config():
    """Config for an in-memory app on an ephemeral port."""
    return TodoConfig(
        store_backend="memory",
        host="127.0.0.1",
        port=0,
        subscriber_buffer=16,
        sse_keepalive_seconds=1,
    )


@pytest.fixture
def todo_app(test_config):
    app = TodoApp(test_config)
    yield app
    app.close()


@pytest.fixture
def live_server(todo_app):
    """Run the HTTP server on a background thread; yields its base URL."""
    server = create_server(todo_app)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    try:
        yield f"http://{host}:{port}"
    finally:
        todo_app.broadcaster.close()
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client whose query builders chain back to themselves."""
    client = MagicMock()
    query = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=[])
    client.table.return_value = query
    client.query = query
    return client


@pytest.fixture
def sample_row():
    """A todo row as Supabase returns it."""
    return {
        "id": 7,
        "text": "Buy milk",
        "assignee": "Joe",
        "due_date": "2024-01-01",
        "completed": False,
        "created_at": "2024-01-01T09:00:00+00:00",
        "updated_at": "2024-01-01T09:00:00+00:00",
    }
