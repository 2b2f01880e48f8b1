"""Service configuration loaded from environment variables."""

import os
from typing import Mapping, Optional

from src.utils.errors import ConfigError

STORE_BACKENDS = ("memory", "supabase")


def _int_setting(env: Mapping[str, str], name: str, default: int, minimum: int = 1) -> int:
    raw = env.get(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


class TodoConfig:
    """Runtime settings for the todo backend."""

    def __init__(
        self,
        store_backend: str = "memory",
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
        table_name: str = "todos",
        host: str = "0.0.0.0",
        port: int = 3000,
        subscriber_buffer: int = 100,
        sse_keepalive_seconds: int = 15,
        default_assignee: str = "Unassigned",
    ):
        if store_backend not in STORE_BACKENDS:
            raise ConfigError(
                f"TODO_STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}, got {store_backend!r}"
            )
        self.store_backend = store_backend
        self.supabase_url = supabase_url
        self.supabase_key = supabase_key
        self.table_name = table_name
        self.host = host
        self.port = port
        self.subscriber_buffer = subscriber_buffer
        self.sse_keepalive_seconds = sse_keepalive_seconds
        self.default_assignee = default_assignee

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "TodoConfig":
        """Build a config from ``os.environ`` (or the given mapping)."""
        if env is None:
            env = os.environ

        return cls(
            store_backend=env.get("TODO_STORE_BACKEND", "memory").strip().lower(),
            supabase_url=env.get("SUPABASE_URL") or None,
            supabase_key=(env.get("SUPABASE_SERVICE_ROLE_KEY") or "").strip() or None,
            table_name=env.get("TODO_TABLE", "todos"),
            host=env.get("TODO_HOST", "0.0.0.0"),
            port=_int_setting(env, "PORT", 3000, minimum=0),
            subscriber_buffer=_int_setting(env, "TODO_SUBSCRIBER_BUFFER", 100),
            sse_keepalive_seconds=_int_setting(env, "TODO_SSE_KEEPALIVE_SECONDS", 15),
            default_assignee=env.get("TODO_DEFAULT_ASSIGNEE", "Unassigned").strip() or "Unassigned",
        )

    def __repr__(self) -> str:
        return (
            f"TodoConfig(store_backend={self.store_backend!r}, table_name={self.table_name!r}, "
            f"host={self.host!r}, port={self.port}, subscriber_buffer={self.subscriber_buffer})"
        )
