"""Composition root: builds the store, broadcaster and service from configuration."""

import asyncio
from typing import Optional

from src.config import TodoConfig
from src.services.broadcaster import Broadcaster
from src.services.supabase_client import create_supabase_client
from src.services.supabase_store import SupabaseTodoStore
from src.services.todo_service import TodoService
from src.services.todo_store import InMemoryTodoStore, TodoStore
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


def build_store(config: TodoConfig) -> TodoStore:
    """Select the record store implementation named by the config."""
    if config.store_backend == "supabase":
        client = create_supabase_client(config.supabase_url, config.supabase_key)
        return SupabaseTodoStore(client, table_name=config.table_name)
    return InMemoryTodoStore()


class TodoApp:
    """Owns one store, one broadcaster and the service wired to both."""

    def __init__(
        self,
        config: Optional[TodoConfig] = None,
        store: Optional[TodoStore] = None,
        broadcaster: Optional[Broadcaster] = None,
    ):
        self.config = config or TodoConfig()
        self.store = store if store is not None else build_store(self.config)
        self.broadcaster = broadcaster or Broadcaster(buffer_size=self.config.subscriber_buffer)
        self.service = TodoService(self.store, self.broadcaster, self.config.default_assignee)
        logger.info(
            "Todo app assembled",
            store=type(self.store).__name__,
            subscriber_buffer=self.broadcaster.buffer_size,
        )

    @classmethod
    def from_env(cls) -> "TodoApp":
        return cls(TodoConfig.from_env())

    def close(self) -> None:
        """Disconnect live subscribers and release the store."""
        self.broadcaster.close()
        asyncio.run(self.store.close())
        logger.info("Todo app closed")
