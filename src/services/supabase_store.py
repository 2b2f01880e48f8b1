"""Supabase-backed todo store."""

from datetime import date
from typing import Any, Callable, Optional

from pydantic import ValidationError as PydanticValidationError
from supabase import Client

from src.models.todo import Todo
from src.services.supabase_client import SupabaseClient
from src.services.todo_store import TodoStore, utcnow, validate_changes, validate_text
from src.utils.errors import NotFoundError, SupabaseError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

COLUMNS = "id, text, assignee, due_date, completed, created_at, updated_at"
DEFAULT_TOGGLE_ATTEMPTS = 5


def _serialize_changes(changes: dict[str, Any]) -> dict[str, Any]:
    payload = dict(changes)
    if isinstance(payload.get("due_date"), date):
        payload["due_date"] = payload["due_date"].isoformat()
    payload["updated_at"] = utcnow().isoformat()
    return payload


class SupabaseTodoStore(TodoStore):
    """Todo store over a Supabase (PostgREST) table.

    Expected table::

        create table todos (
            id bigserial primary key,
            text text not null,
            assignee text not null default 'Unassigned',
            due_date date,
            completed boolean not null default false,
            created_at timestamptz not null default now(),
            updated_at timestamptz not null default now()
        );
    """

    def __init__(
        self,
        client: Client,
        table_name: str = "todos",
        max_toggle_attempts: int = DEFAULT_TOGGLE_ATTEMPTS,
    ):
        self._client = client
        self.table_name = table_name
        self.max_toggle_attempts = max_toggle_attempts

    async def _execute(self, action: str, build: Callable[[Any], Any]) -> list[dict]:
        """Run one query against the table, wrapping client failures in SupabaseError."""
        async with SupabaseClient(self._client) as client:
            try:
                with log_timing(f"supabase.{action}", logger=logger, table=self.table_name):
                    result = build(client.table(self.table_name)).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to {action}: {e}") from e
        return result.data if result.data else []

    @staticmethod
    def _row_to_todo(row: dict) -> Todo:
        try:
            return Todo.model_validate(row)
        except PydanticValidationError as e:
            raise SupabaseError(f"Malformed todo row {row.get('id')!r}: {e}") from e

    async def create(self, text: str, assignee: str, due_date: Optional[date] = None) -> Todo:
        text = validate_text(text)
        payload = {
            "text": text,
            "assignee": assignee,
            "due_date": due_date.isoformat() if due_date else None,
        }
        rows = await self._execute("create todo", lambda table: table.insert(payload))
        if not rows:
            raise SupabaseError("Failed to create todo: no data returned")
        return self._row_to_todo(rows[0])

    async def list(self) -> list[Todo]:
        rows = await self._execute("list todos", lambda table: table.select(COLUMNS))
        return [self._row_to_todo(row) for row in rows]

    async def get_by_id(self, todo_id: int) -> Todo:
        rows = await self._execute(
            "get todo", lambda table: table.select(COLUMNS).eq("id", todo_id)
        )
        if not rows:
            raise NotFoundError(todo_id)
        return self._row_to_todo(rows[0])

    async def update(self, todo_id: int, changes: dict[str, Any]) -> Todo:
        payload = _serialize_changes(validate_changes(changes))
        # One UPDATE carrying only the supplied columns; no read-modify-write
        rows = await self._execute(
            "update todo", lambda table: table.update(payload).eq("id", todo_id)
        )
        if not rows:
            raise NotFoundError(todo_id)
        return self._row_to_todo(rows[0])

    async def toggle_completed(self, todo_id: int) -> Todo:
        """Flip ``completed`` with a compare-and-set on the current value.

        PostgREST cannot express ``SET completed = NOT completed``, so the update
        is conditioned on the flag it read; a concurrent flip makes it match no
        row and the read is repeated.
        """
        for attempt in range(1, self.max_toggle_attempts + 1):
            current = await self.get_by_id(todo_id)
            payload = {
                "completed": not current.completed,
                "updated_at": utcnow().isoformat(),
            }
            rows = await self._execute(
                "toggle todo",
                lambda table: table.update(payload).eq("id", todo_id).eq("completed", current.completed),
            )
            if rows:
                return self._row_to_todo(rows[0])
            logger.debug("Toggle raced with another write, retrying", todo_id=todo_id, attempt=attempt)

        raise SupabaseError(
            f"Failed to toggle todo {todo_id}: still contended after {self.max_toggle_attempts} attempts"
        )

    async def delete(self, todo_id: int) -> bool:
        rows = await self._execute("delete todo", lambda table: table.delete().eq("id", todo_id))
        return len(rows) > 0
