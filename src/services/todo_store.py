"""Record store interface and the in-process implementation."""

import threading
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Any, Optional

from src.models.todo import Todo
from src.utils.errors import NotFoundError, ValidationError
from src.utils.logging import get_structured_logger, sanitize_message_text

logger = get_structured_logger(__name__)

UPDATABLE_FIELDS = frozenset({"text", "assignee", "due_date", "completed"})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_text(text: Optional[str]) -> str:
    """Return stripped text, raising ValidationError when it is blank."""
    if text is None or not text.strip():
        raise ValidationError("text must not be empty")
    return text.strip()


def validate_changes(changes: dict[str, Any]) -> dict[str, Any]:
    """Check an update's field set before it reaches a store."""
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
    changes = dict(changes)
    if "text" in changes:
        changes["text"] = validate_text(changes["text"])
    return changes


class TodoStore(ABC):
    """CRUD collaborator owning the canonical todo collection.

    Missing targets raise NotFoundError (``delete`` returns False instead),
    blank text raises ValidationError and any I/O failure raises StoreError.
    Every single-record operation is atomic.
    """

    @abstractmethod
    async def create(self, text: str, assignee: str, due_date: Optional[date] = None) -> Todo:
        ...

    @abstractmethod
    async def list(self) -> list[Todo]:
        """Return all todos, in no particular order."""

    @abstractmethod
    async def get_by_id(self, todo_id: int) -> Todo:
        ...

    @abstractmethod
    async def update(self, todo_id: int, changes: dict[str, Any]) -> Todo:
        """Apply only the given fields in one atomic write."""

    @abstractmethod
    async def toggle_completed(self, todo_id: int) -> Todo:
        ...

    @abstractmethod
    async def delete(self, todo_id: int) -> bool:
        ...

    async def close(self) -> None:
        return None


class InMemoryTodoStore(TodoStore):
    """Process-local store; contents live as long as the process does.

    A single lock guards the collection, so request threads each running their
    own event loop see whole records only. Callers always receive copies.
    """

    def __init__(self) -> None:
        self._todos: dict[int, Todo] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    @property
    def next_id(self) -> int:
        return self._next_id

    async def create(self, text: str, assignee: str, due_date: Optional[date] = None) -> Todo:
        text = validate_text(text)
        now = utcnow()
        with self._lock:
            todo = Todo(
                id=self._next_id,
                text=text,
                assignee=assignee,
                due_date=due_date,
                completed=False,
                created_at=now,
                updated_at=now,
            )
            self._todos[todo.id] = todo
            self._next_id += 1

        logger.debug(
            "Todo created in memory",
            todo_id=todo.id,
            text_preview=sanitize_message_text(text, max_length=100),
        )
        return todo.model_copy()

    async def list(self) -> list[Todo]:
        with self._lock:
            return [todo.model_copy() for todo in self._todos.values()]

    async def get_by_id(self, todo_id: int) -> Todo:
        with self._lock:
            todo = self._todos.get(todo_id)
        if todo is None:
            raise NotFoundError(todo_id)
        return todo.model_copy()

    async def update(self, todo_id: int, changes: dict[str, Any]) -> Todo:
        changes = validate_changes(changes)
        with self._lock:
            current = self._todos.get(todo_id)
            if current is None:
                raise NotFoundError(todo_id)
            updated = current.model_copy(update={**changes, "updated_at": utcnow()})
            self._todos[todo_id] = updated
        return updated.model_copy()

    async def toggle_completed(self, todo_id: int) -> Todo:
        with self._lock:
            current = self._todos.get(todo_id)
            if current is None:
                raise NotFoundError(todo_id)
            updated = current.model_copy(
                update={"completed": not current.completed, "updated_at": utcnow()}
            )
            self._todos[todo_id] = updated
        return updated.model_copy()

    async def delete(self, todo_id: int) -> bool:
        with self._lock:
            removed = self._todos.pop(todo_id, None)
        return removed is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._todos)
