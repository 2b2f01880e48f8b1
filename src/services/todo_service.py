"""Todo service - apply mutations to the store and fan out the results."""

from typing import Optional

from src.models.event import EventType, MutationEvent
from src.models.todo import DateGroup, Todo, TodoCreate, TodoFilter, TodoUpdate, UNASSIGNED
from src.services.broadcaster import Broadcaster
from src.services.grouping import filter_todos, group_todos
from src.services.todo_store import TodoStore, validate_text
from src.utils.errors import NotFoundError
from src.utils.logging import get_structured_logger, log_timing, sanitize_message_text

logger = get_structured_logger(__name__)


class TodoService:
    """Coordinates every write against the store and the broadcaster.

    An event is published only after the store call has returned successfully;
    validation failures, missing targets and store errors publish nothing.
    """

    def __init__(self, store: TodoStore, broadcaster: Broadcaster, default_assignee: str = UNASSIGNED):
        self.store = store
        self.broadcaster = broadcaster
        self.default_assignee = default_assignee

    async def list_grouped(self, todo_filter: Optional[TodoFilter] = None) -> list[DateGroup]:
        """Read path: current todos, filtered, grouped and ordered."""
        with log_timing("list_grouped", logger=logger):
            todos = await self.store.list()
        return group_todos(filter_todos(todos, todo_filter))

    async def get(self, todo_id: int) -> Todo:
        return await self.store.get_by_id(todo_id)

    async def create(self, request: TodoCreate) -> Todo:
        text = validate_text(request.text)
        assignee = request.assignee or self.default_assignee

        with log_timing("create_todo", logger=logger):
            todo = await self.store.create(text, assignee, request.due_date)

        logger.info(
            "Todo created",
            todo_id=todo.id,
            assignee=todo.assignee,
            due_date=todo.due_date.isoformat() if todo.due_date else None,
            text_preview=sanitize_message_text(todo.text, max_length=100),
        )
        self._publish(MutationEvent.for_todo(EventType.TODO_CREATED, todo))
        return todo

    async def update(self, todo_id: int, request: TodoUpdate) -> Todo:
        changes = request.changes()
        if "text" in changes:
            changes["text"] = validate_text(changes["text"])

        with log_timing("update_todo", logger=logger, todo_id=todo_id):
            # An empty change set still touches updated_at
            todo = await self.store.update(todo_id, changes)

        logger.info("Todo updated", todo_id=todo_id, fields=sorted(changes))
        self._publish(MutationEvent.for_todo(EventType.TODO_UPDATED, todo))
        return todo

    async def toggle(self, todo_id: int) -> Todo:
        with log_timing("toggle_todo", logger=logger, todo_id=todo_id):
            todo = await self.store.toggle_completed(todo_id)

        logger.info("Todo toggled", todo_id=todo_id, completed=todo.completed)
        self._publish(MutationEvent.for_todo(EventType.TODO_TOGGLED, todo))
        return todo

    async def delete(self, todo_id: int) -> bool:
        """Delete a todo; raises NotFoundError when there was nothing to delete."""
        with log_timing("delete_todo", logger=logger, todo_id=todo_id):
            removed = await self.store.delete(todo_id)

        if not removed:
            raise NotFoundError(todo_id)

        logger.info("Todo deleted", todo_id=todo_id)
        self._publish(MutationEvent.deleted(todo_id))
        return True

    def _publish(self, event: MutationEvent) -> None:
        self.broadcaster.publish(event)
