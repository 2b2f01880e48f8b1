"""Live-update event models."""

from enum import Enum
from typing import Any
from pydantic import BaseModel, Field

from src.models.todo import Todo


class EventType(str, Enum):
    """Message types pushed to live-update subscribers."""
    CONNECTED = "connected"
    TODO_CREATED = "todo_created"
    TODO_UPDATED = "todo_updated"
    TODO_TOGGLED = "todo_toggled"
    TODO_DELETED = "todo_deleted"


class MutationEvent(BaseModel):
    """Notification describing one committed mutation."""
    message_type: EventType
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def for_todo(cls, message_type: EventType, todo: Todo) -> "MutationEvent":
        return cls(message_type=message_type, data=todo.to_json())

    @classmethod
    def deleted(cls, todo_id: int) -> "MutationEvent":
        return cls(message_type=EventType.TODO_DELETED, data={"id": todo_id})

    @classmethod
    def connected(cls) -> "MutationEvent":
        return cls(message_type=EventType.CONNECTED, data={"status": "connected"})

    def to_json(self) -> str:
        return self.model_dump_json()
