"""Todo models."""

from typing import Any, Literal, Optional
from datetime import date, datetime
from pydantic import BaseModel, Field, field_validator, model_validator

UNASSIGNED = "Unassigned"
NO_DUE_DATE = "No Due Date"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class Todo(BaseModel):
    """A single shared todo record."""
    id: int = Field(..., ge=1, description="Store-assigned ID, never reused")
    text: str = Field(..., min_length=1, description="Todo description")
    assignee: str = Field(default=UNASSIGNED, description="Assignee name")
    due_date: Optional[date] = Field(None, description="Due date (None means no due date)")
    completed: bool = Field(default=False, description="Completion flag")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class TodoCreate(BaseModel):
    """Body of a create request."""
    text: str = Field(..., description="Todo description (non-empty after trimming)")
    assignee: Optional[str] = Field(None, description="Assignee name (blank means default)")
    due_date: Optional[date] = Field(None, description="Due date")

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("text must not be empty")
        return value

    @field_validator("assignee", mode="before")
    @classmethod
    def assignee_blank_to_none(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("due_date", mode="before")
    @classmethod
    def due_date_blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


class TodoUpdate(BaseModel):
    """Body of an update request.

    Absent or null fields are left as they are, except ``due_date``: an explicit
    null (or empty string) clears it.
    """
    text: Optional[str] = None
    assignee: Optional[str] = None
    due_date: Optional[date] = None
    completed: Optional[bool] = None

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("text must not be empty")
        return value

    @field_validator("assignee", mode="before")
    @classmethod
    def assignee_blank_to_none(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("due_date", mode="before")
    @classmethod
    def due_date_blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def changes(self) -> dict[str, Any]:
        """Return the fields this update writes, keyed by column name."""
        changes: dict[str, Any] = {}
        for name in ("text", "assignee", "completed"):
            value = getattr(self, name)
            if value is not None:
                changes[name] = value
        if "due_date" in self.model_fields_set:
            changes["due_date"] = self.due_date
        return changes


class DateGroup(BaseModel):
    """Todos sharing a due-date key, in presentation order."""
    date: str = Field(..., description="ISO date or 'No Due Date'")
    tasks: list[Todo] = Field(default_factory=list)


class TodoFilter(BaseModel):
    """Optional filters applied to the grouped view."""
    assignee: Optional[str] = None
    status: Literal["all", "pending", "completed"] = "all"
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @field_validator("assignee", "date_from", "date_to", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        if value == "all":
            return None
        return value

    @model_validator(mode="after")
    def check_range(self) -> "TodoFilter":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self

    @property
    def is_empty(self) -> bool:
        return (
            self.assignee is None
            and self.status == "all"
            and self.date_from is None
            and self.date_to is None
        )
