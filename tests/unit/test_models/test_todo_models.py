"""Tests for todo request/response models."""

import pytest
from datetime import date
from pydantic import ValidationError

from src.models.event import EventType, MutationEvent
from src.models.todo import Todo, TodoCreate, TodoFilter, TodoUpdate
from tests.utils.factories import create_todo


@pytest.mark.unit
def test_todo_defaults():
    todo = Todo(id=1, text="Walk the dog")

    assert todo.assignee == "Unassigned"
    assert todo.due_date is None
    assert todo.completed is False


@pytest.mark.unit
def test_todo_json_field_names():
    todo = Todo(id=3, text="Pay bills", assignee="Shannon", due_date=date(2024, 5, 1))

    data = todo.to_json()

    assert set(data) == {"id", "text", "assignee", "due_date", "completed", "created_at", "updated_at"}
    assert data["due_date"] == "2024-05-01"


@pytest.mark.unit
def test_create_strips_text():
    body = TodoCreate(text="  Buy bread  ", assignee="Joe")

    assert body.text == "Buy bread"


@pytest.mark.unit
@pytest.mark.parametrize("text", ["", "   ", "\t\n"])
def test_create_rejects_blank_text(text):
    with pytest.raises(ValidationError):
        TodoCreate(text=text)


@pytest.mark.unit
def test_create_empty_due_date_means_none():
    """An empty-string due date is normalised away, never stored."""
    body = TodoCreate.model_validate({"text": "x", "due_date": ""})

    assert body.due_date is None


@pytest.mark.unit
def test_create_blank_assignee_is_unset():
    body = TodoCreate.model_validate({"text": "x", "assignee": "  "})

    assert body.assignee is None


@pytest.mark.unit
def test_create_rejects_bad_date():
    with pytest.raises(ValidationError):
        TodoCreate.model_validate({"text": "x", "due_date": "not-a-date"})


@pytest.mark.unit
def test_update_changes_only_supplied_fields():
    update = TodoUpdate.model_validate({"text": "New text"})

    assert update.changes() == {"text": "New text"}


@pytest.mark.unit
def test_update_null_leaves_fields_as_is():
    update = TodoUpdate.model_validate({"text": None, "assignee": None, "completed": None})

    assert update.changes() == {}


@pytest.mark.unit
def test_update_explicit_null_clears_due_date():
    update = TodoUpdate.model_validate({"due_date": None})

    assert update.changes() == {"due_date": None}


@pytest.mark.unit
def test_update_empty_string_clears_due_date():
    update = TodoUpdate.model_validate({"due_date": ""})

    assert update.changes() == {"due_date": None}


@pytest.mark.unit
def test_update_absent_due_date_is_left_alone():
    update = TodoUpdate.model_validate({"completed": True})

    assert update.changes() == {"completed": True}


@pytest.mark.unit
def test_update_rejects_blank_text():
    with pytest.raises(ValidationError):
        TodoUpdate.model_validate({"text": "  "})


@pytest.mark.unit
def test_filter_treats_all_as_no_assignee_filter():
    todo_filter = TodoFilter.model_validate({"assignee": "all", "status": "all"})

    assert todo_filter.is_empty


@pytest.mark.unit
def test_filter_rejects_inverted_range():
    with pytest.raises(ValidationError):
        TodoFilter.model_validate({"date_from": "2024-02-01", "date_to": "2024-01-01"})


@pytest.mark.unit
def test_filter_rejects_unknown_status():
    with pytest.raises(ValidationError):
        TodoFilter.model_validate({"status": "archived"})


@pytest.mark.unit
def test_mutation_event_wire_format():
    todo = create_todo(7, completed=True)

    event = MutationEvent.for_todo(EventType.TODO_TOGGLED, todo)
    deleted = MutationEvent.deleted(7)

    assert event.model_dump(mode="json")["message_type"] == "todo_toggled"
    assert event.data["id"] == 7
    assert event.data["completed"] is True
    assert deleted.model_dump(mode="json") == {"message_type": "todo_deleted", "data": {"id": 7}}
    assert '"message_type":"todo_deleted"' in deleted.to_json()
