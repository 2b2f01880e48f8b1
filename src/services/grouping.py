"""Grouping/sorting engine - turn a flat todo collection into the date-grouped view.

Ordering rules:
- todos are bucketed by their ISO due date, or "No Due Date" when they have none
- within a bucket, incomplete todos come before completed ones, ties broken by ascending id
- the "No Due Date" bucket comes first, dated buckets follow in ascending date order

The result depends only on the set of todos, never on the order the store returned them in.
"""

from typing import Iterable, Optional

from src.models.todo import DateGroup, NO_DUE_DATE, Todo, TodoFilter


def date_key(todo: Todo) -> str:
    """Bucket key for a todo."""
    if todo.due_date is None:
        return NO_DUE_DATE
    return todo.due_date.isoformat()


def todo_sort_key(todo: Todo) -> tuple[bool, int]:
    return (todo.completed, todo.id)


def group_sort_key(key: str) -> tuple[bool, str]:
    # False sorts first, so the no-date bucket leads regardless of its text
    return (key != NO_DUE_DATE, key)


def sort_group(todos: Iterable[Todo]) -> list[Todo]:
    """Order todos inside one bucket."""
    return sorted(todos, key=todo_sort_key)


def group_todos(todos: Iterable[Todo]) -> list[DateGroup]:
    """Group todos by due date and order groups and their members."""
    buckets: dict[str, list[Todo]] = {}
    for todo in todos:
        buckets.setdefault(date_key(todo), []).append(todo)

    return [
        DateGroup(date=key, tasks=sort_group(buckets[key]))
        for key in sorted(buckets, key=group_sort_key)
    ]


def matches_filter(todo: Todo, todo_filter: TodoFilter) -> bool:
    """Check a todo against assignee, status and due-date range filters."""
    if todo_filter.assignee is not None and todo.assignee != todo_filter.assignee:
        return False

    if todo_filter.status == "completed" and not todo.completed:
        return False
    if todo_filter.status == "pending" and todo.completed:
        return False

    if todo_filter.date_from is not None or todo_filter.date_to is not None:
        # Undated todos never fall inside a date range
        if todo.due_date is None:
            return False
        if todo_filter.date_from is not None and todo.due_date < todo_filter.date_from:
            return False
        if todo_filter.date_to is not None and todo.due_date > todo_filter.date_to:
            return False

    return True


def filter_todos(todos: Iterable[Todo], todo_filter: Optional[TodoFilter] = None) -> list[Todo]:
    """Apply an optional filter, preserving input order."""
    if todo_filter is None or todo_filter.is_empty:
        return list(todos)
    return [todo for todo in todos if matches_filter(todo, todo_filter)]
