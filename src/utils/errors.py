"""Error handling utilities."""

from typing import Optional


class TodoAppError(Exception):
    """Base exception for the todo backend."""
    pass


class ValidationError(TodoAppError):
    """Input failed validation (blank text, bad filter, etc.)."""
    pass


class NotFoundError(TodoAppError):
    """Target todo does not exist."""

    def __init__(self, todo_id: Optional[int] = None, message: Optional[str] = None):
        self.todo_id = todo_id
        super().__init__(message or f"Todo {todo_id} not found")


class StoreError(TodoAppError):
    """Record store I/O or infrastructure failure."""
    pass


class SupabaseError(StoreError):
    """Supabase operation error."""
    pass


class ConfigError(TodoAppError):
    """Invalid or missing configuration."""
    pass
