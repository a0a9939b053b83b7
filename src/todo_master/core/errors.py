# src/todo_master/core/errors.py

from __future__ import annotations


class TodoError(Exception):
    """Base class for task list failures."""


class ValidationFailed(TodoError, ValueError):
    """
    Text was empty after trimming.

    Stores swallow this and treat the call as a no-op; it is never shown to the user.
    """


class WriteFailed(TodoError):
    """A remote add/remove/update request was rejected or could not be delivered."""


class LoadFailed(TodoError):
    """The live subscription could not be established or broke. Terminal for that subscription."""
