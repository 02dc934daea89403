from __future__ import annotations


# PUBLIC_INTERFACE
class TodoError(Exception):
    """Base class for errors raised by the todo service and its storage backends."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# PUBLIC_INTERFACE
class ValidationError(TodoError):
    """Bad user input, e.g. an empty title or an unparsable deadline."""


# PUBLIC_INTERFACE
class NotFoundError(TodoError):
    """A referenced todo or subtask id does not exist."""


# PUBLIC_INTERFACE
class StorageError(TodoError):
    """The underlying persistence layer failed (I/O, constraint violation, ...)."""
