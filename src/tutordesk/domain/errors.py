"""Shared domain error messages and error types."""

from typing import Iterable


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation of a candidate record.

    Carries the full list of field-level messages so callers can report
    every problem at once.
    """

    def __init__(self, messages: Iterable[str] | str):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class PreconditionError(DomainError):
    """A state transition was requested from a state that does not allow it."""


class AggregationError(DomainError):
    """A database failure while building an accounting or reporting view."""


def not_found(kind: str, entity_id: int) -> str:
    """Return message for a missing entity."""
    return f"{kind} {entity_id} not found"


def duplicate_lesson_type(name: str, teacher_id: int) -> str:
    """Return message for a duplicate lesson type name."""
    return f"Lesson type '{name}' already exists for teacher {teacher_id}"


def invalid_transition(kind: str, current: str, target: str) -> str:
    """Return message for a disallowed status change."""
    return f"{kind} cannot move from '{current}' to '{target}'"
