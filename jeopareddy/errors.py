"""Exceptions raised by the board store and the play flow."""

from __future__ import annotations


class JeopareddyError(Exception):
    """Base class for every error this package raises on purpose."""


class ValidationError(JeopareddyError):
    """Request data failed validation.

    ``errors`` maps a field name to its messages, e.g.
    ``{"displayOrder": ["DisplayOrder must be greater than zero."]}``.
    """

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__("; ".join(
            f"{name}: {' '.join(messages)}" for name, messages in errors.items()
        ))

    @classmethod
    def single(cls, name: str, message: str) -> ValidationError:
        return cls({name: [message]})


class NotFoundError(JeopareddyError):
    pass


class ConflictError(JeopareddyError):
    """Status guard or ordering clash."""


class MiniGameConflictError(JeopareddyError):
    """Both mini-games were triggered for the same clue."""
