"""Error types raised by hollowdb."""

from __future__ import annotations


class HollowDBError(Exception):
    """Base class for all hollowdb errors."""


class ValidationError(HollowDBError, ValueError):
    """A required field is missing or invalid. Raised before any storage access."""

    def __init__(self, field: str, model: str, reason: str | None = None):
        self.field = field
        self.model = model
        if reason is None:
            reason = f"{field} is a required {model} attribute"
        super().__init__(f"validation failed: {reason}")


class NotFoundError(HollowDBError, LookupError):
    """A referenced record does not exist."""

    def __init__(self, model: str, identifier):
        self.model = model
        self.identifier = identifier
        super().__init__(f"{model} not found: {identifier}")


class StorageError(HollowDBError, OSError):
    """The database layer failed (connection, constraint, transaction).

    The original SQLAlchemy exception is kept as ``__cause__``.
    """
