"""Pagination parameters shared by the read paths."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Select

from hollowdb.errors import ValidationError


@dataclass(frozen=True)
class Pagination:
    """Page window over an ordered result.

    Args:
        limit: Page size. None returns the full set.
        page: 1-based page number, only meaningful when limit is set.
    """

    limit: Optional[int] = None
    page: int = 1

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 1:
            raise ValidationError("limit", "Pagination", reason="limit must be at least 1")
        if self.page < 1:
            raise ValidationError("page", "Pagination", reason="page must be at least 1")

    @property
    def offset(self) -> int:
        if self.limit is None:
            return 0
        return (self.page - 1) * self.limit

    def apply(self, stmt: Select) -> Select:
        if self.limit is None:
            return stmt
        return stmt.limit(self.limit).offset(self.offset)
