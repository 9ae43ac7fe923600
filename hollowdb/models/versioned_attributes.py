"""Versioned attributes model (namespaced JSON documents with a tally)."""

from __future__ import annotations

import json
import uuid
from typing import Any

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hollowdb.errors import ValidationError
from hollowdb.models.base import Base, JSONDocument, TimestampMixin


def canonical_json(value: Any, allow_nan: bool = True) -> bytes:
    """Encode a JSON value so equal documents produce equal bytes.

    Object keys are sorted and whitespace is dropped, so key order and
    formatting in the submitted document do not matter.
    """
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=allow_nan,
    ).encode("utf-8")


def parse_data(data: Any) -> Any:
    """Accept either a JSON-compatible value or a raw JSON document in bytes.

    Raises:
        ValidationError: data is not valid JSON or cannot be encoded as JSON
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        try:
            data = json.loads(bytes(data))
        except ValueError as e:
            raise ValidationError(
                "data", "VersionedAttributes", reason=f"data is not valid JSON: {e}"
            ) from e
    try:
        canonical_json(data, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            "data", "VersionedAttributes", reason=f"data is not a JSON document: {e}"
        ) from e
    return data


class VersionedAttributes(Base, TimestampMixin):
    __tablename__ = "versioned_attributes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    server_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("servers.id", ondelete="CASCADE"),
        nullable=False,
    )
    namespace: Mapped[str] = mapped_column(String(255), nullable=False)
    data: Mapped[Any] = mapped_column(JSONDocument, nullable=False)
    tally: Mapped[int] = mapped_column(
        Integer, default=1, server_default="1", nullable=False
    )

    __table_args__ = (
        Index("ix_va_server_ns_created", "server_id", "namespace", "created_at"),
        CheckConstraint("tally >= 1", name="ck_va_tally_positive"),
    )

    def validate(self) -> None:
        """Check required fields before the record is written."""
        if not self.namespace or not self.namespace.strip():
            raise ValidationError("namespace", "VersionedAttributes")

    def same_data(self, other: Any) -> bool:
        """True if other encodes to the same canonical JSON as this record's data."""
        return canonical_json(self.data) == canonical_json(other)

    def __repr__(self) -> str:
        return (
            f"<VersionedAttributes id={self.id} server_id={self.server_id} "
            f"namespace={self.namespace!r} tally={self.tally}>"
        )
