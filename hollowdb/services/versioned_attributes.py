"""Versioned attributes service - deduplicating writes and history reads."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hollowdb.errors import StorageError
from hollowdb.models.base import utcnow
from hollowdb.models.server import Server
from hollowdb.models.versioned_attributes import VersionedAttributes, parse_data
from hollowdb.pagination import Pagination
from hollowdb.services.server import ServerService

logger = logging.getLogger(__name__)


class VersionedAttributesService:
    """Append-or-tally writer plus the per-namespace and per-server readers.

    Nothing here commits. The caller's session scope owns the transaction, so
    an attribute write and the matching server touch are committed together.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        server: Server,
        namespace: str,
        data: Any,
    ) -> VersionedAttributes:
        """Record a submission of data for (server, namespace).

        If the newest record for the pair holds the same document, its tally
        is incremented; otherwise a new record with tally 1 is inserted. Only
        the newest record is compared, so A, B, A yields three records.

        Returns:
            The record that now reflects the submission.

        Raises:
            ValidationError: namespace is empty or data is not valid JSON
            NotFoundError: the server row was gone when touched (increment branch)
            StorageError: the database rejected the write, including the
                foreign key failure when a new version references a deleted server
        """
        candidate = VersionedAttributes(namespace=namespace)
        candidate.validate()
        candidate.data = parse_data(data)

        try:
            current = await self.get_current(server.id, namespace, lock=True)
            now = utcnow()

            if current is not None and current.same_data(candidate.data):
                current.tally += 1
                current.updated_at = now
                record = current
                logger.debug(
                    f"Incremented tally for server={server.id} namespace={namespace} "
                    f"to {current.tally}"
                )
            else:
                candidate.server_id = server.id
                candidate.tally = 1
                candidate.created_at = now
                candidate.updated_at = now
                self.db.add(candidate)
                record = candidate
                logger.debug(f"New version for server={server.id} namespace={namespace}")

            await self.db.flush()
            await ServerService(self.db).touch(server.id, now)
        except SQLAlchemyError as e:
            logger.warning(
                f"Failed to write versioned attributes server={server.id} "
                f"namespace={namespace}: {e}"
            )
            raise StorageError(f"failed to write versioned attributes: {e}") from e

        return record

    async def get_current(
        self,
        server_id: uuid.UUID,
        namespace: str,
        lock: bool = False,
    ) -> Optional[VersionedAttributes]:
        """Newest record for (server, namespace), or None."""
        stmt = (
            select(VersionedAttributes)
            .where(
                VersionedAttributes.server_id == server_id,
                VersionedAttributes.namespace == namespace,
            )
            .order_by(
                desc(VersionedAttributes.created_at), desc(VersionedAttributes.id)
            )
            .limit(1)
        )
        if lock:
            stmt = stmt.with_for_update()
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"failed to read current versioned attributes: {e}") from e
        return result.scalar_one_or_none()

    async def get(
        self,
        server_id: uuid.UUID,
        namespace: str,
        pagination: Optional[Pagination] = None,
    ) -> tuple[int, list[VersionedAttributes]]:
        """All versions for (server, namespace), newest first.

        The total ignores the page window. Unknown servers and namespaces
        give (0, []).
        """
        if pagination is None:
            pagination = Pagination()

        conditions = [
            VersionedAttributes.server_id == server_id,
            VersionedAttributes.namespace == namespace,
        ]

        try:
            count_stmt = (
                select(func.count())
                .select_from(VersionedAttributes)
                .where(*conditions)
            )
            total = await self.db.scalar(count_stmt) or 0

            stmt = pagination.apply(
                select(VersionedAttributes)
                .where(*conditions)
                .order_by(
                    desc(VersionedAttributes.created_at), desc(VersionedAttributes.id)
                )
            )
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"failed to read versioned attributes: {e}") from e

        return total, list(result.scalars().all())

    async def list(
        self,
        server_id: uuid.UUID,
        pagination: Optional[Pagination] = None,
    ) -> tuple[int, list[VersionedAttributes]]:
        """Newest record of each namespace for a server, ordered by namespace.

        The total is the number of distinct namespaces. Unknown servers
        give (0, []).
        """
        if pagination is None:
            pagination = Pagination()

        ranked = (
            select(
                VersionedAttributes.id,
                func.row_number()
                .over(
                    partition_by=VersionedAttributes.namespace,
                    order_by=(
                        desc(VersionedAttributes.created_at),
                        desc(VersionedAttributes.id),
                    ),
                )
                .label("rn"),
            )
            .where(VersionedAttributes.server_id == server_id)
            .subquery()
        )

        try:
            count_stmt = select(
                func.count(func.distinct(VersionedAttributes.namespace))
            ).where(VersionedAttributes.server_id == server_id)
            total = await self.db.scalar(count_stmt) or 0

            stmt = pagination.apply(
                select(VersionedAttributes)
                .join(ranked, VersionedAttributes.id == ranked.c.id)
                .where(ranked.c.rn == 1)
                .order_by(VersionedAttributes.namespace)
            )
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"failed to list versioned attributes: {e}") from e

        return total, list(result.scalars().all())
