"""Server service - resolve and touch the owning server record."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hollowdb.errors import NotFoundError, StorageError
from hollowdb.models.server import Server

logger = logging.getLogger(__name__)


class ServerService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        name: Optional[str] = None,
        facility_code: Optional[str] = None,
        server_id: Optional[uuid.UUID] = None,
    ) -> Server:
        """Register a server."""
        server = Server(name=name, facility_code=facility_code)
        if server_id is not None:
            server.id = server_id
        self.db.add(server)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to create server {name!r}: {e}")
            raise StorageError(f"failed to create server: {e}") from e
        return server

    async def get(self, server_id: uuid.UUID, lock: bool = False) -> Server:
        """Fetch a server by id.

        With lock=True the row is selected FOR UPDATE, which serializes
        writers attaching data to the same server until the transaction ends.

        Raises:
            NotFoundError: no server with that id exists
        """
        stmt = select(Server).where(Server.id == server_id)
        if lock:
            stmt = stmt.with_for_update()
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"failed to load server {server_id}: {e}") from e
        server = result.scalar_one_or_none()
        if server is None:
            raise NotFoundError("Server", server_id)
        return server

    async def touch(self, server_id: uuid.UUID, at: datetime) -> None:
        """Set the server's updated_at.

        Raises:
            NotFoundError: no server with that id exists
        """
        try:
            result = await self.db.execute(
                update(Server).where(Server.id == server_id).values(updated_at=at)
            )
        except SQLAlchemyError as e:
            raise StorageError(f"failed to touch server {server_id}: {e}") from e
        if result.rowcount == 0:
            raise NotFoundError("Server", server_id)
        logger.debug(f"Touched server {server_id} at {at.isoformat()}")
