"""HollowDB main class (facade pattern)."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Optional

from hollowdb import config
from hollowdb.db import Database
from hollowdb.pagination import Pagination

logger = logging.getLogger(__name__)


async def _with_deadline(coro, timeout: Optional[float]):
    if timeout is None:
        return await coro
    return await asyncio.wait_for(coro, timeout)


class ServersFacade:
    """Owning server records."""

    def __init__(self, db: Database):
        self._db = db

    async def create(self, name: str | None = None, facility_code: str | None = None, server_id: uuid.UUID | None = None):
        from hollowdb.services.server import ServerService
        async with self._db.session() as session:
            svc = ServerService(session)
            return await svc.create(name, facility_code, server_id)

    async def get(self, server_id: uuid.UUID):
        from hollowdb.services.server import ServerService
        async with self._db.session() as session:
            svc = ServerService(session)
            return await svc.get(server_id)


class VersionedAttributesFacade:
    """Versioned attributes facade.

    Every call runs in its own session, so each create commits the attribute
    write and the server touch together. timeout is a deadline in seconds;
    on expiry the session rolls back and TimeoutError is raised.
    """

    def __init__(self, db: Database):
        self._db = db

    async def create(self, server_id: uuid.UUID, namespace: str, data: Any, timeout: float | None = None):
        return await _with_deadline(self._create(server_id, namespace, data), timeout)

    async def _create(self, server_id: uuid.UUID, namespace: str, data: Any):
        from hollowdb.services.server import ServerService
        from hollowdb.models.versioned_attributes import VersionedAttributes, parse_data
        from hollowdb.services.versioned_attributes import VersionedAttributesService
        # Reject bad input before opening a session
        VersionedAttributes(namespace=namespace).validate()
        data = parse_data(data)
        async with self._db.session() as session:
            # Lock the server row: concurrent creates for one server are
            # serialized even when no attribute row exists yet.
            server = await ServerService(session).get(server_id, lock=True)
            svc = VersionedAttributesService(session)
            return await svc.create(server, namespace, data)

    async def get(self, server_id: uuid.UUID, namespace: str, pagination: Pagination | None = None, timeout: float | None = None):
        return await _with_deadline(self._get(server_id, namespace, pagination), timeout)

    async def _get(self, server_id: uuid.UUID, namespace: str, pagination: Pagination | None):
        from hollowdb.services.versioned_attributes import VersionedAttributesService
        async with self._db.session() as session:
            svc = VersionedAttributesService(session)
            return await svc.get(server_id, namespace, pagination)

    async def list(self, server_id: uuid.UUID, pagination: Pagination | None = None, timeout: float | None = None):
        return await _with_deadline(self._list(server_id, pagination), timeout)

    async def _list(self, server_id: uuid.UUID, pagination: Pagination | None):
        from hollowdb.services.versioned_attributes import VersionedAttributesService
        async with self._db.session() as session:
            svc = VersionedAttributesService(session)
            return await svc.list(server_id, pagination)


class HollowDB:
    """Main HollowDB facade - entry point for all operations.

    Args:
        database_url: SQLAlchemy async URL (defaults to config.DATABASE_URL)
        pool_size: Database connection pool size (defaults to config.POOL_SIZE)
        echo: Enable SQLAlchemy SQL logging (defaults to config.ECHO)

    Usage:
        async with HollowDB("postgresql+asyncpg://...") as hdb:
            server = await hdb.servers.create(name="dory")
            await hdb.versioned_attributes.create(server.id, "inventory.bios", {"version": "1.2"})
            total, history = await hdb.versioned_attributes.get(server.id, "inventory.bios")
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        pool_size: Optional[int] = None,
        echo: Optional[bool] = None,
    ):
        self._db = Database(
            database_url or config.DATABASE_URL,
            pool_size=config.POOL_SIZE if pool_size is None else pool_size,
            echo=config.ECHO if echo is None else echo,
        )

        self.servers = ServersFacade(self._db)
        self.versioned_attributes = VersionedAttributesFacade(self._db)

    async def init(self) -> None:
        """Initialize database tables."""
        await self._db.init()

    async def close(self) -> None:
        """Close database connections."""
        await self._db.close()

    async def __aenter__(self) -> "HollowDB":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
