"""Database management - engine, session factory, initialization."""

import asyncio
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


class Database:
    """Async database manager with connection pooling."""

    def __init__(self, url: str, pool_size: int = 10, echo: bool = False):
        engine_kwargs = {"echo": echo}
        # SQLite engines pick their own pool class, which rejects pool_size
        if not url.startswith("sqlite"):
            engine_kwargs["pool_size"] = pool_size
        self.engine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @asynccontextmanager
    async def session(self):
        """Context manager that yields a session with auto-commit/rollback.

        Cancellation (deadline expiry) rolls back like any other failure.
        """
        async with self.session_factory() as s:
            try:
                yield s
                await s.commit()
            except (Exception, asyncio.CancelledError):
                await s.rollback()
                raise

    async def init(self) -> None:
        """Create all tables."""
        from hollowdb.models.base import Base
        # Import all models to register them with Base.metadata
        import hollowdb.models.server  # noqa: F401
        import hollowdb.models.versioned_attributes  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose engine and release all connections."""
        await self.engine.dispose()
