# This project was developed with assistance from AI tools.
"""Async database engine and session management.

One ``DatabaseService`` is built per process (in the API lifespan, the
seed CLI, or a test fixture) and handed to callers explicitly. FastAPI
routes reach it through ``app.state.db_service`` via ``get_db``.
"""

import logging
from collections.abc import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from starlette.requests import Request

from .config import db_settings

logger = logging.getLogger(__name__)

Base = declarative_base()


class DatabaseService:
    """Owns an async engine and its session factory."""

    def __init__(self, url: str | None = None, *, engine: AsyncEngine | None = None, echo: bool | None = None):
        if engine is None:
            engine = create_async_engine(
                url or db_settings.DATABASE_URL,
                echo=db_settings.SQL_ECHO if echo is None else echo,
                pool_pre_ping=True,
            )
        self.engine = engine
        self.session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )

    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session, rolling back on error."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def health_check(self) -> bool:
        """Return True when the database answers ``SELECT 1``."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.exception("Database health check failed")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


def get_db_service(request: Request) -> DatabaseService:
    """FastAPI dependency: the process-wide DatabaseService from app state."""
    service = getattr(request.app.state, "db_service", None)
    if service is None:
        raise RuntimeError("DatabaseService not initialised -- is the app lifespan running?")
    return service


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one AsyncSession per request."""
    service = get_db_service(request)
    async for session in service.session():
        yield session
