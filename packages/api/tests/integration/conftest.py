# This project was developed with assistance from AI tools.
"""Integration test fixtures -- real PostgreSQL, no mocks.

A session-scoped container (started once per test run) runs the alembic
migrations, including the audit_logs append-only trigger. Function-scoped
fixtures give each test an isolated DB session with savepoint rollback so
tests don't leak state.
"""

import os

import httpx
import pytest
import pytest_asyncio
from db import DatabaseService, User, get_db, get_db_service
from db.config import to_sync_url
from db.enums import UserRole
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer

from dvsubmit.core.auth import build_data_scope
from dvsubmit.schemas.auth import UserContext

pytestmark = pytest.mark.integration

_DB_PACKAGE = os.path.join(os.path.dirname(__file__), "..", "..", "..", "db")


# ---------------------------------------------------------------------------
# Session-scoped: container + engine + migrations
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def pg_container():
    """Start postgres:16 via testcontainers."""
    with PostgresContainer(image="postgres:16", username="test", password="test", dbname="test") as pg:
        yield pg


@pytest.fixture(scope="session")
def db_url(pg_container):
    """Async DB URL for asyncpg."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql+asyncpg://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def sync_db_url(db_url):
    """Sync DB URL for Alembic (psycopg2)."""
    return to_sync_url(db_url)


@pytest.fixture(scope="session", autouse=True)
def _run_migrations(sync_db_url):
    """Run alembic upgrade head against the container."""
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config(os.path.join(_DB_PACKAGE, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(_DB_PACKAGE, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", sync_db_url)
    command.upgrade(alembic_cfg, "head")


@pytest.fixture(scope="session")
def async_engine(db_url, _run_migrations):
    """Create an async engine pointing at the test container."""
    engine = create_async_engine(db_url, echo=False, poolclass=NullPool)
    yield engine


# ---------------------------------------------------------------------------
# Function-scoped: per-test session with savepoint rollback
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_session(async_engine):
    """Per-test DB session; service commits land in a savepoint that is rolled back."""
    conn = await async_engine.connect()
    txn = await conn.begin()
    session = AsyncSession(
        bind=conn,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
        autoflush=False,
    )
    yield session
    await session.close()
    await txn.rollback()
    await conn.close()


async def _add_user(session: AsyncSession, email: str, role: UserRole) -> UserContext:
    user = User(auth_user_id=f"auth-{email}", email=email, role=role, blocked=False)
    session.add(user)
    await session.flush()
    return UserContext(
        user_id=user.id,
        auth_user_id=user.auth_user_id,
        email=user.email,
        role=role,
        data_scope=build_data_scope(role, user.id),
    )


@pytest_asyncio.fixture
async def personas(db_session):
    """Real user rows for two applicants, an admin and a super admin."""
    return {
        "abebe": await _add_user(db_session, "abebe@example.com", UserRole.USER),
        "hanna": await _add_user(db_session, "hanna@example.com", UserRole.USER),
        "admin": await _add_user(db_session, "admin@dvsubmit.example", UserRole.ADMIN),
        "super": await _add_user(db_session, "root@dvsubmit.example", UserRole.SUPER_ADMIN),
    }


@pytest.fixture
def client_factory(db_session, async_engine):
    """Factory returning an async httpx client acting as ``user``."""
    from dvsubmit.main import app
    from dvsubmit.middleware.auth import get_current_user

    db_service = DatabaseService(engine=async_engine)

    def _make(user: UserContext) -> httpx.AsyncClient:
        async def _get_db():
            yield db_session

        async def _get_current_user():
            return user

        app.dependency_overrides[get_db] = _get_db
        app.dependency_overrides[get_current_user] = _get_current_user
        app.dependency_overrides[get_db_service] = lambda: db_service
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        return httpx.AsyncClient(transport=transport, base_url="http://test")

    yield _make

    app.dependency_overrides.clear()
