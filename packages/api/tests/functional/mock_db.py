# This project was developed with assistance from AI tools.
"""Mock database utilities for functional tests.

Provides an AsyncMock session that handles the result patterns used by
the service layer:
  1. ``.scalar()`` -- count queries
  2. ``.scalars().all()`` -- list queries
  3. ``.scalar_one_or_none()`` -- single-item queries
  4. ``.all()`` -- tuple queries (directory rows, audit rows with email)
"""

from unittest.mock import AsyncMock, MagicMock

from db import get_db

from dvsubmit.middleware.auth import get_current_user
from dvsubmit.schemas.auth import UserContext
from dvsubmit.services.identity import get_identity_client
from dvsubmit.services.storage import get_storage


def make_result(
    items: list | None = None,
    single: object | None = None,
    count: int | None = None,
    rows: list | None = None,
) -> MagicMock:
    """One ``execute()`` result answering every access pattern."""
    result = MagicMock()
    result.scalar.return_value = count or 0
    result.scalars.return_value.all.return_value = items or []
    result.scalar_one_or_none.return_value = single
    result.all.return_value = rows or []
    return result


def _bare_session() -> AsyncMock:
    session = AsyncMock()
    # add() and add_all() are synchronous in SQLAlchemy
    session.add = MagicMock()
    session.add_all = MagicMock()
    session.begin_nested = AsyncMock(return_value=AsyncMock())
    return session


def make_mock_session(
    items: list | None = None,
    single: object | None = None,
    count: int | None = None,
    rows: list | None = None,
) -> AsyncMock:
    """Build an AsyncMock session whose every query returns the same result.

    When only ``items`` is provided, count and single are inferred:
    - count = len(items)
    - single = items[0] if items else None
    """
    if items is not None and count is None:
        count = len(items)
    if items is not None and single is None:
        single = items[0] if items else None

    session = _bare_session()
    session.execute = AsyncMock(return_value=make_result(items, single, count, rows))
    return session


def make_scripted_session(*results: MagicMock, default: MagicMock | None = None) -> AsyncMock:
    """Build a session whose ``execute()`` returns ``results`` in order.

    Once the script runs out every further query gets ``default`` (an empty
    result unless given). Audit writes issue two queries each: the advisory
    lock, then the latest-row lookup.
    """
    queue = list(results)
    fallback = default if default is not None else make_result()

    async def _execute(*_args, **_kwargs):
        return queue.pop(0) if queue else fallback

    session = _bare_session()
    session.execute = AsyncMock(side_effect=_execute)
    return session


def make_mock_storage(key: str = "101/501/photo_1.jpg") -> MagicMock:
    storage = MagicMock()
    storage.build_photo_key.return_value = key
    storage.upload_file = AsyncMock(return_value=key)
    storage.get_download_url = AsyncMock(return_value=f"https://storage.test/{key}?sig=abc")
    storage.download_file = AsyncMock(return_value=b"\xff\xd8\xff\xe0jpeg")
    storage.delete_file = AsyncMock()
    return storage


def make_mock_identity() -> MagicMock:
    identity = MagicMock()
    identity.enabled = True
    identity.update_app_metadata = AsyncMock(return_value=True)
    return identity


def configure_app_for_persona(
    app,
    user: UserContext,
    session: AsyncMock,
    *,
    storage: MagicMock | None = None,
    identity: MagicMock | None = None,
) -> None:
    """Override get_current_user, get_db, get_storage and get_identity_client."""

    async def fake_user():
        return user

    async def fake_db():
        yield session

    app.dependency_overrides[get_current_user] = fake_user
    app.dependency_overrides[get_db] = fake_db
    app.dependency_overrides[get_storage] = lambda: storage or make_mock_storage()
    app.dependency_overrides[get_identity_client] = lambda: identity or make_mock_identity()
