"""API-test fixtures.

The app is driven in-process through httpx's ASGITransport. Lifespan does
not run under ASGITransport, so the broadcaster is installed on app.state
directly and the DB session dependency is replaced by a mock; each test
swaps a router's module-level `_service` for one wired to mock repositories.
"""

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.fs_common.database import get_db_session
from src.fs_gateway.auth.jwt_handler import create_access_token
from src.fs_realtime.application.broadcaster import SessionBroadcaster
from src.main import app


@pytest.fixture
def db() -> MagicMock:
    mock = MagicMock()
    mock.commit = AsyncMock()
    mock.rollback = AsyncMock()
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def broadcaster() -> SessionBroadcaster:
    return SessionBroadcaster()


@pytest_asyncio.fixture
async def client(db: MagicMock, broadcaster: SessionBroadcaster) -> AsyncIterator[AsyncClient]:
    async def _db_override():
        yield db

    app.dependency_overrides[get_db_session] = _db_override
    app.state.broadcaster = broadcaster
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token('alice', name='Alice')}"}
