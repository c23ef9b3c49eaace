"""Shared fixtures for API tests."""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings
from core.session import SESSION_COOKIE, create_session_token
from models.user import User
from tests.factories import create_state, create_user

# Constant for non-existent entity ID
FAKE_UUID = "00000000-0000-0000-0000-000000000000"


@pytest.fixture
async def user(db_session: AsyncSession) -> User:
    """A registered user in Texas."""
    state = await create_state(db_session)
    return await create_user(db_session, state=state)


@pytest.fixture
async def auth_client(client: AsyncClient, user: User, test_settings: Settings) -> AsyncClient:
    """The test client carrying a session cookie for `user`."""
    client.cookies.set(SESSION_COOKIE, create_session_token(user.id, test_settings))
    return client
