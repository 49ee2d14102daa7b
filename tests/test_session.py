"""
Tests for the session context
"""

import json
import pytest
from unittest.mock import AsyncMock
from todoflow.config.constants import SESSION_GUEST_KEY, SESSION_TOKEN_KEY, SESSION_USER_KEY
from todoflow.models.identity import SessionMode
from todoflow.services.session import SessionContext
from todoflow.utils.error_handler import RemoteError, ValidationError


@pytest.mark.asyncio
async def test_skip_auth_persists_guest_flag(session, local_storage):
    await session.skip_auth()

    assert session.current_mode() == SessionMode.GUEST
    assert session.is_guest
    assert session.current_identity() is None
    assert local_storage.get_item(SESSION_GUEST_KEY) == "true"


@pytest.mark.asyncio
async def test_login_stores_credentials(session, local_storage, mock_auth_client, test_identity):
    await session.skip_auth()
    identity = await session.login("test@example.com", "secret")

    mock_auth_client.sign_in_with_password.assert_called_once_with("test@example.com", "secret")
    assert identity == test_identity
    assert session.current_mode() == SessionMode.AUTHENTICATED
    assert session.access_token == "test_token"
    assert local_storage.get_item(SESSION_TOKEN_KEY) == "test_token"
    assert local_storage.get_item(SESSION_GUEST_KEY) is None


@pytest.mark.asyncio
async def test_login_failure_notifies_and_keeps_mode(session, mock_auth_client, notifier):
    mock_auth_client.sign_in_with_password = AsyncMock(side_effect=RemoteError("Invalid login credentials", 400))

    with pytest.raises(RemoteError):
        await session.login("test@example.com", "wrong")

    assert session.current_mode() is None
    notifications = notifier.drain()
    assert notifications[-1].level == "error"
    assert notifications[-1].message == "Login failed"


@pytest.mark.asyncio
async def test_logout_clears_everything(session, local_storage):
    await session.register("test@example.com", "secret", "Test User")
    await session.logout()

    assert session.current_mode() is None
    assert session.access_token is None
    for key in (SESSION_TOKEN_KEY, SESSION_USER_KEY, SESSION_GUEST_KEY):
        assert local_storage.get_item(key) is None


@pytest.mark.asyncio
async def test_restore_guest(local_storage, mock_auth_client):
    local_storage.set_item(SESSION_GUEST_KEY, "true")
    session = SessionContext(local_storage, mock_auth_client)

    assert await session.restore() == SessionMode.GUEST
    mock_auth_client.get_user.assert_not_called()


@pytest.mark.asyncio
async def test_restore_verifies_stored_token(session, local_storage, mock_auth_client, test_identity):
    await session.login("test@example.com", "secret")
    restored = SessionContext(local_storage, mock_auth_client)

    assert await restored.restore() == SessionMode.AUTHENTICATED
    mock_auth_client.get_user.assert_called_once_with("test_token")
    assert restored.current_identity() == test_identity


@pytest.mark.asyncio
async def test_restore_discards_rejected_token(session, local_storage, mock_auth_client):
    await session.login("test@example.com", "secret")
    mock_auth_client.get_user = AsyncMock(side_effect=RemoteError("JWT expired", 401))
    restored = SessionContext(local_storage, mock_auth_client)

    assert await restored.restore() is None
    assert local_storage.get_item(SESSION_TOKEN_KEY) is None
    assert local_storage.get_item(SESSION_USER_KEY) is None


@pytest.mark.asyncio
async def test_listeners_are_awaited_in_order(session):
    seen = []

    async def first(mode):
        seen.append(("first", mode))

    async def second(mode):
        seen.append(("second", mode))

    session.subscribe(first)
    session.subscribe(second)
    await session.skip_auth()
    await session.logout()

    assert seen == [
        ("first", SessionMode.GUEST),
        ("second", SessionMode.GUEST),
        ("first", None),
        ("second", None),
    ]


@pytest.mark.asyncio
async def test_update_identity_merges_and_persists(session, local_storage):
    await session.login("test@example.com", "secret")

    updated = session.update_identity(name="New Name", id="someone_else")

    assert updated.name == "New Name"
    assert updated.id == "user_123"
    assert updated.email == "test@example.com"
    assert session.current_identity() == updated
    assert json.loads(local_storage.get_item(SESSION_USER_KEY))["name"] == "New Name"


def test_update_identity_without_user_is_ignored(session, local_storage):
    assert session.update_identity(name="Nobody") is None
    assert local_storage.get_item(SESSION_USER_KEY) is None


@pytest.mark.asyncio
async def test_update_identity_rejects_unknown_fields(session):
    await session.login("test@example.com", "secret")

    with pytest.raises(ValidationError, match="role"):
        session.update_identity(role="admin")

    assert session.current_identity().name == "Test User"
