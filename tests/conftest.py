"""
Pytest configuration and fixtures
"""

import os

# Keep test runs from writing log files
os.environ.setdefault("LOG_DIR", "")

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from todoflow.api.auth_client import SupabaseAuthClient
from todoflow.api.remote_store import RemoteTaskStore
from todoflow.models.identity import Identity
from todoflow.models.query import StatsSnapshot
from todoflow.models.task import Task
from todoflow.services.local_store import LocalTaskStore
from todoflow.services.notifier import Notifier
from todoflow.services.session import SessionContext
from todoflow.services.task_service import TaskService
from todoflow.utils.local_storage import LocalStorage

FIXED_NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def test_identity():
    """Signed-in user"""
    return Identity(id="user_123", email="test@example.com", name="Test User")


@pytest.fixture
def local_storage(tmp_path):
    """Local storage with temporary file"""
    return LocalStorage(str(tmp_path / "test_storage.json"))


@pytest.fixture
def local_store(local_storage):
    """Guest task store"""
    return LocalTaskStore(local_storage)


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def mock_auth_client(test_identity):
    """Mock auth client"""
    client = MagicMock(spec=SupabaseAuthClient)
    client.sign_in_with_password = AsyncMock(return_value=("test_token", test_identity))
    client.sign_up = AsyncMock(return_value=("test_token", test_identity))
    client.get_user = AsyncMock(return_value=test_identity)
    client.close = AsyncMock()
    return client


@pytest.fixture
def session(local_storage, mock_auth_client, notifier):
    """Session context with mocked auth"""
    return SessionContext(local_storage, mock_auth_client, notifier=notifier)


@pytest.fixture
def mock_remote_store():
    """Mock remote task store"""
    store = MagicMock(spec=RemoteTaskStore)
    store.query = AsyncMock(return_value=[])
    store.get_task = AsyncMock(return_value=Task(id="remote_task_1", title="Remote Task"))
    store.create = AsyncMock(return_value=Task(id="remote_task_1", title="Remote Task"))
    store.update = AsyncMock(return_value=Task(id="remote_task_1", title="Remote Task", completed=True))
    store.delete_task = AsyncMock(return_value=None)
    store.delete_many = AsyncMock(return_value=None)
    store.update_many = AsyncMock(return_value=None)
    store.aggregate_stats = AsyncMock(return_value=StatsSnapshot())
    store.close = AsyncMock()
    return store


@pytest.fixture
def task_service(session, local_store, mock_remote_store, notifier):
    """Task service with local storage and mocked remote"""
    return TaskService(session, local_store, mock_remote_store, notifier=notifier)


@pytest.fixture
def make_task():
    """Factory for tasks with sensible defaults"""
    counter = {"value": 0}

    def _make(title="Task", **fields):
        counter["value"] += 1
        fields.setdefault("id", f"task_{counter['value']}")
        fields.setdefault("created_at", FIXED_NOW - timedelta(days=10) + timedelta(minutes=counter["value"]))
        fields.setdefault("updated_at", fields["created_at"])
        return Task(title=title, **fields)

    return _make


@pytest.fixture
def sample_tasks(make_task):
    """2 completed, 1 high-priority active, 1 overdue active, 1 plain active"""
    return [
        make_task("Write report", completed=True, priority="high", category="work", category_name="Work", category_color="#2563EB"),
        make_task("Buy milk", completed=True, priority="low"),
        make_task("Fix production bug", priority="high", category="work", category_name="Work", category_color="#2563EB"),
        make_task("Pay rent", due_date=FIXED_NOW - timedelta(days=2), description="Transfer to landlord"),
        make_task("Read a book", due_date=FIXED_NOW + timedelta(days=5), priority="low"),
    ]
