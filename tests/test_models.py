"""
Tests for task models
"""

import pytest
from datetime import datetime, timedelta, timezone
from pydantic import ValidationError as PydanticValidationError
from todoflow.models.query import QuerySpec, RemoteFilter, SortKey, SortOrder, StatusFilter
from todoflow.models.task import Priority, Recurrence, Task, parse_create, parse_update
from todoflow.utils.date_utils import next_timestamp
from todoflow.utils.error_handler import ValidationError


def test_create_defaults():
    data = parse_create({"title": "  Plan trip  "})
    assert data.title == "Plan trip"
    assert data.priority == Priority.MEDIUM
    assert data.recurrence == Recurrence.NONE
    assert data.tags == []


@pytest.mark.parametrize("title", ["", "   ", "\t\n"])
def test_create_rejects_blank_title(title):
    with pytest.raises(ValidationError, match="title"):
        parse_create({"title": title})


def test_create_rejects_unknown_priority():
    with pytest.raises(ValidationError):
        parse_create({"title": "Task", "priority": "urgent"})


def test_tags_are_deduplicated_case_sensitive():
    data = parse_create({"title": "Task", "tags": ["home", "Home", "home", "errand"]})
    assert data.tags == ["home", "Home", "errand"]


def test_update_only_reports_set_fields():
    update = parse_update({"completed": True, "description": None})
    assert update.changes() == {"completed": True, "description": None}


def test_update_rejects_blank_title_and_immutable_fields():
    with pytest.raises(ValidationError):
        parse_update({"title": "  "})
    with pytest.raises(ValidationError):
        parse_update({"id": "other"})
    with pytest.raises(ValidationError):
        parse_update({"created_at": "2024-01-01T00:00:00Z"})


def test_task_accepts_text_key_and_naive_dates():
    """Rows written by the web client use "text" for the title"""
    task = Task.model_validate({
        "id": "t1",
        "text": "Legacy row",
        "due_date": "2024-05-01T10:00:00",
        "recurrence": None,
    })
    assert task.title == "Legacy row"
    assert task.due_date.tzinfo is not None
    assert task.recurrence == Recurrence.NONE


def test_task_rejects_updated_before_created():
    created = datetime(2024, 1, 2, tzinfo=timezone.utc)
    with pytest.raises(PydanticValidationError):
        Task(id="t1", title="Task", created_at=created, updated_at=created - timedelta(days=1))


def test_task_equality_by_id():
    assert Task(id="t1", title="One") == Task(id="t1", title="Renamed")
    assert Task(id="t1", title="One") != Task(id="t2", title="One")
    assert len({Task(id="t1", title="One"), Task(id="t1", title="Two")}) == 1


def test_merged_keeps_identity_and_restamps():
    task = Task(id="t1", title="Task")
    stamp = next_timestamp(task.updated_at)
    merged = task.merged({"completed": True, "id": "hijack"}, stamp)
    assert merged.id == "t1"
    assert merged.completed is True
    assert merged.created_at == task.created_at
    assert merged.updated_at == stamp > task.updated_at


def test_next_timestamp_is_strictly_later():
    future = datetime.now(timezone.utc) + timedelta(hours=1)
    assert next_timestamp(future) > future


def test_remote_filter_from_query():
    remote = RemoteFilter.from_query(QuerySpec(status=StatusFilter.HIGH_PRIORITY, search="bug"))
    assert remote.priority == Priority.HIGH
    assert remote.completed is False
    assert remote.search == "bug"

    overdue = RemoteFilter.from_query(QuerySpec(status="overdue"))
    assert overdue.completed is False
    assert overdue.priority is None

    completed = RemoteFilter.from_query(QuerySpec(status="completed", sort_by="text", sort_order="asc"))
    assert completed.completed is True
    assert completed.sort_by == SortKey.TEXT
    assert completed.sort_order == SortOrder.ASC

    everything = RemoteFilter.from_query(QuerySpec())
    assert everything.completed is None
    assert everything.search is None
