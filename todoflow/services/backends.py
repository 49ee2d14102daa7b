"""
Storage backends behind the task service
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from todoflow.api.remote_store import RemoteTaskStore
from todoflow.models.query import BulkAction, Projection, QuerySpec, RemoteFilter
from todoflow.models.task import Task, TaskCreate
from todoflow.services.local_store import LocalTaskStore
from todoflow.services.query_engine import apply_query, filter_tasks, sort_tasks
from todoflow.utils.logger import logger


class TaskBackend(ABC):
    """Capabilities shared by guest and authenticated storage"""

    @abstractmethod
    async def get(self, task_id: str) -> Task:
        """Fetch one task"""

    @abstractmethod
    async def create(self, data: TaskCreate) -> Task:
        """Persist a new task"""

    @abstractmethod
    async def update(self, task_id: str, changes: Dict[str, Any]) -> Task:
        """Merge changes into an existing task"""

    @abstractmethod
    async def delete(self, task_id: str):
        """Delete one task"""

    @abstractmethod
    async def bulk_apply(self, task_ids: List[str], action: BulkAction):
        """Apply one action to many tasks as a single call"""

    @abstractmethod
    async def projection(self, query: QuerySpec, now: Optional[datetime] = None) -> Projection:
        """Visible list for the query plus stats of the whole collection"""


class LocalBackend(TaskBackend):
    """Guest mode: the whole collection is local, the query engine does all the work"""

    def __init__(self, store: LocalTaskStore):
        self.store = store
        self.logger = logger

    async def get(self, task_id: str) -> Task:
        return await self.store.get(task_id)

    async def create(self, data: TaskCreate) -> Task:
        return await self.store.insert(data)

    async def update(self, task_id: str, changes: Dict[str, Any]) -> Task:
        return await self.store.patch(task_id, changes)

    async def delete(self, task_id: str):
        await self.store.remove(task_id)

    async def bulk_apply(self, task_ids: List[str], action: BulkAction):
        await self.store.bulk_apply(task_ids, action)

    async def projection(self, query: QuerySpec, now: Optional[datetime] = None) -> Projection:
        tasks = await self.store.load_all()
        return apply_query(tasks, query, now)


class RemoteBackend(TaskBackend):
    """
    Authenticated mode: the service filters and sorts, stats come from a full fetch

    Rows returned by the service are passed through the query engine once
    more. This applies the due-date half of the overdue filter, which has no
    remote parameter, and orders priority and text the same way guest mode
    does.
    """

    def __init__(self, store: RemoteTaskStore):
        self.store = store
        self.logger = logger

    async def get(self, task_id: str) -> Task:
        return await self.store.get_task(task_id)

    async def create(self, data: TaskCreate) -> Task:
        return await self.store.create(data)

    async def update(self, task_id: str, changes: Dict[str, Any]) -> Task:
        return await self.store.update(task_id, changes)

    async def delete(self, task_id: str):
        await self.store.delete_task(task_id)

    async def bulk_apply(self, task_ids: List[str], action: BulkAction):
        action = BulkAction(action)
        if action == BulkAction.DELETE:
            await self.store.delete_many(task_ids)
        else:
            await self.store.update_many(task_ids, {"completed": action == BulkAction.COMPLETE})

    async def projection(self, query: QuerySpec, now: Optional[datetime] = None) -> Projection:
        rows = await self.store.query(RemoteFilter.from_query(query))
        view = sort_tasks(filter_tasks(rows, query, now), query.sort_by, query.sort_order)
        stats = await self.store.aggregate_stats()
        return Projection(tasks=view, stats=stats)
