"""
Authenticated-mode task storage on a hosted PostgREST service
"""

from typing import Any, Dict, Iterable, List, Optional

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from todoflow.api.base_client import BaseAPIClient
from todoflow.config.constants import REMOTE_REST_PATH, REMOTE_TODOS_TABLE
from todoflow.config.settings import settings
from todoflow.models.query import RemoteFilter, SortKey, StatsSnapshot
from todoflow.models.task import Task, TaskCreate
from todoflow.services.query_engine import compute_stats
from todoflow.utils.error_handler import NotFoundError, RemoteError, SessionError
from todoflow.utils.logger import logger

# Sort keys whose column name differs on the remote table
_SORT_COLUMNS = {SortKey.TEXT: "title"}

_UPDATES = TypeAdapter(Dict[str, Any])


def _in_filter(task_ids: Iterable[str]) -> str:
    quoted = ",".join(f'"{task_id}"' for task_id in task_ids)
    return f"in.({quoted})"


class RemoteTaskStore(BaseAPIClient):
    """Client for the remote todos table, scoped by the session's access token"""

    def __init__(
        self,
        session,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize remote task store

        Args:
            session: Session context providing the access token and identity
            base_url: Service URL (defaults to SUPABASE_URL)
            api_key: Public API key (defaults to SUPABASE_ANON_KEY)
            transport: Custom httpx transport (optional)
        """
        super().__init__(
            (base_url or settings.SUPABASE_URL) + REMOTE_REST_PATH,
            timeout=settings.REQUEST_TIMEOUT,
            transport=transport,
        )
        self.session = session
        self.api_key = api_key if api_key is not None else settings.SUPABASE_ANON_KEY
        self.endpoint = f"/{REMOTE_TODOS_TABLE}"

    def _get_headers(self, representation: bool = False) -> Dict[str, str]:
        """Get request headers with authentication"""
        token = self.session.access_token
        if not token:
            raise SessionError("Remote task storage requires a signed-in user")

        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        if representation:
            headers["Prefer"] = "return=representation"
        return headers

    @staticmethod
    def _parse_rows(rows: Any) -> List[Task]:
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise RemoteError("Unexpected response: expected a list of rows")
        try:
            return [Task.model_validate(row) for row in rows]
        except PydanticValidationError as e:
            raise RemoteError(f"Malformed task row: {e}") from e

    async def query(self, remote_filter: Optional[RemoteFilter] = None) -> List[Task]:
        """
        Fetch tasks matching the filter, sorted by the service

        Args:
            remote_filter: Equality, title and sort parameters (optional)

        Returns:
            Matching tasks in service order
        """
        remote_filter = remote_filter or RemoteFilter()
        params: Dict[str, str] = {"select": "*"}

        if remote_filter.category:
            params["category"] = f"eq.{remote_filter.category}"

        if remote_filter.priority:
            params["priority"] = f"eq.{remote_filter.priority.value}"

        if remote_filter.completed is not None:
            params["completed"] = f"eq.{str(remote_filter.completed).lower()}"

        if remote_filter.search:
            params["title"] = f"ilike.*{remote_filter.search}*"

        if remote_filter.sort_by:
            column = _SORT_COLUMNS.get(remote_filter.sort_by, remote_filter.sort_by.value)
            params["order"] = f"{column}.{remote_filter.sort_order.value}"

        rows = await self.get(self.endpoint, headers=self._get_headers(), params=params)
        tasks = self._parse_rows(rows)
        self.logger.debug(f"Remote query returned {len(tasks)} tasks")
        return tasks

    async def get_task(self, task_id: str) -> Task:
        """
        Fetch one task by id

        Raises:
            NotFoundError: No task with this id for the current user
        """
        rows = await self.get(
            self.endpoint,
            headers=self._get_headers(),
            params={"select": "*", "id": f"eq.{task_id}"},
        )
        tasks = self._parse_rows(rows)
        if not tasks:
            raise NotFoundError(task_id)
        return tasks[0]

    async def create(self, data: TaskCreate) -> Task:
        """
        Create a task; the service assigns id and timestamps

        Args:
            data: Validated creation input

        Returns:
            Created task
        """
        row = data.model_dump(mode="json")
        identity = self.session.current_identity()
        if identity:
            row["user_id"] = identity.id

        rows = await self.post(
            self.endpoint,
            headers=self._get_headers(representation=True),
            json_data=[row],
        )
        tasks = self._parse_rows(rows)
        if not tasks:
            raise RemoteError("Create returned no task")

        self.logger.info(f"Remote task created: id='{tasks[0].id}', title='{tasks[0].title}'")
        return tasks[0]

    async def update(self, task_id: str, updates: Dict[str, Any]) -> Task:
        """
        Update a task; the service merges and re-stamps

        Args:
            task_id: Task ID
            updates: Fields to overwrite

        Returns:
            Updated task

        Raises:
            NotFoundError: No task with this id for the current user
        """
        rows = await self.patch(
            self.endpoint,
            headers=self._get_headers(representation=True),
            params={"id": f"eq.{task_id}"},
            json_data=_UPDATES.dump_python(updates, mode="json"),
        )
        tasks = self._parse_rows(rows)
        if not tasks:
            raise NotFoundError(task_id)
        return tasks[0]

    async def delete_task(self, task_id: str):
        """Delete a task"""
        await self.delete(
            self.endpoint,
            headers=self._get_headers(),
            params={"id": f"eq.{task_id}"},
        )

    async def delete_many(self, task_ids: List[str]):
        """Delete several tasks in one request"""
        if not task_ids:
            return
        await self.delete(
            self.endpoint,
            headers=self._get_headers(),
            params={"id": _in_filter(task_ids)},
        )
        self.logger.info(f"Remote bulk delete: {len(task_ids)} tasks")

    async def update_many(self, task_ids: List[str], updates: Dict[str, Any]):
        """Apply the same update to several tasks in one request"""
        if not task_ids:
            return
        await self.patch(
            self.endpoint,
            headers=self._get_headers(),
            params={"id": _in_filter(task_ids)},
            json_data=_UPDATES.dump_python(updates, mode="json"),
        )
        self.logger.info(f"Remote bulk update of {len(task_ids)} tasks: {', '.join(updates)}")

    async def aggregate_stats(self) -> StatsSnapshot:
        """
        Compute stats over the full remote collection

        The service has no aggregation endpoint, so the whole table is
        fetched and reduced locally.
        """
        tasks = await self.query()
        return compute_stats(tasks)
