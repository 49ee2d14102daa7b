"""
Task service: the single entry point for task operations
"""

from typing import Any, Dict, List, Optional, Union

from todoflow.api.remote_store import RemoteTaskStore
from todoflow.models.identity import SessionMode
from todoflow.models.query import (
    BulkAction,
    Projection,
    QuerySpec,
    SortKey,
    SortOrder,
    StatsSnapshot,
    StatusFilter,
)
from todoflow.models.task import Priority, Task, parse_create, parse_update
from todoflow.services.backends import LocalBackend, RemoteBackend, TaskBackend
from todoflow.services.local_store import LocalTaskStore
from todoflow.services.notifier import Notifier
from todoflow.services.session import SessionContext
from todoflow.utils.error_handler import NotFoundError, SessionError, ValidationError
from todoflow.utils.logger import logger


class TaskService:
    """
    Task operations over whichever backend the session selects

    The service keeps the current projection (filtered list and stats of the
    whole collection) and the bulk selection. Every successful mutation
    recomputes the projection before returning. Failures are reported to the
    notifier and re-raised.
    """

    def __init__(
        self,
        session: SessionContext,
        local_store: LocalTaskStore,
        remote_store: RemoteTaskStore,
        notifier: Optional[Notifier] = None,
    ):
        """
        Initialize task service

        Args:
            session: Session context; its mode transitions are followed
            local_store: Guest-mode storage
            remote_store: Authenticated-mode storage
            notifier: Notification side channel (optional)
        """
        self.session = session
        self.local_store = local_store
        self.remote_store = remote_store
        self.notifier = notifier or Notifier()
        self.logger = logger

        self.query = QuerySpec()
        self.tasks: List[Task] = []
        self.stats = StatsSnapshot()
        self.selected: List[str] = []
        self.loading = False

        self._mode: Optional[SessionMode] = None
        self._backend: Optional[TaskBackend] = None
        session.subscribe(self.handle_mode_change)

    @property
    def mode(self) -> Optional[SessionMode]:
        return self._mode

    @property
    def projection(self) -> Projection:
        return Projection(tasks=list(self.tasks), stats=self.stats)

    def _select_backend(self, mode: Optional[SessionMode]) -> Optional[TaskBackend]:
        if mode == SessionMode.GUEST:
            return LocalBackend(self.local_store)
        if mode == SessionMode.AUTHENTICATED:
            return RemoteBackend(self.remote_store)
        return None

    def _require_backend(self) -> TaskBackend:
        if self._backend is None or self.session.current_mode() != self._mode:
            raise SessionError("Sign in or continue as a guest first")
        return self._backend

    def _reset(self):
        self.selected = []
        self.tasks = []
        self.stats = StatsSnapshot()

    async def handle_mode_change(self, mode: Optional[SessionMode]):
        """
        Follow a session transition

        Selection, projection and stats are cleared before the new backend
        is queried.
        """
        self._reset()
        self._mode = mode
        self._backend = self._select_backend(mode)
        self.logger.info(f"Task backend: {type(self._backend).__name__ if self._backend else 'none'}")
        if self._backend is not None:
            await self.refresh()

    async def refresh(self) -> Projection:
        """
        Recompute the visible list and stats in one step

        Returns:
            Current projection (empty when signed out)
        """
        if self._backend is None:
            return self.projection

        self.loading = True
        try:
            projection = await self._backend.projection(self.query)
        except Exception as e:
            self.notifier.error("Failed to fetch todos", e)
            raise
        finally:
            self.loading = False

        self.tasks = projection.tasks
        self.stats = projection.stats
        return projection

    async def get(self, task_id: str) -> Task:
        """
        Fetch one task from the backend, visible in the projection or not

        Raises:
            NotFoundError: No such task
        """
        return await self._require_backend().get(task_id)

    async def add(
        self,
        title: str,
        priority: Union[Priority, str] = Priority.MEDIUM,
        **options: Any,
    ) -> Task:
        """
        Create a task

        Args:
            title: Task title (trimmed, must not be blank)
            priority: low, medium or high
            **options: description, category, category_name, category_color,
                due_date, reminder_date, tags, position, recurrence

        Returns:
            Created task

        Raises:
            ValidationError: Blank title or malformed options (nothing persisted)
        """
        try:
            data = parse_create({"title": title, "priority": priority, **options})
            task = await self._require_backend().create(data)
        except Exception as e:
            self.notifier.error("Failed to create task", e)
            raise

        self.notifier.success("Task created successfully")
        await self.refresh()
        return task

    async def update(self, task_id: str, updates: Dict[str, Any]) -> Task:
        """
        Update task fields

        Args:
            task_id: Task ID
            updates: Fields to change

        Returns:
            Updated task

        Raises:
            ValidationError: Blank title, unknown or immutable fields
            NotFoundError: No such task
        """
        try:
            changes = parse_update(updates).changes()
            task = await self._require_backend().update(task_id, changes)
        except Exception as e:
            self.notifier.error("Failed to update task", e)
            raise

        self.notifier.success("Task updated successfully")
        await self.refresh()
        return task

    async def delete(self, task_id: str):
        """Delete a task and drop it from the selection"""
        try:
            await self._require_backend().delete(task_id)
        except Exception as e:
            self.notifier.error("Failed to delete task", e)
            raise

        self.selected = [selected_id for selected_id in self.selected if selected_id != task_id]
        self.notifier.success("Task deleted successfully")
        await self.refresh()

    async def toggle(self, task_id: str) -> Task:
        """
        Flip the completion flag of a task in the loaded projection

        Raises:
            NotFoundError: Task is not in the current projection
        """
        task = next((loaded for loaded in self.tasks if loaded.id == task_id), None)
        if task is None:
            error = NotFoundError(task_id)
            self.notifier.error("Failed to update task", error)
            raise error
        return await self.update(task_id, {"completed": not task.completed})

    async def bulk_action(self, action: str, task_ids: Optional[List[str]] = None):
        """
        Apply an action to several tasks

        An unknown action does nothing except clear the selection.

        Args:
            action: "delete", "complete" or "uncomplete"
            task_ids: Target IDs (defaults to the current selection)
        """
        task_ids = list(self.selected if task_ids is None else task_ids)

        try:
            bulk_action = BulkAction(action)
        except ValueError:
            self.logger.warning(f"Ignoring unknown bulk action '{action}'")
            self.selected = []
            return

        try:
            await self._require_backend().bulk_apply(task_ids, bulk_action)
        except Exception as e:
            self.notifier.error(f"Failed to perform bulk {action}", e)
            raise

        self.selected = []
        self.notifier.success(f"Bulk {action} completed successfully")
        await self.refresh()

    async def clear_completed(self):
        """Delete every completed task in the loaded projection"""
        completed_ids = [task.id for task in self.tasks if task.completed]
        if completed_ids:
            await self.bulk_action(BulkAction.DELETE.value, completed_ids)

    async def set_query(self, **changes: Any) -> Projection:
        """Change search, status, sort key or direction and refetch"""
        try:
            query = QuerySpec.model_validate({**self.query.model_dump(), **changes})
        except ValueError as e:
            error = ValidationError(f"Invalid query: {e}")
            self.notifier.error("Failed to apply filter", error)
            raise error from e
        self.query = query
        return await self.refresh()

    async def set_filter(self, status: Union[StatusFilter, str]) -> Projection:
        """Change the status filter and refetch"""
        return await self.set_query(status=status)

    async def set_search(self, search: str) -> Projection:
        """Change the search string and refetch"""
        return await self.set_query(search=search)

    async def set_sort(
        self,
        sort_by: Union[SortKey, str],
        sort_order: Optional[Union[SortOrder, str]] = None,
    ) -> Projection:
        """Change the sort key (and optionally direction) and refetch"""
        changes: Dict[str, Any] = {"sort_by": sort_by}
        if sort_order is not None:
            changes["sort_order"] = sort_order
        return await self.set_query(**changes)

    def select(self, task_id: str):
        """Add a task to the selection"""
        if task_id not in self.selected:
            self.selected.append(task_id)

    def toggle_select(self, task_id: str):
        """Add or remove a task from the selection"""
        if task_id in self.selected:
            self.selected.remove(task_id)
        else:
            self.selected.append(task_id)

    def select_all(self):
        """Select every task in the loaded projection"""
        self.selected = [task.id for task in self.tasks]

    def clear_selection(self):
        self.selected = []
