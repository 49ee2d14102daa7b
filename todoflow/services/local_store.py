"""
Guest-mode task storage in a local slot
"""

import json
import random
import string
import time
from typing import Any, Dict, Iterable, List

from pydantic import ValidationError as PydanticValidationError

from todoflow.config.constants import GUEST_ID_PREFIX, GUEST_ID_SUFFIX_LENGTH, GUEST_TODOS_KEY
from todoflow.models.query import BulkAction
from todoflow.models.task import Task, TaskCreate, describe_errors
from todoflow.utils.date_utils import next_timestamp
from todoflow.utils.error_handler import NotFoundError, StorageError, ValidationError
from todoflow.utils.local_storage import LocalStorage
from todoflow.utils.logger import logger


_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_guest_id() -> str:
    """Collision-resistant id: guest_<epoch ms>_<random base36 suffix>"""
    suffix = "".join(random.choices(_ID_ALPHABET, k=GUEST_ID_SUFFIX_LENGTH))
    return f"{GUEST_ID_PREFIX}_{int(time.time() * 1000)}_{suffix}"


class LocalTaskStore:
    """Reads and writes the whole guest collection in one storage slot"""

    def __init__(self, storage: LocalStorage, slot: str = GUEST_TODOS_KEY):
        """
        Initialize local task store

        Args:
            storage: Slot storage
            slot: Slot holding the serialized collection
        """
        self.storage = storage
        self.slot = slot
        self.logger = logger

    async def load_all(self) -> List[Task]:
        """
        Load the full collection

        A missing or unparsable slot loads as an empty collection.

        Returns:
            Stored tasks in stored order
        """
        try:
            blob = self.storage.get_item(self.slot)
            if blob is None:
                return []
            records = json.loads(blob)
            if not isinstance(records, list):
                raise ValueError("stored collection is not a list")
            return [Task.model_validate(record) for record in records]
        except (StorageError, ValueError, PydanticValidationError) as e:
            self.logger.warning(f"Failed to load guest tasks, starting empty: {e}")
            return []

    async def save_all(self, tasks: List[Task]):
        """
        Overwrite the slot with the given collection

        Raises:
            StorageError: Serialization failed or the slot could not be written
        """
        try:
            blob = json.dumps(
                [task.model_dump(mode="json") for task in tasks],
                ensure_ascii=False,
            )
        except (TypeError, ValueError) as e:
            raise StorageError(f"Failed to serialize guest tasks: {e}") from e
        self.storage.set_item(self.slot, blob)
        self.logger.debug(f"Saved {len(tasks)} guest tasks")

    async def insert(self, data: TaskCreate) -> Task:
        """
        Create a task and prepend it to the collection

        Args:
            data: Validated creation input

        Returns:
            Created task
        """
        stamp = next_timestamp()
        task = Task.model_validate({
            **data.model_dump(),
            "id": generate_guest_id(),
            "completed": False,
            "created_at": stamp,
            "updated_at": stamp,
        })
        tasks = await self.load_all()
        tasks.insert(0, task)
        await self.save_all(tasks)
        self.logger.info(f"Guest task created: id='{task.id}', title='{task.title}'")
        return task

    async def get(self, task_id: str) -> Task:
        """Find one stored task, raising NotFoundError if it is missing"""
        for task in await self.load_all():
            if task.id == task_id:
                return task
        raise NotFoundError(task_id)

    async def patch(self, task_id: str, updates: Dict[str, Any]) -> Task:
        """
        Shallow-merge updates over a stored task

        Args:
            task_id: Task ID
            updates: Fields to overwrite

        Returns:
            Merged task

        Raises:
            NotFoundError: No task with this id (nothing is persisted)
            ValidationError: Merged record is not a valid task
        """
        tasks = await self.load_all()
        for index, task in enumerate(tasks):
            if task.id == task_id:
                try:
                    merged = task.merged(updates, next_timestamp(task.updated_at))
                except PydanticValidationError as e:
                    raise ValidationError(describe_errors(e)) from e
                tasks[index] = merged
                await self.save_all(tasks)
                self.logger.debug(f"Guest task updated: {task_id} ({', '.join(updates) or 'no fields'})")
                return merged
        raise NotFoundError(task_id)

    async def remove(self, task_id: str):
        """
        Delete a task

        Args:
            task_id: Task ID
        """
        tasks = await self.load_all()
        remaining = [task for task in tasks if task.id != task_id]
        await self.save_all(remaining)
        self.logger.debug(f"Guest task deleted: {task_id}")

    async def bulk_apply(self, task_ids: Iterable[str], action: BulkAction) -> int:
        """
        Apply one action to many tasks with a single write

        Args:
            task_ids: Target task IDs
            action: "delete", "complete" or "uncomplete"

        Returns:
            Number of tasks affected

        Raises:
            ValueError: Unknown action
        """
        action = BulkAction(action)

        targets = set(task_ids)
        tasks = await self.load_all()
        affected = 0

        if action == BulkAction.DELETE:
            remaining = [task for task in tasks if task.id not in targets]
            affected = len(tasks) - len(remaining)
            tasks = remaining
        else:
            completed = action == BulkAction.COMPLETE
            for index, task in enumerate(tasks):
                if task.id in targets:
                    tasks[index] = task.merged(
                        {"completed": completed},
                        next_timestamp(task.updated_at),
                    )
                    affected += 1

        await self.save_all(tasks)
        self.logger.info(f"Guest bulk {action.value}: {affected} of {len(targets)} tasks affected")
        return affected
