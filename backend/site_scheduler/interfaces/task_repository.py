"""
Task repository interface.

Defines the contract for task persistence operations.
Implementations: SQLite
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from site_scheduler.models.task import Task


class ITaskRepository(ABC):
    """Abstract interface for task persistence."""

    @abstractmethod
    async def list_for_location(self, location_id: int) -> list[Task]:
        """
        List every task of a location.

        Args:
            location_id: Location ID

        Returns:
            Tasks ordered by (order, id)
        """
        pass

    @abstractmethod
    async def get(self, task_id: int) -> Optional[Task]:
        """
        Get a task by ID.

        Args:
            task_id: Task ID

        Returns:
            Task if found, None otherwise
        """
        pass

    @abstractmethod
    async def apply_changes(
        self,
        location_id: int,
        new_task: Optional[Task] = None,
        updated_tasks: Optional[list[Task]] = None,
        deleted_task_id: Optional[int] = None,
    ) -> Optional[Task]:
        """
        Persist one planned change set atomically.

        Either every write lands or none does.

        Args:
            location_id: Location the change set belongs to
            new_task: Task to create (its id is assigned by the store)
            updated_tasks: Existing tasks to overwrite
            deleted_task_id: Task to delete

        Returns:
            The created task with its assigned ID, or None if nothing was created

        Raises:
            NotFoundError: If an updated or deleted task does not exist in the location
        """
        pass
