"""
SQLite implementation of Task repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError

from site_scheduler.core.exceptions import InfrastructureError, NotFoundError
from site_scheduler.infrastructure.local.database import TaskORM, get_session_factory
from site_scheduler.interfaces.task_repository import ITaskRepository
from site_scheduler.models.enums import TaskStatus
from site_scheduler.models.task import Task


class SqliteTaskRepository(ITaskRepository):
    """SQLite implementation of task repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: TaskORM) -> Task:
        """Convert ORM object to Pydantic model."""
        return Task(
            id=orm.id,
            location_id=orm.location_id,
            name=orm.name,
            task_type=orm.task_type,
            order=orm.order,
            task_date=orm.task_date,
            dependent_on_previous=bool(orm.dependent_on_previous),
            linked_task_group=orm.linked_task_group,
            status=TaskStatus(orm.status),
            work_description=orm.work_description,
            notes=orm.notes,
        )

    @staticmethod
    def _copy_fields(orm: TaskORM, task: Task) -> None:
        orm.name = task.name
        orm.task_type = task.task_type
        orm.order = task.order
        orm.task_date = task.task_date
        orm.dependent_on_previous = task.dependent_on_previous
        orm.linked_task_group = task.linked_task_group
        orm.status = task.status.value
        orm.work_description = task.work_description
        orm.notes = task.notes

    async def list_for_location(self, location_id: int) -> list[Task]:
        """List tasks of a location in schedule order."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM)
                .where(TaskORM.location_id == location_id)
                .order_by(TaskORM.order.asc(), TaskORM.id.asc())
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def get(self, task_id: int) -> Optional[Task]:
        """Get a task by ID."""
        async with self._session_factory() as session:
            result = await session.execute(select(TaskORM).where(TaskORM.id == task_id))
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def apply_changes(
        self,
        location_id: int,
        new_task: Optional[Task] = None,
        updated_tasks: Optional[list[Task]] = None,
        deleted_task_id: Optional[int] = None,
    ) -> Optional[Task]:
        """
        Persist a change set in a single transaction.

        Raises:
            NotFoundError: If an updated or deleted task is not in the location
            InfrastructureError: If the database rejects the write (nothing is kept)
        """
        updated_tasks = updated_tasks or []
        async with self._session_factory() as session:
            touched_ids = [t.id for t in updated_tasks]
            if deleted_task_id is not None:
                touched_ids.append(deleted_task_id)

            rows: dict[int, TaskORM] = {}
            if touched_ids:
                result = await session.execute(
                    select(TaskORM).where(
                        and_(TaskORM.id.in_(touched_ids), TaskORM.location_id == location_id)
                    )
                )
                rows = {orm.id: orm for orm in result.scalars().all()}

            missing = [task_id for task_id in touched_ids if task_id not in rows]
            if missing:
                await session.rollback()
                raise NotFoundError(
                    f"Task {missing[0]} not found in location {location_id}",
                    details={"task_ids": missing},
                )

            now = datetime.utcnow()
            for task in updated_tasks:
                orm = rows[task.id]
                self._copy_fields(orm, task)
                orm.updated_at = now

            if deleted_task_id is not None:
                await session.delete(rows[deleted_task_id])

            created: Optional[TaskORM] = None
            if new_task is not None:
                created = TaskORM(location_id=location_id)
                self._copy_fields(created, new_task)
                session.add(created)

            try:
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise InfrastructureError(f"Failed to save changes for location {location_id}: {e}")

            if created is None:
                return None
            await session.refresh(created)
            return self._orm_to_model(created)
