"""
Unit tests for Task repository.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import text

from site_scheduler.core.exceptions import InfrastructureError, NotFoundError
from site_scheduler.infrastructure.local.task_repository import SqliteTaskRepository
from site_scheduler.models.enums import TaskStatus
from site_scheduler.models.task import Task

MON = date(2024, 3, 4)
TUE = date(2024, 3, 5)


def _new(location_id: int, name: str, order: str, task_date: date = MON, **fields) -> Task:
    return Task(location_id=location_id, name=name, order=Decimal(order), task_date=task_date, **fields)


@pytest.mark.asyncio
async def test_create_task(session_factory, location_id):
    """Test creating a task through a change set."""
    repo = SqliteTaskRepository(session_factory=session_factory)

    created = await repo.apply_changes(
        location_id,
        new_task=_new(location_id, "Excavation", "1.00", dependent_on_previous=False),
    )

    assert created.id > 0
    assert created.name == "Excavation"
    assert created.order == Decimal("1.00")
    assert created.task_date == MON
    assert created.dependent_on_previous is False
    assert created.status == TaskStatus.UPCOMING


@pytest.mark.asyncio
async def test_list_for_location_is_ordered_and_scoped(session_factory, location_id):
    """Test listing tasks of one location in key order."""
    repo = SqliteTaskRepository(session_factory=session_factory)
    await repo.apply_changes(location_id, new_task=_new(location_id, "Second", "2.00"))
    await repo.apply_changes(location_id, new_task=_new(location_id, "First", "0.50"))
    await repo.apply_changes(location_id + 1, new_task=_new(location_id + 1, "Elsewhere", "1.00"))

    tasks = await repo.list_for_location(location_id)

    assert [t.name for t in tasks] == ["First", "Second"]
    assert all(t.location_id == location_id for t in tasks)


@pytest.mark.asyncio
async def test_get_task(session_factory, location_id):
    """Test getting a task by ID."""
    repo = SqliteTaskRepository(session_factory=session_factory)
    created = await repo.apply_changes(location_id, new_task=_new(location_id, "Framing", "1.00"))

    assert await repo.get(created.id) == created
    assert await repo.get(9999) is None


@pytest.mark.asyncio
async def test_apply_changes_updates_and_deletes_together(session_factory, location_id):
    """Test a mixed change set."""
    repo = SqliteTaskRepository(session_factory=session_factory)
    first = await repo.apply_changes(location_id, new_task=_new(location_id, "A", "1.00"))
    second = await repo.apply_changes(location_id, new_task=_new(location_id, "B", "2.00"))

    created = await repo.apply_changes(
        location_id,
        new_task=_new(location_id, "C", "3.00", linked_task_group="grp"),
        updated_tasks=[second.model_copy(update={"task_date": TUE, "linked_task_group": "grp"})],
        deleted_task_id=first.id,
    )

    tasks = await repo.list_for_location(location_id)
    assert [t.id for t in tasks] == [second.id, created.id]
    assert tasks[0].task_date == TUE
    assert tasks[0].linked_task_group == "grp"
    assert tasks[1].linked_task_group == "grp"


@pytest.mark.asyncio
async def test_apply_changes_without_new_task_returns_none(session_factory, location_id):
    repo = SqliteTaskRepository(session_factory=session_factory)
    task = await repo.apply_changes(location_id, new_task=_new(location_id, "A", "1.00"))

    result = await repo.apply_changes(
        location_id,
        updated_tasks=[task.model_copy(update={"status": TaskStatus.COMPLETE})],
    )

    assert result is None
    assert (await repo.get(task.id)).status == TaskStatus.COMPLETE


@pytest.mark.asyncio
async def test_apply_changes_is_all_or_nothing(session_factory, location_id):
    """A change set touching a missing task writes nothing."""
    repo = SqliteTaskRepository(session_factory=session_factory)
    task = await repo.apply_changes(location_id, new_task=_new(location_id, "A", "1.00"))

    with pytest.raises(NotFoundError):
        await repo.apply_changes(
            location_id,
            new_task=_new(location_id, "B", "2.00"),
            updated_tasks=[task.model_copy(update={"task_date": TUE})],
            deleted_task_id=9999,
        )

    tasks = await repo.list_for_location(location_id)
    assert [t.name for t in tasks] == ["A"]
    assert tasks[0].task_date == MON


@pytest.mark.asyncio
async def test_apply_changes_rejects_task_of_other_location(session_factory, location_id):
    repo = SqliteTaskRepository(session_factory=session_factory)
    other = await repo.apply_changes(location_id + 1, new_task=_new(location_id + 1, "X", "1.00"))

    with pytest.raises(NotFoundError):
        await repo.apply_changes(location_id, deleted_task_id=other.id)


@pytest.mark.asyncio
async def test_apply_changes_wraps_database_failures(session_factory, location_id):
    """Test that a rejected write surfaces as an infrastructure error."""
    repo = SqliteTaskRepository(session_factory=session_factory)
    async with session_factory() as session:
        await session.execute(text("DROP TABLE tasks"))
        await session.commit()

    with pytest.raises(InfrastructureError) as exc_info:
        await repo.apply_changes(location_id, new_task=_new(location_id, "Roofing", "1.00"))

    assert f"location {location_id}" in exc_info.value.message
