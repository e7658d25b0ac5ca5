"""
Location task API endpoints.

Every write returns the full change set (created, updated and deleted tasks)
so callers can patch their local list without refetching.
"""

from datetime import date

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from site_scheduler.api.deps import ScheduleSvc, TaskRepo
from site_scheduler.core.exceptions import BusinessLogicError, NotFoundError, SchedulerError
from site_scheduler.models.enums import TaskStatus
from site_scheduler.models.planning import (
    InsertAtEnd,
    InsertionIntent,
    LinkSlot,
    LinkTo,
    Position,
    ScheduleDelta,
)
from site_scheduler.models.task import Task, TaskDraft

router = APIRouter()


# ===========================================
# Request bodies
# ===========================================


class InsertTaskRequest(BaseModel):
    task: TaskDraft
    intent: InsertionIntent = Field(default_factory=InsertAtEnd)


class LinkSlotsRequest(BaseModel):
    task_ids: list[int] = Field(..., min_length=1)


class LinkTaskRequest(BaseModel):
    task: TaskDraft
    task_ids: list[int] = Field(..., min_length=1)
    slot_index: int = Field(0, ge=0)


class MoveTaskRequest(BaseModel):
    position: Position


class RescheduleRequest(BaseModel):
    task_date: date


class DependencyRequest(BaseModel):
    dependent_on_previous: bool


class StatusRequest(BaseModel):
    status: TaskStatus


def _http_error(exc: SchedulerError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, BusinessLogicError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": exc.message, **(exc.details or {})},
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)


# ===========================================
# Queries
# ===========================================


@router.get("/{location_id}/tasks", response_model=list[Task])
async def list_tasks(location_id: int, service: ScheduleSvc) -> list[Task]:
    """List the tasks of a location in schedule order."""
    return await service.list_tasks(location_id)


@router.get("/{location_id}/tasks/positions", response_model=list[Position])
async def list_insert_positions(location_id: int, service: ScheduleSvc):
    """Positions a new task may currently be inserted at."""
    return await service.list_insert_positions(location_id)


@router.post("/{location_id}/tasks/link-slots", response_model=list[LinkSlot])
async def list_link_slots(
    location_id: int,
    payload: LinkSlotsRequest,
    service: ScheduleSvc,
) -> list[LinkSlot]:
    """Describe the slots a new task linked to the given tasks could anchor on."""
    try:
        return await service.list_link_slots(location_id, payload.task_ids)
    except SchedulerError as exc:
        raise _http_error(exc) from exc


@router.get("/{location_id}/tasks/{task_id}", response_model=Task)
async def get_task(location_id: int, task_id: int, repo: TaskRepo) -> Task:
    """Get a task by ID."""
    task = await repo.get(task_id)
    if not task or task.location_id != location_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task {task_id} not found",
        )
    return task


# ===========================================
# Commands
# ===========================================


@router.post("/{location_id}/tasks", response_model=ScheduleDelta, status_code=status.HTTP_201_CREATED)
async def insert_task(
    location_id: int,
    payload: InsertTaskRequest,
    service: ScheduleSvc,
) -> ScheduleDelta:
    """Create a task at a position and realign the tasks after it."""
    try:
        return await service.insert_task(location_id, payload.intent, payload.task)
    except SchedulerError as exc:
        raise _http_error(exc) from exc


@router.post("/{location_id}/tasks/link", response_model=ScheduleDelta, status_code=status.HTTP_201_CREATED)
async def link_task(
    location_id: int,
    payload: LinkTaskRequest,
    service: ScheduleSvc,
) -> ScheduleDelta:
    """Create a task on the same day as existing tasks."""
    intent = LinkTo(task_ids=payload.task_ids, slot_index=payload.slot_index)
    try:
        return await service.insert_task(location_id, intent, payload.task)
    except SchedulerError as exc:
        raise _http_error(exc) from exc


@router.post("/{location_id}/tasks/renumber", response_model=ScheduleDelta)
async def renumber_tasks(location_id: int, service: ScheduleSvc) -> ScheduleDelta:
    """Respace the order keys of a location."""
    return await service.renumber(location_id)


@router.post("/{location_id}/tasks/{task_id}/move", response_model=ScheduleDelta)
async def move_task(
    location_id: int,
    task_id: int,
    payload: MoveTaskRequest,
    service: ScheduleSvc,
) -> ScheduleDelta:
    """Move a task (and its linked partners) to another position."""
    try:
        return await service.move_task(location_id, task_id, payload.position)
    except SchedulerError as exc:
        raise _http_error(exc) from exc


@router.patch("/{location_id}/tasks/{task_id}/date", response_model=ScheduleDelta)
async def reschedule_task(
    location_id: int,
    task_id: int,
    payload: RescheduleRequest,
    service: ScheduleSvc,
) -> ScheduleDelta:
    """Give a task an explicit date."""
    try:
        return await service.reschedule_task(location_id, task_id, payload.task_date)
    except SchedulerError as exc:
        raise _http_error(exc) from exc


@router.patch("/{location_id}/tasks/{task_id}/dependency", response_model=ScheduleDelta)
async def set_dependency(
    location_id: int,
    task_id: int,
    payload: DependencyRequest,
    service: ScheduleSvc,
) -> ScheduleDelta:
    """Turn "follows the previous task" on or off."""
    try:
        return await service.set_dependency(location_id, task_id, payload.dependent_on_previous)
    except SchedulerError as exc:
        raise _http_error(exc) from exc


@router.patch("/{location_id}/tasks/{task_id}/status", response_model=Task)
async def update_status(
    location_id: int,
    task_id: int,
    payload: StatusRequest,
    service: ScheduleSvc,
) -> Task:
    try:
        return await service.update_status(location_id, task_id, payload.status)
    except SchedulerError as exc:
        raise _http_error(exc) from exc


@router.post("/{location_id}/tasks/{task_id}/unlink", response_model=ScheduleDelta)
async def unlink_task(
    location_id: int,
    task_id: int,
    service: ScheduleSvc,
) -> ScheduleDelta:
    """Take a task out of its linked group."""
    try:
        return await service.unlink_task(location_id, task_id)
    except SchedulerError as exc:
        raise _http_error(exc) from exc


@router.delete("/{location_id}/tasks/{task_id}", response_model=ScheduleDelta)
async def delete_task(
    location_id: int,
    task_id: int,
    service: ScheduleSvc,
) -> ScheduleDelta:
    """Delete a task and realign what followed it."""
    try:
        return await service.delete_task(location_id, task_id)
    except SchedulerError as exc:
        raise _http_error(exc) from exc
