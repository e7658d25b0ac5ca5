"""
Edit planning for existing tasks: date changes, dependency toggles and unlinking.
"""

from __future__ import annotations

from datetime import date

from site_scheduler.core.logger import setup_logger
from site_scheduler.models.enums import PlanFailureCode
from site_scheduler.models.planning import PlanFailure, PlanOutcome, ScheduleDelta
from site_scheduler.services.linked_groups import expand_selection, unlink
from site_scheduler.services.task_snapshot import TaskSource, as_snapshot
from site_scheduler.services.task_utils import build_delta, finalize

logger = setup_logger(__name__)


def _not_found(task_id: int) -> PlanFailure:
    return PlanFailure(
        code=PlanFailureCode.TASK_NOT_FOUND,
        message=f"Task {task_id} not found",
        details={"task_id": task_id},
    )


def plan_reschedule(tasks: TaskSource, task_id: int, new_date: date) -> PlanOutcome:
    """
    Plan an explicit date change.

    Linked partners move with the task. An ungrouped dependent task given an
    explicit date stops following its predecessor, otherwise realignment
    would immediately undo the edit.

    Args:
        tasks: Current tasks of the location
        task_id: Task being rescheduled
        new_date: Requested date

    Returns:
        ScheduleDelta or PlanFailure
    """
    snapshot = as_snapshot(tasks)
    if task_id not in snapshot:
        return _not_found(task_id)

    task = snapshot.get(task_id)
    workset = snapshot.workset()
    if task.linked_task_group:
        for member in expand_selection(snapshot, task_id):
            workset.update(member, task_date=new_date)
    else:
        workset.update(task_id, task_date=new_date, dependent_on_previous=False)

    finalize(workset)
    delta = build_delta(snapshot, workset)
    logger.debug("Reschedule of %s to %s touches %d task(s)", task_id, new_date, len(delta.updated_tasks))
    return delta


def plan_set_dependency(tasks: TaskSource, task_id: int, dependent: bool) -> PlanOutcome:
    """
    Plan a toggle of dependent_on_previous.

    Turning the flag on for the first task is a no-op: it has nothing to follow.
    """
    snapshot = as_snapshot(tasks)
    if task_id not in snapshot:
        return _not_found(task_id)
    if snapshot.get(task_id).dependent_on_previous == dependent:
        return ScheduleDelta()

    workset = snapshot.workset()
    workset.update(task_id, dependent_on_previous=dependent)
    finalize(workset)
    return build_delta(snapshot, workset)


def plan_unlink(tasks: TaskSource, task_id: int) -> PlanOutcome:
    """
    Plan removing a task from its linked group.

    Returns:
        ScheduleDelta (empty when the task is not grouped) or PlanFailure
    """
    snapshot = as_snapshot(tasks)
    if task_id not in snapshot:
        return _not_found(task_id)
    if not snapshot.get(task_id).linked_task_group:
        return ScheduleDelta()

    workset = snapshot.workset()
    released = unlink(workset, task_id)
    finalize(workset)
    delta = build_delta(snapshot, workset)
    logger.debug("Unlink of %s released %s", task_id, released)
    return delta
