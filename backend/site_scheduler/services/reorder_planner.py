"""
Reorder planning.

Covers drag-and-drop moves within a location and the renumbering pass used
when fractional order keys run out of room.
"""

from __future__ import annotations

from site_scheduler.core.logger import setup_logger
from site_scheduler.models.enums import FirstTaskPolicy, PlanFailureCode
from site_scheduler.models.planning import (
    InsertAfter,
    InsertAtBeginning,
    PlanFailure,
    PlanOutcome,
    Position,
    ScheduleDelta,
)
from site_scheduler.services.insertion_planner import exhausted_failure
from site_scheduler.services.linked_groups import expand_selection
from site_scheduler.services.order_keys import (
    OrderKeyExhausted,
    allocate_order_keys,
    renumbered_keys,
)
from site_scheduler.services.task_snapshot import TaskSource, as_snapshot
from site_scheduler.services.task_utils import build_delta, finalize

logger = setup_logger(__name__)


def _not_found(task_id: int) -> PlanFailure:
    return PlanFailure(
        code=PlanFailureCode.TASK_NOT_FOUND,
        message=f"Task {task_id} not found",
        details={"task_id": task_id},
    )


def _target_index(remaining: list[int], position: Position) -> int:
    """Index in `remaining` the moved unit is inserted at."""
    if isinstance(position, InsertAtBeginning):
        return 0
    if isinstance(position, InsertAfter):
        return remaining.index(position.task_id) + 1
    return len(remaining)


def plan_move(
    tasks: TaskSource,
    task_id: int,
    position: Position,
    *,
    policy: FirstTaskPolicy = FirstTaskPolicy.STRICT,
) -> PlanOutcome:
    """
    Plan moving a task (with its whole linked group) to a new position.

    Rules:
    - completed tasks stay where they are
    - nothing upcoming may be moved in front of a completed task
    - a unit moved to the top takes the displaced first task's date; under the
      strict policy the displaced task becomes dependent and the moved task
      independent

    Args:
        tasks: Current tasks of the location
        task_id: Task being dragged
        position: Where it is dropped
        policy: First-task policy (see FirstTaskPolicy)

    Returns:
        ScheduleDelta (empty if nothing moves) or PlanFailure
    """
    snapshot = as_snapshot(tasks)
    if task_id not in snapshot:
        return _not_found(task_id)
    if isinstance(position, InsertAfter) and position.task_id not in snapshot:
        return _not_found(position.task_id)

    moved = snapshot.get(task_id)
    if moved.is_complete:
        return PlanFailure(
            code=PlanFailureCode.TASK_COMPLETED,
            message="Completed tasks cannot be moved",
            details={"task_id": task_id},
        )

    unit = expand_selection(snapshot, task_id)
    unit_set = set(unit)
    if isinstance(position, InsertAfter) and position.task_id in unit_set:
        return ScheduleDelta()

    target_group = None
    if isinstance(position, InsertAfter):
        target_group = snapshot.get(position.task_id).linked_task_group
    if target_group and snapshot.group_members(target_group)[-1] != position.task_id:
        return PlanFailure(
            code=PlanFailureCode.WOULD_SPLIT_GROUP,
            message="Cannot drop a task inside a linked group; link it instead",
            details={"task_id": task_id, "group": target_group},
        )

    remaining = [t for t in snapshot.ids if t not in unit_set]
    index = _target_index(remaining, position)

    last_complete = max(
        (i for i, t in enumerate(remaining) if snapshot.get(t).is_complete),
        default=-1,
    )
    if last_complete >= index:
        return PlanFailure(
            code=PlanFailureCode.INELIGIBLE_POSITION,
            message="Cannot move a task in front of a completed task",
            details={"task_id": task_id},
        )

    new_ids = remaining[:index] + unit + remaining[index:]
    if tuple(new_ids) == snapshot.ids:
        return ScheduleDelta()

    prev_key = snapshot.get(remaining[index - 1]).order if index > 0 else None
    next_key = snapshot.get(remaining[index]).order if index < len(remaining) else None
    keys = allocate_order_keys(prev_key, next_key, len(unit))
    if isinstance(keys, OrderKeyExhausted):
        return exhausted_failure(keys)

    workset = snapshot.workset()
    workset.reorder(new_ids)
    for member, key in zip(unit, keys):
        workset.update(member, order=key)

    strict = policy == FirstTaskPolicy.STRICT
    if index == 0 and remaining:
        displaced = snapshot.get(remaining[0])
        for member in unit:
            workset.update(member, task_date=displaced.task_date)
        if strict:
            workset.update(displaced.id, dependent_on_previous=True)
            workset.update(unit[0], dependent_on_previous=False)

    finalize(workset, enforce_first=strict)
    delta = build_delta(snapshot, workset)
    logger.debug("Move of %s to index %d touches %d task(s)", unit, index, len(delta.updated_tasks))
    return delta


def plan_renumber(tasks: TaskSource) -> ScheduleDelta:
    """
    Reassign evenly spaced order keys (1.00, 2.00, ...) in the current order.

    Dates, flags and groups are untouched; only tasks whose key changes are returned.
    """
    snapshot = as_snapshot(tasks)
    workset = snapshot.workset()
    for task_id, key in zip(snapshot.ids, renumbered_keys(len(snapshot))):
        if workset.get(task_id).order != key:
            workset.update(task_id, order=key)
    return build_delta(snapshot, workset)
