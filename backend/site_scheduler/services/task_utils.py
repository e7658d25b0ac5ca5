"""
Task utility functions.

Helpers shared by the planners: finalizing a workset, diffing it against the
snapshot it came from, and checking the ordering/date invariants.
"""

from typing import Iterable, Optional

from site_scheduler.models.planning import ScheduleDelta
from site_scheduler.models.task import UNSAVED_TASK_ID, Task
from site_scheduler.services.realignment import realign
from site_scheduler.services.task_snapshot import LocationSnapshot, TaskWorkset
from site_scheduler.utils.datetime_utils import following_workday

TRACKED_FIELDS = ("order", "task_date", "dependent_on_previous", "linked_task_group")


def enforce_first_task_independent(workset: TaskWorkset) -> None:
    """The first task of a location never depends on a predecessor."""
    if len(workset) and workset.at(0).dependent_on_previous:
        workset.update(workset.at(0).id, dependent_on_previous=False)


def realign_workset(workset: TaskWorkset) -> None:
    """Run dependency realignment over the whole workset in place."""
    workset.replace_all(realign(workset.ordered()))


def finalize(workset: TaskWorkset, *, enforce_first: bool = True) -> None:
    """Bring a workset back to a consistent state after structural edits."""
    if enforce_first:
        enforce_first_task_independent(workset)
    realign_workset(workset)


def has_changed(before: Task, after: Task) -> bool:
    """Check whether any scheduling field differs between two versions of a task."""
    return any(getattr(before, name) != getattr(after, name) for name in TRACKED_FIELDS)


def build_delta(
    snapshot: LocationSnapshot,
    workset: TaskWorkset,
    deleted_task_id: Optional[int] = None,
) -> ScheduleDelta:
    """
    Diff a workset against its source snapshot.

    Args:
        snapshot: The original, untouched snapshot
        workset: The planner's edited copy
        deleted_task_id: Task removed by the plan, if any

    Returns:
        ScheduleDelta with the unsaved task (if any) and only the existing
        tasks whose order, date, dependency flag or group actually changed
    """
    new_task: Optional[Task] = None
    updated: list[Task] = []
    for task in workset.ordered():
        if task.id == UNSAVED_TASK_ID:
            new_task = task
            continue
        original = snapshot.get(task.id)
        if original is not None and has_changed(original, task):
            updated.append(task)
    return ScheduleDelta(new_task=new_task, updated_tasks=updated, deleted_task_id=deleted_task_id)


def find_invariant_violations(tasks: Iterable[Task]) -> list[str]:
    """
    Check an ordered task list against the scheduling invariants.

    Checks:
    - the first task is independent
    - members of a linked group share one date
    - ungrouped dependent tasks sit on the working day after the preceding task,
      counting any linked task as its group's shared date
    - order keys strictly increase

    Returns:
        Human-readable violation messages (empty when the list is consistent)
    """
    ordered = list(tasks)
    violations: list[str] = []

    if ordered and ordered[0].dependent_on_previous:
        violations.append(f"first task {ordered[0].id} is dependent on a nonexistent predecessor")

    for previous, current in zip(ordered, ordered[1:]):
        if current.order <= previous.order:
            violations.append(
                f"order of task {current.id} ({current.order}) does not follow "
                f"task {previous.id} ({previous.order})"
            )

    group_dates: dict[str, Task] = {}
    anchor = None
    for task in ordered:
        group = task.linked_task_group
        if group:
            first = group_dates.setdefault(group, task)
            anchor = first.task_date
            if task.task_date != first.task_date:
                violations.append(
                    f"linked task {task.id} is on {task.task_date} but group {group} is on {first.task_date}"
                )
            continue
        if task.dependent_on_previous and anchor is not None:
            expected = following_workday(anchor)
            if task.task_date != expected:
                violations.append(
                    f"dependent task {task.id} is on {task.task_date}, expected {expected}"
                )
        anchor = task.task_date

    return violations
