"""
Linked group management.

Tasks that must happen on the same day share a linked_task_group tag. The
group index lives on the workset, so membership lookups never rescan the
whole list.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Iterable, Optional, Union
from uuid import uuid4

from site_scheduler.core.logger import setup_logger
from site_scheduler.services.task_snapshot import LocationSnapshot, TaskWorkset

logger = setup_logger(__name__)

GroupIdFactory = Callable[[], str]


def new_group_id() -> str:
    """Mint a fresh linked group identifier."""
    return f"group_{uuid4().hex[:12]}"


def expand_selection(
    tasks: Union[LocationSnapshot, TaskWorkset],
    task_id: int,
) -> list[int]:
    """
    Expand a selected task to its whole linked group.

    Args:
        tasks: Snapshot or workset to look in
        task_id: Selected task

    Returns:
        All current members in list order (just [task_id] for an ungrouped task),
        or [] if the task does not exist
    """
    if task_id not in tasks:
        return []
    group = tasks.get(task_id).linked_task_group
    members = list(tasks.group_members(group))
    return members or [task_id]


def expand_selections(
    tasks: Union[LocationSnapshot, TaskWorkset],
    task_ids: Iterable[int],
) -> list[int]:
    """Union of expand_selection over several tasks, deduplicated, in list order."""
    selected: set[int] = set()
    for task_id in task_ids:
        selected.update(expand_selection(tasks, task_id))
    return [task_id for task_id in tasks.ids if task_id in selected]


def link(
    workset: TaskWorkset,
    task_ids: Iterable[int],
    anchor_date: date,
    id_factory: GroupIdFactory = new_group_id,
) -> str:
    """
    Put tasks into one linked group dated anchor_date.

    The first existing group found among the selection (in list order) is
    reused and any other selected groups are merged into it; otherwise a new
    group id is minted. dependent_on_previous is never touched.

    Returns:
        The group id all members now share
    """
    members = expand_selections(workset, task_ids)
    group_id: Optional[str] = next(
        (workset.get(t).linked_task_group for t in members if workset.get(t).linked_task_group),
        None,
    )
    if group_id is None:
        group_id = id_factory()

    for task_id in members:
        workset.update(task_id, linked_task_group=group_id, task_date=anchor_date)

    logger.debug("Linked %s into %s on %s", members, group_id, anchor_date)
    return group_id


def _position_flag(workset: TaskWorkset, task_id: int) -> bool:
    # First task overall has nothing to depend on.
    return workset.index_of(task_id) > 0


def unlink(workset: TaskWorkset, task_id: int) -> list[int]:
    """
    Take a task out of its linked group.

    The task's dependent_on_previous is recomputed from its position. If only
    one member is left behind, that member is ungrouped too and gets the same
    treatment, since a group of one means nothing.

    Returns:
        Ids of every task that left a group (empty if task_id was not grouped)
    """
    task = workset.get(task_id)
    group = task.linked_task_group
    if not group:
        return []

    workset.update(task_id, linked_task_group=None, dependent_on_previous=_position_flag(workset, task_id))
    released = [task_id]

    remaining = workset.group_members(group)
    if len(remaining) == 1:
        sole = remaining[0]
        workset.update(sole, linked_task_group=None, dependent_on_previous=_position_flag(workset, sole))
        released.append(sole)

    logger.debug("Unlinked %s from %s", released, group)
    return released
