"""
Dependency realignment.

Walks an ordered task list once, carrying an anchor date from one scheduling
unit to the next:

- a linked group is one unit dated by its shared date (members are synced to
  the first member's date; their flags are left alone). Members need not be
  adjacent, and every member hands the shared date on as the anchor
- an independent task keeps its date and becomes the anchor
- a dependent task moves to the first working day after the anchor
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from site_scheduler.core.logger import setup_logger
from site_scheduler.models.task import Task
from site_scheduler.utils.datetime_utils import following_workday

logger = setup_logger(__name__)


def realign(tasks: Sequence[Task]) -> list[Task]:
    """
    Recompute every derived date in an ordered task list.

    Args:
        tasks: All tasks of a location, in order

    Returns:
        The full corrected list, same order. Unchanged tasks are returned as
        the same objects, so callers can diff by identity or by value.
    """
    result: list[Task] = []
    group_dates: dict[str, date] = {}
    anchor: Optional[date] = None

    for task in tasks:
        group = task.linked_task_group

        if group:
            shared = group_dates.setdefault(group, task.task_date)
            anchor = shared
            result.append(task if task.task_date == shared else task.model_copy(update={"task_date": shared}))
            continue

        if not task.dependent_on_previous or anchor is None:
            # A leading dependent task has nothing to follow; its date stands.
            anchor = task.task_date
            result.append(task)
            continue

        new_date = following_workday(anchor)
        anchor = new_date
        if new_date == task.task_date:
            result.append(task)
        else:
            logger.debug("Realign task %s: %s -> %s", task.id, task.task_date, new_date)
            result.append(task.model_copy(update={"task_date": new_date}))

    return result


def realigned_changes(tasks: Sequence[Task]) -> list[Task]:
    """Only the tasks whose date realignment changes (what needs to be written)."""
    return [new for old, new in zip(tasks, realign(tasks)) if new.task_date != old.task_date]
