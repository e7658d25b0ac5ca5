"""
Schedule service.

Runs every scheduling operation as "read location -> plan -> persist" under a
per-location lock, and turns planner refusals into application exceptions.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from functools import partial
from datetime import date
from typing import Callable, Iterable, Optional

from site_scheduler.core.exceptions import BusinessLogicError, NotFoundError, SchedulerError
from site_scheduler.core.logger import setup_logger
from site_scheduler.interfaces.task_repository import ITaskRepository
from site_scheduler.models.enums import FirstTaskPolicy, PlanFailureCode, TaskStatus
from site_scheduler.models.planning import (
    InsertionIntent,
    LinkSlot,
    LinkTo,
    PlanFailure,
    PlanOutcome,
    Position,
    ScheduleDelta,
)
from site_scheduler.models.task import Task, TaskDraft
from site_scheduler.services.deletion_planner import plan_deletion
from site_scheduler.services.edit_planner import plan_reschedule, plan_set_dependency, plan_unlink
from site_scheduler.services.insertion_planner import (
    enumerate_insert_positions,
    enumerate_link_slots,
    plan_insertion,
)
from site_scheduler.services.linked_groups import GroupIdFactory, expand_selections
from site_scheduler.services.reorder_planner import plan_move, plan_renumber
from site_scheduler.services.task_snapshot import LocationSnapshot
from site_scheduler.services.task_utils import find_invariant_violations

logger = setup_logger(__name__)

Planner = Callable[[LocationSnapshot], PlanOutcome]
Check = Callable[[LocationSnapshot], None]


def failure_to_error(failure: PlanFailure) -> SchedulerError:
    """Map a planner refusal to the exception raised at the service boundary."""
    details = {"code": failure.code.value, **failure.details}
    if failure.code == PlanFailureCode.TASK_NOT_FOUND:
        return NotFoundError(failure.message, details=details)
    return BusinessLogicError(failure.message, details=details)


def apply_delta(snapshot: LocationSnapshot, delta: ScheduleDelta) -> LocationSnapshot:
    """The location as it looks once a delta has been persisted."""
    replaced = {t.id: t for t in delta.updated_tasks}
    tasks = [
        replaced.get(t.id, t) for t in snapshot if t.id != delta.deleted_task_id
    ]
    if delta.new_task is not None:
        tasks.append(delta.new_task)
    return LocationSnapshot(tasks)


def merge_deltas(first: ScheduleDelta, second: ScheduleDelta) -> ScheduleDelta:
    """Combine two consecutive deltas into one change set; later versions of a task win."""
    updated = {t.id: t for t in first.updated_tasks}
    updated.update((t.id, t) for t in second.updated_tasks)
    updated.pop(second.deleted_task_id, None)
    return ScheduleDelta(
        new_task=second.new_task,
        updated_tasks=list(updated.values()),
        deleted_task_id=second.deleted_task_id,
    )


class ScheduleService:
    """Service for ordering and dating the tasks of a location."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        policy: FirstTaskPolicy = FirstTaskPolicy.STRICT,
        id_factory: Optional[GroupIdFactory] = None,
    ):
        self.task_repo = task_repo
        self.policy = policy
        self.id_factory = id_factory
        self._locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    # ===========================================
    # Queries
    # ===========================================

    async def _snapshot(self, location_id: int) -> LocationSnapshot:
        return LocationSnapshot(await self.task_repo.list_for_location(location_id))

    async def list_tasks(self, location_id: int) -> list[Task]:
        """Tasks of a location in schedule order."""
        return (await self._snapshot(location_id)).ordered()

    async def list_insert_positions(self, location_id: int) -> list[Position]:
        return enumerate_insert_positions(await self._snapshot(location_id))

    async def list_link_slots(self, location_id: int, task_ids: Iterable[int]) -> list[LinkSlot]:
        """
        Slots a new linked task could anchor on.

        Raises:
            NotFoundError: If a target is not a task of the location
            BusinessLogicError: If there are no targets or every target is complete
        """
        snapshot = await self._snapshot(location_id)
        self._check_link_targets(snapshot, list(task_ids))
        return enumerate_link_slots(snapshot, task_ids)

    def _check_link_targets(self, snapshot: LocationSnapshot, task_ids: list[int]) -> None:
        if not task_ids:
            raise BusinessLogicError("At least one task is required to link to")
        missing = [t for t in task_ids if t not in snapshot]
        if missing:
            raise NotFoundError(f"Task {missing[0]} not found", details={"task_ids": missing})
        targets = [snapshot.get(t) for t in expand_selections(snapshot, task_ids)]
        if all(t.is_complete for t in targets):
            raise BusinessLogicError(
                "Cannot link a new task to completed tasks",
                details={"task_ids": task_ids},
            )

    # ===========================================
    # Commands
    # ===========================================

    async def _run(
        self,
        location_id: int,
        action: str,
        planner: Planner,
        check: Optional[Check] = None,
    ) -> ScheduleDelta:
        """
        Plan and persist one operation while holding the location's lock.

        When order keys run out the location is renumbered and the plan retried
        once. The renumber is written together with the retried plan, so a
        refused retry leaves the stored keys untouched.
        """
        async with self._locks[location_id]:
            stored = snapshot = await self._snapshot(location_id)
            if check is not None:
                check(snapshot)
            outcome = planner(snapshot)

            renumbered: Optional[ScheduleDelta] = None
            if isinstance(outcome, PlanFailure) and outcome.code == PlanFailureCode.ORDER_KEYS_EXHAUSTED:
                logger.info("Order keys exhausted in location %s, renumbering before retry", location_id)
                renumbered = plan_renumber(snapshot)
                snapshot = apply_delta(snapshot, renumbered)
                outcome = planner(snapshot)

            if isinstance(outcome, PlanFailure):
                logger.info("%s refused in location %s: %s", action, location_id, outcome.message)
                raise failure_to_error(outcome)

            if renumbered is not None:
                outcome = merge_deltas(renumbered, outcome)
                snapshot = stored
            if outcome.is_empty:
                return outcome

            created = await self.task_repo.apply_changes(
                location_id,
                new_task=outcome.new_task,
                updated_tasks=outcome.updated_tasks,
                deleted_task_id=outcome.deleted_task_id,
            )
            delta = outcome.model_copy(update={"new_task": created}) if created else outcome

            logger.info(
                "%s in location %s: created=%s updated=%d deleted=%s",
                action,
                location_id,
                created.id if created else None,
                len(delta.updated_tasks),
                delta.deleted_task_id,
            )
            for violation in find_invariant_violations(apply_delta(snapshot, delta)):
                logger.warning("Location %s after %s: %s", location_id, action, violation)
            return delta

    async def insert_task(
        self,
        location_id: int,
        intent: InsertionIntent,
        draft: TaskDraft,
    ) -> ScheduleDelta:
        """
        Create a task at a position (or linked to other tasks).

        Returns:
            The persisted change set; new_task carries the assigned ID

        Raises:
            NotFoundError: If a referenced task does not exist
            BusinessLogicError: If the position or link is not allowed
        """
        check = None
        if isinstance(intent, LinkTo):
            check = partial(self._check_link_targets, task_ids=intent.task_ids)

        return await self._run(
            location_id,
            "insert",
            lambda snapshot: plan_insertion(
                snapshot,
                intent,
                draft,
                location_id=location_id,
                id_factory=self.id_factory,
            ),
            check,
        )

    async def move_task(self, location_id: int, task_id: int, position: Position) -> ScheduleDelta:
        return await self._run(
            location_id,
            "move",
            lambda snapshot: plan_move(snapshot, task_id, position, policy=self.policy),
        )

    async def reschedule_task(self, location_id: int, task_id: int, new_date: date) -> ScheduleDelta:
        return await self._run(
            location_id,
            "reschedule",
            lambda snapshot: plan_reschedule(snapshot, task_id, new_date),
        )

    async def set_dependency(self, location_id: int, task_id: int, dependent: bool) -> ScheduleDelta:
        return await self._run(
            location_id,
            "set_dependency",
            lambda snapshot: plan_set_dependency(snapshot, task_id, dependent),
        )

    async def unlink_task(self, location_id: int, task_id: int) -> ScheduleDelta:
        return await self._run(
            location_id,
            "unlink",
            lambda snapshot: plan_unlink(snapshot, task_id),
        )

    async def delete_task(self, location_id: int, task_id: int) -> ScheduleDelta:
        return await self._run(
            location_id,
            "delete",
            lambda snapshot: plan_deletion(snapshot, task_id),
        )

    async def renumber(self, location_id: int) -> ScheduleDelta:
        return await self._run(location_id, "renumber", plan_renumber)

    async def update_status(self, location_id: int, task_id: int, status: TaskStatus) -> Task:
        """
        Change a task's progress status.

        Status does not move dates, but it decides where new tasks may go.

        Raises:
            NotFoundError: If the task is not in the location
        """
        async with self._locks[location_id]:
            snapshot = await self._snapshot(location_id)
            task = snapshot.get(task_id)
            if task is None:
                raise NotFoundError(f"Task {task_id} not found", details={"task_id": task_id})
            if task.status == status:
                return task
            updated = task.model_copy(update={"status": status})
            await self.task_repo.apply_changes(location_id, updated_tasks=[updated])
            logger.info("Task %s in location %s is now %s", task_id, location_id, status.value)
            return updated
