"""
Insertion planning.

Turns "create this task here" into the new task record plus the updates its
neighbors need so that ordering, linked dates and dependent dates all stay
consistent.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from site_scheduler.core.logger import setup_logger
from site_scheduler.models.enums import PlanFailureCode, SlotKind
from site_scheduler.models.planning import (
    InsertAfter,
    InsertAtBeginning,
    InsertAtEnd,
    InsertionIntent,
    LinkSlot,
    LinkTo,
    PlanFailure,
    PlanOutcome,
    Position,
)
from site_scheduler.models.task import UNSAVED_TASK_ID, Task, TaskDraft
from site_scheduler.services.linked_groups import (
    GroupIdFactory,
    expand_selections,
    link,
    new_group_id,
)
from site_scheduler.services.order_keys import OrderKeyExhausted, allocate_order_key
from site_scheduler.services.task_snapshot import LocationSnapshot, TaskSource, as_snapshot
from site_scheduler.services.task_utils import build_delta, finalize
from site_scheduler.utils.datetime_utils import following_workday

logger = setup_logger(__name__)


def unit_end_index(snapshot: LocationSnapshot, task_id: int) -> int:
    """Index of the last task of the unit (task or whole linked group) containing task_id."""
    members = snapshot.group_members(snapshot.get(task_id).linked_task_group)
    if not members:
        return snapshot.index_of(task_id)
    return max(snapshot.index_of(m) for m in members)


def exhausted_failure(result: OrderKeyExhausted) -> PlanFailure:
    return PlanFailure(
        code=PlanFailureCode.ORDER_KEYS_EXHAUSTED,
        message="No order key is left between the neighboring tasks; renumber the location",
        details={"prev_key": str(result.prev_key), "next_key": str(result.next_key)},
    )


def _not_found(task_id) -> PlanFailure:
    return PlanFailure(
        code=PlanFailureCode.TASK_NOT_FOUND,
        message=f"Task {task_id} not found",
        details={"task_id": task_id},
    )


def _missing_date() -> PlanFailure:
    return PlanFailure(
        code=PlanFailureCode.MISSING_TASK_DATE,
        message="A date is required for a task that does not follow another task",
    )


def _ineligible(reason: str) -> PlanFailure:
    return PlanFailure(code=PlanFailureCode.INELIGIBLE_POSITION, message=reason)


# ===========================================
# Position and slot enumeration
# ===========================================


def enumerate_insert_positions(tasks: TaskSource) -> list[Position]:
    """
    List the positions a new task may be inserted at.

    Nothing may go before the most recently completed task, so "beginning" is
    offered only while no task is complete. "after" is offered once per
    scheduling unit (after the last member of a linked group).
    """
    snapshot = as_snapshot(tasks)
    last_complete = snapshot.last_complete_index()
    positions: list[Position] = []

    if last_complete < 0:
        positions.append(InsertAtBeginning())

    for index, task_id in enumerate(snapshot.ids):
        if index < last_complete or unit_end_index(snapshot, task_id) != index:
            continue
        positions.append(InsertAfter(task_id=task_id))

    positions.append(InsertAtEnd())
    return positions


def enumerate_link_slots(tasks: TaskSource, target_ids: Iterable[int]) -> list[LinkSlot]:
    """
    Describe where the link targets sit so the caller can pick an anchor date.

    Targets are expanded to whole linked groups and scanned in list order:
    - a run of consecutive dependent targets is one sequential-group slot
    - a non-first independent target followed by exactly one dependent
      target is a special unsequential pair
    - anything else is a slot of its own, tagged by its own flag

    The new task lands right after a slot's last task, so slots ending before
    the most recently completed task are not offered.
    """
    snapshot = as_snapshot(tasks)
    targets = [snapshot.get(t) for t in expand_selections(snapshot, target_ids)]
    last_complete = snapshot.last_complete_index()
    slots: list[LinkSlot] = []

    def add(kind: SlotKind, members: list[Task]) -> None:
        if snapshot.index_of(members[-1].id) < last_complete:
            return
        slots.append(
            LinkSlot(
                index=len(slots),
                kind=kind,
                task_ids=[m.id for m in members],
                anchor_date=members[0].task_date,
            )
        )

    def dependent_at(i: int) -> bool:
        return i < len(targets) and targets[i].dependent_on_previous

    i = 0
    while i < len(targets):
        current = targets[i]
        if current.dependent_on_previous and dependent_at(i + 1):
            j = i
            while dependent_at(j):
                j += 1
            add(SlotKind.SEQUENTIAL_GROUP, targets[i:j])
            i = j
        elif (
            not current.dependent_on_previous
            and snapshot.index_of(current.id) > 0
            and dependent_at(i + 1)
            and not dependent_at(i + 2)
        ):
            add(SlotKind.SPECIAL_UNSEQUENTIAL_PAIR, targets[i:i + 2])
            i += 2
        else:
            kind = SlotKind.SEQUENTIAL if current.dependent_on_previous else SlotKind.UNSEQUENTIAL
            add(kind, [current])
            i += 1

    return slots


# ===========================================
# Planning
# ===========================================


def _new_task(
    draft: TaskDraft,
    location_id: int,
    order,
    task_date: date,
    dependent: bool,
) -> Task:
    return Task(
        id=UNSAVED_TASK_ID,
        location_id=location_id,
        name=draft.name,
        task_type=draft.task_type,
        order=order,
        task_date=task_date,
        dependent_on_previous=dependent,
        linked_task_group=None,
        status=draft.status,
        work_description=draft.work_description,
        notes=draft.notes,
    )


def _plan_beginning(snapshot: LocationSnapshot, draft: TaskDraft, location_id: int) -> PlanOutcome:
    if snapshot.last_complete_index() >= 0:
        return _ineligible("Cannot insert at the beginning once a task is complete")
    if draft.task_date is None:
        return _missing_date()

    first = snapshot.get(snapshot.ids[0]) if len(snapshot) else None
    order = allocate_order_key(None, first.order if first else None)
    if isinstance(order, OrderKeyExhausted):
        return exhausted_failure(order)

    workset = snapshot.workset()
    if first is not None and not first.dependent_on_previous:
        # The old first task now has a predecessor to follow.
        workset.update(first.id, dependent_on_previous=True)
    workset.insert(0, _new_task(draft, location_id, order, draft.task_date, dependent=False))
    finalize(workset)
    return build_delta(snapshot, workset)


def _plan_at_index(
    snapshot: LocationSnapshot,
    draft: TaskDraft,
    location_id: int,
    index: int,
) -> PlanOutcome:
    """Insert before position `index` (len(snapshot) = append)."""
    prev_task = snapshot.get(snapshot.ids[index - 1]) if index > 0 else None
    next_task = snapshot.get(snapshot.ids[index]) if index < len(snapshot) else None

    order = allocate_order_key(
        prev_task.order if prev_task else None,
        next_task.order if next_task else None,
    )
    if isinstance(order, OrderKeyExhausted):
        return exhausted_failure(order)

    dependent = draft.dependent_on_previous and prev_task is not None
    if dependent:
        # Provisional; realignment settles it against the real preceding unit.
        task_date = following_workday(prev_task.task_date)
    elif draft.task_date is None:
        return _missing_date()
    else:
        task_date = draft.task_date

    workset = snapshot.workset()
    workset.insert(index, _new_task(draft, location_id, order, task_date, dependent))
    finalize(workset)
    return build_delta(snapshot, workset)


def _plan_after(
    snapshot: LocationSnapshot,
    intent: InsertAfter,
    draft: TaskDraft,
    location_id: int,
) -> PlanOutcome:
    if intent.task_id not in snapshot:
        logger.debug("Insert reference %s missing, appending instead", intent.task_id)
        return _plan_at_index(snapshot, draft, location_id, len(snapshot))

    index = unit_end_index(snapshot, intent.task_id) + 1
    if snapshot.last_complete_index() >= index:
        return _ineligible("Cannot insert a task before a completed task")
    return _plan_at_index(snapshot, draft, location_id, index)


def _plan_link(
    snapshot: LocationSnapshot,
    intent: LinkTo,
    draft: TaskDraft,
    location_id: int,
    id_factory: GroupIdFactory,
) -> PlanOutcome:
    missing = [t for t in intent.task_ids if t not in snapshot]
    if missing:
        return _not_found(missing[0])

    slots = enumerate_link_slots(snapshot, intent.task_ids)
    if not slots:
        return _ineligible("Cannot link a new task in front of a completed task")
    if intent.slot_index >= len(slots):
        return PlanFailure(
            code=PlanFailureCode.INVALID_LINK_SLOT,
            message=f"Link slot {intent.slot_index} does not exist",
            details={"slot_count": len(slots)},
        )
    slot = slots[intent.slot_index]

    index = snapshot.index_of(slot.task_ids[-1]) + 1
    prev_task = snapshot.get(snapshot.ids[index - 1])
    next_task = snapshot.get(snapshot.ids[index]) if index < len(snapshot) else None
    order = allocate_order_key(prev_task.order, next_task.order if next_task else None)
    if isinstance(order, OrderKeyExhausted):
        return exhausted_failure(order)

    workset = snapshot.workset()
    # Joining an existing chain, never leading it.
    workset.insert(index, _new_task(draft, location_id, order, slot.anchor_date, dependent=False))
    link(workset, [*intent.task_ids, UNSAVED_TASK_ID], slot.anchor_date, id_factory=id_factory)
    finalize(workset)
    return build_delta(snapshot, workset)


def plan_insertion(
    tasks: TaskSource,
    intent: InsertionIntent,
    draft: TaskDraft,
    *,
    location_id: int,
    id_factory: Optional[GroupIdFactory] = None,
) -> PlanOutcome:
    """
    Plan the creation of a task.

    Args:
        tasks: Current tasks of the location (snapshot or any iterable)
        intent: Where the task goes (beginning, end, after a task, or linked to tasks)
        draft: Attributes of the new task
        location_id: Location the task is created in
        id_factory: Linked group id factory (for deterministic ids)

    Returns:
        ScheduleDelta holding the new task and the changed existing tasks,
        or PlanFailure
    """
    snapshot = as_snapshot(tasks)

    if isinstance(intent, InsertAtBeginning):
        outcome = _plan_beginning(snapshot, draft, location_id)
    elif isinstance(intent, InsertAtEnd):
        outcome = _plan_at_index(snapshot, draft, location_id, len(snapshot))
    elif isinstance(intent, InsertAfter):
        outcome = _plan_after(snapshot, intent, draft, location_id)
    elif isinstance(intent, LinkTo):
        outcome = _plan_link(snapshot, intent, draft, location_id, id_factory or new_group_id)
    else:
        raise TypeError(f"Unsupported insertion intent: {intent!r}")

    if isinstance(outcome, PlanFailure):
        logger.debug("Insertion refused: %s", outcome.code.value)
    return outcome
