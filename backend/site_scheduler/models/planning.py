"""
Planner input/output models.

Intents describe where a task should go; planners answer with either a
ScheduleDelta (what to persist) or a PlanFailure (why nothing changes).
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from site_scheduler.models.enums import PlanFailureCode, SlotKind
from site_scheduler.models.task import Task


# ===========================================
# Intents
# ===========================================


class InsertAtBeginning(BaseModel):
    """Place the task before every existing task."""

    kind: Literal["beginning"] = "beginning"


class InsertAtEnd(BaseModel):
    """Place the task after every existing task."""

    kind: Literal["end"] = "end"


class InsertAfter(BaseModel):
    """Place the task right after another task (or after that task's linked group)."""

    kind: Literal["after"] = "after"
    task_id: int


class LinkTo(BaseModel):
    """Create the task on the same date as existing tasks, anchored on a chosen slot."""

    kind: Literal["link"] = "link"
    task_ids: list[int] = Field(..., min_length=1)
    slot_index: int = Field(0, ge=0)


Position = Annotated[
    Union[InsertAtBeginning, InsertAtEnd, InsertAfter],
    Field(discriminator="kind"),
]

InsertionIntent = Annotated[
    Union[InsertAtBeginning, InsertAtEnd, InsertAfter, LinkTo],
    Field(discriminator="kind"),
]


# ===========================================
# Link slots
# ===========================================


class LinkSlot(BaseModel):
    """A place among the link targets whose date can anchor the new group."""

    index: int
    kind: SlotKind
    task_ids: list[int]
    anchor_date: date


# ===========================================
# Results
# ===========================================


class ScheduleDelta(BaseModel):
    """Changes to persist atomically for one location."""

    new_task: Optional[Task] = None
    updated_tasks: list[Task] = Field(default_factory=list)
    deleted_task_id: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.new_task is None and not self.updated_tasks and self.deleted_task_id is None


class PlanFailure(BaseModel):
    """Typed refusal from a planner. The input snapshot is left untouched."""

    code: PlanFailureCode
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


PlanOutcome = Union[ScheduleDelta, PlanFailure]
