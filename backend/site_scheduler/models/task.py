"""
Task model definitions.

A task belongs to one location and sits at a fixed place in that location's
ordered list. Its date is either explicit (independent task), derived from the
preceding scheduling unit (dependent task), or shared with its linked group.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from site_scheduler.models.enums import TaskStatus

ORDER_QUANTUM = Decimal("0.01")

# Id carried by a task that has been planned but not yet persisted.
UNSAVED_TASK_ID = 0


def quantize_order(value: Decimal) -> Decimal:
    """Round an order key to the two-decimal precision of the store."""
    return Decimal(value).quantize(ORDER_QUANTUM, rounding=ROUND_HALF_UP)


class TaskDraft(BaseModel):
    """Attributes supplied by the caller for a task that does not exist yet."""

    name: str = Field(..., min_length=1, max_length=500, description="Task name")
    task_type: str = Field("general", min_length=1, max_length=100, description="Task type / cost code")
    task_date: Optional[date] = Field(
        None, description="Explicit date (required unless the date is derived)"
    )
    dependent_on_previous: bool = Field(
        True, description="Follow the previous task by one working day"
    )
    status: TaskStatus = Field(TaskStatus.UPCOMING)
    work_description: Optional[str] = Field(None, max_length=2000)
    notes: Optional[str] = Field(None, max_length=2000)


class Task(BaseModel):
    """Complete task record as held in a location snapshot."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int = Field(UNSAVED_TASK_ID, ge=0)
    location_id: int
    name: str
    task_type: str = "general"
    order: Decimal = Field(..., description="Sort key within the location (2 decimals)")
    task_date: date
    dependent_on_previous: bool = True
    linked_task_group: Optional[str] = None
    status: TaskStatus = TaskStatus.UPCOMING
    work_description: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("order", mode="before")
    @classmethod
    def _quantize_order(cls, value):
        return quantize_order(Decimal(str(value)))

    @property
    def is_complete(self) -> bool:
        return self.status == TaskStatus.COMPLETE
