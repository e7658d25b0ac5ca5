"""Pydantic models (schemas) for the application."""

from site_scheduler.models.enums import FirstTaskPolicy, PlanFailureCode, SlotKind, TaskStatus
from site_scheduler.models.planning import (
    InsertAfter,
    InsertAtBeginning,
    InsertAtEnd,
    LinkSlot,
    LinkTo,
    PlanFailure,
    ScheduleDelta,
)
from site_scheduler.models.task import Task, TaskDraft

__all__ = [
    # Enums
    "TaskStatus",
    "FirstTaskPolicy",
    "SlotKind",
    "PlanFailureCode",
    # Tasks
    "Task",
    "TaskDraft",
    # Planning
    "InsertAtBeginning",
    "InsertAtEnd",
    "InsertAfter",
    "LinkTo",
    "LinkSlot",
    "ScheduleDelta",
    "PlanFailure",
]
