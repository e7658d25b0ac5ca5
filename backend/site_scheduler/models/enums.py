"""
Enum definitions for the application.

These enums are used across models and provide type-safe status values.
"""

from enum import Enum


class TaskStatus(str, Enum):
    """Task status."""

    UPCOMING = "upcoming"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class FirstTaskPolicy(str, Enum):
    """
    How the "first task is never sequential" rule is enforced.

    STRICT = every planner normalizes the first task to independent
    DRAG_CARVE_OUT = moves keep the moved/displaced tasks' flags as-is
    """

    STRICT = "strict"
    DRAG_CARVE_OUT = "drag_carve_out"


class SlotKind(str, Enum):
    """Shape of a link slot offered to the caller."""

    SEQUENTIAL_GROUP = "sequential_group"
    SPECIAL_UNSEQUENTIAL_PAIR = "special_unsequential_pair"
    SEQUENTIAL = "sequential"
    UNSEQUENTIAL = "unsequential"


class PlanFailureCode(str, Enum):
    """Reasons a planner refuses an operation."""

    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    INELIGIBLE_POSITION = "INELIGIBLE_POSITION"
    MISSING_TASK_DATE = "MISSING_TASK_DATE"
    ORDER_KEYS_EXHAUSTED = "ORDER_KEYS_EXHAUSTED"
    INVALID_LINK_SLOT = "INVALID_LINK_SLOT"
    TASK_COMPLETED = "TASK_COMPLETED"
    WOULD_SPLIT_GROUP = "WOULD_SPLIT_GROUP"
