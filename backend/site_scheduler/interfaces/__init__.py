"""Abstract interfaces for infrastructure abstraction."""

from site_scheduler.interfaces.task_repository import ITaskRepository

__all__ = [
    "ITaskRepository",
]
