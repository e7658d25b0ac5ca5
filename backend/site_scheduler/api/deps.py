"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the SQLite task
repository and the shared schedule service.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from site_scheduler.core.config import get_settings
from site_scheduler.interfaces.task_repository import ITaskRepository
from site_scheduler.services.schedule_service import ScheduleService


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_task_repository() -> ITaskRepository:
    """Get task repository instance."""
    from site_scheduler.infrastructure.local.task_repository import SqliteTaskRepository
    return SqliteTaskRepository()


# ===========================================
# Service Dependencies
# ===========================================


@lru_cache()
def get_schedule_service() -> ScheduleService:
    """
    Get the schedule service.

    Cached so every request shares the same per-location locks.
    """
    settings = get_settings()
    return ScheduleService(get_task_repository(), policy=settings.FIRST_TASK_POLICY)


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

TaskRepo = Annotated[ITaskRepository, Depends(get_task_repository)]
ScheduleSvc = Annotated[ScheduleService, Depends(get_schedule_service)]
