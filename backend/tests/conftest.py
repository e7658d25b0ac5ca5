"""
Shared pytest fixtures.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from site_scheduler.infrastructure.local.database import Base
from site_scheduler.models.enums import TaskStatus
from site_scheduler.models.task import Task

LOCATION_ID = 1


@pytest.fixture
async def session_factory():
    """In-memory SQLite shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def location_id() -> int:
    return LOCATION_ID


@pytest.fixture
def make_task():
    """Build Task records with the order key defaulting to the id."""

    def _make(
        task_id: int,
        task_date: date,
        *,
        order: Optional[str] = None,
        dependent: bool = True,
        group: Optional[str] = None,
        status: TaskStatus = TaskStatus.UPCOMING,
        location_id: int = LOCATION_ID,
        name: Optional[str] = None,
    ) -> Task:
        return Task(
            id=task_id,
            location_id=location_id,
            name=name or f"Task {task_id}",
            order=Decimal(order) if order is not None else Decimal(task_id),
            task_date=task_date,
            dependent_on_previous=dependent,
            linked_task_group=group,
            status=status,
        )

    return _make
