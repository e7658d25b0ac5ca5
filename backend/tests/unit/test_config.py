"""
Unit tests for settings and startup behaviour.
"""

from unittest.mock import AsyncMock, patch

import pytest

import main
from site_scheduler.core.config import Settings
from site_scheduler.models.enums import FirstTaskPolicy


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.is_local
    assert settings.FIRST_TASK_POLICY == FirstTaskPolicy.STRICT


def test_production_is_not_local():
    assert Settings(_env_file=None, ENVIRONMENT="production").is_local is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("environment", "creates_schema"),
    [("local", True), ("production", False)],
)
async def test_lifespan_creates_schema_only_locally(environment, creates_schema):
    settings = Settings(_env_file=None, ENVIRONMENT=environment)
    with patch.object(main, "get_settings", return_value=settings), patch(
        "site_scheduler.infrastructure.local.database.init_db", new_callable=AsyncMock
    ) as init_db:
        async with main.lifespan(main.app):
            pass

    assert init_db.await_count == (1 if creates_schema else 0)
