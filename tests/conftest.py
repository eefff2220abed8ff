"""Shared fixtures for taskstats tests."""
from datetime import date, datetime
from pathlib import Path

import pytest
import pytest_asyncio

from taskstats.api import TaskStatsAPI
from taskstats.config import Priority, TaskKind, TaskStatus
from taskstats.core import ServiceContainer, bootstrap, shutdown
from taskstats.models.entities import TaskRecord

# Fixed "now" for every test: Sunday, mid-March, noon
NOW = datetime(2026, 3, 15, 12, 0, 0)


def fixed_clock() -> datetime:
    return NOW


@pytest.fixture
def make_record():
    """Factory for TaskRecords with sensible defaults around NOW."""
    counter = {"id": 0}

    def _make(**overrides) -> TaskRecord:
        counter["id"] += 1
        fields = dict(
            id=counter["id"],
            title=f"Task {counter['id']}",
            status=TaskStatus.PENDING,
            created_at=NOW,
            due_date=NOW.date(),
            priority=Priority.MEDIUM,
            task_kind=TaskKind.NORMAL,
        )
        fields.update(overrides)
        return TaskRecord(**fields)

    return _make


@pytest_asyncio.fixture
async def services() -> ServiceContainer:
    """Provide a fresh ServiceContainer backed by an in-memory database."""
    svc = await bootstrap(db_path=Path(":memory:"), clock=fixed_clock)
    yield svc
    await shutdown(svc)


@pytest.fixture
def api(services: ServiceContainer) -> TaskStatsAPI:
    return TaskStatsAPI(services)


@pytest.fixture
def today() -> date:
    return NOW.date()
