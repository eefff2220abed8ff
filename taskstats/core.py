"""Headless bootstrap for taskstats services.

Builds every service with explicit dependencies and hands them back in a
ServiceContainer, suitable for scripts, tools and tests.

Usage:
    from taskstats.core import bootstrap, shutdown

    svc = await bootstrap(db_path=Path("my.db"))
    task = await svc.task.add_task("Test", due_date=date.today())
    stats = svc.controller.snapshot()
    await shutdown(svc)
"""
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from taskstats.config import DB_PATH
from taskstats.controller import StatsController
from taskstats.database import Database
from taskstats.events import EventBus
from taskstats.services.category_service import CategoryService
from taskstats.services.settings_service import SettingsService
from taskstats.services.stats import StatsService
from taskstats.services.task_service import TaskService


@dataclass
class ServiceContainer:
    """Container holding all initialized services for headless use."""
    db: Database
    event_bus: EventBus
    task: TaskService
    category: CategoryService
    settings: SettingsService
    stats: StatsService
    controller: StatsController
    clock: Callable[[], datetime] = datetime.now


async def bootstrap(
    db_path: Optional[Path] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> ServiceContainer:
    """Initialize the service layer.

    Args:
        db_path: Custom database path. Uses TASKSTATS_DB_PATH or
            "taskstats.db" if None. Pass Path(":memory:") for a throwaway store.
        clock: Clock override shared by every service (default: datetime.now).

    Returns:
        ServiceContainer with all services ready and the controller loaded.
    """
    db = Database(db_path if db_path is not None else DB_PATH)
    await db.init_db()

    event_bus = EventBus()
    task_service = TaskService(db, event_bus, clock=clock)
    category_service = CategoryService(db, event_bus)
    settings_service = SettingsService(db, event_bus)
    await settings_service.load()
    stats = StatsService()

    controller = StatsController(
        event_bus,
        settings_service,
        load_tasks=task_service.load_records,
        load_categories=category_service.load_categories,
        stats=stats,
        clock=clock,
    )
    await controller.refresh()

    return ServiceContainer(
        db=db,
        event_bus=event_bus,
        task=task_service,
        category=category_service,
        settings=settings_service,
        stats=stats,
        controller=controller,
        clock=clock or datetime.now,
    )


async def shutdown(services: ServiceContainer) -> None:
    """Clean up resources (detach the controller, close the database)."""
    services.controller.dispose()
    await services.controller.settle()
    await services.db.close()
