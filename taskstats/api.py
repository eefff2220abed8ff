"""Programmatic API facade for taskstats.

Composes the task, category, settings and stats services into complete
operations: persistence, event emission and an up-to-date statistics
snapshot once the call returns.

Usage:
    from taskstats.core import bootstrap
    from taskstats.api import TaskStatsAPI

    svc = await bootstrap(db_path=Path(":memory:"))
    api = TaskStatsAPI(svc)

    task = await api.add_task("Write docs", due_date=date.today())
    await api.complete_task(task.id)
    stats = api.current_stats()
"""
from datetime import date, time
from typing import List, Optional

from taskstats.config import Priority, StatsPeriod, TaskKind
from taskstats.core import ServiceContainer
from taskstats.models.entities import Category, TaskRecord
from taskstats.providers import AsyncValue
from taskstats.services.periods import range_for_period
from taskstats.services.stats import CategoryShare, TaskStats


class TaskStatsAPI:
    """High-level facade over taskstats services."""

    def __init__(self, services: ServiceContainer) -> None:
        self._svc = services

    @property
    def controller(self):
        return self._svc.controller

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def add_task(
        self,
        title: str,
        due_date: date,
        due_time: Optional[time] = None,
        priority: Optional[Priority] = None,
        category_id: Optional[str] = None,
        task_kind: TaskKind = TaskKind.NORMAL,
        is_special: bool = False,
    ) -> TaskRecord:
        """Create a new pending task using the current settings as defaults."""
        record = await self._svc.task.add_task(
            title,
            due_date,
            due_time=due_time,
            priority=priority,
            category_id=category_id,
            task_kind=task_kind,
            is_special=is_special,
            settings=self._svc.settings.settings,
        )
        await self._svc.controller.settle()
        return record

    async def complete_task(self, task_id: int) -> TaskRecord:
        record = await self._svc.task.complete_task(task_id)
        await self._svc.controller.settle()
        return record

    async def mark_not_done(self, task_id: int, reason: str = "") -> TaskRecord:
        record = await self._svc.task.mark_not_done(task_id, reason)
        await self._svc.controller.settle()
        return record

    async def postpone_task(self, task_id: int, new_due_date: date, reason: str = "") -> TaskRecord:
        record = await self._svc.task.postpone_task(task_id, new_due_date, reason)
        await self._svc.controller.settle()
        return record

    async def undo_last_postpone(self, task_id: int) -> Optional[TaskRecord]:
        record = await self._svc.task.undo_last_postpone(task_id)
        await self._svc.controller.settle()
        return record

    async def delete_task(self, task_id: int) -> None:
        await self._svc.task.delete_task(task_id)
        await self._svc.controller.settle()

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def add_category(self, name: str, color: Optional[str] = None) -> Category:
        if color is None:
            category = await self._svc.category.add_category(name)
        else:
            category = await self._svc.category.add_category(name, color)
        await self._svc.controller.settle()
        return category

    async def delete_category(self, category_id: str) -> int:
        detached = await self._svc.category.delete_category(category_id)
        await self._svc.controller.settle()
        return detached

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def select_period(self, period: StatsPeriod) -> AsyncValue[TaskStats]:
        self._svc.controller.select_period(period)
        return self._svc.controller.snapshot()

    def select_custom_range(self, start: date, end: date) -> AsyncValue[TaskStats]:
        self._svc.controller.set_custom_range(start, end)
        return self._svc.controller.snapshot()

    def current_stats(self) -> AsyncValue[TaskStats]:
        return self._svc.controller.snapshot()

    def category_shares(self) -> AsyncValue[List[CategoryShare]]:
        return self._svc.controller.category_shares()

    async def stats_for_period(
        self,
        period: StatsPeriod,
        custom_start: Optional[date] = None,
        custom_end: Optional[date] = None,
    ) -> TaskStats:
        """One-off computation straight from the store.

        Does not change the controller's selected period.
        """
        now = self._svc.clock()
        date_range = range_for_period(
            period, now=now, custom_start=custom_start, custom_end=custom_end
        )
        records = await self._svc.task.load_records()
        return self._svc.stats.compute_stats(records, date_range, now=now)

    async def export_stats_json(self, period: StatsPeriod) -> str:
        now = self._svc.clock()
        date_range = range_for_period(period, now=now)
        records = await self._svc.task.load_records()
        stats = self._svc.stats.compute_stats(records, date_range, now=now)
        return self._svc.stats.export_to_json(stats, date_range)
