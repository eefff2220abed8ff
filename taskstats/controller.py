"""Stats controller - keeps a statistics snapshot in step with its inputs.

The controller owns the selected period and the last known state of the task
and category collections. Whenever one of them changes it recomputes the
snapshot from scratch and publishes it with AppEvent.STATS_UPDATED.

Everything it needs is passed in: the event bus, the settings service, the
async loaders for both collections and the clock.
"""
import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Awaitable, Callable, List, Optional, Set

from taskstats.config import DEFAULT_CUSTOM_RANGE_DAYS, StatsPeriod
from taskstats.events import AppEvent, EventBus
from taskstats.models.entities import Category, DateRange, TaskRecord
from taskstats.providers import AsyncValue, Data, Failure, Loading
from taskstats.services.periods import range_for_period
from taskstats.services.settings_service import SettingsService
from taskstats.services.stats import CategoryShare, StatsService, TaskStats, stats_service

logger = logging.getLogger(__name__)

RecordsLoader = Callable[[], Awaitable[List[TaskRecord]]]
CategoriesLoader = Callable[[], Awaitable[List[Category]]]


class StatsController:
    """Recomputes TaskStats on period, task or category changes."""

    def __init__(
        self,
        event_bus: EventBus,
        settings: SettingsService,
        load_tasks: Optional[RecordsLoader] = None,
        load_categories: Optional[CategoriesLoader] = None,
        stats: StatsService = stats_service,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._event_bus = event_bus
        self._settings = settings
        self._load_tasks = load_tasks
        self._load_categories = load_categories
        self._stats = stats
        self._clock = clock or datetime.now
        self._pending: Set[asyncio.Task] = set()

        self.tasks: AsyncValue[List[TaskRecord]] = Loading()
        self.categories: AsyncValue[List[Category]] = Loading()
        self.selected_period: StatsPeriod = settings.settings.default_stats_period
        today = self._clock().date()
        self.custom_start: date = today - timedelta(days=DEFAULT_CUSTOM_RANGE_DAYS)
        self.custom_end: date = today
        self._snapshot: AsyncValue[TaskStats] = Loading()

        self._subs = [
            event_bus.subscribe(AppEvent.TASKS_CHANGED, self._on_tasks_changed),
            event_bus.subscribe(AppEvent.CATEGORIES_CHANGED, self._on_categories_changed),
        ]

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def set_tasks(self, value: AsyncValue[List[TaskRecord]]) -> None:
        self.tasks = value
        self._recompute()

    def set_categories(self, value: AsyncValue[List[Category]]) -> None:
        self.categories = value
        self._recompute()

    def select_period(self, period: StatsPeriod) -> None:
        self.selected_period = period
        self._event_bus.emit(AppEvent.PERIOD_CHANGED, period)
        self._recompute()

    def set_custom_range(self, start: date, end: date) -> None:
        """Select the custom period with the given days.

        An inverted pair is swapped when the range is built.
        """
        self.custom_start = start
        self.custom_end = end
        self.select_period(StatsPeriod.CUSTOM)

    async def refresh(self) -> None:
        """Reload both collections through the injected loaders."""
        await asyncio.gather(self.refresh_tasks(), self.refresh_categories())

    async def refresh_tasks(self) -> None:
        if self._load_tasks is None:
            return
        self.set_tasks(await AsyncValue.guard(self._load_tasks()))

    async def refresh_categories(self) -> None:
        if self._load_categories is None:
            return
        self.set_categories(await AsyncValue.guard(self._load_categories()))

    async def settle(self) -> None:
        """Wait for reloads scheduled by store events to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def dispose(self) -> None:
        for sub in self._subs:
            sub.unsubscribe()
        self._subs = []

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def current_range(self) -> DateRange:
        return range_for_period(
            self.selected_period,
            now=self._clock(),
            custom_start=self.custom_start,
            custom_end=self.custom_end,
        )

    def snapshot(self) -> AsyncValue[TaskStats]:
        return self._snapshot

    def category_shares(self) -> AsyncValue[List[CategoryShare]]:
        categories = self.categories.value_or([])
        return self._snapshot.map(lambda s: self._stats.category_shares(s, categories))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _combined_input(self) -> AsyncValue[List[TaskRecord]]:
        for value in (self.tasks, self.categories):
            if isinstance(value, Failure):
                return value
        for value in (self.tasks, self.categories):
            if isinstance(value, Loading):
                return value
        return self.tasks

    def _recompute(self) -> None:
        combined = self._combined_input()
        if isinstance(combined, Data):
            self._snapshot = Data(self._stats.compute_stats(
                combined.value,
                self.current_range(),
                now=self._clock(),
            ))
        else:
            self._snapshot = combined
        self._event_bus.emit(AppEvent.STATS_UPDATED, self._snapshot)

    def _schedule(self, coro: Awaitable[None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; skipping scheduled reload")
            coro.close()
            return
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _on_tasks_changed(self, _data) -> None:
        if self._load_tasks is not None:
            self._schedule(self.refresh_tasks())

    def _on_categories_changed(self, _data) -> None:
        if self._load_categories is not None:
            self._schedule(self.refresh_categories())
