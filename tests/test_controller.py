"""Tests for AsyncValue and StatsController."""
from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from taskstats.config import StatsPeriod, TaskStatus
from taskstats.controller import StatsController
from taskstats.events import AppEvent, EventBus
from taskstats.models.entities import Category, TaskSettings
from taskstats.providers import AsyncValue, Data, Failure, Loading

from conftest import NOW, fixed_clock


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class SnapshotCollector:
    def __init__(self, bus: EventBus):
        self.snapshots = []
        self._sub = bus.subscribe(AppEvent.STATS_UPDATED, self.snapshots.append, strong=True)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def settings():
    return SimpleNamespace(settings=TaskSettings(default_stats_period=StatsPeriod.WEEK))


@pytest.fixture
def controller(bus, settings) -> StatsController:
    return StatsController(bus, settings, clock=fixed_clock)


# ===========================================================================
# AsyncValue
# ===========================================================================

class TestAsyncValue:
    def test_when_dispatch(self):
        handlers = dict(data=lambda v: f"data:{v}", loading=lambda: "loading", error=lambda e: f"error:{e}")
        assert Data(3).when(**handlers) == "data:3"
        assert Loading().when(**handlers) == "loading"
        assert Failure(RuntimeError("boom")).when(**handlers) == "error:boom"

    def test_value_or(self):
        assert Data([1]).value_or([]) == [1]
        assert Loading().value_or([]) == []
        assert Failure(ValueError()).value_or(None) is None

    def test_map_passes_through_non_data(self):
        loading = Loading()
        assert loading.map(len) is loading
        assert Data([1, 2]).map(len) == Data(2)

    async def test_guard_success(self):
        async def load():
            return [1, 2]
        assert await AsyncValue.guard(load()) == Data([1, 2])

    async def test_guard_failure(self):
        async def load():
            raise OSError("disk gone")
        result = await AsyncValue.guard(load())
        assert result.has_error
        assert isinstance(result.error, OSError)


# ===========================================================================
# StatsController
# ===========================================================================

class TestStatsController:
    def test_starts_loading(self, controller):
        assert isinstance(controller.snapshot(), Loading)

    def test_default_period_from_settings(self, controller):
        assert controller.selected_period == StatsPeriod.WEEK

    def test_waits_for_both_collections(self, controller, make_record):
        controller.set_tasks(Data([make_record()]))
        assert isinstance(controller.snapshot(), Loading)
        controller.set_categories(Data([]))
        snapshot = controller.snapshot()
        assert snapshot.has_value
        assert snapshot.value.total_created == 1

    def test_task_failure_surfaces(self, controller):
        controller.set_categories(Data([]))
        controller.set_tasks(Failure(RuntimeError("db locked")))
        assert controller.snapshot().has_error

    def test_category_failure_surfaces(self, controller, make_record):
        controller.set_tasks(Data([make_record()]))
        controller.set_categories(Failure(RuntimeError("no categories")))
        assert controller.snapshot().has_error

    def test_period_change_recomputes(self, controller, make_record):
        old = make_record(
            created_at=NOW - timedelta(days=20),
            due_date=NOW.date() - timedelta(days=20),
        )
        controller.set_categories(Data([]))
        controller.set_tasks(Data([old]))
        assert controller.snapshot().value.total_created == 0

        controller.select_period(StatsPeriod.MONTH)
        assert controller.snapshot().value.total_created == 1

    def test_custom_range_selects_custom(self, controller, make_record):
        controller.set_categories(Data([]))
        controller.set_tasks(Data([make_record(due_date=date(2026, 1, 10), created_at=NOW - timedelta(days=64))]))
        controller.set_custom_range(date(2026, 1, 31), date(2026, 1, 1))

        assert controller.selected_period == StatsPeriod.CUSTOM
        assert controller.current_range().start.date() == date(2026, 1, 1)
        assert controller.snapshot().value.total_created == 1

    def test_publishes_every_recompute(self, bus, controller, make_record):
        collector = SnapshotCollector(bus)
        controller.set_tasks(Data([make_record()]))
        controller.set_categories(Data([]))
        controller.select_period(StatsPeriod.YEAR)
        assert len(collector.snapshots) == 3
        assert isinstance(collector.snapshots[0], Loading)
        assert collector.snapshots[-1].has_value

    def test_category_shares(self, controller, make_record):
        controller.set_categories(Data([Category(id="home", name="Home")]))
        controller.set_tasks(Data([make_record(category_id="home", status=TaskStatus.COMPLETED)]))
        shares = controller.category_shares().value
        assert shares[0].name == "Home"
        assert shares[0].percentage == 100

    async def test_store_event_triggers_reload(self, bus, settings, make_record):
        records = [make_record()]

        async def load_tasks():
            return list(records)

        async def load_categories():
            return []

        controller = StatsController(
            bus, settings,
            load_tasks=load_tasks,
            load_categories=load_categories,
            clock=fixed_clock,
        )
        await controller.refresh()
        assert controller.snapshot().value.total_created == 1

        records.append(make_record())
        bus.emit(AppEvent.TASKS_CHANGED)
        await controller.settle()
        assert controller.snapshot().value.total_created == 2

        controller.dispose()
        records.append(make_record())
        bus.emit(AppEvent.TASKS_CHANGED)
        await controller.settle()
        assert controller.snapshot().value.total_created == 2

    def test_event_without_running_loop_is_skipped(self, bus, settings):
        async def load_tasks():
            return []

        controller = StatsController(bus, settings, load_tasks=load_tasks, clock=fixed_clock)
        bus.emit(AppEvent.TASKS_CHANGED)
        assert isinstance(controller.tasks, Loading)
