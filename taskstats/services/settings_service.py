import logging
from dataclasses import replace
from typing import Optional

from taskstats.config import (
    DEFAULT_PRIORITY,
    DEFAULT_STATS_PERIOD,
    SETTING_DEFAULT_CATEGORY_ID,
    SETTING_DEFAULT_PRIORITY,
    SETTING_DEFAULT_STATS_PERIOD,
    SETTING_ENABLE_SCORING,
    SETTING_SHOW_STREAK,
    Priority,
    StatsPeriod,
)
from taskstats.database import Database
from taskstats.events import AppEvent, EventBus
from taskstats.models.entities import TaskSettings

logger = logging.getLogger(__name__)


class SettingsService:
    """Service for task settings.

    Holds the current TaskSettings and persists each mutation to the
    settings table before publishing the new value with SETTINGS_CHANGED.
    """

    def __init__(self, db: Database, event_bus: EventBus) -> None:
        self._db = db
        self._event_bus = event_bus
        self.settings = TaskSettings()

    async def load(self) -> TaskSettings:
        """Load settings from the database, falling back to defaults."""
        priority_raw = await self._db.get_setting(SETTING_DEFAULT_PRIORITY, DEFAULT_PRIORITY.value)
        period_raw = await self._db.get_setting(SETTING_DEFAULT_STATS_PERIOD, DEFAULT_STATS_PERIOD.value)
        try:
            priority = Priority(priority_raw)
        except ValueError:
            logger.warning(f"Unknown default priority {priority_raw!r}, using {DEFAULT_PRIORITY.value}")
            priority = DEFAULT_PRIORITY
        try:
            period = StatsPeriod(period_raw)
        except ValueError:
            logger.warning(f"Unknown default period {period_raw!r}, using {DEFAULT_STATS_PERIOD.value}")
            period = DEFAULT_STATS_PERIOD

        self.settings = TaskSettings(
            default_priority=priority,
            default_category_id=await self._db.get_setting(SETTING_DEFAULT_CATEGORY_ID),
            default_stats_period=period,
            show_streak_on_dashboard=await self._db.get_setting(SETTING_SHOW_STREAK, True),
            enable_performance_scoring=await self._db.get_setting(SETTING_ENABLE_SCORING, True),
        )
        return self.settings

    async def set_default_priority(self, value: Priority) -> None:
        await self._db.set_setting(SETTING_DEFAULT_PRIORITY, value.value)
        self._apply(default_priority=value)

    async def set_default_category_id(self, value: Optional[str]) -> None:
        await self._db.set_setting(SETTING_DEFAULT_CATEGORY_ID, value)
        self._apply(default_category_id=value)

    async def set_default_stats_period(self, value: StatsPeriod) -> None:
        await self._db.set_setting(SETTING_DEFAULT_STATS_PERIOD, value.value)
        self._apply(default_stats_period=value)

    async def set_show_streak(self, value: bool) -> None:
        await self._db.set_setting(SETTING_SHOW_STREAK, value)
        self._apply(show_streak_on_dashboard=value)

    async def set_enable_scoring(self, value: bool) -> None:
        await self._db.set_setting(SETTING_ENABLE_SCORING, value)
        self._apply(enable_performance_scoring=value)

    def _apply(self, **changes) -> None:
        self.settings = replace(self.settings, **changes)
        self._event_bus.emit(AppEvent.SETTINGS_CHANGED, self.settings)
