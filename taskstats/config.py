"""Application configuration - single source of truth for all constants.

Contains the closed enums (TaskStatus, TaskKind, Priority, StatsPeriod) and the
magic values the statistics layer depends on. Import from here instead of
hardcoding values elsewhere to ensure consistency across the package.
"""
import os
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")


class TaskStatus(Enum):
    """Lifecycle status of a task record."""
    PENDING = "pending"
    COMPLETED = "completed"
    NOT_DONE = "not_done"
    POSTPONED = "postponed"


class TaskKind(Enum):
    """How a task came to exist."""
    NORMAL = "normal"
    ROUTINE = "routine"
    RECURRING = "recurring"


class Priority(Enum):
    """Task priority. Values are the labels used in the priority breakdown."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class StatsPeriod(Enum):
    """Selectable statistics windows."""
    WEEK = "week"
    MONTH = "month"
    THREE_MONTHS = "three_months"
    SIX_MONTHS = "six_months"
    YEAR = "year"
    CUSTOM = "custom"


PERIOD_LABELS = {
    StatsPeriod.WEEK: "7D",
    StatsPeriod.MONTH: "1M",
    StatsPeriod.THREE_MONTHS: "3M",
    StatsPeriod.SIX_MONTHS: "6M",
    StatsPeriod.YEAR: "1Y",
    StatsPeriod.CUSTOM: "Custom",
}

# Months subtracted from today for the calendar-based presets
PERIOD_MONTHS = {
    StatsPeriod.MONTH: 1,
    StatsPeriod.THREE_MONTHS: 3,
    StatsPeriod.SIX_MONTHS: 6,
    StatsPeriod.YEAR: 12,
}

WEEK_PERIOD_DAYS = 7
DEFAULT_CUSTOM_RANGE_DAYS = 30

# Membership bounds are widened by this many days on each side
PERIOD_PADDING_DAYS = 1

UNCATEGORIZED = "uncategorized"
UNCATEGORIZED_NAME = "Uncategorized"
CATEGORY_SHARES_LIMIT = 6

DEFAULT_PRIORITY = Priority.MEDIUM
DEFAULT_STATS_PERIOD = StatsPeriod.MONTH
DEFAULT_CATEGORY_COLOR = "#CDAF56"

# Settings keys (settings table)
SETTING_DEFAULT_PRIORITY = "task_default_priority"
SETTING_DEFAULT_CATEGORY_ID = "task_default_category_id"
SETTING_DEFAULT_STATS_PERIOD = "task_default_stats_period"
SETTING_SHOW_STREAK = "task_show_streak"
SETTING_ENABLE_SCORING = "task_enable_scoring"

DB_PATH = Path(os.getenv("TASKSTATS_DB_PATH", "") or "taskstats.db")
