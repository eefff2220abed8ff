import json
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import Optional, List, Dict, Any, Tuple

from taskstats.config import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_PRIORITY,
    DEFAULT_STATS_PERIOD,
    PERIOD_PADDING_DAYS,
    Priority,
    StatsPeriod,
    TaskKind,
    TaskStatus,
)

logger = logging.getLogger(__name__)


class InvalidRecordError(ValueError):
    """Raised when a stored row carries a value outside the closed enums."""
    pass


class InvalidDateRangeError(ValueError):
    """Raised when a DateRange is built with start after end."""
    pass


def _parse_enum(enum_cls, value, field_name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidRecordError(f"Unrecognized {field_name}: {value!r}") from None


def _parse_datetime(value) -> Optional[datetime]:
    """Parse to a naive local datetime.

    Offset-aware values are converted to local time so they compare with
    the naive range bounds.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time.min)
    else:
        if isinstance(value, str) and value.endswith("Z"):
            value = value[:-1] + "+00:00"
        parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _parse_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _parse_time(value) -> Optional[time]:
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    return time.fromisoformat(value)


@dataclass(frozen=True)
class Category:
    """Category a task can be filed under."""
    id: str
    name: str
    color: str = DEFAULT_CATEGORY_COLOR

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for database storage."""
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, str]) -> "Category":
        """Create Category from dictionary."""
        return cls(
            id=d["id"],
            name=d["name"],
            color=d.get("color") or DEFAULT_CATEGORY_COLOR,
        )


@dataclass(frozen=True)
class PostponeEntry:
    """One item of a task's postpone history."""
    postponed_at: datetime
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "postponedAt": self.postponed_at.isoformat(),
            "from": self.from_date.isoformat() if self.from_date else None,
            "to": self.to_date.isoformat() if self.to_date else None,
            "reason": self.reason,
        }


def parse_postpone_history(raw: Optional[str]) -> List[PostponeEntry]:
    """Parse a serialized postpone history, skipping anything malformed.

    Never raises: a corrupt payload yields an empty list and a malformed item
    is dropped while the rest of the list is kept.
    """
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except (ValueError, TypeError) as e:
        logger.debug(f"Ignoring unreadable postpone history: {e}")
        return []
    if not isinstance(items, list):
        logger.debug(f"Ignoring postpone history of type {type(items).__name__}")
        return []

    entries = []
    for item in items:
        if not isinstance(item, dict) or not item.get("postponedAt"):
            continue
        try:
            entries.append(PostponeEntry(
                postponed_at=_parse_datetime(str(item["postponedAt"])),
                from_date=_parse_date(item.get("from")),
                to_date=_parse_date(item.get("to")),
                reason=item.get("reason") or "",
            ))
        except (ValueError, TypeError) as e:
            logger.debug(f"Skipping malformed postpone history item {item!r}: {e}")
    return entries


def serialize_postpone_history(entries: List[PostponeEntry]) -> str:
    return json.dumps([e.to_dict() for e in entries])


@dataclass(frozen=True)
class TaskRecord:
    """Read-only snapshot of a task as the statistics layer sees it."""
    title: str
    status: TaskStatus
    created_at: datetime
    due_date: date
    id: Optional[int] = None
    due_time: Optional[time] = None
    completed_at: Optional[datetime] = None
    postpone_count: int = 0
    postpone_history: Optional[str] = None
    task_kind: TaskKind = TaskKind.NORMAL
    is_routine_task: bool = False
    has_recurrence: bool = False
    is_special: bool = False
    category_id: Optional[str] = None
    priority: Priority = DEFAULT_PRIORITY
    not_done_reason: Optional[str] = None

    @property
    def due_datetime(self) -> datetime:
        """Due date combined with the due time (start of day when unset)."""
        return datetime.combine(self.due_date, self.due_time or time.min)

    def is_overdue(self, now: datetime) -> bool:
        """A pending task is overdue once its due date/time has passed."""
        return self.status == TaskStatus.PENDING and self.due_datetime < now

    def history_entries(self) -> List[PostponeEntry]:
        return parse_postpone_history(self.postpone_history)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "due_date": self.due_date.isoformat(),
            "due_time": self.due_time.isoformat() if self.due_time else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "postpone_count": self.postpone_count,
            "postpone_history": self.postpone_history,
            "task_kind": self.task_kind.value,
            "is_routine_task": 1 if self.is_routine_task else 0,
            "has_recurrence": 1 if self.has_recurrence else 0,
            "is_special": 1 if self.is_special else 0,
            "category_id": self.category_id,
            "priority": self.priority.value,
            "not_done_reason": self.not_done_reason,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TaskRecord":
        """Build a record from a store row.

        Raises:
            InvalidRecordError: If status, kind or priority is unrecognized,
                or a timestamp cannot be parsed.
        """
        try:
            created_at = _parse_datetime(d["created_at"])
            due_date = _parse_date(d["due_date"])
            due_time = _parse_time(d.get("due_time"))
            completed_at = _parse_datetime(d.get("completed_at"))
        except (KeyError, ValueError, TypeError) as e:
            raise InvalidRecordError(f"Bad timestamp on task {d.get('id')}: {e}") from e

        return cls(
            id=d.get("id"),
            title=d["title"],
            status=_parse_enum(TaskStatus, d.get("status"), "status"),
            created_at=created_at,
            due_date=due_date,
            due_time=due_time,
            completed_at=completed_at,
            postpone_count=d.get("postpone_count") or 0,
            postpone_history=d.get("postpone_history"),
            task_kind=_parse_enum(TaskKind, d.get("task_kind") or TaskKind.NORMAL.value, "task kind"),
            is_routine_task=bool(d.get("is_routine_task", 0)),
            has_recurrence=bool(d.get("has_recurrence", 0)),
            is_special=bool(d.get("is_special", 0)),
            category_id=d.get("category_id"),
            priority=_parse_enum(Priority, d.get("priority") or DEFAULT_PRIORITY.value, "priority"),
            not_done_reason=d.get("not_done_reason"),
        )

    def with_postpone(self, new_due_date: date, at: datetime, reason: str = "") -> "TaskRecord":
        """Return a copy moved to new_due_date with the postpone recorded.

        The task stays pending and becomes overdue again once the new date
        passes.
        """
        history = self.history_entries()
        history.append(PostponeEntry(
            postponed_at=at,
            from_date=self.due_date,
            to_date=new_due_date,
            reason=reason,
        ))
        return replace(
            self,
            due_date=new_due_date,
            status=TaskStatus.PENDING,
            postpone_count=self.postpone_count + 1,
            postpone_history=serialize_postpone_history(history),
        )

    def without_last_postpone(self) -> Optional["TaskRecord"]:
        """Return a copy with the last postpone reverted, or None.

        None means there is nothing to undo: no readable history entry, or
        the last entry does not say which date it moved the task from.
        """
        history = self.history_entries()
        if not history or history[-1].from_date is None:
            return None
        last = history.pop()
        return replace(
            self,
            due_date=last.from_date,
            postpone_count=max(self.postpone_count - 1, 0),
            postpone_history=serialize_postpone_history(history) if history else None,
        )


@dataclass(frozen=True)
class DateRange:
    """Closed [start, end] interval in local time."""
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidDateRangeError(
                f"Range start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    def padded(self) -> Tuple[datetime, datetime]:
        """Bounds widened by one calendar day on each side."""
        pad = timedelta(days=PERIOD_PADDING_DAYS)
        return self.start - pad, self.end + pad

    def contains_padded(self, ts: Optional[datetime]) -> bool:
        """Strict after/before test against the padded bounds."""
        if ts is None:
            return False
        lower, upper = self.padded()
        return lower < ts < upper


@dataclass(frozen=True)
class TaskSettings:
    """User preferences for task creation and the statistics screen."""
    default_priority: Priority = DEFAULT_PRIORITY
    default_category_id: Optional[str] = None
    default_stats_period: StatsPeriod = DEFAULT_STATS_PERIOD
    show_streak_on_dashboard: bool = True
    enable_performance_scoring: bool = True

