import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import List, Optional, Dict, Any, Iterable, Tuple

from taskstats.config import (
    CATEGORY_SHARES_LIMIT,
    UNCATEGORIZED,
    UNCATEGORIZED_NAME,
    DEFAULT_CATEGORY_COLOR,
    Priority,
    TaskKind,
    TaskStatus,
)
from taskstats.models.entities import Category, DateRange, TaskRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskStats:
    """Statistics snapshot for one period. Recomputed, never mutated."""
    total_created: int
    completed: int
    not_done: int
    pending: int
    overdue: int
    postponed_at_least_once: int
    total_postpone_actions: int
    routine_tasks: int
    recurring_tasks: int
    special_tasks: int
    completion_rate: float  # percentage: completed / total_created * 100
    category_breakdown: Dict[str, int] = field(default_factory=dict)
    priority_breakdown: Dict[str, int] = field(default_factory=dict)
    tasks_in_period: Tuple[TaskRecord, ...] = ()
    # History entries whose postpone timestamp falls inside the period
    postpones_in_period: int = 0

    @property
    def avg_postpones_per_task(self) -> float:
        """Average postpones among tasks postponed at least once."""
        if self.postponed_at_least_once == 0:
            return 0.0
        return self.total_postpone_actions / self.postponed_at_least_once

    def status_share(self, count: int) -> int:
        """Integer percentage of total_created."""
        if self.total_created == 0:
            return 0
        return int(count / self.total_created * 100)


@dataclass(frozen=True)
class CategoryShare:
    """One row of the category card."""
    category_id: str
    name: str
    color: str
    count: int
    percentage: int


class StatsService:
    """Service for calculating task statistics over a period."""

    def compute_stats(
        self,
        records: Iterable[TaskRecord],
        date_range: DateRange,
        now: Optional[datetime] = None,
    ) -> TaskStats:
        """Aggregate the records that fall inside date_range.

        A record is in period when its due date, creation timestamp or
        completion timestamp lies inside the range padded by a day on each
        side. Pending records are split into pending and overdue with
        TaskRecord.is_overdue(now).
        """
        if now is None:
            now = datetime.now()

        tasks_in_period = [r for r in records if self._in_period(r, date_range)]

        completed = 0
        not_done = 0
        pending = 0
        overdue = 0
        postponed_at_least_once = 0
        total_postpone_actions = 0
        postpones_in_period = 0
        routine_tasks = 0
        recurring_tasks = 0
        special_tasks = 0
        category_breakdown: Dict[str, int] = {}
        priority_breakdown: Dict[str, int] = {}

        for task in tasks_in_period:
            if task.status == TaskStatus.COMPLETED:
                completed += 1
            elif task.status == TaskStatus.NOT_DONE:
                not_done += 1
            elif task.status == TaskStatus.PENDING:
                if task.is_overdue(now):
                    overdue += 1
                else:
                    pending += 1
            elif task.status == TaskStatus.POSTPONED:
                # Postponed tasks are folded into the pending bucket
                pending += 1

            if task.postpone_count > 0:
                postponed_at_least_once += 1
                total_postpone_actions += task.postpone_count

            postpones_in_period += sum(
                1 for entry in task.history_entries()
                if date_range.contains_padded(entry.postponed_at)
            )

            if task.task_kind == TaskKind.ROUTINE or task.is_routine_task:
                routine_tasks += 1
            if task.task_kind == TaskKind.RECURRING or task.has_recurrence:
                recurring_tasks += 1
            if task.is_special:
                special_tasks += 1

            category_id = task.category_id or UNCATEGORIZED
            category_breakdown[category_id] = category_breakdown.get(category_id, 0) + 1

            priority = task.priority.value
            priority_breakdown[priority] = priority_breakdown.get(priority, 0) + 1

        total_created = len(tasks_in_period)
        completion_rate = (completed / total_created) * 100 if total_created > 0 else 0.0

        logger.debug(
            f"Computed stats for {date_range.start.isoformat()}..{date_range.end.isoformat()}: "
            f"{total_created} tasks in period"
        )

        return TaskStats(
            total_created=total_created,
            completed=completed,
            not_done=not_done,
            pending=pending,
            overdue=overdue,
            postponed_at_least_once=postponed_at_least_once,
            total_postpone_actions=total_postpone_actions,
            routine_tasks=routine_tasks,
            recurring_tasks=recurring_tasks,
            special_tasks=special_tasks,
            completion_rate=completion_rate,
            category_breakdown=category_breakdown,
            priority_breakdown=priority_breakdown,
            tasks_in_period=tuple(tasks_in_period),
            postpones_in_period=postpones_in_period,
        )

    @staticmethod
    def _in_period(record: TaskRecord, date_range: DateRange) -> bool:
        return (
            date_range.contains_padded(datetime.combine(record.due_date, time.min))
            or date_range.contains_padded(record.created_at)
            or date_range.contains_padded(record.completed_at)
        )

    def category_shares(
        self,
        stats: TaskStats,
        categories: List[Category],
        limit: int = CATEGORY_SHARES_LIMIT,
    ) -> List[CategoryShare]:
        """Category breakdown sorted by count, resolved to names and colors.

        Unknown ids (deleted categories, the uncategorized bucket) are
        reported as "Uncategorized".
        """
        by_id = {c.id: c for c in categories}
        ordered = sorted(stats.category_breakdown.items(), key=lambda kv: kv[1], reverse=True)

        shares = []
        for category_id, count in ordered[:limit]:
            category = by_id.get(category_id)
            shares.append(CategoryShare(
                category_id=category_id,
                name=category.name if category else UNCATEGORIZED_NAME,
                color=category.color if category else DEFAULT_CATEGORY_COLOR,
                count=count,
                percentage=stats.status_share(count),
            ))
        return shares

    def priority_counts(self, stats: TaskStats) -> Dict[Priority, int]:
        """High/Medium/Low counts, zero for priorities not seen."""
        return {
            p: stats.priority_breakdown.get(p.value, 0)
            for p in (Priority.HIGH, Priority.MEDIUM, Priority.LOW)
        }

    def export_to_json(self, stats: TaskStats, date_range: DateRange) -> str:
        """Export a snapshot to JSON format."""
        export_data: Dict[str, Any] = {
            "export_date": datetime.now().isoformat(),
            "period": {
                "start": date_range.start.isoformat(),
                "end": date_range.end.isoformat(),
            },
            "overall_stats": {
                "total_created": stats.total_created,
                "completed": stats.completed,
                "not_done": stats.not_done,
                "pending": stats.pending,
                "overdue": stats.overdue,
                "completion_rate_percent": round(stats.completion_rate, 2),
            },
            "postpones": {
                "postponed_at_least_once": stats.postponed_at_least_once,
                "total_postpone_actions": stats.total_postpone_actions,
                "postpones_in_period": stats.postpones_in_period,
                "avg_postpones_per_task": round(stats.avg_postpones_per_task, 1),
            },
            "task_types": {
                "routine": stats.routine_tasks,
                "recurring": stats.recurring_tasks,
                "special": stats.special_tasks,
            },
            "categories": dict(stats.category_breakdown),
            "priorities": dict(stats.priority_breakdown),
            "tasks": [
                {
                    "title": t.title,
                    "status": t.status.value,
                    "due_date": t.due_date.isoformat(),
                    "priority": t.priority.value,
                }
                for t in stats.tasks_in_period
            ],
        }

        return json.dumps(export_data, indent=2, ensure_ascii=False)


stats_service = StatsService()
