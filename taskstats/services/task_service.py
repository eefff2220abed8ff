import logging
from dataclasses import replace
from datetime import date, datetime, time
from typing import Callable, List, Optional

from taskstats.config import Priority, TaskKind, TaskStatus
from taskstats.database import Database
from taskstats.events import AppEvent, EventBus
from taskstats.models.entities import InvalidRecordError, TaskRecord, TaskSettings

logger = logging.getLogger(__name__)


class TaskNotFoundError(KeyError):
    """Raised when an operation targets a task id that is not stored."""
    pass


class TaskService:
    """Service for task operations.

    Produces the records the statistics layer reads. Every mutation is
    persisted first and then announced with AppEvent.TASKS_CHANGED.
    Records are immutable, so a failed save leaves nothing to roll back.
    """

    def __init__(
        self,
        db: Database,
        event_bus: EventBus,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._db = db
        self._event_bus = event_bus
        self._clock = clock or datetime.now

    async def load_records(self) -> List[TaskRecord]:
        """Load every stored task.

        Rows that fail validation (unknown status, kind or priority, bad
        timestamps) are skipped with a warning instead of failing the load.
        """
        records = []
        for row in await self._db.load_tasks():
            try:
                records.append(TaskRecord.from_dict(row))
            except InvalidRecordError as e:
                logger.warning(f"Skipping task {row.get('id')}: {e}")
        return records

    async def get_record(self, task_id: int) -> TaskRecord:
        row = await self._db.load_task_by_id(task_id)
        if row is None:
            raise TaskNotFoundError(task_id)
        return TaskRecord.from_dict(row)

    async def add_task(
        self,
        title: str,
        due_date: date,
        due_time: Optional[time] = None,
        priority: Optional[Priority] = None,
        category_id: Optional[str] = None,
        task_kind: TaskKind = TaskKind.NORMAL,
        is_special: bool = False,
        settings: Optional[TaskSettings] = None,
    ) -> TaskRecord:
        """Create and persist a pending task.

        Priority and category fall back to the user's defaults when not given.
        """
        settings = settings or TaskSettings()
        record = TaskRecord(
            title=title,
            status=TaskStatus.PENDING,
            created_at=self._clock(),
            due_date=due_date,
            due_time=due_time,
            priority=priority or settings.default_priority,
            category_id=category_id if category_id is not None else settings.default_category_id,
            task_kind=task_kind,
            is_routine_task=task_kind == TaskKind.ROUTINE,
            has_recurrence=task_kind == TaskKind.RECURRING,
            is_special=is_special,
        )
        return await self._persist(record)

    async def complete_task(self, task_id: int) -> TaskRecord:
        record = await self.get_record(task_id)
        return await self._persist(replace(
            record,
            status=TaskStatus.COMPLETED,
            completed_at=self._clock(),
            not_done_reason=None,
        ))

    async def mark_not_done(self, task_id: int, reason: str = "") -> TaskRecord:
        record = await self.get_record(task_id)
        return await self._persist(replace(
            record,
            status=TaskStatus.NOT_DONE,
            completed_at=None,
            not_done_reason=reason or None,
        ))

    async def postpone_task(
        self,
        task_id: int,
        new_due_date: date,
        reason: str = "",
    ) -> TaskRecord:
        """Move a task to new_due_date, bumping its counter and history."""
        record = await self.get_record(task_id)
        return await self._persist(record.with_postpone(new_due_date, self._clock(), reason))

    async def undo_last_postpone(self, task_id: int) -> Optional[TaskRecord]:
        """Revert the most recent postpone.

        Returns the restored record, or None when there is nothing to undo.
        """
        record = await self.get_record(task_id)
        restored = record.without_last_postpone()
        if restored is None:
            logger.info(f"No postpone to undo on task {task_id}")
            return None
        return await self._persist(restored)

    async def reopen_task(self, task_id: int) -> TaskRecord:
        """Put a completed or not-done task back to pending."""
        record = await self.get_record(task_id)
        return await self._persist(replace(
            record,
            status=TaskStatus.PENDING,
            completed_at=None,
            not_done_reason=None,
        ))

    async def delete_task(self, task_id: int) -> None:
        await self._db.delete_task(task_id)
        self._event_bus.emit(AppEvent.TASKS_CHANGED)

    async def _persist(self, record: TaskRecord) -> TaskRecord:
        task_id = await self._db.save_task(record.to_dict())
        saved = replace(record, id=task_id)
        self._event_bus.emit(AppEvent.TASKS_CHANGED, saved)
        return saved
