import sqlite3
import logging
from typing import Any, Dict, List, Optional

from taskstats.database.helpers import DatabaseError, _deserialize_task_row

logger = logging.getLogger(__name__)

_TASK_COLUMNS = (
    "title", "status", "created_at", "due_date", "due_time", "completed_at",
    "postpone_count", "postpone_history", "task_kind", "is_routine_task",
    "has_recurrence", "is_special", "category_id", "priority", "not_done_reason",
)


class TasksMixin:
    """Task CRUD operations mixin for the Database class."""

    async def save_task(self, t: Dict[str, Any]) -> int:
        """Insert a task (no id) or update it in place. Returns the id."""
        params = tuple(t.get(col) for col in _TASK_COLUMNS)
        try:
            async with self._get_connection() as conn:
                if t.get("id") is None:
                    placeholders = ",".join("?" for _ in _TASK_COLUMNS)
                    cursor = await conn.execute(
                        f"INSERT INTO tasks ({','.join(_TASK_COLUMNS)}) VALUES ({placeholders})",
                        params
                    )
                    await conn.commit()
                    return cursor.lastrowid
                assignments = ",".join(f"{col}=?" for col in _TASK_COLUMNS)
                await conn.execute(
                    f"UPDATE tasks SET {assignments} WHERE id=?",
                    params + (t["id"],)
                )
                await conn.commit()
                return t["id"]
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error saving task: {e}")
            raise DatabaseError(f"Failed to save task: {e}") from e

    async def delete_task(self, task_id: int) -> None:
        try:
            async with self._get_connection() as conn:
                await conn.execute("DELETE FROM tasks WHERE id=?", (task_id,))
                await conn.commit()
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error deleting task {task_id}: {e}")
            raise DatabaseError(f"Failed to delete task: {e}") from e

    async def load_tasks(self) -> List[Dict[str, Any]]:
        try:
            async with self._get_connection() as conn:
                async with conn.execute("SELECT * FROM tasks ORDER BY due_date, id") as cursor:
                    return [_deserialize_task_row(r) async for r in cursor]
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error loading tasks: {e}")
            raise DatabaseError(f"Failed to load tasks: {e}") from e

    async def load_task_by_id(self, task_id: int) -> Optional[Dict[str, Any]]:
        """Load a single task by ID. Returns None if not found."""
        try:
            async with self._get_connection() as conn:
                async with conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)) as cursor:
                    row = await cursor.fetchone()
                    return _deserialize_task_row(row) if row else None
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error loading task by id: {e}")
            raise DatabaseError(f"Failed to load task {task_id}: {e}") from e
