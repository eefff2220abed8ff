import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


class DatabaseError(Exception):
    """Custom exception for database operations."""
    pass


def _deserialize_task_row(row) -> Dict[str, Any]:
    """Convert a raw database row into a task dict.

    Dates stay ISO strings; TaskRecord.from_dict parses and validates them.
    """
    task_dict = dict(row)
    task_dict["postpone_count"] = task_dict.get("postpone_count") or 0
    task_dict["task_kind"] = task_dict.get("task_kind") or "normal"
    return task_dict
