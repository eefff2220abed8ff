import sqlite3
import logging
from typing import Dict, List

from taskstats.database.helpers import DatabaseError

logger = logging.getLogger(__name__)


class CategoriesMixin:
    """Category operations mixin."""

    async def save_category(self, c: Dict[str, str]) -> None:
        try:
            async with self._get_connection() as conn:
                await conn.execute(
                    "INSERT OR REPLACE INTO categories (id,name,color) VALUES (?,?,?)",
                    (c["id"], c["name"], c["color"])
                )
                await conn.commit()
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error saving category: {e}")
            raise DatabaseError(f"Failed to save category: {e}") from e

    async def delete_category(self, category_id: str) -> int:
        """Delete a category and detach its tasks.

        Returns the number of tasks that were moved to uncategorized.
        """
        try:
            async with self._get_connection() as conn:
                cursor = await conn.execute(
                    "UPDATE tasks SET category_id=NULL WHERE category_id=?",
                    (category_id,)
                )
                detached = cursor.rowcount
                await conn.execute("DELETE FROM categories WHERE id=?", (category_id,))
                await conn.commit()
                return detached
        except sqlite3.Error as e:
            logger.error(f"Error deleting category {category_id}: {e}")
            raise DatabaseError(f"Failed to delete category: {e}") from e

    async def load_categories(self) -> List[Dict[str, str]]:
        try:
            async with self._get_connection() as conn:
                async with conn.execute("SELECT * FROM categories ORDER BY name") as cursor:
                    return [dict(r) async for r in cursor]
        except sqlite3.Error as e:
            logger.error(f"Error loading categories: {e}")
            raise DatabaseError(f"Failed to load categories: {e}") from e
