import uuid
from typing import List

from taskstats.config import DEFAULT_CATEGORY_COLOR
from taskstats.database import Database
from taskstats.events import AppEvent, EventBus
from taskstats.models.entities import Category


class CategoryService:
    """Service for category operations."""

    def __init__(self, db: Database, event_bus: EventBus) -> None:
        self._db = db
        self._event_bus = event_bus

    async def load_categories(self) -> List[Category]:
        return [Category.from_dict(d) for d in await self._db.load_categories()]

    async def add_category(self, name: str, color: str = DEFAULT_CATEGORY_COLOR) -> Category:
        category = Category(id=str(uuid.uuid4())[:8], name=name, color=color)
        await self._db.save_category(category.to_dict())
        self._event_bus.emit(AppEvent.CATEGORIES_CHANGED, category)
        return category

    async def delete_category(self, category_id: str) -> int:
        """Delete a category. Its tasks become uncategorized.

        Returns the number of tasks that were detached.
        """
        detached = await self._db.delete_category(category_id)
        self._event_bus.emit(AppEvent.CATEGORIES_CHANGED)
        if detached:
            self._event_bus.emit(AppEvent.TASKS_CHANGED)
        return detached
