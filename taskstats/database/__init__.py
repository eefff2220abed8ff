"""Database package - async SQLite with mixin-based composition.

``from taskstats.database import Database, DatabaseError`` is the public API.
Each Database owns its own connection, so tests and tools can open as many
independent stores (``":memory:"`` included) as they need.
"""
from taskstats.database.helpers import DatabaseError
from taskstats.database.core import DatabaseCore
from taskstats.database.tasks import TasksMixin
from taskstats.database.categories import CategoriesMixin

__all__ = ["Database", "DatabaseError"]


class Database(DatabaseCore, TasksMixin, CategoriesMixin):
    """Composed database class combining all mixins."""
    pass
