import aiosqlite
import asyncio
import json
import sqlite3
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Any, AsyncIterator, Union

from taskstats.config import DEFAULT_PRIORITY, TaskKind
from taskstats.database.helpers import DatabaseError

logger = logging.getLogger(__name__)


class DatabaseCore:
    """Async SQLite database with persistent connection and async lock.

    Uses a single persistent connection with an async lock to serialize
    access (SQLite limitation). The connection is lazily initialized on
    first use and reused until explicitly closed.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._initialized = False
        self._init_lock: Optional[asyncio.Lock] = None
        self._conn: Optional[aiosqlite.Connection] = None
        self._conn_lock: Optional[asyncio.Lock] = None

    async def _ensure_connection(self) -> aiosqlite.Connection:
        """Ensure we have an open connection, creating one if needed."""
        if self._conn is None:
            try:
                self._conn = await aiosqlite.connect(self.path)
                self._conn.row_factory = aiosqlite.Row
                await self._conn.execute("PRAGMA journal_mode=WAL")
                await self._conn.execute("PRAGMA busy_timeout=5000")
            except (sqlite3.Error, OSError) as e:
                self._conn = None
                raise DatabaseError(f"Cannot open database at {self.path}: {e}") from e
        return self._conn

    async def _get_lock(self) -> asyncio.Lock:
        if self._conn_lock is None:
            self._conn_lock = asyncio.Lock()
        return self._conn_lock

    @asynccontextmanager
    async def _get_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Get a database connection with serialized access."""
        lock = await self._get_lock()
        async with lock:
            conn = await self._ensure_connection()
            yield conn

    async def close(self) -> None:
        """Close the persistent connection."""
        if self._conn is not None:
            try:
                await self._conn.close()
            except (sqlite3.Error, OSError) as e:
                logger.warning(f"Error closing database connection: {e}")
            finally:
                self._conn = None
                # The next connection may open a fresh ":memory:" database
                self._initialized = False

    async def _get_init_lock(self) -> asyncio.Lock:
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    async def init_db(self) -> None:
        """Initialize the database schema if needed."""
        lock = await self._get_init_lock()
        async with lock:
            if self._initialized:
                return
            async with self._get_connection() as conn:
                await self._init_schema(conn)
                await self._migrate_schema(conn)
                await conn.commit()
            self._initialized = True

    async def _init_schema(self, conn: aiosqlite.Connection) -> None:
        default_kind = TaskKind.NORMAL.value
        default_priority = DEFAULT_PRIORITY.value
        try:
            await conn.executescript(f"""
                CREATE TABLE IF NOT EXISTS categories (
                    id TEXT PRIMARY KEY, name TEXT NOT NULL, color TEXT NOT NULL
                );
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT, title TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending',
                    created_at TEXT NOT NULL, due_date TEXT NOT NULL, due_time TEXT,
                    completed_at TEXT,
                    postpone_count INTEGER DEFAULT 0, postpone_history TEXT,
                    task_kind TEXT DEFAULT '{default_kind}',
                    is_routine_task INTEGER DEFAULT 0, has_recurrence INTEGER DEFAULT 0,
                    is_special INTEGER DEFAULT 0,
                    category_id TEXT,
                    priority TEXT DEFAULT '{default_priority}'
                );
                CREATE TABLE IF NOT EXISTS settings (key TEXT PRIMARY KEY, value TEXT NOT NULL);
                CREATE INDEX IF NOT EXISTS idx_tasks_due ON tasks(due_date);
                CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);
            """)
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error initializing database schema: {e}")
            raise DatabaseError(f"Failed to initialize schema: {e}") from e

    async def _migrate_schema(self, conn: aiosqlite.Connection) -> None:
        """Handle schema migrations for existing databases."""
        try:
            async with conn.execute("PRAGMA table_info(tasks)") as cursor:
                cols = [r[1] async for r in cursor]

            if "not_done_reason" not in cols:
                await conn.execute(
                    "ALTER TABLE tasks ADD COLUMN not_done_reason TEXT"
                )
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error during schema migration: {e}")
            raise DatabaseError(f"Failed to migrate schema: {e}") from e

    async def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a setting value. Returns default if not found or on error."""
        try:
            async with self._get_connection() as conn:
                async with conn.execute(
                    "SELECT value FROM settings WHERE key=?",
                    (key,)
                ) as cursor:
                    row = await cursor.fetchone()
                    return json.loads(row["value"]) if row else default
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Error getting setting {key}: {e}")
            return default

    async def set_setting(self, key: str, value: Any) -> None:
        try:
            async with self._get_connection() as conn:
                await conn.execute(
                    "INSERT OR REPLACE INTO settings (key,value) VALUES (?,?)",
                    (key, json.dumps(value))
                )
                await conn.commit()
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error setting {key}: {e}")
            raise DatabaseError(f"Failed to save setting: {e}") from e

    async def reset(self) -> None:
        """Delete every task, category and setting."""
        try:
            async with self._get_connection() as conn:
                await conn.execute("DELETE FROM tasks")
                await conn.execute("DELETE FROM categories")
                await conn.execute("DELETE FROM settings")
                await conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error resetting database: {e}")
            raise DatabaseError(f"Failed to reset database: {e}") from e
