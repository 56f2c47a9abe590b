"""
SQLite database service.
"""

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, List, Optional

import aiosqlite

from ..config import settings
from ..logger import get_logger

logger = get_logger(__name__)

SCHEMA_PATH = Path(__file__).parent.parent / "schema.sql"


def now_ts() -> str:
    """UTC timestamp in the same format as SQLite CURRENT_TIMESTAMP."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def to_json(value: Any) -> str:
    """Serializes an embedded document for a JSON text column."""
    return json.dumps(value, ensure_ascii=False, default=str)


def from_json(value: Optional[str], default: Any = None) -> Any:
    """Reads a JSON text column, returning ``default`` for empty values."""
    if value in (None, ""):
        return default
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        logger.warning("[DB] Could not decode JSON column value: %r", value)
        return default


class DatabaseService:
    """Async SQLite service."""

    def __init__(self, db_path: Path = None):
        self.db_path = Path(db_path or settings.DATABASE_PATH)
        self._connection: Optional[aiosqlite.Connection] = None
        self._tx_depth = 0
        self._tx_owner: Optional[asyncio.Task] = None
        self._tx_lock = asyncio.Lock()

    async def connect(self) -> None:
        """Opens the connection."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        await self._connection.execute("PRAGMA foreign_keys = ON")

    async def disconnect(self) -> None:
        """Closes the connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def init_schema(self) -> None:
        """Creates missing tables from schema.sql."""
        script = SCHEMA_PATH.read_text(encoding="utf-8")
        await self.connection.executescript(script)
        await self.connection.commit()

    @property
    def connection(self) -> aiosqlite.Connection:
        if not self._connection:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    @property
    def in_transaction(self) -> bool:
        """True when the calling task holds the open transaction."""
        return self._tx_owner is not None and self._tx_owner is asyncio.current_task()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator["DatabaseService", None]:
        """
        Groups several writes into one unit of work.

        The connection is shared by all requests, so a transaction belongs to
        the task that opened it. Inside the block that task's
        ``insert``/``update``/``delete`` do not commit; the whole block is
        committed on exit or rolled back if it raises. Nested blocks of the
        same task join the outer one. Writes and transactions of other tasks
        wait until the block has finished.
        """
        if self.in_transaction:
            self._tx_depth += 1
            try:
                yield self
            finally:
                self._tx_depth -= 1
            return

        async with self._tx_lock:
            self._tx_owner = asyncio.current_task()
            self._tx_depth = 1
            try:
                yield self
            except BaseException:
                await self.connection.rollback()
                raise
            else:
                await self.connection.commit()
            finally:
                self._tx_depth = 0
                self._tx_owner = None

    async def _write(self, query: str, params: tuple = ()) -> aiosqlite.Cursor:
        if self.in_transaction:
            return await self.connection.execute(query, params)
        async with self._tx_lock:
            try:
                cursor = await self.connection.execute(query, params)
            except Exception:
                await self.connection.rollback()
                raise
            await self.connection.commit()
            return cursor

    async def execute(self, query: str, params: tuple = ()) -> aiosqlite.Cursor:
        """Runs a single statement without committing."""
        return await self.connection.execute(query, params)

    async def executemany(self, query: str, params_list: List[tuple]) -> aiosqlite.Cursor:
        if self.in_transaction:
            return await self.connection.executemany(query, params_list)
        async with self._tx_lock:
            cursor = await self.connection.executemany(query, params_list)
            await self.connection.commit()
            return cursor

    async def commit(self) -> None:
        if self.in_transaction:
            return
        async with self._tx_lock:
            await self.connection.commit()

    async def rollback(self) -> None:
        """Rolls back uncommitted work; waits for another task's transaction first."""
        if self.in_transaction:
            await self.connection.rollback()
            return
        async with self._tx_lock:
            await self.connection.rollback()

    async def fetch_one(self, query: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        """Returns the first row as a dict, or None."""
        cursor = await self.execute(query, params)
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def fetch_all(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        """Returns all rows as dicts."""
        cursor = await self.execute(query, params)
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def fetch_value(self, query: str, params: tuple = (), default: Any = None) -> Any:
        """Returns the first column of the first row."""
        cursor = await self.execute(query, params)
        row = await cursor.fetchone()
        if row is None or row[0] is None:
            return default
        return row[0]

    async def insert(self, table: str, data: Dict[str, Any]) -> int:
        """Inserts a row and returns its id."""
        columns = ", ".join(data.keys())
        placeholders = ", ".join(["?" for _ in data])
        query = f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"

        cursor = await self._write(query, tuple(data.values()))
        return cursor.lastrowid

    async def update(
        self,
        table: str,
        data: Dict[str, Any],
        where: str,
        where_params: tuple = ()
    ) -> int:
        """Updates rows and returns the affected row count."""
        set_clause = ", ".join([f"{k} = ?" for k in data.keys()])
        query = f"UPDATE {table} SET {set_clause} WHERE {where}"

        cursor = await self._write(query, tuple(data.values()) + where_params)
        return cursor.rowcount

    async def delete(self, table: str, where: str, where_params: tuple = ()) -> int:
        """Deletes rows and returns the affected row count."""
        query = f"DELETE FROM {table} WHERE {where}"
        cursor = await self._write(query, where_params)
        return cursor.rowcount


# Global service instance, set up by the application lifespan
_db_service: Optional[DatabaseService] = None


async def get_db() -> AsyncGenerator[DatabaseService, None]:
    """FastAPI dependency returning the database service."""
    global _db_service

    if _db_service is None:
        _db_service = DatabaseService()
        await _db_service.connect()
        await _db_service.init_schema()

    try:
        yield _db_service
    except Exception:
        if not _db_service.in_transaction:
            await _db_service.rollback()
        raise


@asynccontextmanager
async def get_db_context(db_path: Path = None) -> AsyncGenerator[DatabaseService, None]:
    """Standalone connection for scripts."""
    db = DatabaseService(db_path)
    await db.connect()
    await db.init_schema()
    try:
        yield db
    finally:
        await db.disconnect()
