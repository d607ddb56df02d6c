"""Async SQLite access for guide content.

One shared aiosqlite connection per process. Single statements go through
execute/fetchone/fetchall; multi-row writes (an import creating many flow
boxes and steps) go through transaction(). Every call takes the same lock,
so no statement runs in the middle of another coroutine's transaction.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from flowguide.db.schema import SCHEMA_SQL

logger = logging.getLogger(__name__)

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA foreign_keys=ON",  # flow boxes and steps cascade with their guide
    "PRAGMA busy_timeout=5000",
)


class Database:
    """Wraps one aiosqlite connection; rows come back as aiosqlite.Row."""

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._conn = connection
        self._lock = asyncio.Lock()

    @classmethod
    async def connect(cls, path: str = "flowguide.db") -> "Database":
        """Open the database at path and make sure the schema exists."""
        conn = await aiosqlite.connect(path)
        conn.row_factory = aiosqlite.Row
        for pragma in _PRAGMAS:
            await conn.execute(pragma)
        db = cls(conn)
        await db._ensure_schema()
        logger.info("Opened guide database at %s", path)
        return db

    async def _ensure_schema(self) -> None:
        """Create tables if they don't exist. Idempotent."""
        await self._conn.executescript(SCHEMA_SQL)
        await self._conn.commit()

    async def execute(self, sql: str, params: tuple | None = None) -> aiosqlite.Cursor:
        """Execute one statement and commit it."""
        async with self._lock:
            try:
                cursor = await self._conn.execute(sql, params or ())
            except BaseException:
                await self._conn.rollback()
                raise
            await self._conn.commit()
        return cursor

    async def fetchone(self, sql: str, params: tuple | None = None) -> aiosqlite.Row | None:
        async with self._lock:
            cursor = await self._conn.execute(sql, params or ())
            return await cursor.fetchone()

    async def fetchall(self, sql: str, params: tuple | None = None) -> list[aiosqlite.Row]:
        async with self._lock:
            cursor = await self._conn.execute(sql, params or ())
            return list(await cursor.fetchall())

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Run several statements atomically.

        Statements issued on the yielded connection are committed together
        when the block exits, or rolled back if it raises. The lock is held
        for the whole block, so the body must use the yielded connection and
        not call back into this Database.
        """
        async with self._lock:
            await self._conn.execute("BEGIN IMMEDIATE")
            try:
                yield self._conn
            except BaseException:
                await self._conn.rollback()
                raise
            await self._conn.commit()

    async def close(self) -> None:
        await self._conn.close()
