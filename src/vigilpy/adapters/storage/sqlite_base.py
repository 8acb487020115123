"""Shared connection handling for the SQLite stores."""

import asyncio
import json
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

import aiosqlite

MEMORY = ":memory:"


def loads_object(data: str) -> dict[str, Any]:
    """Parse a JSON object column, treating malformed data as empty."""
    try:
        result = json.loads(data)
    except json.JSONDecodeError:
        return {}
    return result if isinstance(result, dict) else {}


class AsyncConnectionManager:
    """Manages aiosqlite connections for one database.

    The schema is created once, on first use. File databases get a fresh
    connection per operation and run in WAL mode. ``:memory:`` databases are
    connection-scoped in SQLite, so a single persistent connection is kept
    until ``close``.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        self._db_path = db_path
        self._schema = schema
        self._initialized = False
        self._init_lock: asyncio.Lock | None = None
        self._persistent_conn: aiosqlite.Connection | None = None

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def _is_memory(self) -> bool:
        return self._db_path == MEMORY

    def _get_lock(self) -> asyncio.Lock:
        # Created lazily so the lock binds to the running loop.
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        async with self._get_lock():
            if self._initialized:
                return
            if self._is_memory:
                self._persistent_conn = await aiosqlite.connect(MEMORY)
                await self._persistent_conn.executescript(self._schema)
            else:
                async with aiosqlite.connect(self._db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.executescript(self._schema)
            self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection, closing it afterwards for file databases."""
        await self._ensure_initialized()
        if self._is_memory:
            if self._persistent_conn is None:
                raise RuntimeError("Memory database connection not initialized")
            yield self._persistent_conn
            return
        db = await aiosqlite.connect(self._db_path)
        try:
            yield db
        finally:
            await db.close()

    async def close(self) -> None:
        """Close the persistent connection of a ``:memory:`` database."""
        if self._persistent_conn is not None:
            await self._persistent_conn.close()
            self._persistent_conn = None
            self._initialized = False


class SQLiteStoreBase:
    """Base for SQLite stores; subclasses provide the schema."""

    _schema: str

    def __init__(self, db_path: str) -> None:
        self._manager = AsyncConnectionManager(db_path, self._schema)

    def connection(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        return self._manager.connection()

    async def close(self) -> None:
        await self._manager.close()

    async def _fetch_count(self, query: str, params: tuple[Any, ...] = ()) -> int:
        async with self.connection() as db:
            async with db.execute(query, params) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0
