"""SQLite connection pool backing the document store."""

from __future__ import annotations

import asyncio
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite

from core import get_logger

logger = get_logger(__name__)


@dataclass
class _PooledConnection:
    conn: aiosqlite.Connection
    in_use: bool = False


class SQLitePool:
    """Small fixed-size pool of aiosqlite connections.

    Connections are opened lazily on first use. ``connection()`` waits for a
    free connection instead of opening extra ones.
    """

    def __init__(self, database_path: str, pool_size: int = 5, busy_timeout_ms: int = 5000) -> None:
        self.database_path = Path(database_path)
        self.pool_size = max(1, pool_size)
        self.busy_timeout_ms = busy_timeout_ms
        self._connections: deque[_PooledConnection] = deque()
        self._available: Optional[asyncio.Condition] = None
        self._init_lock = asyncio.Lock()
        self._initialized = False

    @property
    def size(self) -> int:
        return len(self._connections)

    async def init_pool(self) -> None:
        async with self._init_lock:
            if self._initialized:
                return

            self.database_path.parent.mkdir(parents=True, exist_ok=True)

            for _ in range(self.pool_size):
                conn = await aiosqlite.connect(self.database_path.as_posix())
                await self._apply_pragma(conn)
                self._connections.append(_PooledConnection(conn=conn))

            self._available = asyncio.Condition()
            self._initialized = True
        logger.info(
            f"SQLite pool ready with {self.pool_size} connections",
            extra={"database_path": self.database_path.as_posix()}
        )

    async def close(self) -> None:
        while self._connections:
            pooled = self._connections.popleft()
            await pooled.conn.close()
        self._initialized = False

    async def _apply_pragma(self, conn: aiosqlite.Connection) -> None:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout_ms}")

    async def _acquire(self) -> aiosqlite.Connection:
        assert self._available is not None
        async with self._available:
            while True:
                for pooled in self._connections:
                    if not pooled.in_use:
                        pooled.in_use = True
                        return pooled.conn
                await self._available.wait()

    async def _release(self, conn: aiosqlite.Connection) -> None:
        assert self._available is not None
        async with self._available:
            for pooled in self._connections:
                if pooled.conn is conn:
                    pooled.in_use = False
                    break
            self._available.notify()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        if not self._initialized:
            await self.init_pool()
        conn = await self._acquire()
        try:
            yield conn
        finally:
            await self._release(conn)
