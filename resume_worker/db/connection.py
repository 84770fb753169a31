"""Database connection utilities."""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import asyncpg

from resume_worker.exceptions import DataAccessError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class PostgresClient:
    """Owns one asyncpg pool for a single database.

    Pools serialize connection use internally, so one client is shared by all
    in-flight jobs.
    """

    name = "postgres"

    def __init__(self, dsn: str, min_size: int = 2, max_size: int = 10, timeout: float = 10.0):
        self.dsn = dsn
        self.min_size = min(min_size, max_size)
        self.max_size = max_size
        self.timeout = timeout
        self._pool: Optional[asyncpg.Pool] = None

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise DataAccessError(self.name, "connection pool is not open")
        return self._pool

    async def connect(self) -> None:
        """Create the pool and verify connectivity."""
        if self._pool is not None:
            return
        try:
            self._pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                timeout=self.timeout,
                command_timeout=self.timeout,
            )
            await self._pool.fetchval("SELECT 1")
        except _DRIVER_ERRORS as e:
            logger.error(f"Failed to connect to {self.name} database: {e}")
            raise DataAccessError(self.name, f"connection failed: {e}") from e
        logger.info(f"{self.name.capitalize()} database connection pool initialized")

    async def close(self) -> None:
        """Close database connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info(f"{self.name.capitalize()} database connection pool closed")

    async def ping(self) -> bool:
        try:
            await self.fetchval("SELECT 1")
            return True
        except DataAccessError:
            return False

    async def _run(self, operation: Callable[[], Awaitable[T]], query: str) -> T:
        try:
            return await operation()
        except _DRIVER_ERRORS as e:
            logger.error(f"{self.name} query failed: {e} ({' '.join(query.split())[:120]})")
            raise DataAccessError(self.name, str(e)) from e

    async def fetch(self, query: str, *args) -> List[Dict[str, Any]]:
        """Execute a query and return all rows as dicts."""
        rows = await self._run(lambda: self.pool.fetch(query, *args), query)
        return [dict(row) for row in rows]

    async def fetchrow(self, query: str, *args) -> Optional[Dict[str, Any]]:
        """Execute a query and return one row."""
        row = await self._run(lambda: self.pool.fetchrow(query, *args), query)
        return dict(row) if row is not None else None

    async def fetchval(self, query: str, *args) -> Any:
        return await self._run(lambda: self.pool.fetchval(query, *args), query)

    async def execute(self, query: str, *args) -> str:
        """Execute an update/insert query."""
        return await self._run(lambda: self.pool.execute(query, *args), query)


def drop_nulls(row: Dict[str, Any]) -> Dict[str, Any]:
    """Drop NULL columns so model defaults apply."""
    return {key: value for key, value in row.items() if value is not None}
