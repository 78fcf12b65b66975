import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg

logger = logging.getLogger(__name__)


class DatabasePool:
    """Manages the asyncpg connection pool lifecycle."""

    def __init__(self):
        self._pool: Optional[asyncpg.Pool] = None

    async def initialize(
        self,
        dsn: str,
        *,
        min_size: int = 2,
        max_size: int = 10,
    ) -> None:
        """Create the connection pool. Call once at app startup."""
        if self._pool is not None:
            return
        # Supabase's pooler (pgbouncer, transaction mode) rejects named prepared statements.
        self._pool = await asyncpg.create_pool(
            dsn=dsn,
            min_size=min_size,
            max_size=max_size,
            statement_cache_size=0,
        )
        logger.info("Database pool ready (min=%d, max=%d)", min_size, max_size)

    async def close(self) -> None:
        """Close all connections. Call at app shutdown."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database pool closed")

    @property
    def pool(self) -> asyncpg.Pool:
        """Get the pool, raising if not initialized."""
        if self._pool is None:
            raise RuntimeError(
                "Database pool not initialized. Call await initialize() first."
            )
        return self._pool

    async def health_check(self) -> bool:
        """Test connectivity with SELECT 1."""
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except (asyncpg.PostgresError, OSError, RuntimeError) as e:
            logger.warning("Database health check failed: %s", e)
            return False


@asynccontextmanager
async def acquire_as(pool: asyncpg.Pool, user_id: Optional[str]) -> AsyncIterator[asyncpg.Connection]:
    """Acquire a connection whose transaction runs with `user_id` as auth.uid().

    Server-side functions that read the caller from the JWT claims (feed ranking,
    notification bookkeeping) only see the right user inside this block.
    """
    async with pool.acquire() as conn:
        async with conn.transaction():
            if user_id:
                claims = json.dumps({"sub": str(user_id), "role": "authenticated"})
                await conn.execute(
                    "SELECT set_config('request.jwt.claims', $1, true)", claims
                )
            yield conn
