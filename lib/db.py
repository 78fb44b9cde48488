"""
Database module - PostgreSQL connection pooling

The pool is created once at startup. If that fails the app keeps serving
in a degraded state and later requests retry creation through
ensure_pool(), one attempt at a time.
"""
import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import asyncpg

from lib.logging import get_logger
from lib.settings import Settings, settings as default_settings

logger = get_logger("db")

NOT_INITIALIZED = "Database connection pool not initialized"


class PoolUnavailableError(RuntimeError):
    """No connection pool exists (startup failed and retry did not help)"""

    def __init__(self, message: str = NOT_INITIALIZED):
        super().__init__(message)


class Database:
    """Database connection pool manager"""

    def __init__(self, config: Optional[Settings] = None):
        self.settings = config or default_settings
        self.pool: Optional[asyncpg.Pool] = None
        self.last_error: Optional[Exception] = None
        self._lock = asyncio.Lock()
        self._last_attempt: Optional[float] = None
        self._recycle_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def is_initialized(self) -> bool:
        return self.pool is not None

    def _pool_options(self) -> dict:
        s = self.settings
        return {
            "host": s.db_host,
            "port": int(s.db_port),
            "database": s.db_name,
            "user": s.db_user,
            "password": s.db_password or None,
            "ssl": s.db_sslmode,
            "min_size": s.db_pool_min_size,
            "max_size": s.db_pool_max_size,
            "max_inactive_connection_lifetime": s.db_max_idle_seconds,
            "command_timeout": s.db_command_timeout,
            "timeout": s.db_connect_timeout,
        }

    async def _create_pool(self) -> bool:
        """Single creation attempt; caller holds the lock"""
        if self.pool is not None:
            return True

        self._last_attempt = time.monotonic()
        try:
            pool = await asyncio.wait_for(
                asyncpg.create_pool(**self._pool_options()),
                timeout=self.settings.db_connect_timeout,
            )
        except Exception as e:
            self.last_error = e
            logger.warning(f"DB pool init failed (will retry on requests): {e!r}")
            return False

        if self._closed:
            # Shutdown began while this attempt was in flight
            await pool.close()
            return False

        self.pool = pool
        self.last_error = None
        self._start_recycler()
        logger.info(
            f"Connected to PostgreSQL {self.settings.describe_db()} "
            f"(min={self.settings.db_pool_min_size}, max={self.settings.db_pool_max_size})"
        )
        return True

    def _retry_due(self) -> bool:
        if self._last_attempt is None:
            return True
        elapsed = time.monotonic() - self._last_attempt
        return elapsed >= self.settings.db_init_retry_seconds

    async def connect(self) -> bool:
        """Create connection pool, bounded by the connect timeout. Never raises."""
        async with self._lock:
            return await self._create_pool()

    async def ensure_pool(self, wait: bool = True) -> Optional[asyncpg.Pool]:
        """
        Return the pool, lazily retrying creation if startup failed.

        With wait=False an attempt already in flight is not waited for;
        the caller gets None right away.
        """
        if self.pool is not None or self._closed:
            return self.pool

        if not wait and self._lock.locked():
            return None

        async with self._lock:
            if self.pool is None and self._retry_due():
                await self._create_pool()
        return self.pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire connection from pool; released on every exit path"""
        pool = await self.ensure_pool()
        if pool is None:
            raise PoolUnavailableError()

        async with pool.acquire(timeout=self.settings.db_acquire_timeout) as conn:
            yield conn

    async def ping(self, timeout: float) -> None:
        """Round-trip a trivial query within timeout; raises on failure"""
        pool = await self.ensure_pool()
        if pool is None:
            raise PoolUnavailableError()

        async def _ping():
            async with pool.acquire(timeout=timeout) as conn:
                await conn.fetchval("SELECT 1", timeout=timeout)

        await asyncio.wait_for(_ping(), timeout=timeout)

    async def check_ready(self, timeout: float) -> None:
        """
        Readiness within one overall timeout, lazy init included.

        A pool creation that outlives the timeout keeps running in the
        background (shielded) so a later check can find the pool ready.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        try:
            pool = await asyncio.wait_for(asyncio.shield(self.ensure_pool()), timeout=timeout)
        except asyncio.TimeoutError:
            pool = None
        if pool is None:
            raise PoolUnavailableError()

        await self.ping(max(deadline - loop.time(), 0))

    def stats(self) -> Dict[str, int]:
        if self.pool is None:
            return {}
        return {
            "size": self.pool.get_size(),
            "idle": self.pool.get_idle_size(),
            "min_size": self.pool.get_min_size(),
            "max_size": self.pool.get_max_size(),
        }

    def _start_recycler(self):
        if self._recycle_task is None:
            self._recycle_task = asyncio.create_task(self._recycle_connections())

    async def _recycle_connections(self):
        """asyncpg has no max lifetime; expire everything on that period instead"""
        while True:
            await asyncio.sleep(self.settings.db_max_lifetime_seconds)
            if self.pool is None:
                continue
            try:
                await self.pool.expire_connections()
                logger.debug("Expired pooled connections (max lifetime reached)")
            except Exception as e:
                logger.warning(f"Expiring pooled connections failed: {e!r}")

    async def disconnect(self):
        """Close connection pool; waits for an init attempt in flight"""
        self._closed = True

        if self._recycle_task is not None:
            self._recycle_task.cancel()
            try:
                await self._recycle_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning(f"Connection recycler ended with error: {e!r}")
            self._recycle_task = None

        async with self._lock:
            pass

        if self.pool is not None:
            await self.pool.close()
            self.pool = None
            logger.info("Database connection pool closed")
