from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import asyncpg

from ticketdesk.core.config import Settings

logger = logging.getLogger(__name__)


class DatabaseUnavailableError(RuntimeError):
    """Raised when no connection pool could be created after all attempts."""


@dataclass(slots=True)
class PostgresPool:
    """Lazily created asyncpg pool shared by every repository in the process."""

    dsn: str
    min_size: int = 1
    max_size: int = 10
    connect_attempts: int = 10
    connect_delay: float = 2.0
    _pool: asyncpg.Pool | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PostgresPool":
        return cls(
            dsn=settings.postgres_dsn,
            min_size=settings.postgres_min_pool_size,
            max_size=settings.postgres_max_pool_size,
            connect_attempts=settings.postgres_connect_attempts,
            connect_delay=settings.postgres_connect_delay,
        )

    async def get_pool(self) -> asyncpg.Pool:
        if self._pool is not None:
            return self._pool

        attempts = max(1, self.connect_attempts)
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                self._pool = await asyncpg.create_pool(
                    dsn=self.dsn, min_size=self.min_size, max_size=self.max_size
                )
                return self._pool
            except (OSError, asyncpg.PostgresError) as exc:
                last_error = exc
                logger.warning("postgres_connect_failed attempt=%d/%d error=%s", attempt, attempts, exc)
                if attempt < attempts:
                    await asyncio.sleep(self.connect_delay)

        raise DatabaseUnavailableError(f"failed connecting to database after {attempts} attempts") from last_error

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
