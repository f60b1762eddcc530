"""
Checkins Backend — Bounded Connection Pool
============================================

What:  Async SQLAlchemy engine wrapped in a fixed-size, semaphore-gated pool.
Why:   The pool is the only resource shared between concurrent requests.
       Capping it protects the database; bounding the wait protects the
       server from piling up requests while every connection is busy.
How:   `ConnectionPool.acquire()` waits (at most `acquire_timeout` seconds)
       for one of `max_size` slots, checks out a connection into an
       AsyncSession, commits on success, rolls back on error, and always
       releases the slot on scope exit.

Connection Pooling Strategy:
    pool_size=max_size, max_overflow=0:  the engine never opens more than
                                         max_size connections
    semaphore(max_size):                 same cap, with caller-visible timeout
                                         and in-use accounting
    pool_pre_ping:                       validates connections before use
    pool_recycle=3600:                   recycles connections every hour

Failure kinds:
    PoolExhaustedError  no slot freed up within acquire_timeout
    ConnectFailedError  the store refused or dropped the connection attempt
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError, TimeoutError as SQLAlchemyTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from checkins.config import Settings
from checkins.exceptions import ConnectFailedError, PoolExhaustedError

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 15


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with this metadata; `ConnectionPool.create_schema()`
    creates tables from it.
    """
    pass


class ConnectionPool:
    """
    Fixed-size pool of database connections handed out per operation.

    Attributes:
        max_size:         Maximum number of connections in use at once
        acquire_timeout:  Seconds to wait for a free connection
        engine:           The underlying AsyncEngine

    Thread Safety:
        Accounting is only touched from the event loop; acquire/release are
        safe under any number of concurrent tasks.
    """

    def __init__(
        self,
        database_url: str,
        max_size: int = DEFAULT_POOL_SIZE,
        acquire_timeout: float = 30.0,
        pre_ping: bool = True,
        echo: bool = False,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.max_size = max_size
        self.acquire_timeout = acquire_timeout
        self.engine: AsyncEngine = create_async_engine(
            database_url,
            pool_size=max_size,
            max_overflow=0,
            pool_timeout=acquire_timeout,
            pool_pre_ping=pre_ping,
            pool_recycle=3600,
            echo=echo,
        )
        # expire_on_commit=False: rows stay readable after the session commits
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._slots = asyncio.Semaphore(max_size)
        self._in_use = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConnectionPool":
        """Build a pool from application settings."""
        return cls(
            settings.database_url,
            max_size=settings.db_pool_size,
            acquire_timeout=settings.db_pool_timeout,
            pre_ping=settings.db_pool_pre_ping,
            echo=settings.log_level == "DEBUG",
        )

    # ── Acquisition ───────────────────────────────────────────────────────

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[AsyncSession]:
        """
        Check out a connection for the duration of the `async with` block.

        Example:
            async with pool.acquire() as session:
                await session.execute(select(Checkin))

        Raises:
            PoolExhaustedError: No slot became free within acquire_timeout
            ConnectFailedError: The connection could not be opened
        """
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self.acquire_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Connection pool exhausted: %d/%d in use after %.2fs wait",
                self._in_use,
                self.max_size,
                self.acquire_timeout,
            )
            raise PoolExhaustedError(self.max_size, self.acquire_timeout)

        self._in_use += 1
        try:
            async with self._session_factory() as session:
                await self._checkout(session)
                try:
                    yield session
                    await session.commit()
                except Exception:
                    # Discard partial writes; the caller decides how to report it
                    await session.rollback()
                    raise
        finally:
            self._in_use -= 1
            self._slots.release()

    async def _checkout(self, session: AsyncSession) -> None:
        """Bind a live connection to the session so connect failures surface here."""
        try:
            await session.connection()
        except SQLAlchemyTimeoutError:
            raise PoolExhaustedError(self.max_size, self.acquire_timeout)
        except (SQLAlchemyError, OSError) as e:
            logger.error("Could not open database connection: %s", str(e))
            raise ConnectFailedError(
                context={"error_type": type(e).__name__},
            ) from e

    def stats(self) -> Dict[str, int]:
        """Current slot accounting: max_size, in_use, available."""
        return {
            "max_size": self.max_size,
            "in_use": self._in_use,
            "available": self.max_size - self._in_use,
        }

    # ── Lifecycle Helpers ─────────────────────────────────────────────────

    async def verify(self) -> None:
        """
        Round-trip `SELECT 1` through the pool.

        Called at startup so an unreachable store stops the process before it
        accepts traffic, and by the health check.

        Raises:
            ConnectFailedError: The store is unreachable
            PoolExhaustedError: Every connection is busy
        """
        try:
            async with self.acquire() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise ConnectFailedError(
                message="Database did not answer the connectivity check",
                context={"error_type": type(e).__name__},
            ) from e

    async def create_schema(self) -> None:
        """Create any missing tables registered on `Base.metadata`."""
        # Registers the checkins table on Base.metadata
        from checkins.models import checkin  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    async def dispose(self) -> None:
        """Close every pooled connection. Called at shutdown."""
        await self.engine.dispose()
