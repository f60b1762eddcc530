"""
Checkins Backend — Checkin Repository
=======================================

What:  The two persistence operations: insert one check-in, read recent ones.
How:   Each operation acquires a pooled connection, runs one statement under
       a round-trip timeout, and releases the connection.
Who:   Called by the /v1/checkins route handlers.

Error Handling Strategy:
    Pool errors (PoolExhaustedError, ConnectFailedError) propagate unchanged.
    Everything the database raises becomes a PersistenceError subclass,
    logged once here. No retries: one failed statement, one failed request.

Read Policy:
    FIRST_ONLY (default): the most recent check-in, or None
    FULL_LIST:            every check-in, most recent first
    Both order by created_at DESC, id DESC so that rows stored within the
    same clock tick still come back newest first.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, TypeVar, Union

from sqlalchemy import select
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from checkins.config import ListPolicy
from checkins.database import ConnectionPool
from checkins.exceptions import (
    ConnectivityError,
    ConstraintViolationError,
    PersistenceError,
    QueryTimeoutError,
)
from checkins.models.checkin import Checkin
from checkins.schemas.checkin import CheckinResponse, NewCheckin

logger = logging.getLogger(__name__)

T = TypeVar("T")

ListResult = Union[CheckinResponse, List[CheckinResponse], None]


class CheckinRepository:
    """
    Persistence for check-ins.

    Args:
        pool: Shared connection pool
        list_policy: FIRST_ONLY or FULL_LIST for list()
        query_timeout: Seconds allowed per statement round trip
    """

    def __init__(
        self,
        pool: ConnectionPool,
        list_policy: ListPolicy = ListPolicy.FIRST_ONLY,
        query_timeout: float = 10.0,
    ):
        self._pool = pool
        self.list_policy = list_policy
        self.query_timeout = query_timeout

    async def create(self, record: NewCheckin) -> CheckinResponse:
        """
        Insert one check-in and return the stored row.

        The INSERT returns the database-assigned id and created_at in the
        same round trip (eager_defaults → RETURNING).

        Raises:
            PoolError: no connection could be obtained
            PersistenceError: the insert failed; nothing was written
        """

        async def insert(session: AsyncSession) -> CheckinResponse:
            checkin = Checkin(**record.model_dump())
            session.add(checkin)
            await session.flush()
            return CheckinResponse.model_validate(checkin)

        stored = await self._run("create", insert)
        logger.info("Stored check-in %s for user %s", stored.id, stored.user_id)
        return stored

    async def list(self) -> ListResult:
        """
        Read check-ins, most recent first, shaped by the list policy.

        Returns:
            FIRST_ONLY: CheckinResponse or None on an empty store
            FULL_LIST:  list of CheckinResponse (possibly empty)
        """
        first_only = self.list_policy is ListPolicy.FIRST_ONLY

        async def select_recent(session: AsyncSession) -> List[CheckinResponse]:
            query = select(Checkin).order_by(Checkin.created_at.desc(), Checkin.id.desc())
            if first_only:
                query = query.limit(1)
            result = await session.execute(query)
            return [CheckinResponse.model_validate(row) for row in result.scalars().all()]

        rows = await self._run("list", select_recent)
        if first_only:
            return rows[0] if rows else None
        return rows

    # ── Internals ─────────────────────────────────────────────────────────

    async def _run(self, operation: str, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run `work` on a pooled session, translating database failures."""
        try:
            async with self._pool.acquire() as session:
                return await asyncio.wait_for(work(session), timeout=self.query_timeout)
        except (asyncio.TimeoutError, SQLAlchemyError) as e:
            error = self._translate(operation, e)
            logger.error(
                "Check-in %s failed (%s): %s",
                operation,
                type(error).__name__,
                str(e) or type(e).__name__,
                exc_info=True,
            )
            raise error from e

    def _translate(self, operation: str, exc: Exception) -> PersistenceError:
        context = {"operation": operation, "error_type": type(exc).__name__}
        if isinstance(exc, asyncio.TimeoutError):
            return QueryTimeoutError(self.query_timeout, context=context)
        if isinstance(exc, IntegrityError):
            return ConstraintViolationError(
                message="The check-in was rejected by a database constraint",
                context=context,
            )
        if isinstance(exc, (OperationalError, InterfaceError)) or (
            isinstance(exc, DBAPIError) and exc.connection_invalidated
        ):
            return ConnectivityError(
                message="Lost the database connection during the query",
                context=context,
            )
        return PersistenceError(context=context)
