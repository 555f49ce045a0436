"""Multi-table transactional writes.

Relation lists that are denormalized across tables (a group's members and
each member's group list, an event's invitees and each invitee's event list)
are only ever changed through ``TransactionCoordinator.execute`` so that both
sides commit or neither does.
"""

import asyncio
from typing import Any, Awaitable, Callable, Iterable, List, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import AggregateErrorDetails, ServerError
from app.services.async_error_handler import classify_error
from app.utils.logger import AppLogger

T = TypeVar("T")

Write = Callable[[], Awaitable[Any]]
Primary = Callable[[AsyncSession], Awaitable[T]]
Secondaries = Callable[[AsyncSession, T], Iterable[Write]]

MULTIPLE_WRITE_FAILURES = "MULTIPLE_WRITE_FAILURES"


class TransactionCoordinator:
    """
    Runs a primary write followed by a fan-out of secondary writes in one
    transaction.

    The session is opened per call and always closed. Secondary writes are
    scheduled together with ``asyncio.gather``; each runs inside its own
    SAVEPOINT and they take turns on the session's single connection, so a
    failing write does not poison its siblings and every failure is observed.
    Any failure rolls back the whole transaction. Nothing is retried.
    """

    def __init__(self, session_factory: async_sessionmaker, logger: AppLogger):
        self.session_factory = session_factory
        self.logger = logger.child("transaction")

    async def execute(
        self,
        operation: str,
        primary: Primary,
        secondaries: Optional[Secondaries] = None,
        failure_message: str = "Transaction failed",
    ) -> T:
        session: AsyncSession = self.session_factory()
        try:
            await session.begin()
            result = await primary(session)

            writes = list(secondaries(session, result)) if secondaries is not None else []
            if writes:
                await self._fan_out(session, writes, failure_message)

            await session.commit()
            self.logger.info("Transaction committed", operation=operation, secondary_writes=len(writes))
            return result
        except Exception as e:
            await session.rollback()
            classified = classify_error(e, failure_message)
            self.logger.error(
                "Transaction aborted",
                operation=operation,
                status_code=classified.status_code,
                error_code=classified.error_code,
                error=repr(e),
            )
            if classified is e:
                raise
            raise classified from e
        finally:
            await session.close()

    async def _fan_out(self, session: AsyncSession, writes: List[Write], failure_message: str) -> None:
        lock = asyncio.Lock()

        async def run(write: Write):
            async with lock:
                async with session.begin_nested():
                    return await write()

        outcomes = await asyncio.gather(*(run(write) for write in writes), return_exceptions=True)

        failures = []
        for outcome in outcomes:
            if isinstance(outcome, Exception):
                failures.append(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome

        if len(failures) == 1:
            raise failures[0]
        if failures:
            raise self.aggregate(failures, failure_message)

    @staticmethod
    def aggregate(failures: List[Exception], failure_message: str) -> ServerError:
        """Fold several failed writes into one error that lists each of them."""
        classified = [classify_error(failure, failure_message) for failure in failures]
        return ServerError(
            f"{len(classified)} writes failed",
            classified[0].status_code,
            MULTIPLE_WRITE_FAILURES,
            AggregateErrorDetails(errors=[c.to_error_response() for c in classified]),
        )
