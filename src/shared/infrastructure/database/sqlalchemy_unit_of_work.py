"""
SQLAlchemy Implementation of Unit of Work
Manages database transactions with async SQLAlchemy sessions
"""
from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.shared.logging import get_logger

logger = get_logger(__name__)


class SQLAlchemyUnitOfWork:
    """
    SQLAlchemy-based Unit of Work implementation.

    Opens a fresh session per `async with` block so one instance can be used
    for several sequential transactions within a request (e.g. the booking
    write followed by best-effort reads). Subclasses attach repositories in
    `_bind_repositories`.

    Attributes:
        session: Async SQLAlchemy session of the current block
        _committed: Flag tracking if transaction was committed
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None
        self._committed = False

    def _bind_repositories(self, session: AsyncSession) -> None:
        """Hook for subclasses: construct repositories over `session`."""

    async def __aenter__(self) -> SQLAlchemyUnitOfWork:
        self.session = self._session_factory()
        self._committed = False
        await self.session.begin()
        self._bind_repositories(self.session)
        logger.debug("uow.begin")
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        try:
            if exc_type is not None:
                await self.rollback()
                logger.info("uow.rolled_back", reason=exc_type.__name__, error=str(exc_val))
            elif not self._committed:
                await self.rollback()
                logger.debug("uow.rolled_back", reason="not_committed")
        finally:
            if self.session is not None:
                await self.session.close()
            self.session = None

    async def commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            Exception: If commit fails (the transaction is rolled back first)
        """
        assert self.session is not None, "UnitOfWork used outside of `async with`"
        try:
            await self.session.commit()
            self._committed = True
            logger.debug("uow.committed")
        except Exception as e:
            await self.rollback()
            logger.error("uow.commit_failed", error=str(e))
            raise

    async def rollback(self) -> None:
        if self.session is None:
            return
        try:
            await self.session.rollback()
            self._committed = False
        except Exception as e:
            logger.error("uow.rollback_failed", error=str(e))
            raise
