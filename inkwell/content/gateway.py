"""Transactional write gateway.

Every mutating content operation runs inside ``WriteGateway.transaction()``:
the unit either commits as a whole or is rolled back as a whole, so a reader
on another connection never sees part of it.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import async_sessionmaker

from inkwell.content.exceptions import ContentStoreError
from inkwell.content.exceptions import StatementError
from inkwell.content.exceptions import StorageUnavailableError
from inkwell.shared.database import WRITE_LOCK_OPTION

logger = logging.getLogger(__name__)


class WriteGateway:
    """Opens all-or-nothing units of work against the write database.

    The gateway holds no timeout of its own; whatever the engine's connection
    enforces applies.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        """Initialize gateway with the injected session maker."""
        self._session_maker = session_maker

    @asynccontextmanager
    async def transaction(self, operation: str = "write") -> AsyncIterator[AsyncSession]:
        """Run the enclosed statements as one transaction.

        Args:
            operation: Name used in log messages

        Yields:
            AsyncSession: Session with an open transaction and a live connection

        Raises:
            StorageUnavailableError: If the transaction could not begin
            StatementError: If a statement or the commit failed; rolled back
        """
        session = self._session_maker()
        try:
            await session.begin()
            # Acquire the connection now so an unreachable database fails here;
            # on SQLite the option makes the unit take the write lock up front
            await session.connection(execution_options={WRITE_LOCK_OPTION: True})
        except (SQLAlchemyError, OSError) as e:
            await self._close(session)
            raise StorageUnavailableError(
                f"Could not begin transaction for {operation}: {e}", cause=e
            ) from e

        try:
            yield session
            await session.commit()
            logger.debug(f"Committed {operation}")
        except SQLAlchemyError as e:
            rollback_error = await self._rollback(session, operation)
            raise StatementError(
                f"{operation} failed and was rolled back: {e}",
                cause=e,
                rollback_error=rollback_error,
            ) from e
        except Exception as e:
            rollback_error = await self._rollback(session, operation)
            if isinstance(e, ContentStoreError) and rollback_error is not None:
                e.rollback_error = rollback_error
            raise
        finally:
            await self._close(session)

    async def _rollback(self, session: AsyncSession, operation: str) -> Optional[BaseException]:
        """Roll back best-effort and hand back the rollback failure, if any."""
        try:
            await session.rollback()
            logger.debug(f"Rolled back {operation}")
            return None
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Rollback of {operation} failed: {e}")
            return e

    async def _close(self, session: AsyncSession) -> None:
        try:
            await session.close()
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Failed to close session: {e}")
