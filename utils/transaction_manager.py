import logging
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from functools import wraps
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_commit, session_rollback, session_begin_write

logger = logging.getLogger(__name__)


class TransactionManager:
    """
    Utility class for managing database transactions with rollback on
    failure and retry logic for transient lock errors.
    """

    # Transactions running longer than this are reported
    TRANSACTION_WARN_SECONDS = 30

    # Retry configuration
    MAX_RETRIES = 3
    RETRY_DELAY_BASE = 0.1  # Base delay in seconds

    @staticmethod
    @asynccontextmanager
    async def atomic_transaction(session: AsyncSession, write: bool = False) -> AsyncGenerator[AsyncSession, None]:
        """
        Run a block as one unit of work on ``session``.

        Commits when the block exits normally. Any exception rolls back every
        change made inside the block (and before it, on the same session) and
        is re-raised unchanged.

        With ``write=True`` the transaction takes the write lock up front
        (BEGIN IMMEDIATE on SQLite). Read-only blocks leave it off so they
        never wait on a writer.

        Usage:
            async with TransactionManager.atomic_transaction(session) as tx:
                await tx.execute(...)
        """
        bind = session.bind
        if bind is not None and bind.dialect.name not in ("sqlite",) and not session.in_transaction():
            await session.execute(text("SET TRANSACTION ISOLATION LEVEL READ COMMITTED"))

        transaction_start = datetime.now()
        logger.debug(f"Transaction started at {transaction_start}")
        try:
            if write:
                await session_begin_write(session)
            yield session

            duration = (datetime.now() - transaction_start).total_seconds()
            if duration > TransactionManager.TRANSACTION_WARN_SECONDS:
                logger.warning(f"Transaction exceeded {TransactionManager.TRANSACTION_WARN_SECONDS}s: {duration:.2f}s")

            await session_commit(session)
            logger.debug(f"Transaction committed successfully in {duration:.2f}s")

        except BaseException as e:
            try:
                await session_rollback(session)
                logger.info(f"Transaction rolled back due to error: {type(e).__name__}: {e}")
            except Exception as rollback_error:
                logger.critical(f"Failed to rollback transaction: {rollback_error}")
            raise

    @staticmethod
    def with_retry(max_retries: Optional[int] = None, delay_base: Optional[float] = None):
        """
        Decorator for automatic retry of database operations with exponential backoff.

        Only ``OperationalError`` (locked database, lock wait timeout) is retried;
        domain exceptions propagate on the first attempt.
        """
        max_retries = TransactionManager.MAX_RETRIES if max_retries is None else max_retries
        delay_base = TransactionManager.RETRY_DELAY_BASE if delay_base is None else delay_base

        def decorator(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                for attempt in range(max_retries + 1):
                    try:
                        return await func(*args, **kwargs)
                    except OperationalError as e:
                        if attempt == max_retries:
                            logger.error(f"Function {func.__name__} failed after {max_retries} retries: {e}")
                            raise

                        delay = delay_base * (2 ** attempt)
                        logger.warning(f"Attempt {attempt + 1} failed for {func.__name__}, retrying in {delay:.2f}s: {e}")
                        await asyncio.sleep(delay)

            return wrapper
        return decorator
