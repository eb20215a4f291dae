import logging
from typing import Awaitable, Callable, TypeVar
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_in_transaction(
    engine: AsyncEngine, work: Callable[[AsyncConnection], Awaitable[T]]
) -> T:
    """
    Borrow one pooled connection, run `work` inside BEGIN/COMMIT and hand the
    connection back to the pool.

    Failure to acquire a connection propagates as-is (no transaction is
    started). Anything raised by begin, `work` or commit rolls back and is
    re-raised unchanged; a failing rollback or close never replaces it.
    """
    conn = await engine.connect()
    failed = False
    try:
        await conn.begin()
        result = await work(conn)
        await conn.commit()
        logger.debug("Transaction committed")
        return result
    except BaseException as e:
        failed = True
        logger.warning("Transaction rolled back after %s", type(e).__name__)
        try:
            await conn.rollback()
        except Exception:
            # keep the original error for the caller
            logger.exception("Rollback failed")
        raise
    finally:
        try:
            await conn.close()
        except Exception:
            if not failed:
                raise
            logger.exception("Releasing connection failed")
