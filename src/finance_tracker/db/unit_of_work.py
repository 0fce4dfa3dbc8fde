"""All-or-nothing transaction scopes over an AsyncSession."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_DEPTH_KEY = "atomic_depth"


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run the enclosed block as one database transaction.

    Scopes nest: an inner ``atomic`` joins the outermost one, and only the
    outermost scope commits on success or rolls back on any exception. The
    exception always propagates.
    """
    depth = session.info.get(_DEPTH_KEY, 0)
    session.info[_DEPTH_KEY] = depth + 1
    try:
        yield session
        if depth == 0:
            await session.commit()
    except BaseException:
        if depth == 0:
            logger.debug("Rolling back transaction")
            await session.rollback()
        raise
    finally:
        session.info[_DEPTH_KEY] = depth
