"""Shared database utilities and dependencies for FastAPI routers."""
import logging
from typing import Any, AsyncGenerator

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer
from infra.resources import DatabaseResource

logger = logging.getLogger("advisor.db")


@inject
async def get_db_session(
    db: DatabaseResource = Depends(
        Provide[ApplicationContainer.infrastructure.database]
    ),
) -> AsyncGenerator[AsyncSession, Any]:
    """Yield an AsyncSession per-request and ensure proper close.

    Streaming responses keep using the session after this dependency exits;
    a closed AsyncSession reopens a connection on next use and the stream
    closes it again when done.
    """
    session = db.get_session()
    try:
        yield session
    finally:
        try:
            await session.close()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to close database session: {e}")
