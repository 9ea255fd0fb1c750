from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from fastapi import Request

from heritagepal.core.config import settings

from datetime import datetime, timezone
from typing import AsyncIterator, Optional
import logging


Base = declarative_base()


logger = logging.getLogger(__name__)


def build_engine(url: Optional[str] = None, **kwargs) -> AsyncEngine:
    """Create the async engine for the Supabase Postgres (or any async DSN)."""
    connection_string = url or settings.supabase.db_url
    if connection_string.startswith("sqlite"):
        return create_async_engine(connection_string, **kwargs)
    return create_async_engine(
        connection_string,
        echo=not settings.app.is_production,
        pool_pre_ping=True,
        **kwargs,
    )


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a session from the factory stored on ``app.state`` at startup."""
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Session rolled back due to error: {e}")
            raise


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
