"""Async SQLAlchemy engine and session factory.

create_app() builds one engine per application from its Settings and
publishes the factory on app.state.session_factory, because the
Basic-auth middleware runs outside FastAPI's dependency injection and
needs its own way to open a session. get_db reads the same attribute, so
swapping the factory on app.state redirects both.
"""

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from bankgate.config import Settings


def build_engine(app_settings: Settings) -> AsyncEngine:
    # echo=True in debug to see SQL queries.
    return create_async_engine(
        app_settings.database_url,
        echo=app_settings.debug,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Each request gets its own session."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields a session per request."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
