"""
SQLAlchemy async engine and session management

- AsyncEngineManager: one engine per running event loop
- Base: declarative base for every booking table
- Database: session factory handed to repositories through the DI container
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


class AsyncEngineManager:
    """
    Keeps the engine bound to the current event loop to prevent
    "Task got Future attached to a different loop" errors.
    """

    def __init__(self, url: Optional[str] = None) -> None:
        self._url = url
        self._engine: Optional[AsyncEngine] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def url(self) -> str:
        return self._url or settings.DATABASE_URL_ASYNC

    def get_engine(self) -> AsyncEngine:
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            if self._engine is None:
                self._engine = self._create_engine()
            return self._engine

        if self._loop is not current_loop:
            if self._engine is not None:
                Logger.base.warning('🔄 [DB] Event loop changed, recreating engine')
            self._session_maker = None
            self._engine = self._create_engine()
            self._loop = current_loop
            Logger.base.info(f'🔗 [DB] Engine created for event loop {id(current_loop)}')

        return self._engine

    def get_session_maker(self) -> async_sessionmaker[AsyncSession]:
        engine = self.get_engine()
        if self._session_maker is None:
            self._session_maker = async_sessionmaker(
                engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_maker

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_maker = None
        self._loop = None

    def _create_engine(self) -> AsyncEngine:
        kwargs: dict[str, Any] = {'echo': False}
        # sqlite (tests, local runs) uses a static pool without sizing options
        if make_url(self.url).get_backend_name() != 'sqlite':
            kwargs |= {
                'pool_size': settings.DB_POOL_SIZE,
                'max_overflow': settings.DB_MAX_OVERFLOW,
                'pool_timeout': settings.DB_POOL_TIMEOUT,
                'pool_recycle': settings.DB_POOL_RECYCLE,
                'pool_pre_ping': True,
            }
        return create_async_engine(self.url, **kwargs)


# Global engine manager
_engine_manager = AsyncEngineManager()


def get_engine() -> AsyncEngine:
    return _engine_manager.get_engine()


async def dispose_engine() -> None:
    await _engine_manager.dispose()


class Base(DeclarativeBase):
    pass


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """sqlite drops tzinfo on the way back; every stored timestamp is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


async def create_db_and_tables(engine: Optional[AsyncEngine] = None) -> None:
    """Create database tables if they don't exist"""
    # Registers every model on Base.metadata
    import src.service.booking.driven_adapter.model  # noqa: F401

    current_engine = engine or get_engine()
    async with current_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)


class Database:
    """Session factory for repositories, wired through the DI container."""

    def __init__(self, *, engine_manager: Optional[AsyncEngineManager] = None) -> None:
        self._engine_manager = engine_manager or _engine_manager

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Context manager for database sessions; rolls back on exception."""
        session_maker = self._engine_manager.get_session_maker()
        async with session_maker() as session:
            yield session
