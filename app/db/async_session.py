"""
Engine and session lifecycle for the async database.

One ``Database`` per process owns the engine and the session factory. Request
handlers receive a session through ``get_async_db``; multi-table writes open
their own sessions from ``get_session_factory``.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.utils.logger import AppLogger


def engine_options(url: str) -> Dict[str, Any]:
    """Pool settings only apply to PostgreSQL; SQLite keeps the driver defaults."""
    options: Dict[str, Any] = {"echo": settings.ASYNC_DB_ECHO}
    if not url.startswith("postgresql+asyncpg"):
        return options

    pool_size, max_overflow = settings.ASYNC_DB_POOL_SIZE, settings.ASYNC_DB_MAX_OVERFLOW
    if settings.ENVIRONMENT == "development":
        pool_size, max_overflow = min(pool_size, 5), min(max_overflow, 5)

    options.update(
        pool_pre_ping=settings.ASYNC_DB_POOL_PRE_PING,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_recycle=settings.ASYNC_DB_POOL_RECYCLE,
        pool_timeout=settings.ASYNC_DB_POOL_TIMEOUT,
        connect_args={
            "server_settings": {"application_name": "train_api"},
            "command_timeout": settings.ASYNC_DB_COMMAND_TIMEOUT,
        },
    )
    return options


class Database:
    """Owns the async engine and the factory every session is created from."""

    def __init__(self, url: Optional[str] = None, logger: Optional[AppLogger] = None):
        self.logger = (logger or AppLogger("TRAIN")).child("database")
        url = (url or settings.async_database_url or "").replace("\\x3a", ":")
        if not url:
            raise ValueError("Async database URL is not configured")

        self.engine: Optional[AsyncEngine] = create_async_engine(url, **engine_options(url))
        self.sessions: Optional[async_sessionmaker] = async_sessionmaker(
            bind=self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )
        self.logger.success("Database engine ready", driver=self.engine.url.drivername, environment=settings.ENVIRONMENT)

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        if self.sessions is None:
            raise RuntimeError("Database has been disposed")

        async with self.sessions() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                self.logger.error("Rolled back request session", error=str(e))
                raise
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        try:
            async with self.sessions() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            self.logger.error("Database ping failed", error=str(e))
            return False
        return True

    def pool_status(self) -> Dict[str, Any]:
        if self.engine is None:
            return {"status": "disposed"}

        pool = self.engine.pool
        if not hasattr(pool, "checkedout"):
            return {"status": "initialized", "pool_type": type(pool).__name__}
        return {
            "status": "initialized",
            "pool_size": pool.size(),
            "checked_in": pool.checkedin(),
            "checked_out": pool.checkedout(),
            "overflow": pool.overflow(),
        }

    async def dispose(self):
        if self.engine is not None:
            await self.engine.dispose()
            self.logger.info("Database engine disposed")
        self.engine = None
        self.sessions = None


_database: Optional[Database] = None
_database_lock = asyncio.Lock()


async def get_database(logger: Optional[AppLogger] = None) -> Database:
    global _database

    if _database is None:
        async with _database_lock:
            if _database is None:
                _database = Database(logger=logger)
    return _database


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session, rolled back on error."""
    database = await get_database()
    async for session in database.session():
        yield session


async def get_session_factory() -> async_sessionmaker:
    database = await get_database()
    return database.sessions


async def startup_async_database(logger: AppLogger):
    database = await get_database(logger)
    if not await database.ping():
        raise RuntimeError("Failed to establish database connection during startup")
    logger.info("Database startup completed", context="database", pool=database.pool_status())


async def shutdown_async_database():
    global _database

    if _database is not None:
        await _database.dispose()
        _database = None


async def check_async_database_health() -> dict:
    """Connectivity check with pool state and round-trip latency."""
    started = time.perf_counter()
    database = await get_database()
    reachable = await database.ping()
    return {
        "status": "healthy" if reachable else "unhealthy",
        "connection_test": reachable,
        "pool_info": database.pool_status(),
        "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "error": None if reachable else "Database connection test failed",
    }
