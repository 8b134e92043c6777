"""Async SQLAlchemy engine, session dependency and database client."""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from pricing_dashboard.core.config import settings
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


engine = create_async_engine(
    settings.database_url,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    echo=settings.database_echo,
    future=True,
    # PgBouncer does not support prepared statement caching
    connect_args={"statement_cache_size": 0},
)

async_session_maker = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


class DatabaseClient:
    """Startup, shutdown and health probing for the dashboard database."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def connect(self) -> None:
        """Open one connection to fail fast on a bad DATABASE_URL."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            LOGGER.error("Database connection failed", exc_info=True)
            raise
        LOGGER.info("Database connection successful")

    async def disconnect(self) -> None:
        try:
            await self.engine.dispose()
        except Exception as e:
            LOGGER.error("Error closing database connection", exc_info=True, extra={"error": str(e)})
            return
        LOGGER.info("Database connection closed")

    async def create_tables(self) -> None:
        """Create the users, uploads, analyses, insights and approval tables if missing."""
        # Register models on Base.metadata
        from pricing_dashboard.database import models  # noqa: F401

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except Exception as e:
            LOGGER.error("Failed to create database tables", exc_info=True, extra={"error": str(e)})
            raise
        LOGGER.info("Database tables created/verified successfully")

    async def health_check(self) -> dict:
        """Run ``SELECT 1`` and report ``healthy`` or ``unhealthy``."""
        try:
            async with self.engine.connect() as conn:
                val = await conn.scalar(text("SELECT 1"))
        except Exception as e:
            LOGGER.error("Database health check failed", extra={"error": str(e)})
            return {"status": "unhealthy", "connected": False, "error": str(e)}

        return {
            "status": "healthy",
            "connected": True,
            "database": "postgresql",
            "latency_test": "passed" if val == 1 else "failed",
        }


db_client = DatabaseClient(engine)


async def init_database(auto_migrate: bool = True) -> None:
    """Connect and, when ``DATABASE_AUTO_MIGRATE`` is on, create missing tables."""
    LOGGER.info("Initializing database connection...")
    await db_client.connect()

    if auto_migrate:
        await db_client.create_tables()
    else:
        LOGGER.info("Skipping table creation, schema is managed by Alembic")

    LOGGER.info("Database initialization completed")


async def close_database() -> None:
    LOGGER.info("Closing database connection...")
    await db_client.disconnect()
