"""Async SQLAlchemy plumbing for the Taskboard backend.

One engine and sessionmaker per process. The URL decides the backend:
``sqlite+aiosqlite`` for local runs and tests, ``postgresql+asyncpg`` when
deployed.
"""

from config.config import settings
from core.logging import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base


def _engine_options(url: str) -> dict:
    # NOTE: SQLite pools do not accept queue sizing options.
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 5, "max_overflow": 10}


engine = create_async_engine(
    settings.DATABASE_URL_ASYNC,
    echo=settings.DATABASE_ECHO,
    **_engine_options(settings.DATABASE_URL_ASYNC),
)

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

Base = declarative_base()


def _register_models() -> None:
    # Tables exist on Base.metadata only once their model modules are imported.
    import models.auth  # noqa: F401
    import models.tasks  # noqa: F401


async def initialize_database():
    """Create the ``users`` and ``tasks`` tables if they are missing.

    Raises:
        Exception: Re-raises whatever the driver raised, so the lifespan
            retry loop can decide whether to try again.
    """

    _register_models()
    logger.info("Creating tables: {}", ", ".join(Base.metadata.tables))
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except Exception:
            logger.exception("Database initialization failed")
            raise
    logger.info("Database initialization complete")


async def reset_database():
    """Drop and recreate every table, then release pooled connections.

    Used by the test suite to start each test from empty tables.
    """

    _register_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


async def get_db():
    """Yield one ``AsyncSession`` per request.

    Route handlers and ``get_current_user`` share it through FastAPI's
    dependency cache.
    """

    async with AsyncSessionLocal() as session:
        yield session
