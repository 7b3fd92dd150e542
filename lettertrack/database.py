from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from lettertrack.config import Settings, settings


class Base(DeclarativeBase):
    pass


def create_engine_from_settings(config: Settings) -> AsyncEngine:
    """
    Build the async engine for the configured database.

    Pool and timeout tuning only applies to PostgreSQL; other backends
    (SQLite in tests) get driver defaults.
    """
    if "+asyncpg" not in config.database_url:
        return create_async_engine(config.database_url, echo=False)

    return create_async_engine(
        config.database_url,
        echo=False,
        pool_size=config.db_pool_size,
        max_overflow=config.db_max_overflow,
        pool_timeout=config.db_pool_timeout,
        pool_recycle=config.db_pool_recycle,
        pool_pre_ping=True,
        connect_args={
            "command_timeout": config.db_command_timeout,
            "server_settings": {
                "statement_timeout": str(config.db_statement_timeout_ms),
                "lock_timeout": "10000",  # 10 second lock timeout
            },
        },
    )


# Global engine and session for FastAPI (single event loop)
engine = create_engine_from_settings(settings)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def close_db():
    await engine.dispose()
