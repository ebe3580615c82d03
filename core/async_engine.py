from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker

from core.settings import settings


def build_async_engine(database_uri: str) -> AsyncEngine:
    # SQLite drivers manage their own pool, sizing only applies to server databases
    if database_uri.startswith("sqlite"):
        return create_async_engine(database_uri)

    return create_async_engine(
        database_uri,
        pool_pre_ping=True,
        pool_size=settings.POSTGRES_POOL_SIZE,
        max_overflow=settings.POSTGRES_MAX_OVERFLOW,
        pool_recycle=600,
        pool_use_lifo=True,
    )


async_engine = build_async_engine(settings.SQLALCHEMY_DATABASE_URI)
AsyncSessionLocal = async_sessionmaker(async_engine, autocommit=False, expire_on_commit=False)
