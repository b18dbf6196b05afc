from typing import AsyncGenerator
from sqlalchemy import MetaData, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
import logging

from .settings import settings

logger = logging.getLogger(__name__)

# Extensions the schema depends on; btree_gist backs the record overlap constraint.
REQUIRED_EXTENSIONS = ("btree_gist",)

engine = create_async_engine(
    settings.SQLALCHEMY_DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

# Objects stay readable after commit so endpoints can serialise them.
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


class Base(DeclarativeBase):
    """Declarative base for the tracker tables."""
    metadata = MetaData()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One transaction per request.

    Everything the endpoint wrote is committed once it returns; any error,
    including an HTTPException raised after a failed write, rolls it back.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            logger.debug(f"Rolling back request transaction: {type(e).__name__}")
            await session.rollback()
            raise
        else:
            await session.commit()


async def init_db():
    # Imported for its side effect of registering the tables on Base.metadata.
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        for extension in REQUIRED_EXTENSIONS:
            await conn.execute(text(f"CREATE EXTENSION IF NOT EXISTS {extension}"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Schema ready on {settings.POSTGRES_HOST}:{settings.POSTGRES_PORT}/{settings.POSTGRES_DB}")


async def dispose_db():
    await engine.dispose()
    logger.info("Database connections closed")
