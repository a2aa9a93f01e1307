"""
Database engine and session management.

Provides async SQLAlchemy engines and session factories for the local
key-value store and the collection document store.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from binderkeep.config import settings
from binderkeep.models.db import Base


def create_engine_for(url: str) -> AsyncEngine:
    """Create an async engine with the project's defaults."""
    return create_async_engine(url, echo=settings.debug, pool_pre_ping=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to `engine`."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Local key-value store
engine = create_engine_for(settings.database_url)
async_session_factory = create_session_factory(engine)

# Collection documents (shares the local engine unless configured otherwise)
if settings.resolved_documents_database_url == settings.database_url:
    documents_engine = engine
else:
    documents_engine = create_engine_for(settings.resolved_documents_database_url)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Usage in FastAPI:
        @app.get("/items")
        async def get_items(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def create_tables(target: AsyncEngine) -> None:
    """Create all ORM tables on `target` if they do not exist."""
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
