# workclock/db/session.py
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from workclock.db.base import Base

# Import ORM models so that Base.metadata is aware of them.
from workclock.models.preference_entry import PreferenceEntry  # noqa: F401


def build_engine(db_url: str) -> AsyncEngine:
    """
    Create the async engine for the preferences store.

    The engine is owned by the application lifespan and disposed on shutdown.
    """
    return create_async_engine(db_url, echo=False, future=True)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
        class_=AsyncSession,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Create missing tables.

    Safe to call on every startup; existing tables and rows are kept.
    Typically you'd eventually replace this with Alembic migrations.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
