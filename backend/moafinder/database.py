from datetime import datetime

from sqlalchemy import DateTime, event, func
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    """Adds server-side ``created_at`` / ``updated_at`` columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    # Event and location deletes rely on RESTRICT / CASCADE being enforced.
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str) -> AsyncEngine:
    """Async engine for ``database_url``.

    SQLite connections get foreign key enforcement; an in-memory database is
    kept on a single shared connection so every session sees the same data.
    """
    if "sqlite" not in database_url:
        return create_async_engine(database_url, echo=False, pool_pre_ping=True)

    options = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in database_url:
        options["poolclass"] = StaticPool
    engine = create_async_engine(database_url, echo=False, **options)
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


async def create_schema(engine: AsyncEngine) -> None:
    """Create all mapped tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Objects stay readable after commit; responses are built from them.
    return async_sessionmaker(engine, expire_on_commit=False)
