"""Alembic environment for the MoaFinder schema (async SQLAlchemy).

The database URL comes from the application settings (``.env``); pass
``-x database_url=...`` to migrate a different database.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from moafinder.config import Settings
from moafinder.database import Base

# Import all models so Base.metadata knows about them
import moafinder.auth.models  # noqa: F401
import moafinder.organizations.models  # noqa: F401
import moafinder.locations.models  # noqa: F401
import moafinder.tags.models  # noqa: F401
import moafinder.events.models  # noqa: F401
import moafinder.notes.models  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("database_url") or Settings().database_url


def _configure(**kwargs) -> None:
    # Batch mode lets ALTERs run on SQLite; compare_type catches column type changes.
    context.configure(
        target_metadata=target_metadata,
        render_as_batch=True,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting."""
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = create_async_engine(_database_url(), poolclass=pool.NullPool)
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
