"""
Alembic environment of the Garage core database migrations

The connection URL is read from the Garage core settings, so the
migrations always target the same database as the API server.
"""

from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from alembic import context

from garage_core.settings import Settings
from garage_core.persistence.database import Base
from garage_core.persistence import models  # noqa: F401


config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _get_database_url() -> str:
    return Settings().database.connection


def run_migrations_offline():
    context.configure(
        url=_get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = create_engine(_get_database_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, render_as_batch=True)
        with context.begin_transaction():
            context.run_migrations()
    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
