"""Alembic environment: migrates the database named by eventify.config.

Only online migrations are supported; SQLite runs in batch mode so later
revisions can alter tables.
"""
from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

from eventify.config import settings
from eventify.database import Base

# Import all models so they register with Base.metadata
from eventify.models.user import User                   # noqa: F401
from eventify.models.event import Event                 # noqa: F401
from eventify.models.registration import Registration   # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def run_migrations() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=Base.metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


run_migrations()
