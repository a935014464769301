"""Alembic environment for the storefront schema.

Migrations use the same database settings as the application
(``StorefrontSettings.database``) and run over an async engine.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from storefront.config import load_settings
from storefront.db.models import Base
from storefront.db.session import asyncpg_connect_args

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

MIGRATION_URL, CONNECT_ARGS = asyncpg_connect_args(load_settings().database.url)
config.set_main_option(
    "sqlalchemy.url", MIGRATION_URL.render_as_string(hide_password=False).replace("%", "%%")
)
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=MIGRATION_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        connect_args=CONNECT_ARGS,
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
