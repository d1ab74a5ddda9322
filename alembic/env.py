# alembic/env.py
from __future__ import annotations

from logging.config import fileConfig
from typing import Any, Dict, cast

from alembic import context
from sqlalchemy import engine_from_config, pool

# Alembic Config object
config = context.config

# Setup Python logging from alembic.ini
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# --- App metadata so autogenerate sees every table ---
from survivor_pool import models  # noqa: E402,F401
from survivor_pool.config import DATABASE_URL  # noqa: E402
from survivor_pool.db import Base  # noqa: E402

target_metadata = Base.metadata

# SQLite needs batch mode for ALTER TABLE
COMPARE_TYPE = True
RENDER_AS_BATCH = True


def _database_url() -> str:
    # DATABASE_URL (env or app default) wins over alembic.ini
    return DATABASE_URL or config.get_main_option("sqlalchemy.url")


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=COMPARE_TYPE,
        render_as_batch=RENDER_AS_BATCH,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    section = cast(Dict[str, Any], config.get_section(config.config_ini_section) or {})
    section["sqlalchemy.url"] = _database_url()

    connectable = engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=COMPARE_TYPE,
            render_as_batch=RENDER_AS_BATCH,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
