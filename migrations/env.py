"""Alembic migration environment for Routine Tracker."""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlmodel import SQLModel

from routine_tracker import models as _models  # noqa: F401
from routine_tracker.core.config import DATABASE_URL

config = context.config
target_metadata = SQLModel.metadata

# 日本語: alembic CLI 実行時のみ ini のロガー設定を使う / English: Use ini logging only when run from the alembic CLI
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def _configured_url() -> str:
    # 日本語: upgrade_to_head からの指定 > 環境変数 / English: Programmatic URL first, then the environment
    database_url = config.get_main_option("sqlalchemy.url") or os.getenv("DATABASE_URL", DATABASE_URL)
    if not database_url:
        raise ValueError("DATABASE_URL must be configured for Alembic migrations.")
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql+psycopg2://", 1)
    return database_url


def _configure_options() -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "compare_server_default": True,
    }


def run_migrations_offline() -> None:
    """Emit SQL for the routine tracker schema without a live DB connection."""
    context.configure(
        url=_configured_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section, {})
    configuration["sqlalchemy.url"] = _configured_url()
    connectable = engine_from_config(configuration, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_options())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
