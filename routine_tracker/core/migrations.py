"""Alembic migration helpers."""

from __future__ import annotations

from alembic import command
from alembic.config import Config

from routine_tracker.core.config import BASE_DIR


def _build_alembic_config(database_url: str) -> Config:
    config = Config(str(BASE_DIR / "alembic.ini"))
    # 日本語: 実行場所に依存しないよう絶対パスで指定 / English: Absolute script location so cwd does not matter
    config.set_main_option("script_location", str(BASE_DIR / "migrations"))
    config.set_main_option("sqlalchemy.url", database_url)
    # 日本語: アプリ側のログ設定を上書きしない / English: Keep the application's logging configuration
    config.attributes["configure_logger"] = False
    return config


def upgrade_to_head(database_url: str) -> None:
    """Apply routine tracker migrations up to the latest revision."""
    command.upgrade(_build_alembic_config(database_url), "head")
