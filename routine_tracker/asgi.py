"""ASGI entrypoint: ``uvicorn routine_tracker.asgi:app``."""

from __future__ import annotations

import logging

from routine_tracker.core.config import LOG_LEVEL

# 日本語: ログ設定はエントリポイントでのみ行う / English: Logging is configured only at the entrypoint
logging.basicConfig(
    level=LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

from .application import app, create_app  # noqa: E402

__all__ = ["app", "create_app"]
