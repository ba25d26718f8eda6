"""Database engine and session helpers.

The engine is built on first use so importing the web layer never opens a
connection; migrations run once per process before the first session.
"""

from __future__ import annotations

import os
import threading
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine

from routine_tracker.core.config import DATABASE_URL, get_sweep_max_workers
from routine_tracker.core.migrations import upgrade_to_head

_engine: Engine | None = None
_db_initialized = False
# 日本語: スイープのスレッドと同時初期化されうるためロックで保護 / English: Sweep threads and requests may initialize concurrently
_db_init_lock = threading.Lock()


def _normalize_database_url(database_url: str) -> str:
    # 日本語: 旧 postgres:// を SQLAlchemy 推奨形式へ正規化 / English: Normalize legacy postgres:// URL to SQLAlchemy-friendly form
    normalized_url = (database_url or "").strip()
    if normalized_url.startswith("postgres://"):
        normalized_url = normalized_url.replace("postgres://", "postgresql+psycopg2://", 1)
    if not normalized_url.startswith("postgresql"):
        raise ValueError("DATABASE_URL must be PostgreSQL (postgresql+psycopg2://...).")
    return normalized_url


def _database_url_from_env() -> str:
    # 日本語: 実行時環境変数を優先 / English: Prefer runtime environment override
    return _normalize_database_url(os.getenv("DATABASE_URL", DATABASE_URL))


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        with _db_init_lock:
            if _engine is None:
                # 日本語: 並列スイープ分の接続を確保 / English: Leave room for the parallel sweep's sessions
                _engine = create_engine(
                    _database_url_from_env(),
                    pool_pre_ping=True,
                    pool_size=max(5, get_sweep_max_workers() + 2),
                )
    return _engine


def _init_db() -> None:
    global _db_initialized
    if _db_initialized:
        return
    with _db_init_lock:
        if _db_initialized:
            return
        upgrade_to_head(_database_url_from_env())
        _db_initialized = True


def create_session() -> Session:
    # 日本語: 明示的セッション生成 (スイープのユーザー単位処理で利用) / English: Session factory for per-user sweep work
    _init_db()
    return Session(get_engine())


def get_db() -> Iterator[Session]:
    # 日本語: FastAPI Depends 用のセッション供給器 / English: Dependency provider for FastAPI routes
    with create_session() as db:
        yield db
