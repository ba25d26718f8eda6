"""FastAPI application assembly."""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from routine_tracker.core.config import PROXY_PREFIX, is_scheduler_enabled
from routine_tracker.core.db import _init_db
from routine_tracker.core.errors import (
    GatingViolation,
    NotFoundError,
    RoutineTrackerError,
    TransientStorageError,
    ValidationError,
)
from routine_tracker.services.task_scheduler_service import initialize_task_scheduler
from routine_tracker.web.routers import admin_router, day_router, routines_router, stats_router

logger = logging.getLogger(__name__)

# 日本語: ドメイン例外と HTTP ステータスの対応 / English: Domain error to HTTP status mapping
ERROR_STATUS_CODES = {
    ValidationError: 400,
    NotFoundError: 404,
    GatingViolation: 409,
    TransientStorageError: 503,
}


def _status_code_for(exc: RoutineTrackerError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


async def _routine_error_handler(request: Request, exc: RoutineTrackerError) -> JSONResponse:
    status_code = _status_code_for(exc)
    content = {"detail": str(exc)}
    if isinstance(exc, GatingViolation):
        content["current_status"] = exc.current_status
        content["target_status"] = exc.target_status
    if status_code >= 500:
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content=content)


def create_app() -> FastAPI:
    # 日本語: 逆プロキシ配下運用を想定して root_path を環境変数から解決 / English: Resolve root_path from env for reverse-proxy deployments
    proxy_prefix = os.getenv("PROXY_PREFIX", PROXY_PREFIX)

    app = FastAPI(title="Routine Tracker", root_path=proxy_prefix)
    app.add_exception_handler(RoutineTrackerError, _routine_error_handler)

    # 日本語: 機能別ルーターを順次登録 / English: Register feature routers
    app.include_router(routines_router)
    app.include_router(day_router)
    app.include_router(stats_router)
    app.include_router(admin_router)

    @app.on_event("startup")
    async def _startup() -> None:
        # 日本語: 起動時にマイグレーション適用を保証 / English: Ensure migrations are applied on startup
        _init_db()
        if is_scheduler_enabled():
            initialize_task_scheduler().start_scheduled_tasks()
        else:
            logger.info("Task scheduler disabled by configuration")

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await initialize_task_scheduler().stop()

    return app


# 日本語: import 時点で既定アプリを構築 / English: Build default app instance at import time
app = create_app()
