"""Router exports."""

# 日本語: 各機能ルーターを集約して application.py から一括 import 可能にする / English: Re-export feature routers for centralized app wiring
from .admin_router import router as admin_router
from .day_router import router as day_router
from .routines_router import router as routines_router
from .stats_router import router as stats_router

__all__ = [
    "routines_router",
    "day_router",
    "stats_router",
    "admin_router",
]
