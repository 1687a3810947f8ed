"""Router exports."""

# 日本語: 各機能ルーターを集約して application.py から一括 import 可能にする / English: Re-export feature routers for centralized app wiring
from .calendar_router import router as calendar_router
from .dashboard_router import router as dashboard_router
from .notifications_router import router as notifications_router
from .page_router import router as page_router
from .session_router import router as session_router
from .subjects_router import router as subjects_router
from .tasks_router import router as tasks_router

__all__ = [
    "page_router",
    "session_router",
    "dashboard_router",
    "subjects_router",
    "tasks_router",
    "calendar_router",
    "notifications_router",
]
