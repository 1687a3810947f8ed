"""Core package exports."""

from .config import (
    BASE_DIR,
    DATABASE_URL,
    DEFAULT_SUBJECT_COLOR,
    LOG_LEVEL,
    PROXY_PREFIX,
    SESSION_SECRET,
    get_notification_auto_dismiss_seconds,
    get_notification_interval_seconds,
    get_notification_lead_minutes,
    notification_repeat_alerts,
    notifications_enabled,
    trust_user_header,
)
from .db import Session, create_session, engine, get_db

__all__ = [
    "BASE_DIR",
    "DATABASE_URL",
    "DEFAULT_SUBJECT_COLOR",
    "LOG_LEVEL",
    "PROXY_PREFIX",
    "SESSION_SECRET",
    "get_notification_auto_dismiss_seconds",
    "get_notification_interval_seconds",
    "get_notification_lead_minutes",
    "notification_repeat_alerts",
    "notifications_enabled",
    "trust_user_header",
    "engine",
    "Session",
    "create_session",
    "get_db",
]
