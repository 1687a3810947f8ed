"""Service-layer exports."""

from .calendar_service import (
    CalendarOccurrence,
    DayBucket,
    DayState,
    OccurrenceKind,
    bucket_by_day,
    build_day_detail,
    build_month_grid,
    classify_day,
    materialize_occurrences,
    month_range,
    occurrences_on_date,
)
from .gateway import GatewayError, NotFoundError, PlannerGateway, SqlPlannerGateway, list_user_ids
from .notification_service import (
    Notification,
    NotificationCenter,
    NotificationPoller,
    check_upcoming_items,
)
from .planner_service import (
    get_dashboard,
    get_day_detail,
    get_month_calendar,
    list_subjects_view,
    list_tasks_view,
    search_items,
    task_date_status,
)
from .sample_data_service import seed_sample_data

__all__ = [
    "CalendarOccurrence",
    "DayBucket",
    "DayState",
    "OccurrenceKind",
    "bucket_by_day",
    "build_day_detail",
    "build_month_grid",
    "classify_day",
    "materialize_occurrences",
    "month_range",
    "occurrences_on_date",
    "GatewayError",
    "NotFoundError",
    "PlannerGateway",
    "SqlPlannerGateway",
    "list_user_ids",
    "Notification",
    "NotificationCenter",
    "NotificationPoller",
    "check_upcoming_items",
    "get_dashboard",
    "get_day_detail",
    "get_month_calendar",
    "list_subjects_view",
    "list_tasks_view",
    "search_items",
    "task_date_status",
    "seed_sample_data",
]
