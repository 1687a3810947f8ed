"""Upcoming class and task notifications.

A small polling loop that, once at startup and then on a fixed interval:
- looks up every user owning subjects or tasks,
- evaluates classes starting soon and tasks due today (and, in the 08:00
  minute, tasks due tomorrow) through that user's gateway,
- publishes the resulting alerts into the in-memory notification center,
  from which the pages pull them as toasts and platform notifications.
"""

from __future__ import annotations

import asyncio
import datetime
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from study_planner.core.config import (
    get_notification_interval_seconds,
    get_notification_lead_minutes,
    notification_repeat_alerts,
)
from study_planner.core.dates import hhmm_to_time, sunday_weekday
from study_planner.services.gateway import (
    PlannerGateway,
    SqlPlannerGateway,
    list_user_ids,
    serialize_subject,
    serialize_task,
)

logger = logging.getLogger(__name__)

PRIORITY_LABELS = {3: "high", 2: "medium", 1: "low"}
PERMISSIONS = ("default", "granted", "denied")
DEFAULT_PERMISSION = PERMISSIONS[0]
# Morning reminder for tomorrow's tasks fires only in this exact minute.
TOMORROW_REMINDER_HOUR = 8
TOMORROW_REMINDER_MINUTE = 0

_id_counter = itertools.count(1)


@dataclass
class Notification:
    type: str
    title: str
    message: str
    time: datetime.datetime
    priority: str
    data: Any = None
    dedupe_key: str | None = None
    id: str = field(default="")

    def __post_init__(self) -> None:
        if not self.id:
            self.id = f"{self.type}-{next(_id_counter)}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "time": self.time.isoformat(),
            "priority": self.priority,
            "data": self.data,
        }


def _minutes_until(start: datetime.datetime, now: datetime.datetime) -> int:
    # Whole minutes, truncated toward zero.
    return int((start - now).total_seconds() / 60)


def check_upcoming_items(
    gateway: PlannerGateway,
    now: datetime.datetime,
    *,
    lead_minutes: int | None = None,
) -> List[Notification]:
    """Evaluate the three alert rules for one user at ``now``."""
    lead = lead_minutes if lead_minutes is not None else get_notification_lead_minutes()
    today = now.date()
    tomorrow = today + datetime.timedelta(days=1)
    notifications: List[Notification] = []

    for subject in gateway.list_subjects(day_of_week=sunday_weekday(today)):
        class_time = datetime.datetime.combine(today, hhmm_to_time(subject.start_time))
        minutes = _minutes_until(class_time, now)
        if 0 < minutes <= lead:
            location = subject.location or "location not specified"
            notifications.append(
                Notification(
                    type="class",
                    title=f"{subject.name} is starting soon",
                    message=f"Class starts in {minutes} minutes at {location}",
                    time=class_time,
                    priority="high",
                    data=serialize_subject(subject),
                    dedupe_key=f"class:{subject.id}:{today.isoformat()}",
                )
            )

    for task in gateway.list_tasks(date_from=today, date_to=today, is_completed=False):
        subject_name = serialize_task(task)["subject_name"]
        suffix = f" ({subject_name})" if subject_name else ""
        notifications.append(
            Notification(
                type="task",
                title="Task due today",
                message=f"{task.title}{suffix} must be finished today",
                time=now,
                priority=PRIORITY_LABELS.get(task.priority, "low"),
                data=serialize_task(task),
                dedupe_key=f"task:{task.id}:{today.isoformat()}",
            )
        )

    if now.hour == TOMORROW_REMINDER_HOUR and now.minute == TOMORROW_REMINDER_MINUTE:
        tomorrow_tasks = gateway.list_tasks(date_from=tomorrow, date_to=tomorrow, is_completed=False)
        if tomorrow_tasks:
            notifications.append(
                Notification(
                    type="reminder",
                    title="Tasks due tomorrow",
                    message=f"You have {len(tomorrow_tasks)} task(s) due tomorrow",
                    time=now,
                    priority="medium",
                    data=[serialize_task(task) for task in tomorrow_tasks],
                    dedupe_key=f"reminder:{tomorrow.isoformat()}",
                )
            )

    return notifications


@dataclass
class _Inbox:
    items: List[Notification] = field(default_factory=list)
    undelivered: List[str] = field(default_factory=list)
    seen_keys: set = field(default_factory=set)
    seen_day: datetime.date | None = None
    permission: str = DEFAULT_PERMISSION


class NotificationCenter:
    """Per-user notification store shared by the poller and the web layer."""

    def __init__(self, *, repeat_alerts: bool | None = None, max_items: int = 100):
        self.repeat_alerts = notification_repeat_alerts() if repeat_alerts is None else repeat_alerts
        self.max_items = max_items
        self._inboxes: Dict[str, _Inbox] = {}
        self._lock = threading.Lock()

    def _inbox(self, user_id: str) -> _Inbox:
        inbox = self._inboxes.get(user_id)
        if inbox is None:
            inbox = self._inboxes[user_id] = _Inbox()
        return inbox

    def publish(self, user_id: str, notification: Notification, *, today: datetime.date | None = None) -> bool:
        """Store a notification; returns False when it was suppressed as a repeat."""
        today = today or notification.time.date()
        with self._lock:
            inbox = self._inbox(user_id)
            if inbox.seen_day != today:
                inbox.seen_keys.clear()
                inbox.seen_day = today
            if notification.dedupe_key and not self.repeat_alerts:
                if notification.dedupe_key in inbox.seen_keys:
                    return False
                inbox.seen_keys.add(notification.dedupe_key)
            inbox.items.append(notification)
            inbox.undelivered.append(notification.id)
            if len(inbox.items) > self.max_items:
                dropped = inbox.items[: -self.max_items]
                inbox.items = inbox.items[-self.max_items :]
                dropped_ids = {item.id for item in dropped}
                inbox.undelivered = [item_id for item_id in inbox.undelivered if item_id not in dropped_ids]
            return True

    def items(self, user_id: str) -> List[Notification]:
        with self._lock:
            inbox = self._inboxes.get(user_id)
            return list(inbox.items) if inbox else []

    def pop_undelivered(self, user_id: str) -> List[Notification]:
        with self._lock:
            inbox = self._inboxes.get(user_id)
            if inbox is None:
                return []
            pending_ids = set(inbox.undelivered)
            inbox.undelivered = []
            return [item for item in inbox.items if item.id in pending_ids]

    def remove(self, user_id: str, notification_id: str) -> bool:
        with self._lock:
            inbox = self._inboxes.get(user_id)
            if inbox is None:
                return False
            before = len(inbox.items)
            inbox.items = [item for item in inbox.items if item.id != notification_id]
            inbox.undelivered = [item_id for item_id in inbox.undelivered if item_id != notification_id]
            return len(inbox.items) != before

    def clear(self, user_id: str) -> None:
        with self._lock:
            inbox = self._inboxes.get(user_id)
            if inbox is None:
                return
            inbox.items = []
            inbox.undelivered = []

    def get_permission(self, user_id: str) -> str:
        with self._lock:
            inbox = self._inboxes.get(user_id)
            return inbox.permission if inbox else DEFAULT_PERMISSION

    def set_permission(self, user_id: str, permission: str) -> str:
        if permission not in PERMISSIONS:
            raise ValueError(f"permission must be one of {', '.join(PERMISSIONS)}")
        with self._lock:
            self._inbox(user_id).permission = permission
        return permission


class NotificationPoller:
    """Re-evaluates alerts for every user on a fixed interval."""

    def __init__(
        self,
        center: NotificationCenter,
        session_factory: Callable[[], Any],
        *,
        interval_seconds: float | None = None,
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
        gateway_factory: Callable[[Any, str], PlannerGateway] = SqlPlannerGateway,
    ):
        self.center = center
        self.session_factory = session_factory
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else get_notification_interval_seconds()
        )
        self.clock = clock
        self.gateway_factory = gateway_factory

    def check_user(self, db: Any, user_id: str, now: datetime.datetime) -> int:
        gateway = self.gateway_factory(db, user_id)
        published = 0
        for notification in check_upcoming_items(gateway, now):
            if self.center.publish(user_id, notification, today=now.date()):
                published += 1
        return published

    def run_cycle(self) -> int:
        """One pass over all users; failures are logged per user and skipped."""
        now = self.clock()
        published = 0
        db = self.session_factory()
        try:
            for user_id in list_user_ids(db):
                try:
                    published += self.check_user(db, user_id, now)
                except Exception:
                    db.rollback()
                    logger.exception("Notification check failed for user %s", user_id)
        finally:
            db.close()
        logger.debug("Notification cycle at %s published %d alert(s)", now.isoformat(), published)
        return published

    async def run_forever(self) -> None:
        logger.info("Notification poller started (interval=%ss)", self.interval_seconds)
        while True:
            try:
                await asyncio.to_thread(self.run_cycle)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Notification cycle failed")
            await asyncio.sleep(self.interval_seconds)


__all__ = [
    "Notification",
    "NotificationCenter",
    "NotificationPoller",
    "check_upcoming_items",
]
