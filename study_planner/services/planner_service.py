"""Dashboard, list and search views built on top of the gateway."""

from __future__ import annotations

import datetime
from typing import Any, Dict, List

from study_planner.core.dates import DAY_NAMES, sunday_weekday
from study_planner.services.calendar_service import (
    build_day_detail,
    build_month_grid,
    materialize_occurrences,
    month_range,
    normalize_year_month,
)
from study_planner.services.gateway import PlannerGateway, serialize_subject, serialize_task

UPCOMING_TASK_DAYS = 7
SEARCH_MIN_LENGTH = 2


def task_date_status(due_date: datetime.date, today: datetime.date) -> str:
    if due_date == today:
        return "today"
    if due_date == today + datetime.timedelta(days=1):
        return "tomorrow"
    if due_date < today:
        return "overdue"
    return "upcoming"


def _task_with_status(task, today: datetime.date) -> Dict[str, Any]:
    payload = serialize_task(task)
    payload["date_status"] = task_date_status(task.due_date, today)
    return payload


def get_dashboard(gateway: PlannerGateway, today: datetime.date) -> Dict[str, Any]:
    tomorrow = today + datetime.timedelta(days=1)
    today_subjects = sorted(
        gateway.list_subjects(day_of_week=sunday_weekday(today)), key=lambda item: item.start_time
    )
    tomorrow_subjects = sorted(
        gateway.list_subjects(day_of_week=sunday_weekday(tomorrow)), key=lambda item: item.start_time
    )
    upcoming_tasks = gateway.list_tasks(
        date_from=today,
        date_to=today + datetime.timedelta(days=UPCOMING_TASK_DAYS),
        is_completed=False,
    )

    return {
        "today": today.isoformat(),
        "today_subjects": [serialize_subject(item) for item in today_subjects],
        "tomorrow_subjects": [serialize_subject(item) for item in tomorrow_subjects],
        "upcoming_tasks": [_task_with_status(task, today) for task in upcoming_tasks],
        "stats": {
            "today_classes": len(today_subjects),
            "pending_tasks": len(upcoming_tasks),
            "due_today": sum(1 for task in upcoming_tasks if task.due_date == today),
            "tomorrow_classes": len(tomorrow_subjects),
        },
    }


def list_subjects_view(gateway: PlannerGateway, day_of_week: int | None = None) -> Dict[str, Any]:
    subjects = gateway.list_subjects(day_of_week=day_of_week)
    grouped: Dict[int, List[Dict[str, Any]]] = {}
    for subject in subjects:
        grouped.setdefault(subject.day_of_week, []).append(serialize_subject(subject))

    return {
        "subjects": [serialize_subject(item) for item in subjects],
        "grouped": [
            {"day_of_week": day, "day_name": DAY_NAMES[day], "subjects": grouped[day]}
            for day in sorted(grouped)
        ],
        "count": len(subjects),
    }


def list_tasks_view(
    gateway: PlannerGateway,
    today: datetime.date,
    *,
    search: str = "",
    subject_id: int | None = None,
    status: str = "all",
) -> Dict[str, Any]:
    is_completed = {"pending": False, "completed": True}.get(status)
    tasks = gateway.list_tasks(is_completed=is_completed, subject_id=subject_id)

    term = (search or "").strip().lower()
    if term:
        tasks = [
            task
            for task in tasks
            if term in task.title.lower() or term in (task.description or "").lower()
        ]

    pending = [_task_with_status(task, today) for task in tasks if not task.is_completed]
    completed = [_task_with_status(task, today) for task in tasks if task.is_completed]
    return {"pending": pending, "completed": completed, "count": len(tasks)}


def get_month_calendar(gateway: PlannerGateway, year: int, month: int, today: datetime.date) -> Dict[str, Any]:
    year, month = normalize_year_month(year, month)
    month_start, month_end = month_range(year, month)
    subjects = gateway.list_subjects()
    # Same range for the task query and the materializer.
    tasks = gateway.list_tasks(date_from=month_start, date_to=month_end)
    return build_month_grid(subjects, tasks, year, month, today)


def get_day_detail(gateway: PlannerGateway, day: datetime.date) -> Dict[str, Any]:
    subjects = gateway.list_subjects(day_of_week=sunday_weekday(day))
    tasks = gateway.list_tasks(date_from=day, date_to=day)
    occurrences = materialize_occurrences(subjects, tasks, day, day)
    return build_day_detail(
        occurrences,
        day,
        serialize_subject_fn=serialize_subject,
        serialize_task_fn=serialize_task,
    )


def search_items(gateway: PlannerGateway, query: str, limit: int = 5) -> Dict[str, Any]:
    query = (query or "").strip()
    if len(query) < SEARCH_MIN_LENGTH:
        return {"results": []}

    subjects, tasks = gateway.search(query, limit=limit)
    results = [
        {
            "id": subject.id,
            "title": subject.name,
            "type": "subject",
            "subtitle": f"{subject.start_time} - {subject.end_time}",
        }
        for subject in subjects
    ]
    results.extend(
        {
            "id": task.id,
            "title": task.title,
            "type": "task",
            "subtitle": f"Due: {task.due_date.isoformat()}",
        }
        for task in tasks
    )
    return {"results": results}
