"""Calendar materialization and day bucketing.

Weekly subjects have no dates of their own; they are expanded into one
occurrence per matching day of the requested range and merged with the
dated tasks. Occurrences are rebuilt on every request and never stored.
"""

from __future__ import annotations

import calendar
import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from study_planner.core.dates import DAY_NAMES, parse_local_date, sunday_weekday

# Dots drawn in a calendar cell before collapsing into a "more" marker.
MAX_DAY_MARKERS = 4


class OccurrenceKind(str, Enum):
    SUBJECT = "subject"
    TASK = "task"


class DayState(str, Enum):
    MIXED = "mixed"
    CLASS = "class"
    PENDING_TASK = "pending-task"
    COMPLETED_TASK = "completed-task"
    EMPTY = "empty"


@dataclass(frozen=True)
class CalendarOccurrence:
    kind: OccurrenceKind
    source: Any
    occurrence_date: datetime.date

    @property
    def key(self) -> Tuple[Any, datetime.date]:
        return (self.source.id, self.occurrence_date)


@dataclass
class DayBucket:
    date: datetime.date
    occurrences: List[CalendarOccurrence] = field(default_factory=list)

    @property
    def state(self) -> DayState:
        return classify_day(self.occurrences)


def iter_days(range_start: datetime.date, range_end: datetime.date) -> Iterable[datetime.date]:
    current = range_start
    while current <= range_end:
        yield current
        current += datetime.timedelta(days=1)


def materialize_occurrences(
    subjects: Sequence[Any],
    tasks: Sequence[Any],
    range_start: datetime.date,
    range_end: datetime.date,
) -> List[CalendarOccurrence]:
    """Expand subjects over ``[range_start, range_end]`` and add one entry per task.

    Tasks are emitted at their due date even when it lies outside the range;
    callers fetch tasks with the same range they pass here.
    """
    range_start = parse_local_date(range_start)
    range_end = parse_local_date(range_end)
    if range_start > range_end:
        raise ValueError("range_start must not be after range_end")

    occurrences: List[CalendarOccurrence] = []
    for day in iter_days(range_start, range_end):
        weekday = sunday_weekday(day)
        for subject in subjects:
            if subject.day_of_week == weekday:
                occurrences.append(CalendarOccurrence(OccurrenceKind.SUBJECT, subject, day))

    for task in tasks:
        occurrences.append(
            CalendarOccurrence(OccurrenceKind.TASK, task, parse_local_date(task.due_date))
        )
    return occurrences


def occurrences_on_date(
    occurrences: Iterable[CalendarOccurrence], day: datetime.date
) -> List[CalendarOccurrence]:
    target = parse_local_date(day)
    return [item for item in occurrences if item.occurrence_date == target]


def classify_day(occurrences: Iterable[CalendarOccurrence]) -> DayState:
    has_subject = False
    has_pending = False
    has_completed = False
    for item in occurrences:
        if item.kind is OccurrenceKind.SUBJECT:
            has_subject = True
        elif item.kind is OccurrenceKind.TASK:
            if item.source.is_completed:
                has_completed = True
            else:
                has_pending = True
        else:  # pragma: no cover - exhaustive over OccurrenceKind
            raise ValueError(f"Unknown occurrence kind: {item.kind!r}")

    if has_subject and has_pending:
        return DayState.MIXED
    if has_subject:
        return DayState.CLASS
    if has_pending:
        return DayState.PENDING_TASK
    if has_completed:
        return DayState.COMPLETED_TASK
    return DayState.EMPTY


def bucket_by_day(occurrences: Iterable[CalendarOccurrence]) -> Dict[datetime.date, DayBucket]:
    buckets: Dict[datetime.date, DayBucket] = {}
    for item in occurrences:
        bucket = buckets.get(item.occurrence_date)
        if bucket is None:
            bucket = buckets[item.occurrence_date] = DayBucket(item.occurrence_date)
        bucket.occurrences.append(item)
    return buckets


def normalize_year_month(year: int, month: int) -> Tuple[int, int]:
    # Same single-step rollover the month navigation buttons produce.
    if month > 12:
        return year + 1, 1
    if month < 1:
        return year - 1, 12
    return year, month


def month_range(year: int, month: int) -> Tuple[datetime.date, datetime.date]:
    year, month = normalize_year_month(year, month)
    last_day = calendar.monthrange(year, month)[1]
    return datetime.date(year, month, 1), datetime.date(year, month, last_day)


def _marker(item: CalendarOccurrence) -> str:
    if item.kind is OccurrenceKind.SUBJECT:
        return "subject"
    return "completed" if item.source.is_completed else "pending"


def build_month_grid(
    subjects: Sequence[Any],
    tasks: Sequence[Any],
    year: int,
    month: int,
    today: datetime.date,
) -> Dict[str, Any]:
    """Calendar payload for one month, weeks starting on Sunday.

    Leading and trailing days of neighbouring months are included for a full
    grid but only carry occurrences from the month itself, which is the range
    the tasks were fetched for.
    """
    year, month = normalize_year_month(year, month)
    month_start, month_end = month_range(year, month)
    buckets = bucket_by_day(materialize_occurrences(subjects, tasks, month_start, month_end))

    cal = calendar.Calendar(firstweekday=6)
    weeks = []
    for week in cal.monthdatescalendar(year, month):
        week_data = []
        for day in week:
            occurrences = buckets[day].occurrences if day in buckets else []
            markers = [_marker(item) for item in occurrences]
            week_data.append(
                {
                    "date": day.isoformat(),
                    "day_num": day.day,
                    "is_current_month": day.month == month,
                    "is_today": day == today,
                    "state": classify_day(occurrences).value,
                    "subject_count": markers.count("subject"),
                    "pending_task_count": markers.count("pending"),
                    "completed_task_count": markers.count("completed"),
                    "markers": markers[:MAX_DAY_MARKERS],
                    "more_markers": len(markers) > MAX_DAY_MARKERS,
                }
            )
        weeks.append(week_data)

    return {
        "calendar_data": weeks,
        "year": year,
        "month": month,
        "month_name": calendar.month_name[month],
        "today": today.isoformat(),
    }


def _task_sort_key(task: Any):
    return (-task.priority, bool(task.is_completed))


def build_day_detail(
    occurrences: Iterable[CalendarOccurrence],
    day: datetime.date,
    *,
    serialize_subject_fn,
    serialize_task_fn,
) -> Dict[str, Any]:
    """Day panel: subjects by start time with their tasks, then loose items."""
    day = parse_local_date(day)
    day_items = occurrences_on_date(occurrences, day)
    subjects = sorted(
        (item.source for item in day_items if item.kind is OccurrenceKind.SUBJECT),
        key=lambda subject: subject.start_time,
    )
    tasks = sorted(
        (item.source for item in day_items if item.kind is OccurrenceKind.TASK),
        key=_task_sort_key,
    )

    subject_ids = {subject.id for subject in subjects}
    subjects_with_tasks = []
    subjects_without_tasks = []
    for subject in subjects:
        subject_tasks = [task for task in tasks if task.subject_id == subject.id]
        if subject_tasks:
            subjects_with_tasks.append(
                {
                    "subject": serialize_subject_fn(subject),
                    "tasks": [serialize_task_fn(task) for task in subject_tasks],
                }
            )
        else:
            subjects_without_tasks.append(serialize_subject_fn(subject))

    other_tasks = [task for task in tasks if task.subject_id not in subject_ids]

    return {
        "date": day.isoformat(),
        "weekday": sunday_weekday(day),
        "day_name": DAY_NAMES[sunday_weekday(day)],
        "date_display": day.strftime("%A, %d %B %Y"),
        "state": classify_day(day_items).value,
        "subjects_with_tasks": subjects_with_tasks,
        "subjects_without_tasks": subjects_without_tasks,
        "other_tasks": [serialize_task_fn(task) for task in other_tasks],
        "subject_count": len(subjects),
        "task_count": len(tasks),
        "completed_task_count": sum(1 for task in tasks if task.is_completed),
    }


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
    "normalize_year_month",
    "occurrences_on_date",
]
