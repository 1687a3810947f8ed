"""Seed helpers for demo data."""

from __future__ import annotations

import datetime
from typing import List

from study_planner.services.gateway import PlannerGateway

_SAMPLE_SUBJECTS = [
    # (name, day_of_week, start, end, location, color)
    ("Mathematics", 1, "08:00", "09:30", "Room 101", "#3B82F6"),
    ("Physics", 2, "10:00", "11:30", "Lab 2", "#EF4444"),
    ("Biology", 3, "08:00", "09:30", "Room 204", "#10B981"),
    ("History", 4, "13:00", "14:30", None, "#F59E0B"),
    ("English", 5, "09:00", "10:30", "Room 12", "#8B5CF6"),
]

_SAMPLE_TASKS = [
    # (title, subject name, days from today, priority)
    ("Algebra worksheet", "Mathematics", 0, 3),
    ("Lab report", "Physics", 1, 2),
    ("Read chapter 4", "History", 3, 1),
    ("Essay draft", "English", 6, 2),
    ("Buy notebooks", None, 2, 1),
]


def seed_sample_data(gateway: PlannerGateway, today: datetime.date | None = None) -> List[str]:
    """Create demo subjects and tasks; does nothing when the user already has subjects."""
    today = today or datetime.date.today()
    messages: List[str] = []

    if gateway.list_subjects():
        return messages

    subject_ids = {}
    for name, day_of_week, start_time, end_time, location, color in _SAMPLE_SUBJECTS:
        subject = gateway.create_subject(
            {
                "name": name,
                "day_of_week": day_of_week,
                "start_time": start_time,
                "end_time": end_time,
                "location": location,
                "color": color,
            }
        )
        subject_ids[name] = subject.id
    messages.append(f"Seeded {len(_SAMPLE_SUBJECTS)} subjects")

    for title, subject_name, offset, priority in _SAMPLE_TASKS:
        gateway.create_task(
            {
                "title": title,
                "subject_id": subject_ids.get(subject_name) if subject_name else None,
                "due_date": today + datetime.timedelta(days=offset),
                "priority": priority,
            }
        )
    messages.append(f"Seeded {len(_SAMPLE_TASKS)} tasks")
    return messages
