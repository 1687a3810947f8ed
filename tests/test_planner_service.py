import datetime

from fakes import FakeGateway, make_subject, make_task
from study_planner.services.planner_service import (
    get_dashboard,
    list_subjects_view,
    list_tasks_view,
    search_items,
    task_date_status,
)
from study_planner.services.sample_data_service import seed_sample_data

MONDAY = datetime.date(2025, 3, 3)


def test_task_date_status():
    assert task_date_status(MONDAY, MONDAY) == "today"
    assert task_date_status(MONDAY + datetime.timedelta(days=1), MONDAY) == "tomorrow"
    assert task_date_status(MONDAY - datetime.timedelta(days=1), MONDAY) == "overdue"
    assert task_date_status(MONDAY + datetime.timedelta(days=5), MONDAY) == "upcoming"


def test_dashboard_lists_today_tomorrow_and_next_week():
    gateway = FakeGateway(
        subjects=[
            make_subject(id=1, name="Late", day_of_week=1, start_time="13:00"),
            make_subject(id=2, name="Early", day_of_week=1, start_time="08:00"),
            make_subject(id=3, name="Tuesday", day_of_week=2),
        ],
        tasks=[
            make_task(id=1, title="Now", due_date=MONDAY, priority=1),
            make_task(id=2, title="Urgent", due_date=MONDAY, priority=3),
            make_task(id=3, title="Week", due_date=MONDAY + datetime.timedelta(days=7)),
            make_task(id=4, title="Too far", due_date=MONDAY + datetime.timedelta(days=8)),
            make_task(id=5, title="Finished", due_date=MONDAY, is_completed=True),
        ],
    )

    dashboard = get_dashboard(gateway, MONDAY)

    assert [s["name"] for s in dashboard["today_subjects"]] == ["Early", "Late"]
    assert [s["name"] for s in dashboard["tomorrow_subjects"]] == ["Tuesday"]
    assert [t["title"] for t in dashboard["upcoming_tasks"]] == ["Urgent", "Now", "Week"]
    assert dashboard["stats"] == {"today_classes": 2, "pending_tasks": 3, "due_today": 2, "tomorrow_classes": 1}


def test_subjects_view_groups_by_weekday_name():
    gateway = FakeGateway(subjects=[make_subject(id=1, day_of_week=0), make_subject(id=2, day_of_week=3)])
    view = list_subjects_view(gateway)
    assert [group["day_name"] for group in view["grouped"]] == ["Sunday", "Wednesday"]
    assert view["count"] == 2


def test_tasks_view_splits_and_searches_description():
    gateway = FakeGateway(
        tasks=[
            make_task(id=1, title="Essay", description="history chapter", due_date=MONDAY),
            make_task(id=2, title="Lab", due_date=MONDAY, is_completed=True),
        ]
    )

    view = list_tasks_view(gateway, MONDAY)
    assert [t["title"] for t in view["pending"]] == ["Essay"]
    assert [t["title"] for t in view["completed"]] == ["Lab"]
    assert view["pending"][0]["date_status"] == "today"

    assert list_tasks_view(gateway, MONDAY, search="HISTORY")["count"] == 1


def test_search_items_ignores_short_queries():
    gateway = FakeGateway(tasks=[make_task(id=1, title="Essay", due_date=MONDAY)])
    assert search_items(gateway, " e ") == {"results": []}
    assert search_items(gateway, "ess")["results"] == [
        {"id": 1, "title": "Essay", "type": "task", "subtitle": "Due: 2025-03-03"}
    ]


def test_seed_sample_data_skips_users_with_subjects():
    empty = FakeGateway()
    assert seed_sample_data(empty, today=MONDAY) == ["Seeded 5 subjects", "Seeded 5 tasks"]
    assert len(empty.tasks) == 5
    assert seed_sample_data(empty, today=MONDAY) == []
