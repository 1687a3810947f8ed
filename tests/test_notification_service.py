import asyncio
import datetime

import pytest

from fakes import FakeGateway, make_subject, make_task
from study_planner.services.notification_service import (
    Notification,
    NotificationCenter,
    NotificationPoller,
    check_upcoming_items,
)

# Monday 2025-03-03.
MONDAY = datetime.date(2025, 3, 3)


def _at(hour, minute, day=MONDAY):
    return datetime.datetime.combine(day, datetime.time(hour, minute))


def test_class_alert_inside_lead_window():
    gateway = FakeGateway(subjects=[make_subject(id=1, name="Math", day_of_week=1, start_time="09:00", location="Room 5")])

    [alert] = check_upcoming_items(gateway, _at(8, 50), lead_minutes=15)

    assert alert.type == "class"
    assert alert.priority == "high"
    assert alert.message == "Class starts in 10 minutes at Room 5"
    assert alert.dedupe_key == "class:1:2025-03-03"


@pytest.mark.parametrize("now", [_at(8, 44), _at(9, 0), _at(9, 5)])
def test_no_class_alert_outside_window(now):
    gateway = FakeGateway(subjects=[make_subject(day_of_week=1, start_time="09:00")])
    assert check_upcoming_items(gateway, now, lead_minutes=15) == []


def test_class_alert_without_location_and_other_weekday_ignored():
    gateway = FakeGateway(
        subjects=[
            make_subject(id=1, day_of_week=1, start_time="09:00"),
            make_subject(id=2, day_of_week=2, start_time="09:00"),
        ]
    )
    [alert] = check_upcoming_items(gateway, _at(8, 45), lead_minutes=15)
    assert alert.message == "Class starts in 15 minutes at location not specified"


def test_tasks_due_today_carry_their_priority():
    math = make_subject(id=1, name="Math")
    gateway = FakeGateway(
        tasks=[
            make_task(id=1, title="Essay", due_date=MONDAY, priority=3, subject=math),
            make_task(id=2, title="Reading", due_date=MONDAY, priority=1),
            make_task(id=3, title="Done", due_date=MONDAY, is_completed=True),
            make_task(id=4, title="Tomorrow", due_date=MONDAY + datetime.timedelta(days=1)),
        ]
    )

    alerts = check_upcoming_items(gateway, _at(12, 0), lead_minutes=15)

    assert [(a.type, a.priority) for a in alerts] == [("task", "high"), ("task", "low")]
    assert alerts[0].message == "Essay (Math) must be finished today"


def test_tomorrow_reminder_only_at_eight_sharp():
    gateway = FakeGateway(tasks=[make_task(id=1, due_date=MONDAY + datetime.timedelta(days=1))])

    [reminder] = check_upcoming_items(gateway, _at(8, 0), lead_minutes=15)
    assert reminder.type == "reminder"
    assert reminder.priority == "medium"
    assert reminder.message == "You have 1 task(s) due tomorrow"

    assert check_upcoming_items(gateway, _at(8, 1), lead_minutes=15) == []


def test_center_suppresses_repeats_within_a_day():
    center = NotificationCenter(repeat_alerts=False)

    def alert(day):
        return Notification("class", "t", "m", _at(9, 0, day), "high", dedupe_key="class:1")

    assert center.publish("alice", alert(MONDAY), today=MONDAY) is True
    assert center.publish("alice", alert(MONDAY), today=MONDAY) is False
    assert center.publish("bob", alert(MONDAY), today=MONDAY) is True
    next_day = MONDAY + datetime.timedelta(days=1)
    assert center.publish("alice", alert(next_day), today=next_day) is True
    assert len(center.items("alice")) == 2


def test_center_repeat_mode_publishes_every_time():
    center = NotificationCenter(repeat_alerts=True)
    for _ in range(3):
        center.publish("alice", Notification("class", "t", "m", _at(9, 0), "high", dedupe_key="k"))
    assert len(center.items("alice")) == 3


def test_center_pop_remove_and_permission():
    center = NotificationCenter(repeat_alerts=False)
    first = Notification("task", "a", "m", _at(9, 0), "low")
    second = Notification("task", "b", "m", _at(9, 0), "low")
    center.publish("alice", first)
    center.publish("alice", second)

    assert [n.id for n in center.pop_undelivered("alice")] == [first.id, second.id]
    assert center.pop_undelivered("alice") == []
    assert center.remove("alice", first.id) is True
    assert center.remove("alice", first.id) is False
    assert [n.id for n in center.items("alice")] == [second.id]

    assert center.get_permission("alice") == "default"
    assert center.set_permission("alice", "granted") == "granted"
    with pytest.raises(ValueError):
        center.set_permission("alice", "maybe")


class _FakeDb:
    def __init__(self):
        self.closed = False
        self.rollbacks = 0

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


def test_poller_cycle_publishes_per_user_and_survives_failures(monkeypatch):
    gateways = {
        "alice": FakeGateway(subjects=[make_subject(id=1, day_of_week=1, start_time="09:00")]),
        "bob": FakeGateway(tasks=[make_task(id=2, due_date=MONDAY)]),
    }

    def gateway_factory(_db, user_id):
        if user_id == "broken":
            raise RuntimeError("boom")
        return gateways[user_id]

    monkeypatch.setattr(
        "study_planner.services.notification_service.list_user_ids",
        lambda _db: ["alice", "broken", "bob"],
    )
    fake_db = _FakeDb()
    center = NotificationCenter(repeat_alerts=False)
    poller = NotificationPoller(
        center,
        lambda: fake_db,
        interval_seconds=60,
        clock=lambda: _at(8, 50),
        gateway_factory=gateway_factory,
    )

    assert poller.run_cycle() == 2
    assert fake_db.closed is True
    assert fake_db.rollbacks == 1
    assert [n.type for n in center.items("alice")] == ["class"]
    assert [n.type for n in center.items("bob")] == ["task"]

    # Second cycle on the same day adds nothing new.
    assert poller.run_cycle() == 0


def test_poller_run_forever_checks_immediately_and_stops_on_cancel():
    center = NotificationCenter()
    poller = NotificationPoller(center, lambda: None, interval_seconds=3600)
    calls = []
    poller.run_cycle = lambda: calls.append(1) or 0

    async def scenario():
        task = asyncio.create_task(poller.run_forever())
        await asyncio.sleep(0.2)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
    assert calls == [1]


def test_center_reads_do_not_create_inboxes():
    center = NotificationCenter(repeat_alerts=False)

    assert center.items("ghost") == []
    assert center.pop_undelivered("ghost") == []
    assert center.remove("ghost", "task-1") is False
    center.clear("ghost")
    assert center.get_permission("ghost") == "default"

    assert "ghost" not in center._inboxes
