"""Data gateway for subjects and tasks.

Every call is scoped to one user: rows owned by anybody else behave as if
they did not exist. The web layer and the notification poller only talk to
the ``PlannerGateway`` protocol, so the SQL implementation can be swapped for
an in-memory double in tests.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any, Dict, List, Protocol, Tuple

from sqlalchemy import update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from study_planner.models import Subject, Task

logger = logging.getLogger(__name__)

SUBJECT_FIELDS = ("name", "day_of_week", "start_time", "end_time", "location", "color")
TASK_FIELDS = ("title", "description", "subject_id", "due_date", "priority", "is_completed")


class GatewayError(Exception):
    """A request to the data store failed."""


class NotFoundError(GatewayError):
    """The requested row does not exist for the current user."""


class PlannerGateway(Protocol):
    def list_subjects(self, day_of_week: int | None = None) -> List[Subject]: ...

    def list_tasks(
        self,
        date_from: datetime.date | None = None,
        date_to: datetime.date | None = None,
        is_completed: bool | None = None,
        subject_id: int | None = None,
    ) -> List[Task]: ...

    def get_subject(self, subject_id: int) -> Subject: ...

    def get_task(self, task_id: int) -> Task: ...

    def create_subject(self, fields: Dict[str, Any]) -> Subject: ...

    def update_subject(self, subject_id: int, fields: Dict[str, Any]) -> Subject: ...

    def delete_subject(self, subject_id: int) -> None: ...

    def create_task(self, fields: Dict[str, Any]) -> Task: ...

    def update_task(self, task_id: int, fields: Dict[str, Any]) -> Task: ...

    def delete_task(self, task_id: int) -> None: ...

    def toggle_task(self, task_id: int) -> Task: ...

    def search(self, term: str, limit: int = 5) -> Tuple[List[Subject], List[Task]]: ...


class SqlPlannerGateway:
    """SQLModel-backed gateway bound to a session and a user."""

    def __init__(self, db: Session, user_id: str):
        if not user_id:
            raise ValueError("user_id is required")
        self.db = db
        self.user_id = user_id

    def list_subjects(self, day_of_week: int | None = None) -> List[Subject]:
        statement = select(Subject).where(Subject.user_id == self.user_id)
        if day_of_week is not None:
            statement = statement.where(Subject.day_of_week == day_of_week)
        statement = statement.order_by(Subject.day_of_week, Subject.start_time)
        return list(self.db.exec(statement).all())

    def list_tasks(
        self,
        date_from: datetime.date | None = None,
        date_to: datetime.date | None = None,
        is_completed: bool | None = None,
        subject_id: int | None = None,
    ) -> List[Task]:
        statement = select(Task).where(Task.user_id == self.user_id)
        if date_from is not None:
            statement = statement.where(Task.due_date >= date_from)
        if date_to is not None:
            statement = statement.where(Task.due_date <= date_to)
        if is_completed is not None:
            statement = statement.where(Task.is_completed == is_completed)
        if subject_id is not None:
            statement = statement.where(Task.subject_id == subject_id)
        statement = statement.order_by(Task.due_date, col(Task.priority).desc(), Task.id)
        return list(self.db.exec(statement).all())

    def get_subject(self, subject_id: int) -> Subject:
        subject = self.db.get(Subject, subject_id)
        if subject is None or subject.user_id != self.user_id:
            raise NotFoundError(f"Subject {subject_id} not found")
        return subject

    def get_task(self, task_id: int) -> Task:
        task = self.db.get(Task, task_id)
        if task is None or task.user_id != self.user_id:
            raise NotFoundError(f"Task {task_id} not found")
        return task

    def create_subject(self, fields: Dict[str, Any]) -> Subject:
        subject = Subject(user_id=self.user_id, **_pick(fields, SUBJECT_FIELDS))
        self.db.add(subject)
        self._commit("create subject")
        self.db.refresh(subject)
        logger.info("Created subject %s for user %s", subject.id, self.user_id)
        return subject

    def update_subject(self, subject_id: int, fields: Dict[str, Any]) -> Subject:
        subject = self.get_subject(subject_id)
        for key, value in _pick(fields, SUBJECT_FIELDS).items():
            setattr(subject, key, value)
        self.db.add(subject)
        self._commit("update subject")
        self.db.refresh(subject)
        return subject

    def delete_subject(self, subject_id: int) -> None:
        subject = self.get_subject(subject_id)
        # Tasks outlive their subject; only the reference is cleared.
        self.db.exec(
            sa_update(Task)
            .where(Task.subject_id == subject.id, Task.user_id == self.user_id)
            .values(subject_id=None)
        )
        self.db.delete(subject)
        self._commit("delete subject")
        self.db.expire_all()
        logger.info("Deleted subject %s for user %s", subject_id, self.user_id)

    def create_task(self, fields: Dict[str, Any]) -> Task:
        values = _pick(fields, TASK_FIELDS)
        values["is_completed"] = False
        if values.get("subject_id") is not None:
            self.get_subject(values["subject_id"])
        task = Task(user_id=self.user_id, **values)
        self.db.add(task)
        self._commit("create task")
        self.db.refresh(task)
        logger.info("Created task %s for user %s", task.id, self.user_id)
        return task

    def update_task(self, task_id: int, fields: Dict[str, Any]) -> Task:
        task = self.get_task(task_id)
        values = _pick(fields, TASK_FIELDS)
        if values.get("subject_id") is not None:
            self.get_subject(values["subject_id"])
        for key, value in values.items():
            setattr(task, key, value)
        self.db.add(task)
        self._commit("update task")
        self.db.refresh(task)
        return task

    def delete_task(self, task_id: int) -> None:
        task = self.get_task(task_id)
        self.db.delete(task)
        self._commit("delete task")
        logger.info("Deleted task %s for user %s", task_id, self.user_id)

    def toggle_task(self, task_id: int) -> Task:
        task = self.get_task(task_id)
        task.is_completed = not task.is_completed
        self.db.add(task)
        self._commit("toggle task")
        self.db.refresh(task)
        return task

    def search(self, term: str, limit: int = 5) -> Tuple[List[Subject], List[Task]]:
        pattern = f"%{term.strip()}%"
        subjects = self.db.exec(
            select(Subject)
            .where(Subject.user_id == self.user_id, col(Subject.name).ilike(pattern))
            .order_by(Subject.name)
            .limit(limit)
        ).all()
        tasks = self.db.exec(
            select(Task)
            .where(Task.user_id == self.user_id, col(Task.title).ilike(pattern))
            .order_by(Task.due_date)
            .limit(limit)
        ).all()
        return list(subjects), list(tasks)

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to %s for user %s", operation, self.user_id)
            raise GatewayError(f"Failed to {operation}") from exc


def _pick(fields: Dict[str, Any], allowed) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if key in allowed}


def list_user_ids(db: Session) -> List[str]:
    """Every user owning at least one subject or task."""
    subject_users = db.exec(select(Subject.user_id).distinct()).all()
    task_users = db.exec(select(Task.user_id).distinct()).all()
    return sorted(set(subject_users) | set(task_users))


def serialize_subject(subject: Subject) -> Dict[str, Any]:
    return {
        "id": subject.id,
        "name": subject.name,
        "day_of_week": subject.day_of_week,
        "start_time": subject.start_time,
        "end_time": subject.end_time,
        "location": subject.location,
        "color": subject.color,
    }


def serialize_task(task: Task) -> Dict[str, Any]:
    subject = task.subject if task.subject_id is not None else None
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "subject_id": task.subject_id,
        "subject_name": subject.name if subject else None,
        "subject_color": subject.color if subject else None,
        "due_date": task.due_date.isoformat(),
        "priority": task.priority,
        "is_completed": task.is_completed,
    }


__all__ = [
    "GatewayError",
    "NotFoundError",
    "PlannerGateway",
    "SqlPlannerGateway",
    "list_user_ids",
    "serialize_subject",
    "serialize_task",
]
