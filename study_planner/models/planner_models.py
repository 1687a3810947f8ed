"""Planner domain SQLModel models."""

import datetime
import re

from pydantic import field_validator, model_validator
from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from sqlmodel import Field, Relationship, SQLModel

from study_planner.core.config import DEFAULT_SUBJECT_COLOR
from study_planner.core.dates import normalize_hhmm, parse_local_date

_HEX_COLOR = re.compile(r"#[0-9A-Fa-f]{6}")


def _now() -> datetime.datetime:
    # Stored timezone-aware (UTC).
    return datetime.datetime.now(datetime.timezone.utc)


# 日本語: 毎週繰り返す授業科目 / English: Class subject recurring every week
class Subject(SQLModel, table=True):
    __tablename__ = "subject"

    # 日本語: 曜日は 0=日 ... 6=土 / English: Weekday 0=Sunday ... 6=Saturday
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, max_length=64)
    name: str = Field(max_length=100)
    day_of_week: int = Field(index=True)
    start_time: str = Field(max_length=5)
    end_time: str = Field(max_length=5)
    location: str | None = Field(default=None, max_length=200)
    color: str = Field(default=DEFAULT_SUBJECT_COLOR, max_length=7)
    created_at: datetime.datetime = Field(default_factory=_now, sa_type=DateTime(timezone=True))
    updated_at: datetime.datetime = Field(
        default_factory=_now, sa_type=DateTime(timezone=True), sa_column_kwargs={"onupdate": _now}
    )

    tasks: list["Task"] = Relationship(
        back_populates="subject", sa_relationship_kwargs={"passive_deletes": True}
    )


# 日本語: 締切日を持つ単発の課題 / English: One-off task with a due date
class Task(SQLModel, table=True):
    __tablename__ = "task"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, max_length=64)
    subject_id: int | None = Field(
        default=None,
        sa_column=Column(
            Integer, ForeignKey("subject.id", ondelete="SET NULL"), nullable=True, index=True
        ),
    )
    title: str = Field(max_length=200)
    description: str | None = Field(default=None, sa_column=Column(Text))
    due_date: datetime.date = Field(index=True)
    # 日本語: 優先度 1=低 2=中 3=高 / English: Priority 1=low 2=medium 3=high
    priority: int = Field(default=1, index=True)
    is_completed: bool = Field(default=False)
    created_at: datetime.datetime = Field(default_factory=_now, sa_type=DateTime(timezone=True))
    updated_at: datetime.datetime = Field(
        default_factory=_now, sa_type=DateTime(timezone=True), sa_column_kwargs={"onupdate": _now}
    )

    subject: Subject | None = Relationship(back_populates="tasks")


class _SubjectFields(SQLModel):
    @field_validator("name", check_fields=False)
    @classmethod
    def _name_not_blank(cls, value):
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("name is required")
        return value

    @field_validator("day_of_week", check_fields=False)
    @classmethod
    def _weekday_in_range(cls, value):
        if value is not None and not 0 <= value <= 6:
            raise ValueError("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
        return value

    @field_validator("start_time", "end_time", check_fields=False)
    @classmethod
    def _hhmm(cls, value):
        if value is None:
            return value
        normalized = normalize_hhmm(value)
        if normalized is None:
            raise ValueError("time must be HH:MM")
        return normalized

    @field_validator("location", check_fields=False)
    @classmethod
    def _blank_location_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("color", check_fields=False)
    @classmethod
    def _hex_color(cls, value):
        if value is not None and not _HEX_COLOR.fullmatch(value):
            raise ValueError("color must be a #RRGGBB hex string")
        return value


class SubjectCreate(_SubjectFields):
    name: str
    day_of_week: int
    start_time: str
    end_time: str
    location: str | None = None
    color: str = DEFAULT_SUBJECT_COLOR

    @model_validator(mode="after")
    def _start_before_end(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class SubjectUpdate(_SubjectFields):
    name: str | None = None
    day_of_week: int | None = None
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None
    color: str | None = None


class _TaskFields(SQLModel):
    @field_validator("title", check_fields=False)
    @classmethod
    def _title_not_blank(cls, value):
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("title is required")
        return value

    @field_validator("description", check_fields=False)
    @classmethod
    def _blank_description_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("subject_id", mode="before", check_fields=False)
    @classmethod
    def _no_subject(cls, value):
        if isinstance(value, str) and value.strip().lower() in {"", "none", "null"}:
            return None
        return value

    @field_validator("due_date", mode="before", check_fields=False)
    @classmethod
    def _local_due_date(cls, value):
        # Anchor to the local calendar date; never shift through UTC.
        if value is None or isinstance(value, datetime.date):
            return value
        return parse_local_date(value)

    @field_validator("priority", check_fields=False)
    @classmethod
    def _priority_in_range(cls, value):
        if value is not None and value not in (1, 2, 3):
            raise ValueError("priority must be 1 (low), 2 (medium) or 3 (high)")
        return value


class TaskCreate(_TaskFields):
    title: str
    description: str | None = None
    subject_id: int | None = None
    due_date: datetime.date
    priority: int = 1


class TaskUpdate(_TaskFields):
    title: str | None = None
    description: str | None = None
    subject_id: int | None = None
    due_date: datetime.date | None = None
    priority: int | None = None
    is_completed: bool | None = None

    @field_validator("title", "due_date", "priority", "is_completed", mode="before")
    @classmethod
    def _required_column_not_null(cls, value):
        # Omitted fields stay unset; an explicit null would violate NOT NULL.
        if value is None:
            raise ValueError("value cannot be empty")
        return value
