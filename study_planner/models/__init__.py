"""SQLModel exports for Study Planner."""

from .planner_models import Subject, SubjectCreate, SubjectUpdate, Task, TaskCreate, TaskUpdate

__all__ = [
    "Subject",
    "SubjectCreate",
    "SubjectUpdate",
    "Task",
    "TaskCreate",
    "TaskUpdate",
]
