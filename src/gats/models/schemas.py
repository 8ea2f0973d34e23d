"""SQLModel schemas for the GATs project hierarchy."""

from datetime import date
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class TaskStatus(str, Enum):
    """Fixed vocabulary of task states."""

    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    UNKNOWN = "Unknown"  # Anything else found in the store

    @classmethod
    def parse(cls, value: Optional[str]) -> "TaskStatus":
        """Map a stored status string onto the vocabulary, never raising."""
        if value is None:
            return cls.UNKNOWN
        text = value.strip()
        for status in (cls.NOT_STARTED, cls.IN_PROGRESS, cls.COMPLETED):
            if text == status.value:
                return status
        return cls.UNKNOWN

    @property
    def glyph(self) -> str:
        return _STATUS_GLYPHS[self]


_STATUS_GLYPHS = {
    TaskStatus.NOT_STARTED: "⏳",
    TaskStatus.IN_PROGRESS: "🚧",
    TaskStatus.COMPLETED: "✅",
    TaskStatus.UNKNOWN: "❓",
}


class Project(SQLModel, table=True):
    """A project; owns sprints through ProjectSprint and members through ContributesTo."""

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: str = ""


class Sprint(SQLModel, table=True):
    """A time-boxed sprint belonging to exactly one project."""

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    start_date: date
    end_date: date


class Task(SQLModel, table=True):
    """A unit of work belonging to exactly one sprint."""

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    status: str = Field(default=TaskStatus.NOT_STARTED.value)  # raw, see TaskStatus.parse
    description: str = ""
    committed_hours: int = 0
    estimated_hours: int = 0


class Member(SQLModel, table=True):
    """A person who can contribute to any number of projects."""

    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str
    last_name: str
    email: str = ""
    phone: str = ""


class ProjectSprint(SQLModel, table=True):
    """Association table linking a sprint to its project."""

    __tablename__ = "project_sprint"

    project_id: int = Field(foreign_key="project.id", primary_key=True)
    sprint_id: int = Field(foreign_key="sprint.id", primary_key=True, index=True)


class PartOf(SQLModel, table=True):
    """Association table linking a task to its sprint."""

    __tablename__ = "part_of"

    sprint_id: int = Field(foreign_key="sprint.id", primary_key=True)
    task_id: int = Field(foreign_key="task.id", primary_key=True, index=True)


class ContributesTo(SQLModel, table=True):
    """Association table for project membership."""

    __tablename__ = "contributes_to"

    project_id: int = Field(foreign_key="project.id", primary_key=True)
    member_id: int = Field(foreign_key="member.id", primary_key=True, index=True)
    role: Optional[str] = None  # e.g. owner, developer, reviewer
