"""Immutable in-memory snapshot of the project hierarchy.

A ``Tree`` is rebuilt from the store after every mutation and never patched in
place. All node types are frozen dataclasses holding tuples, so two snapshots
read with no intervening write compare equal.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from .schemas import TaskStatus


@dataclass(frozen=True)
class TaskNode:
    """A task as seen in the tree."""

    id: int
    title: str
    status: str
    description: str = ""
    committed_hours: int = 0
    estimated_hours: int = 0

    @property
    def state(self) -> TaskStatus:
        return TaskStatus.parse(self.status)


@dataclass(frozen=True)
class SprintNode:
    """A sprint and its ordered tasks."""

    id: int
    title: str
    start_date: date
    end_date: date
    tasks: tuple[TaskNode, ...] = ()


@dataclass(frozen=True)
class MemberNode:
    """A member, with the role it holds in the enclosing project (if any)."""

    id: int
    first_name: str
    last_name: str
    email: str = ""
    phone: str = ""
    role: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class ProjectNode:
    """A project with its sprints and members."""

    id: int
    title: str
    description: str = ""
    sprints: tuple[SprintNode, ...] = ()
    members: tuple[MemberNode, ...] = ()


@dataclass(frozen=True)
class Tree:
    """Root of the snapshot."""

    projects: tuple[ProjectNode, ...] = ()

    def __len__(self) -> int:
        return len(self.projects)

    def find_project(self, project_id: int) -> Optional[ProjectNode]:
        for project in self.projects:
            if project.id == project_id:
                return project
        return None

    def find_sprint(self, sprint_id: int) -> Optional[SprintNode]:
        for project in self.projects:
            for sprint in project.sprints:
                if sprint.id == sprint_id:
                    return sprint
        return None

    def find_task(self, task_id: int) -> Optional[TaskNode]:
        for project in self.projects:
            for sprint in project.sprints:
                for task in sprint.tasks:
                    if task.id == task_id:
                        return task
        return None

    def count(self) -> dict[str, int]:
        """Count entities per level, for summaries."""
        sprints = [s for p in self.projects for s in p.sprints]
        return {
            "projects": len(self.projects),
            "sprints": len(sprints),
            "tasks": sum(len(s.tasks) for s in sprints),
        }
