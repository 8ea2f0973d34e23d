"""Data models for GATs."""

from .schemas import (
    ContributesTo,
    Member,
    PartOf,
    Project,
    ProjectSprint,
    Sprint,
    Task,
    TaskStatus,
)
from .tree import (
    MemberNode,
    ProjectNode,
    SprintNode,
    TaskNode,
    Tree,
)

__all__ = [
    "ContributesTo",
    "Member",
    "PartOf",
    "Project",
    "ProjectSprint",
    "Sprint",
    "Task",
    "TaskStatus",
    "MemberNode",
    "ProjectNode",
    "SprintNode",
    "TaskNode",
    "Tree",
]
