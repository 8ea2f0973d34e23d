"""Tree cursor: where the user is looking in the project hierarchy.

A cursor path is one of three frozen variants, one per depth:

    ProjectLevel(project)              browsing the project list
    SprintLevel(project, sprint)       browsing the sprints of one project
    TaskLevel(project, sprint, task)   browsing the tasks of one sprint

Only the innermost position is a ``Slot``; the outer positions of deeper
variants are always concrete indices, so a task focus without a sprint focus
cannot be expressed. A slot is either an index, ``None`` (no selection) or
``CREATE_NEW``, the "add a new entity here" row that sits after the last
element of every collection.

Transitions are pure functions of (path, tree) returning a new path.
``TreeCursor`` and ``MemberCursor`` are small mutable holders around them.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional, Sequence, Union

from gats.models import MemberNode, ProjectNode, SprintNode, TaskNode, Tree


class Depth(IntEnum):
    PROJECT = 0
    SPRINT = 1
    TASK = 2


class CreateNew:
    """Marker type for the create-new slot. Use the ``CREATE_NEW`` instance."""

    _instance: Optional["CreateNew"] = None

    def __new__(cls) -> "CreateNew":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CREATE_NEW"

    def __reduce__(self):
        return (CreateNew, ())


CREATE_NEW = CreateNew()

Slot = Union[None, int, CreateNew]


@dataclass(frozen=True)
class ProjectLevel:
    project: Slot = 0

    depth = Depth.PROJECT


@dataclass(frozen=True)
class SprintLevel:
    project: int
    sprint: Slot = 0

    depth = Depth.SPRINT


@dataclass(frozen=True)
class TaskLevel:
    project: int
    sprint: int
    task: Slot = 0

    depth = Depth.TASK


CursorPath = Union[ProjectLevel, SprintLevel, TaskLevel]


# =============================================================================
# Slot arithmetic
# =============================================================================


def next_slot(slot: Slot, length: int) -> Slot:
    """Step forward; the step after the last element is CREATE_NEW, which saturates."""
    if slot is CREATE_NEW:
        return CREATE_NEW
    if slot is None:
        return 0 if length else CREATE_NEW
    if slot + 1 < length:
        return slot + 1
    return CREATE_NEW


def previous_slot(slot: Slot, length: int) -> Slot:
    """Step back, stopping at index 0. CREATE_NEW steps back onto the last element."""
    if slot is None:
        return None
    if slot is CREATE_NEW:
        return length - 1 if length else CREATE_NEW
    return max(slot - 1, 0)


def clamp_slot(slot: Slot, length: int) -> Slot:
    """Pull an index that fell off the end back onto the last element (or None)."""
    if slot is None or slot is CREATE_NEW:
        return slot
    if slot < 0:
        return 0 if length else None
    if slot >= length:
        return length - 1 if length else None
    return slot


def is_index(slot: Slot) -> bool:
    return slot is not None and slot is not CREATE_NEW


# =============================================================================
# Collections under a path
# =============================================================================


def _sprints(tree: Tree, project: int) -> tuple[SprintNode, ...]:
    return tree.projects[project].sprints


def _tasks(tree: Tree, project: int, sprint: int) -> tuple[TaskNode, ...]:
    return tree.projects[project].sprints[sprint].tasks


def collection_length(path: CursorPath, tree: Tree) -> int:
    """Length of the collection the innermost slot of ``path`` indexes into."""
    if isinstance(path, ProjectLevel):
        return len(tree.projects)
    if isinstance(path, SprintLevel):
        return len(_sprints(tree, path.project))
    return len(_tasks(tree, path.project, path.sprint))


# =============================================================================
# Transitions
# =============================================================================


def renormalize(path: CursorPath, tree: Tree) -> CursorPath:
    """Make ``path`` valid against a freshly loaded ``tree``.

    Each level is clamped against the collection of the (possibly different)
    parent it now points at. A deeper path whose parent no longer exists
    collapses to the parent's level.
    """
    projects = tree.projects
    if isinstance(path, ProjectLevel):
        return ProjectLevel(clamp_slot(path.project, len(projects)))

    project = clamp_slot(path.project, len(projects))
    if not is_index(project):
        return ProjectLevel(project)

    sprints = projects[project].sprints
    if isinstance(path, SprintLevel):
        return SprintLevel(project, clamp_slot(path.sprint, len(sprints)))

    sprint = clamp_slot(path.sprint, len(sprints))
    if not is_index(sprint):
        return SprintLevel(project, sprint)

    tasks = sprints[sprint].tasks
    return TaskLevel(project, sprint, clamp_slot(path.task, len(tasks)))


def _with_slot(path: CursorPath, slot: Slot) -> CursorPath:
    if isinstance(path, ProjectLevel):
        return ProjectLevel(slot)
    if isinstance(path, SprintLevel):
        return SprintLevel(path.project, slot)
    return TaskLevel(path.project, path.sprint, slot)


def inner_slot(path: CursorPath) -> Slot:
    if isinstance(path, ProjectLevel):
        return path.project
    if isinstance(path, SprintLevel):
        return path.sprint
    return path.task


def move_next(path: CursorPath, tree: Tree) -> CursorPath:
    path = renormalize(path, tree)
    return _with_slot(path, next_slot(inner_slot(path), collection_length(path, tree)))


def move_previous(path: CursorPath, tree: Tree) -> CursorPath:
    path = renormalize(path, tree)
    return _with_slot(path, previous_slot(inner_slot(path), collection_length(path, tree)))


def increase_depth(path: CursorPath, tree: Tree) -> CursorPath:
    """Descend into the focused entity. Only a concrete entity can be entered."""
    path = renormalize(path, tree)
    if isinstance(path, ProjectLevel):
        if not is_index(path.project):
            return path
        sprints = _sprints(tree, path.project)
        return SprintLevel(path.project, 0 if sprints else None)
    if isinstance(path, SprintLevel):
        if not is_index(path.sprint):
            return path
        tasks = _tasks(tree, path.project, path.sprint)
        return TaskLevel(path.project, path.sprint, 0 if tasks else None)
    return path


def decrease_depth(path: CursorPath) -> CursorPath:
    """Return to the parent level, keeping the parent's position."""
    if isinstance(path, TaskLevel):
        return SprintLevel(path.project, path.sprint)
    if isinstance(path, SprintLevel):
        return ProjectLevel(path.project)
    return path


# =============================================================================
# Accessors
# =============================================================================


def current_project(path: CursorPath, tree: Tree) -> Optional[ProjectNode]:
    index = path.project
    if is_index(index) and 0 <= index < len(tree.projects):
        return tree.projects[index]
    return None


def current_sprint(path: CursorPath, tree: Tree) -> Optional[SprintNode]:
    if isinstance(path, ProjectLevel):
        return None
    project = current_project(path, tree)
    if project is None:
        return None
    if is_index(path.sprint) and 0 <= path.sprint < len(project.sprints):
        return project.sprints[path.sprint]
    return None


def current_task(path: CursorPath, tree: Tree) -> Optional[TaskNode]:
    if not isinstance(path, TaskLevel):
        return None
    sprint = current_sprint(path, tree)
    if sprint is None:
        return None
    if is_index(path.task) and 0 <= path.task < len(sprint.tasks):
        return sprint.tasks[path.task]
    return None


# =============================================================================
# Stateful holders
# =============================================================================


class TreeCursor:
    """Mutable cursor over a Tree, delegating to the pure transitions."""

    def __init__(self, path: Optional[CursorPath] = None):
        self.path: CursorPath = path if path is not None else ProjectLevel()

    def __repr__(self) -> str:
        return f"TreeCursor({self.path!r})"

    @property
    def depth(self) -> Depth:
        return self.path.depth

    @property
    def project_index(self) -> Slot:
        return self.path.project

    @property
    def sprint_index(self) -> Slot:
        return None if isinstance(self.path, ProjectLevel) else self.path.sprint

    @property
    def task_index(self) -> Slot:
        return self.path.task if isinstance(self.path, TaskLevel) else None

    @property
    def slot(self) -> Slot:
        """The position at the current depth."""
        return inner_slot(self.path)

    @property
    def on_create_new(self) -> bool:
        return self.slot is CREATE_NEW

    def move_next(self, tree: Tree) -> None:
        self.path = move_next(self.path, tree)

    def move_previous(self, tree: Tree) -> None:
        self.path = move_previous(self.path, tree)

    def increase_depth(self, tree: Tree) -> None:
        self.path = increase_depth(self.path, tree)

    def decrease_depth(self) -> None:
        self.path = decrease_depth(self.path)

    def renormalize(self, tree: Tree) -> None:
        self.path = renormalize(self.path, tree)

    def current_project(self, tree: Tree) -> Optional[ProjectNode]:
        return current_project(self.path, tree)

    def current_sprint(self, tree: Tree) -> Optional[SprintNode]:
        return current_sprint(self.path, tree)

    def current_task(self, tree: Tree) -> Optional[TaskNode]:
        return current_task(self.path, tree)

    def focused(self, tree: Tree) -> Union[ProjectNode, SprintNode, TaskNode, None]:
        """The entity at the current depth, if the slot names one."""
        if isinstance(self.path, ProjectLevel):
            return self.current_project(tree)
        if isinstance(self.path, SprintLevel):
            return self.current_sprint(tree)
        return self.current_task(tree)


class MemberCursor:
    """Focus within one project's member list.

    Same conventions as the tree cursor: ``None`` for no selection,
    ``CREATE_NEW`` one past the last member.
    """

    def __init__(self, slot: Slot = 0):
        self.slot: Slot = slot

    def __repr__(self) -> str:
        return f"MemberCursor({self.slot!r})"

    def move_next(self, members: Sequence[MemberNode]) -> None:
        self.slot = next_slot(clamp_slot(self.slot, len(members)), len(members))

    def move_previous(self, members: Sequence[MemberNode]) -> None:
        self.slot = previous_slot(clamp_slot(self.slot, len(members)), len(members))

    def renormalize(self, members: Sequence[MemberNode]) -> None:
        self.slot = clamp_slot(self.slot, len(members))

    def reset(self, members: Sequence[MemberNode]) -> None:
        self.slot = 0 if members else None

    def current(self, members: Sequence[MemberNode]) -> Optional[MemberNode]:
        if is_index(self.slot) and 0 <= self.slot < len(members):
            return members[self.slot]
        return None


# =============================================================================
# Serialization (for persisted view state)
# =============================================================================

NEW_MARKER = "new"


def encode_slot(slot: Slot) -> Any:
    return NEW_MARKER if slot is CREATE_NEW else slot


def decode_slot(value: Any) -> Slot:
    if value == NEW_MARKER:
        return CREATE_NEW
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def path_to_dict(path: CursorPath) -> dict:
    return {
        "depth": path.depth.name.lower(),
        "project": encode_slot(path.project),
        "sprint": encode_slot(path.sprint) if not isinstance(path, ProjectLevel) else None,
        "task": encode_slot(path.task) if isinstance(path, TaskLevel) else None,
    }


def path_from_dict(data: dict) -> CursorPath:
    """Rebuild a path; anything that cannot form a deeper path falls back a level."""
    depth = str(data.get("depth") or "project").lower()
    project = decode_slot(data.get("project"))
    sprint = decode_slot(data.get("sprint"))
    task = decode_slot(data.get("task"))

    if depth in ("sprint", "task") and is_index(project):
        if depth == "task" and is_index(sprint):
            return TaskLevel(project, sprint, task)
        return SprintLevel(project, sprint)
    return ProjectLevel(project)
