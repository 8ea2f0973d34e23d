"""Mutation coordinator.

``Workspace`` owns the current tree snapshot and both cursors, and turns every
user action into one ordered sequence:

    1. check the cursor names something to act on (otherwise do nothing)
    2. run the repository write (on failure: re-raise, state untouched)
    3. reload the whole tree
    4. renormalize the cursors against the new tree

Callers therefore never observe a tree that reflects half an action, nor a
cursor pointing into a tree it was not normalized against.
"""

from datetime import date
from typing import Callable, Optional, TypeVar, Union

from gats.cursor import (
    CREATE_NEW,
    CursorPath,
    Depth,
    MemberCursor,
    Slot,
    TreeCursor,
)
from gats.errors import GatsError, StoreError
from gats.logs import get_logger
from gats.models import MemberNode, ProjectNode, SprintNode, TaskNode, TaskStatus, Tree
from gats.repository import HierarchyRepository

log = get_logger("coordinator")

T = TypeVar("T")
DateLike = Union[date, str]


class Workspace:
    """Tree snapshot plus cursors, mutated only through ordered actions."""

    def __init__(
        self,
        repository: HierarchyRepository,
        path: Optional[CursorPath] = None,
        member_slot: Slot = 0,
    ):
        self.repository = repository
        self.tree = Tree()
        self.cursor = TreeCursor(path)
        self.member_cursor = MemberCursor(member_slot)
        # Set when a write committed but the reload after it failed
        self.stale = False
        self._loaded = False

    # =========================================================================
    # Snapshot management
    # =========================================================================

    def reload(self) -> Tree:
        """Replace the snapshot with a fresh read and renormalize the cursors.

        On failure the previous snapshot and cursors are kept.
        """
        tree = self.repository.load_all()
        self._install(tree)
        return tree

    def _install(self, tree: Tree) -> None:
        previous = self.cursor.current_project(self.tree)
        self.tree = tree
        self.cursor.renormalize(tree)
        current = self.cursor.current_project(tree)
        members = self.current_members()
        if not self._loaded:
            # Keep a restored member position on the first load
            self.member_cursor.renormalize(members)
        elif previous is None or current is None or previous.id != current.id:
            self.member_cursor.reset(members)
        else:
            self.member_cursor.renormalize(members)
        self._loaded = True
        self.stale = False

    def _apply(
        self,
        action: str,
        entity: str,
        entity_id: Optional[int],
        write: Callable[[], T],
    ) -> T:
        try:
            result = write()
        except GatsError as e:
            if e.entity is None:
                e.entity, e.entity_id = entity, entity_id
            log.warning("%s failed: %s", action, e)
            raise

        try:
            tree = self.repository.load_all()
        except StoreError:
            self.stale = True
            log.error("Reload after %s failed; keeping the last snapshot", action)
            raise
        self._install(tree)
        return result

    # =========================================================================
    # Read-only accessors
    # =========================================================================

    @property
    def depth(self) -> Depth:
        return self.cursor.depth

    def current_project(self) -> Optional[ProjectNode]:
        return self.cursor.current_project(self.tree)

    def current_sprint(self) -> Optional[SprintNode]:
        return self.cursor.current_sprint(self.tree)

    def current_task(self) -> Optional[TaskNode]:
        return self.cursor.current_task(self.tree)

    def current_members(self) -> tuple[MemberNode, ...]:
        project = self.current_project()
        return project.members if project else ()

    def current_member(self) -> Optional[MemberNode]:
        return self.member_cursor.current(self.current_members())

    # =========================================================================
    # Navigation
    # =========================================================================

    def move_next(self) -> None:
        before = self.current_project()
        self.cursor.move_next(self.tree)
        self._follow_project(before)

    def move_previous(self) -> None:
        before = self.current_project()
        self.cursor.move_previous(self.tree)
        self._follow_project(before)

    def increase_depth(self) -> None:
        before = self.current_project()
        self.cursor.increase_depth(self.tree)
        self._follow_project(before)

    def decrease_depth(self) -> None:
        self.cursor.decrease_depth()

    def member_next(self) -> None:
        self.member_cursor.move_next(self.current_members())

    def member_previous(self) -> None:
        self.member_cursor.move_previous(self.current_members())

    def _follow_project(self, before: Optional[ProjectNode]) -> None:
        after = self.current_project()
        if before is None or after is None or before.id != after.id:
            self.member_cursor.reset(self.current_members())

    # =========================================================================
    # Projects
    # =========================================================================

    def create_project(self, title: str, description: str = "") -> Optional[int]:
        """Create a project. Needs a selection at project depth."""
        if self.cursor.depth != Depth.PROJECT or self.cursor.slot is None:
            return None
        return self._apply(
            "create project", "project", None,
            lambda: self.repository.create_project(title, description),
        )

    def edit_project(self, title: str, description: str = "") -> bool:
        project = self.current_project()
        if project is None:
            return False
        self._apply(
            "edit project", "project", project.id,
            lambda: self.repository.update_project(project.id, title, description),
        )
        return True

    def delete_project(self) -> bool:
        project = self.current_project()
        if project is None:
            return False
        self._apply(
            "delete project", "project", project.id,
            lambda: self.repository.delete_project(project.id),
        )
        return True

    # =========================================================================
    # Sprints
    # =========================================================================

    def create_sprint(self, title: str, start_date: DateLike, end_date: DateLike) -> Optional[int]:
        """Create a sprint in the focused project."""
        project = self.current_project()
        if project is None:
            return None
        return self._apply(
            "create sprint", "project", project.id,
            lambda: self.repository.create_sprint(project.id, title, start_date, end_date),
        )

    def edit_sprint(self, title: str, start_date: DateLike, end_date: DateLike) -> bool:
        sprint = self.current_sprint()
        if sprint is None:
            return False
        self._apply(
            "edit sprint", "sprint", sprint.id,
            lambda: self.repository.update_sprint(sprint.id, title, start_date, end_date),
        )
        return True

    def delete_sprint(self) -> bool:
        sprint = self.current_sprint()
        if sprint is None:
            return False
        self._apply(
            "delete sprint", "sprint", sprint.id,
            lambda: self.repository.delete_sprint(sprint.id),
        )
        return True

    # =========================================================================
    # Tasks
    # =========================================================================

    def create_task(
        self,
        title: str,
        status: str = TaskStatus.NOT_STARTED.value,
        description: str = "",
        committed_hours: int = 0,
        estimated_hours: int = 0,
    ) -> Optional[int]:
        """Create a task in the focused sprint."""
        sprint = self.current_sprint()
        if sprint is None:
            return None
        return self._apply(
            "create task", "sprint", sprint.id,
            lambda: self.repository.create_task(
                sprint.id, title, status, description, committed_hours, estimated_hours
            ),
        )

    def edit_task(
        self,
        title: str,
        status: str = TaskStatus.NOT_STARTED.value,
        description: str = "",
        committed_hours: int = 0,
        estimated_hours: int = 0,
    ) -> bool:
        task = self.current_task()
        if task is None:
            return False
        self._apply(
            "edit task", "task", task.id,
            lambda: self.repository.update_task(
                task.id, title, status, description, committed_hours, estimated_hours
            ),
        )
        return True

    def delete_task(self) -> bool:
        task = self.current_task()
        if task is None:
            return False
        self._apply(
            "delete task", "task", task.id,
            lambda: self.repository.delete_task(task.id),
        )
        return True

    def delete_focused(self) -> bool:
        """Delete whatever sits under the cursor at its current depth."""
        if self.cursor.slot is None or self.cursor.slot is CREATE_NEW:
            return False
        if self.depth == Depth.PROJECT:
            return self.delete_project()
        if self.depth == Depth.SPRINT:
            return self.delete_sprint()
        return self.delete_task()

    # =========================================================================
    # Members
    # =========================================================================

    def create_member(
        self,
        first_name: str,
        last_name: str,
        email: str = "",
        phone: str = "",
    ) -> int:
        """Add a member to the directory (not to any project)."""
        return self._apply(
            "create member", "member", None,
            lambda: self.repository.create_member(first_name, last_name, email, phone),
        )

    def edit_member(
        self,
        member_id: int,
        first_name: str,
        last_name: str,
        email: str = "",
        phone: str = "",
    ) -> bool:
        self._apply(
            "edit member", "member", member_id,
            lambda: self.repository.update_member(member_id, first_name, last_name, email, phone),
        )
        return True

    def delete_member(self, member_id: int) -> bool:
        self._apply(
            "delete member", "member", member_id,
            lambda: self.repository.delete_member(member_id),
        )
        return True

    def add_member(self, member_id: int, role: Optional[str] = None) -> bool:
        """Add a directory member to the focused project."""
        project = self.current_project()
        if project is None:
            return False
        self._apply(
            "add member", "project", project.id,
            lambda: self.repository.add_member(project.id, member_id, role),
        )
        return True

    def remove_member(self) -> bool:
        """Remove the member under the member cursor from the focused project."""
        project = self.current_project()
        member = self.current_member()
        if project is None or member is None:
            return False
        self._apply(
            "remove member", "member", member.id,
            lambda: self.repository.remove_member(project.id, member.id),
        )
        return True
