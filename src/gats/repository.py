"""Hierarchy repository.

Builds the Projects -> Sprints -> Tasks (and Projects -> Members) snapshot
from flat rows and owns every write against the store. Multi-statement
operations run inside a single transaction: either every statement takes
effect or none does.

Referential integrity is maintained here rather than by the database, so
deletes always remove association rows before the rows they reference.
"""

from collections import defaultdict
from datetime import date
from typing import Optional, Union

from sqlalchemy import delete
from sqlmodel import Session, select

from gats.errors import NotFoundError
from gats.forms import MemberForm, ProjectForm, SprintForm, TaskForm, validate_form
from gats.logs import get_logger
from gats.models import (
    ContributesTo,
    Member,
    MemberNode,
    PartOf,
    Project,
    ProjectNode,
    ProjectSprint,
    Sprint,
    SprintNode,
    Task,
    TaskNode,
    TaskStatus,
    Tree,
)
from gats.store import EntityStore

log = get_logger("repository")

DateLike = Union[date, str]


def _task_node(task: Task) -> TaskNode:
    return TaskNode(
        id=task.id,
        title=task.title,
        status=task.status,
        description=task.description,
        committed_hours=task.committed_hours,
        estimated_hours=task.estimated_hours,
    )


def _member_node(member: Member, role: Optional[str] = None) -> MemberNode:
    return MemberNode(
        id=member.id,
        first_name=member.first_name,
        last_name=member.last_name,
        email=member.email,
        phone=member.phone,
        role=role,
    )


class HierarchyRepository:
    """Reads the hierarchy as a Tree and performs cascade-consistent writes."""

    def __init__(self, store: EntityStore):
        self.store = store

    # =========================================================================
    # Reads
    # =========================================================================

    def load_all(self) -> Tree:
        """Read every project with its sprints, tasks and members.

        All rows are read in one session and assembled only after every query
        has succeeded, so a failure never yields a partially populated tree.
        Rows are ordered by id, which keeps repeated reads identical.
        """
        with self.store.reading("load projects") as session:
            projects = session.exec(select(Project).order_by(Project.id)).all()

            sprint_rows = session.exec(
                select(ProjectSprint.project_id, Sprint)
                .join(Sprint, Sprint.id == ProjectSprint.sprint_id)
                .order_by(Sprint.id)
            ).all()

            task_rows = session.exec(
                select(PartOf.sprint_id, Task)
                .join(Task, Task.id == PartOf.task_id)
                .order_by(Task.id)
            ).all()

            member_rows = session.exec(
                select(ContributesTo.project_id, ContributesTo.role, Member)
                .join(Member, Member.id == ContributesTo.member_id)
                .order_by(Member.id)
            ).all()

        tasks_by_sprint: dict[int, list[TaskNode]] = defaultdict(list)
        for sprint_id, task in task_rows:
            tasks_by_sprint[sprint_id].append(_task_node(task))

        sprints_by_project: dict[int, list[SprintNode]] = defaultdict(list)
        for project_id, sprint in sprint_rows:
            sprints_by_project[project_id].append(
                SprintNode(
                    id=sprint.id,
                    title=sprint.title,
                    start_date=sprint.start_date,
                    end_date=sprint.end_date,
                    tasks=tuple(tasks_by_sprint.get(sprint.id, ())),
                )
            )

        members_by_project: dict[int, list[MemberNode]] = defaultdict(list)
        for project_id, role, member in member_rows:
            members_by_project[project_id].append(_member_node(member, role))

        return Tree(
            projects=tuple(
                ProjectNode(
                    id=project.id,
                    title=project.title,
                    description=project.description,
                    sprints=tuple(sprints_by_project.get(project.id, ())),
                    members=tuple(members_by_project.get(project.id, ())),
                )
                for project in projects
            )
        )

    def list_members(self) -> list[MemberNode]:
        """All members in the directory, regardless of project."""
        members = self.store.query(select(Member).order_by(Member.id))
        return [_member_node(m) for m in members]

    def members_of(self, project_id: int) -> list[MemberNode]:
        """Members of one project, with their roles."""
        rows = self.store.query(
            select(ContributesTo.role, Member)
            .join(Member, Member.id == ContributesTo.member_id)
            .where(ContributesTo.project_id == project_id)
            .order_by(Member.id)
        )
        return [_member_node(member, role) for role, member in rows]

    # =========================================================================
    # Projects
    # =========================================================================

    def create_project(self, title: str, description: str = "") -> int:
        form = validate_form(ProjectForm, "project", title=title, description=description)
        with self.store.transaction("create project") as session:
            project = Project(title=form.title, description=form.description)
            session.add(project)
            session.flush()
            project_id = project.id
        log.info("Created project #%s '%s'", project_id, form.title)
        return project_id

    def update_project(self, project_id: int, title: str, description: str = "") -> None:
        form = validate_form(
            ProjectForm, "project", project_id, title=title, description=description
        )
        with self.store.transaction("update project") as session:
            project = self._get(session, Project, project_id, "project")
            project.title = form.title
            project.description = form.description
            session.add(project)
        log.info("Updated project #%s", project_id)

    def delete_project(self, project_id: int) -> None:
        """Delete a project, its sprints, their tasks and every association row.

        Statement order: memberships, project-sprint links, sprint-task links,
        tasks, sprints, project. Dependent ids are read before any link is
        removed.
        """
        with self.store.transaction("delete project") as session:
            sprint_ids = list(session.exec(
                select(ProjectSprint.sprint_id).where(ProjectSprint.project_id == project_id)
            ).all())
            task_ids = self._task_ids(session, sprint_ids)

            session.exec(delete(ContributesTo).where(ContributesTo.project_id == project_id))
            session.exec(delete(ProjectSprint).where(ProjectSprint.project_id == project_id))
            if sprint_ids:
                session.exec(delete(PartOf).where(PartOf.sprint_id.in_(sprint_ids)))
            if task_ids:
                session.exec(delete(Task).where(Task.id.in_(task_ids)))
            if sprint_ids:
                session.exec(delete(Sprint).where(Sprint.id.in_(sprint_ids)))
            self._delete_row(session, Project, project_id, "project")
        log.info(
            "Deleted project #%s with %d sprints and %d tasks",
            project_id, len(sprint_ids), len(task_ids),
        )

    # =========================================================================
    # Sprints
    # =========================================================================

    def create_sprint(
        self,
        project_id: int,
        title: str,
        start_date: DateLike,
        end_date: DateLike,
    ) -> int:
        """Insert a sprint and link it to its project in one transaction."""
        form = validate_form(
            SprintForm, "sprint", title=title, start_date=start_date, end_date=end_date
        )
        with self.store.transaction("create sprint") as session:
            self._get(session, Project, project_id, "project")
            sprint = Sprint(title=form.title, start_date=form.start_date, end_date=form.end_date)
            session.add(sprint)
            session.flush()
            sprint_id = sprint.id
            session.add(ProjectSprint(project_id=project_id, sprint_id=sprint_id))
            session.flush()
        log.info("Created sprint #%s in project #%s", sprint_id, project_id)
        return sprint_id

    def update_sprint(
        self,
        sprint_id: int,
        title: str,
        start_date: DateLike,
        end_date: DateLike,
    ) -> None:
        form = validate_form(
            SprintForm, "sprint", sprint_id,
            title=title, start_date=start_date, end_date=end_date,
        )
        with self.store.transaction("update sprint") as session:
            sprint = self._get(session, Sprint, sprint_id, "sprint")
            sprint.title = form.title
            sprint.start_date = form.start_date
            sprint.end_date = form.end_date
            session.add(sprint)
        log.info("Updated sprint #%s", sprint_id)

    def delete_sprint(self, sprint_id: int) -> None:
        """Delete a sprint, its tasks and the links touching either.

        Statement order: sprint-task links, project-sprint link, tasks, sprint.
        """
        with self.store.transaction("delete sprint") as session:
            task_ids = self._task_ids(session, [sprint_id])

            session.exec(delete(PartOf).where(PartOf.sprint_id == sprint_id))
            session.exec(delete(ProjectSprint).where(ProjectSprint.sprint_id == sprint_id))
            if task_ids:
                session.exec(delete(Task).where(Task.id.in_(task_ids)))
            self._delete_row(session, Sprint, sprint_id, "sprint")
        log.info("Deleted sprint #%s with %d tasks", sprint_id, len(task_ids))

    # =========================================================================
    # Tasks
    # =========================================================================

    def create_task(
        self,
        sprint_id: int,
        title: str,
        status: str = TaskStatus.NOT_STARTED.value,
        description: str = "",
        committed_hours: int = 0,
        estimated_hours: int = 0,
    ) -> int:
        """Insert a task and link it to its sprint in one transaction."""
        form = validate_form(
            TaskForm, "task",
            title=title, status=status, description=description,
            committed_hours=committed_hours, estimated_hours=estimated_hours,
        )
        with self.store.transaction("create task") as session:
            self._get(session, Sprint, sprint_id, "sprint")
            task = Task(**form.model_dump())
            session.add(task)
            session.flush()
            task_id = task.id
            session.add(PartOf(sprint_id=sprint_id, task_id=task_id))
            session.flush()
        log.info("Created task #%s in sprint #%s", task_id, sprint_id)
        return task_id

    def update_task(
        self,
        task_id: int,
        title: str,
        status: str = TaskStatus.NOT_STARTED.value,
        description: str = "",
        committed_hours: int = 0,
        estimated_hours: int = 0,
    ) -> None:
        form = validate_form(
            TaskForm, "task", task_id,
            title=title, status=status, description=description,
            committed_hours=committed_hours, estimated_hours=estimated_hours,
        )
        with self.store.transaction("update task") as session:
            task = self._get(session, Task, task_id, "task")
            for key, value in form.model_dump().items():
                setattr(task, key, value)
            session.add(task)
        log.info("Updated task #%s", task_id)

    def delete_task(self, task_id: int) -> None:
        """Delete a task's sprint link, then the task."""
        with self.store.transaction("delete task") as session:
            session.exec(delete(PartOf).where(PartOf.task_id == task_id))
            self._delete_row(session, Task, task_id, "task")
        log.info("Deleted task #%s", task_id)

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
        form = validate_form(
            MemberForm, "member",
            first_name=first_name, last_name=last_name, email=email, phone=phone,
        )
        with self.store.transaction("create member") as session:
            member = Member(**form.model_dump())
            session.add(member)
            session.flush()
            member_id = member.id
        log.info("Created member #%s", member_id)
        return member_id

    def update_member(
        self,
        member_id: int,
        first_name: str,
        last_name: str,
        email: str = "",
        phone: str = "",
    ) -> None:
        form = validate_form(
            MemberForm, "member", member_id,
            first_name=first_name, last_name=last_name, email=email, phone=phone,
        )
        with self.store.transaction("update member") as session:
            member = self._get(session, Member, member_id, "member")
            for key, value in form.model_dump().items():
                setattr(member, key, value)
            session.add(member)
        log.info("Updated member #%s", member_id)

    def delete_member(self, member_id: int) -> None:
        """Delete a member and all of its project memberships."""
        with self.store.transaction("delete member") as session:
            session.exec(delete(ContributesTo).where(ContributesTo.member_id == member_id))
            self._delete_row(session, Member, member_id, "member")
        log.info("Deleted member #%s", member_id)

    def add_member(self, project_id: int, member_id: int, role: Optional[str] = None) -> None:
        """Make a member part of a project; re-adding only updates the role."""
        if role is not None:
            role = role.strip() or None
        with self.store.transaction("add member") as session:
            self._get(session, Project, project_id, "project")
            self._get(session, Member, member_id, "member")
            link = session.get(ContributesTo, (project_id, member_id))
            if link is None:
                link = ContributesTo(project_id=project_id, member_id=member_id, role=role)
            else:
                link.role = role
            session.add(link)
        log.info("Member #%s joined project #%s as %s", member_id, project_id, role)

    def remove_member(self, project_id: int, member_id: int) -> None:
        with self.store.transaction("remove member") as session:
            result = session.exec(
                delete(ContributesTo).where(
                    ContributesTo.project_id == project_id,
                    ContributesTo.member_id == member_id,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError(
                    f"Member #{member_id} is not part of project #{project_id}",
                    "member", member_id,
                )
        log.info("Member #%s left project #%s", member_id, project_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _get(session: Session, model, entity_id: int, entity: str):
        row = session.get(model, entity_id)
        if row is None:
            raise NotFoundError(f"No such {entity}", entity, entity_id)
        return row

    @staticmethod
    def _delete_row(session: Session, model, entity_id: int, entity: str) -> None:
        result = session.exec(delete(model).where(model.id == entity_id))
        if result.rowcount == 0:
            raise NotFoundError(f"No such {entity}", entity, entity_id)

    @staticmethod
    def _task_ids(session: Session, sprint_ids: list[int]) -> list[int]:
        if not sprint_ids:
            return []
        return list(session.exec(
            select(PartOf.task_id).where(PartOf.sprint_id.in_(sprint_ids))
        ).all())
