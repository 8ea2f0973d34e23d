"""Click CLI for GATs."""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import click
from trogon import tui

from gats import __version__
from gats.config import GatsConfig
from gats.coordinator import Workspace
from gats.cursor import CREATE_NEW, CursorPath, Depth, ProjectLevel, SprintLevel, TaskLevel, is_index
from gats.errors import GatsError, NotFoundError
from gats.export import EXPORT_FORMATS, export_tree
from gats.logs import get_logger, setup_logging
from gats.models import MemberNode, TaskStatus, Tree
from gats.repository import HierarchyRepository
from gats.store import EntityStore

log = get_logger("cli")

STATUS_HELP = "NotStarted, InProgress or Completed (other values are kept as-is)"


@contextmanager
def handle_errors() -> Iterator[None]:
    """Report GATs errors the way every command does: message on stderr, exit 1."""
    try:
        yield
    except GatsError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


def get_repository(ctx: click.Context) -> HierarchyRepository:
    return ctx.obj["repository"]


def get_config(ctx: click.Context) -> GatsConfig:
    return ctx.obj["config"]


@tui()
@click.group()
@click.version_option(version=__version__, prog_name="gats")
@click.option("--database-url", envvar="GATS_DATABASE_URL", help="Database URL (default from config)")
@click.option("--log-level", help="Console log level (DEBUG, INFO, WARNING, ...)")
@click.pass_context
def cli(ctx: click.Context, database_url: Optional[str], log_level: Optional[str]) -> None:
    """GATs - Projects, sprints and tasks.

    Track projects, the sprints each project contains and the tasks each
    sprint contains, plus the members contributing to each project.

    Quick start:
        gats db init                          Create the database tables
        gats projects add "Alpha"             Add a project
        gats sprints add 1 "Sprint 1" --start 2024-01-01 --end 2024-01-14
        gats tree                             Show the whole hierarchy
        gats cursor next                      Browse with a saved cursor
        gats tui                              Launch command explorer (Trogon)
    """
    setup_logging(log_level)
    config = GatsConfig.load()
    store = EntityStore.from_url(
        database_url or config.resolved_database_url(),
        echo=config.echo_sql,
        enforce_foreign_keys=config.enforce_foreign_keys,
    )
    log.debug("Using database %s", store.engine.url)
    # Migrations own the schema under `gats db`
    if ctx.invoked_subcommand != "db":
        with handle_errors():
            store.create_schema()
    ctx.obj = {
        "config": config,
        "store": store,
        "repository": HierarchyRepository(store),
    }
    ctx.call_on_close(store.dispose)


# =============================================================================
# Rendering helpers
# =============================================================================


def _task_line(task) -> str:
    return (
        f"Task #{task.id}: {task.title} - {task.status} {task.state.glyph} | "
        f"{task.estimated_hours}h estimated, {task.committed_hours}h committed"
    )


def _marker(selected: bool) -> str:
    return "◆ " if selected else "  "


def render_tree(tree: Tree, path: Optional[CursorPath] = None) -> list[str]:
    """Render the hierarchy as indented lines, marking the cursor if given.

    Without a cursor everything is expanded. With one, only the focused
    project (and sprint) are expanded, and the create-new row is shown at the
    cursor's depth.
    """
    lines = []
    for p_idx, project in enumerate(tree.projects):
        on_project = path is not None and path.project == p_idx
        lines.append(f"{_marker(on_project and isinstance(path, ProjectLevel))}"
                     f"Project #{project.id}: {project.title}")
        if path is not None and not (on_project and not isinstance(path, ProjectLevel)):
            continue
        for s_idx, sprint in enumerate(project.sprints):
            on_sprint = on_project and getattr(path, "sprint", None) == s_idx
            lines.append(f"    {_marker(on_sprint and isinstance(path, SprintLevel))}"
                         f"Sprint #{sprint.id}: {sprint.title} "
                         f"({sprint.start_date} to {sprint.end_date})")
            if path is not None and not (on_sprint and isinstance(path, TaskLevel)):
                continue
            for t_idx, task in enumerate(sprint.tasks):
                on_task = on_sprint and isinstance(path, TaskLevel) and path.task == t_idx
                lines.append(f"        {_marker(on_task)}{_task_line(task)}")
            if isinstance(path, TaskLevel) and on_sprint:
                lines.append(f"        {_marker(path.task is CREATE_NEW)}+ Create New Task")
        if isinstance(path, SprintLevel) and on_project:
            lines.append(f"    {_marker(path.sprint is CREATE_NEW)}+ Create New Sprint")
    if isinstance(path, ProjectLevel):
        lines.append(f"{_marker(path.project is CREATE_NEW)}+ Create New Project")
    return lines


def _member_line(member: MemberNode) -> str:
    line = f"#{member.id} {member.full_name}"
    if member.email:
        line += f" <{member.email}>"
    if member.phone:
        line += f" {member.phone}"
    if member.role:
        line += f" [{member.role}]"
    return line


@cli.command("tree")
@click.pass_context
def tree_command(ctx: click.Context) -> None:
    """Show every project with its sprints and tasks."""
    with handle_errors():
        tree = get_repository(ctx).load_all()

    if not tree.projects:
        click.echo("No projects yet.")
        return

    for line in render_tree(tree):
        click.echo(line)
    counts = tree.count()
    click.echo(
        f"\nTotal: {counts['projects']} projects, "
        f"{counts['sprints']} sprints, {counts['tasks']} tasks"
    )


# =============================================================================
# Projects Commands
# =============================================================================


@cli.group()
def projects() -> None:
    """Manage projects."""
    pass


@projects.command("list")
@click.option("--verbose", "-v", is_flag=True, help="Show descriptions and members")
@click.pass_context
def projects_list(ctx: click.Context, verbose: bool) -> None:
    """List all projects."""
    with handle_errors():
        tree = get_repository(ctx).load_all()

    if not tree.projects:
        click.echo("No projects yet.")
        return

    for project in tree.projects:
        task_count = sum(len(s.tasks) for s in project.sprints)
        click.echo(
            f"#{project.id} {project.title} "
            f"[{len(project.sprints)} sprints, {task_count} tasks, {len(project.members)} members]"
        )
        if verbose:
            if project.description:
                click.echo(f"    {project.description}")
            for member in project.members:
                click.echo(f"    - {_member_line(member)}")

    click.echo(f"\nTotal: {len(tree.projects)} projects")


@projects.command("add")
@click.argument("title")
@click.option("--description", "-d", default="", help="Project description")
@click.pass_context
def projects_add(ctx: click.Context, title: str, description: str) -> None:
    """Add a new project.

    TITLE: Title of the project
    """
    with handle_errors():
        project_id = get_repository(ctx).create_project(title, description)
    click.echo(f"✓ Added project #{project_id}: {title}")


@projects.command("edit")
@click.argument("project_id", type=int)
@click.option("--title", "-t", help="New title")
@click.option("--description", "-d", help="New description")
@click.pass_context
def projects_edit(
    ctx: click.Context,
    project_id: int,
    title: Optional[str],
    description: Optional[str],
) -> None:
    """Change a project's title or description."""
    repo = get_repository(ctx)
    with handle_errors():
        project = repo.load_all().find_project(project_id)
        if project is None:
            raise NotFoundError("No such project", "project", project_id)
        repo.update_project(
            project_id,
            title if title is not None else project.title,
            description if description is not None else project.description,
        )
    click.echo(f"✓ Updated project #{project_id}")


@projects.command("remove")
@click.argument("project_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def projects_remove(ctx: click.Context, project_id: int, yes: bool) -> None:
    """Remove a project with all of its sprints and tasks."""
    repo = get_repository(ctx)
    with handle_errors():
        project = repo.load_all().find_project(project_id)
        if project is None:
            raise NotFoundError("No such project", "project", project_id)

        if not yes:
            task_count = sum(len(s.tasks) for s in project.sprints)
            click.confirm(
                f"Remove project '{project.title}' with {len(project.sprints)} sprints "
                f"and {task_count} tasks?",
                abort=True,
            )
        repo.delete_project(project_id)
    click.echo(f"✓ Removed project #{project_id}: {project.title}")


# =============================================================================
# Sprints Commands
# =============================================================================


@cli.group()
def sprints() -> None:
    """Manage sprints."""
    pass


@sprints.command("add")
@click.argument("project_id", type=int)
@click.argument("title")
@click.option("--start", "start_date", required=True, help="Start date (YYYY-MM-DD)")
@click.option("--end", "end_date", required=True, help="End date (YYYY-MM-DD)")
@click.pass_context
def sprints_add(ctx: click.Context, project_id: int, title: str, start_date: str, end_date: str) -> None:
    """Add a sprint to a project.

    PROJECT_ID: Project the sprint belongs to
    TITLE: Title of the sprint
    """
    with handle_errors():
        sprint_id = get_repository(ctx).create_sprint(project_id, title, start_date, end_date)
    click.echo(f"✓ Added sprint #{sprint_id} to project #{project_id}")


@sprints.command("edit")
@click.argument("sprint_id", type=int)
@click.option("--title", "-t", help="New title")
@click.option("--start", "start_date", help="New start date (YYYY-MM-DD)")
@click.option("--end", "end_date", help="New end date (YYYY-MM-DD)")
@click.pass_context
def sprints_edit(
    ctx: click.Context,
    sprint_id: int,
    title: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
) -> None:
    """Change a sprint's title or dates."""
    repo = get_repository(ctx)
    with handle_errors():
        sprint = repo.load_all().find_sprint(sprint_id)
        if sprint is None:
            raise NotFoundError("No such sprint", "sprint", sprint_id)
        repo.update_sprint(
            sprint_id,
            title if title is not None else sprint.title,
            start_date if start_date is not None else sprint.start_date,
            end_date if end_date is not None else sprint.end_date,
        )
    click.echo(f"✓ Updated sprint #{sprint_id}")


@sprints.command("remove")
@click.argument("sprint_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def sprints_remove(ctx: click.Context, sprint_id: int, yes: bool) -> None:
    """Remove a sprint and its tasks."""
    repo = get_repository(ctx)
    with handle_errors():
        sprint = repo.load_all().find_sprint(sprint_id)
        if sprint is None:
            raise NotFoundError("No such sprint", "sprint", sprint_id)
        if not yes:
            click.confirm(
                f"Remove sprint '{sprint.title}' with {len(sprint.tasks)} tasks?",
                abort=True,
            )
        repo.delete_sprint(sprint_id)
    click.echo(f"✓ Removed sprint #{sprint_id}: {sprint.title}")


# =============================================================================
# Tasks Commands
# =============================================================================


@cli.group()
def tasks() -> None:
    """Manage tasks."""
    pass


@tasks.command("add")
@click.argument("sprint_id", type=int)
@click.argument("title")
@click.option("--status", "-s", default=TaskStatus.NOT_STARTED.value, help=STATUS_HELP)
@click.option("--description", "-d", default="", help="Task description")
@click.option("--estimated", "estimated_hours", type=int, default=0, help="Estimated hours")
@click.option("--committed", "committed_hours", type=int, default=0, help="Committed hours")
@click.pass_context
def tasks_add(
    ctx: click.Context,
    sprint_id: int,
    title: str,
    status: str,
    description: str,
    estimated_hours: int,
    committed_hours: int,
) -> None:
    """Add a task to a sprint.

    SPRINT_ID: Sprint the task belongs to
    TITLE: Title of the task
    """
    with handle_errors():
        task_id = get_repository(ctx).create_task(
            sprint_id, title, status, description, committed_hours, estimated_hours
        )
    click.echo(f"✓ Added task #{task_id} to sprint #{sprint_id}")


@tasks.command("edit")
@click.argument("task_id", type=int)
@click.option("--title", "-t", help="New title")
@click.option("--status", "-s", help=STATUS_HELP)
@click.option("--description", "-d", help="New description")
@click.option("--estimated", "estimated_hours", type=int, help="Estimated hours")
@click.option("--committed", "committed_hours", type=int, help="Committed hours")
@click.pass_context
def tasks_edit(
    ctx: click.Context,
    task_id: int,
    title: Optional[str],
    status: Optional[str],
    description: Optional[str],
    estimated_hours: Optional[int],
    committed_hours: Optional[int],
) -> None:
    """Change any field of a task."""
    repo = get_repository(ctx)
    with handle_errors():
        task = repo.load_all().find_task(task_id)
        if task is None:
            raise NotFoundError("No such task", "task", task_id)
        repo.update_task(
            task_id,
            title if title is not None else task.title,
            status if status is not None else task.status,
            description if description is not None else task.description,
            committed_hours if committed_hours is not None else task.committed_hours,
            estimated_hours if estimated_hours is not None else task.estimated_hours,
        )
    click.echo(f"✓ Updated task #{task_id}")


@tasks.command("remove")
@click.argument("task_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def tasks_remove(ctx: click.Context, task_id: int, yes: bool) -> None:
    """Remove a task."""
    repo = get_repository(ctx)
    with handle_errors():
        task = repo.load_all().find_task(task_id)
        if task is None:
            raise NotFoundError("No such task", "task", task_id)
        if not yes:
            click.confirm(f"Remove task '{task.title}'?", abort=True)
        repo.delete_task(task_id)
    click.echo(f"✓ Removed task #{task_id}: {task.title}")


# =============================================================================
# Members Commands
# =============================================================================


@cli.group()
def members() -> None:
    """Manage the member directory and project membership."""
    pass


@members.command("list")
@click.option("--project", "-p", "project_id", type=int, help="Only members of this project")
@click.pass_context
def members_list(ctx: click.Context, project_id: Optional[int]) -> None:
    """List members."""
    repo = get_repository(ctx)
    with handle_errors():
        found = repo.members_of(project_id) if project_id is not None else repo.list_members()

    if not found:
        click.echo("No members.")
        return
    for member in found:
        click.echo(_member_line(member))


@members.command("add")
@click.argument("first_name")
@click.argument("last_name")
@click.option("--email", "-e", default="", help="Email address")
@click.option("--phone", default="", help="Phone number")
@click.pass_context
def members_add(ctx: click.Context, first_name: str, last_name: str, email: str, phone: str) -> None:
    """Add a member to the directory."""
    with handle_errors():
        member_id = get_repository(ctx).create_member(first_name, last_name, email, phone)
    click.echo(f"✓ Added member #{member_id}: {first_name} {last_name}")


def _find_member(repo: HierarchyRepository, member_id: int) -> MemberNode:
    for member in repo.list_members():
        if member.id == member_id:
            return member
    raise NotFoundError("No such member", "member", member_id)


@members.command("edit")
@click.argument("member_id", type=int)
@click.option("--first-name", help="New first name")
@click.option("--last-name", help="New last name")
@click.option("--email", "-e", help="New email address")
@click.option("--phone", help="New phone number")
@click.pass_context
def members_edit(
    ctx: click.Context,
    member_id: int,
    first_name: Optional[str],
    last_name: Optional[str],
    email: Optional[str],
    phone: Optional[str],
) -> None:
    """Change a member's details."""
    repo = get_repository(ctx)
    with handle_errors():
        member = _find_member(repo, member_id)
        repo.update_member(
            member_id,
            first_name if first_name is not None else member.first_name,
            last_name if last_name is not None else member.last_name,
            email if email is not None else member.email,
            phone if phone is not None else member.phone,
        )
    click.echo(f"✓ Updated member #{member_id}")


@members.command("remove")
@click.argument("member_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def members_remove(ctx: click.Context, member_id: int, yes: bool) -> None:
    """Remove a member from the directory and from every project."""
    repo = get_repository(ctx)
    with handle_errors():
        member = _find_member(repo, member_id)
        if not yes:
            click.confirm(f"Remove member '{member.full_name}'?", abort=True)
        repo.delete_member(member_id)
    click.echo(f"✓ Removed member #{member_id}: {member.full_name}")


@members.command("assign")
@click.argument("project_id", type=int)
@click.argument("member_id", type=int)
@click.option("--role", "-r", help="Role within the project")
@click.pass_context
def members_assign(ctx: click.Context, project_id: int, member_id: int, role: Optional[str]) -> None:
    """Add a member to a project (or change their role)."""
    with handle_errors():
        get_repository(ctx).add_member(project_id, member_id, role)
    click.echo(f"✓ Member #{member_id} is part of project #{project_id}")


@members.command("unassign")
@click.argument("project_id", type=int)
@click.argument("member_id", type=int)
@click.pass_context
def members_unassign(ctx: click.Context, project_id: int, member_id: int) -> None:
    """Remove a member from a project."""
    with handle_errors():
        get_repository(ctx).remove_member(project_id, member_id)
    click.echo(f"✓ Member #{member_id} removed from project #{project_id}")


# =============================================================================
# Cursor Commands - browse and edit through a saved cursor
# =============================================================================


def open_workspace(ctx: click.Context) -> Workspace:
    """Restore the saved cursor and load a fresh tree under it."""
    config = get_config(ctx)
    workspace = Workspace(get_repository(ctx), config.cursor_path(), config.member_slot())
    with handle_errors():
        workspace.reload()
    return workspace


def close_workspace(ctx: click.Context, workspace: Workspace) -> None:
    """Save the cursor and show where it points."""
    get_config(ctx).save_view_state(workspace.cursor.path, workspace.member_cursor.slot)
    for line in render_tree(workspace.tree, workspace.cursor.path):
        click.echo(line)


@cli.group()
def cursor() -> None:
    """Browse the hierarchy with a cursor that persists between commands.

    The cursor moves within one level at a time (projects, sprints of the
    focused project, or tasks of the focused sprint). Moving past the last
    entry lands on the "Create New" row.
    """
    pass


@cursor.command("show")
@click.pass_context
def cursor_show(ctx: click.Context) -> None:
    """Show the tree around the cursor."""
    workspace = open_workspace(ctx)
    close_workspace(ctx, workspace)
    project = workspace.current_project()
    if project is not None and project.members:
        click.echo("\nMembers:")
        focused = workspace.current_member()
        for member in project.members:
            selected = focused is not None and member.id == focused.id
            click.echo(f"  {_marker(selected)}{_member_line(member)}")


@cursor.command("next")
@click.option("--count", "-n", default=1, help="Number of steps")
@click.pass_context
def cursor_next(ctx: click.Context, count: int) -> None:
    """Move the cursor down."""
    workspace = open_workspace(ctx)
    for _ in range(count):
        workspace.move_next()
    close_workspace(ctx, workspace)


@cursor.command("prev")
@click.option("--count", "-n", default=1, help="Number of steps")
@click.pass_context
def cursor_prev(ctx: click.Context, count: int) -> None:
    """Move the cursor up."""
    workspace = open_workspace(ctx)
    for _ in range(count):
        workspace.move_previous()
    close_workspace(ctx, workspace)


@cursor.command("in")
@click.pass_context
def cursor_in(ctx: click.Context) -> None:
    """Descend into the focused project or sprint."""
    workspace = open_workspace(ctx)
    workspace.increase_depth()
    close_workspace(ctx, workspace)


@cursor.command("out")
@click.pass_context
def cursor_out(ctx: click.Context) -> None:
    """Return to the parent level."""
    workspace = open_workspace(ctx)
    workspace.decrease_depth()
    close_workspace(ctx, workspace)


@cursor.command("create")
@click.argument("title")
@click.option("--description", "-d", default="", help="Description (projects and tasks)")
@click.option("--start", "start_date", help="Start date, for sprints (YYYY-MM-DD)")
@click.option("--end", "end_date", help="End date, for sprints (YYYY-MM-DD)")
@click.option("--status", "-s", default=TaskStatus.NOT_STARTED.value, help=STATUS_HELP)
@click.option("--estimated", "estimated_hours", type=int, default=0, help="Estimated hours, for tasks")
@click.option("--committed", "committed_hours", type=int, default=0, help="Committed hours, for tasks")
@click.pass_context
def cursor_create(
    ctx: click.Context,
    title: str,
    description: str,
    start_date: Optional[str],
    end_date: Optional[str],
    status: str,
    estimated_hours: int,
    committed_hours: int,
) -> None:
    """Create an entry at the cursor's level.

    TITLE: Title of the new project, sprint or task
    """
    workspace = open_workspace(ctx)
    with handle_errors():
        if workspace.depth == Depth.PROJECT:
            created = workspace.create_project(title, description)
        elif workspace.depth == Depth.SPRINT:
            if not start_date or not end_date:
                raise click.UsageError("Sprints need --start and --end")
            created = workspace.create_sprint(title, start_date, end_date)
        else:
            created = workspace.create_task(
                title, status, description, committed_hours, estimated_hours
            )

    if created is None:
        click.echo("Nothing selected; nothing created.")
    else:
        click.echo(f"✓ Created #{created}")
    close_workspace(ctx, workspace)


@cursor.command("edit")
@click.option("--title", "-t", help="New title")
@click.option("--description", "-d", help="New description")
@click.option("--start", "start_date", help="New start date (YYYY-MM-DD)")
@click.option("--end", "end_date", help="New end date (YYYY-MM-DD)")
@click.option("--status", "-s", help=STATUS_HELP)
@click.option("--estimated", "estimated_hours", type=int, help="Estimated hours")
@click.option("--committed", "committed_hours", type=int, help="Committed hours")
@click.pass_context
def cursor_edit(
    ctx: click.Context,
    title: Optional[str],
    description: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
    status: Optional[str],
    estimated_hours: Optional[int],
    committed_hours: Optional[int],
) -> None:
    """Edit the entry under the cursor."""
    workspace = open_workspace(ctx)
    changed = False
    with handle_errors():
        if workspace.depth == Depth.PROJECT and workspace.current_project():
            project = workspace.current_project()
            changed = workspace.edit_project(
                title if title is not None else project.title,
                description if description is not None else project.description,
            )
        elif workspace.depth == Depth.SPRINT and workspace.current_sprint():
            sprint = workspace.current_sprint()
            changed = workspace.edit_sprint(
                title if title is not None else sprint.title,
                start_date if start_date is not None else sprint.start_date,
                end_date if end_date is not None else sprint.end_date,
            )
        elif workspace.depth == Depth.TASK and workspace.current_task():
            task = workspace.current_task()
            changed = workspace.edit_task(
                title if title is not None else task.title,
                status if status is not None else task.status,
                description if description is not None else task.description,
                committed_hours if committed_hours is not None else task.committed_hours,
                estimated_hours if estimated_hours is not None else task.estimated_hours,
            )

    click.echo("✓ Updated" if changed else "Nothing selected; nothing edited.")
    close_workspace(ctx, workspace)


@cursor.command("delete")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def cursor_delete(ctx: click.Context, yes: bool) -> None:
    """Delete the entry under the cursor, with everything beneath it."""
    workspace = open_workspace(ctx)
    slot = workspace.cursor.slot
    if not is_index(slot):
        click.echo("Nothing selected; nothing deleted.")
        close_workspace(ctx, workspace)
        return

    if not yes:
        focused = workspace.cursor.focused(workspace.tree)
        click.confirm(f"Delete {workspace.depth.name.lower()} '{focused.title}'?", abort=True)

    with handle_errors():
        workspace.delete_focused()
    click.echo("✓ Deleted")
    close_workspace(ctx, workspace)


@cursor.command("member-next")
@click.pass_context
def cursor_member_next(ctx: click.Context) -> None:
    """Move the member cursor down within the focused project."""
    workspace = open_workspace(ctx)
    workspace.member_next()
    close_workspace(ctx, workspace)
    member = workspace.current_member()
    click.echo(f"\nMember: {_member_line(member)}" if member else "\nMember: (none)")


@cursor.command("member-prev")
@click.pass_context
def cursor_member_prev(ctx: click.Context) -> None:
    """Move the member cursor up within the focused project."""
    workspace = open_workspace(ctx)
    workspace.member_previous()
    close_workspace(ctx, workspace)
    member = workspace.current_member()
    click.echo(f"\nMember: {_member_line(member)}" if member else "\nMember: (none)")


@cursor.command("add-member")
@click.argument("member_id", type=int)
@click.option("--role", "-r", help="Role within the project")
@click.pass_context
def cursor_add_member(ctx: click.Context, member_id: int, role: Optional[str]) -> None:
    """Add a directory member to the focused project."""
    workspace = open_workspace(ctx)
    with handle_errors():
        added = workspace.add_member(member_id, role)
    click.echo("✓ Member added" if added else "No project selected.")
    close_workspace(ctx, workspace)


@cursor.command("remove-member")
@click.pass_context
def cursor_remove_member(ctx: click.Context) -> None:
    """Remove the member under the member cursor from the focused project."""
    workspace = open_workspace(ctx)
    with handle_errors():
        removed = workspace.remove_member()
    click.echo("✓ Member removed" if removed else "No member selected.")
    close_workspace(ctx, workspace)


# =============================================================================
# Export
# =============================================================================


@cli.command("export")
@click.option("--format", "-f", "fmt", type=click.Choice(EXPORT_FORMATS), help="Output format (default from config)")
@click.option("--output", "-o", type=click.Path(), help="Output file (default: stdout)")
@click.pass_context
def export_command(ctx: click.Context, fmt: Optional[str], output: Optional[str]) -> None:
    """Export the whole hierarchy as YAML or JSON."""
    fmt = fmt or get_config(ctx).export_format
    with handle_errors():
        tree = get_repository(ctx).load_all()
    content = export_tree(tree, fmt, Path(output) if output else None)
    if output:
        click.echo(f"✓ Exported {len(tree.projects)} projects to {output}")
    else:
        click.echo(content, nl=False)


# =============================================================================
# Database Commands
# =============================================================================


@cli.group()
def db() -> None:
    """Database commands.

    Examples:
        gats db init                Create any missing tables
        gats db upgrade             Apply all pending migrations (Alembic)
        gats db downgrade           Rollback one migration
        gats db history             Show migration history
        gats db current             Show current revision
        gats db stamp head          Mark a database made by `db init` as migrated
    """
    pass


@db.command("init")
@click.pass_context
def db_init(ctx: click.Context) -> None:
    """Create any missing tables without Alembic.

    Run `gats db stamp head` afterwards before using `gats db upgrade`.
    """
    with handle_errors():
        ctx.obj["store"].create_schema()
    click.echo(click.style("✓ Database ready", fg="green"))


ALEMBIC_INI = "alembic.ini"


def find_alembic_ini() -> Path:
    """alembic.ini in the working directory, else the one beside the source tree."""
    local = Path(ALEMBIC_INI)
    if local.exists():
        return local
    return Path(__file__).resolve().parents[2] / ALEMBIC_INI


def _alembic_config(ctx: click.Context):
    from alembic.config import Config

    alembic_cfg = Config(str(find_alembic_ini()))
    url = ctx.obj["store"].engine.url.render_as_string(hide_password=False)
    # configparser interpolation treats % specially
    alembic_cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return alembic_cfg


@db.command("upgrade")
@click.argument("revision", default="head")
@click.pass_context
def db_upgrade(ctx: click.Context, revision: str) -> None:
    """Apply migrations up to a revision.

    REVISION is the target revision (default: head for latest).
    """
    from alembic import command

    click.echo(f"🔄 Upgrading database to {revision}...")
    try:
        command.upgrade(_alembic_config(ctx), revision)
        click.echo(click.style("✓ Database upgraded successfully", fg="green"))
    except Exception as e:
        click.echo(click.style(f"✗ Migration failed: {e}", fg="red"))
        raise click.Abort()


@db.command("downgrade")
@click.argument("revision", default="-1")
@click.pass_context
def db_downgrade(ctx: click.Context, revision: str) -> None:
    """Rollback migrations.

    REVISION is the target revision (default: -1 for previous).
    """
    from alembic import command

    click.echo(f"🔄 Downgrading database to {revision}...")
    try:
        command.downgrade(_alembic_config(ctx), revision)
        click.echo(click.style("✓ Database downgraded successfully", fg="green"))
    except Exception as e:
        click.echo(click.style(f"✗ Migration failed: {e}", fg="red"))
        raise click.Abort()


@db.command("current")
@click.pass_context
def db_current(ctx: click.Context) -> None:
    """Show current database revision."""
    from alembic import command

    click.echo("📊 Current database revision:")
    command.current(_alembic_config(ctx), verbose=True)


@db.command("history")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed history")
@click.pass_context
def db_history(ctx: click.Context, verbose: bool) -> None:
    """Show migration history."""
    from alembic import command

    click.echo("📜 Migration history:")
    command.history(_alembic_config(ctx), verbose=verbose)


@db.command("stamp")
@click.argument("revision")
@click.pass_context
def db_stamp(ctx: click.Context, revision: str) -> None:
    """Stamp database with revision without running migrations.

    Useful for marking a database created by `gats db init` as up-to-date.

    Examples:
        gats db stamp head          # Mark as current
        gats db stamp 001_initial   # Mark specific revision
    """
    from alembic import command

    click.echo(f"🔖 Stamping database with {revision}...")
    try:
        command.stamp(_alembic_config(ctx), revision)
        click.echo(click.style("✓ Database stamped successfully", fg="green"))
    except Exception as e:
        click.echo(click.style(f"✗ Failed to stamp: {e}", fg="red"))
        raise click.Abort()


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
