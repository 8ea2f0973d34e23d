"""Tests for the Workspace mutation coordinator."""

import pytest

from gats.coordinator import Workspace
from gats.cursor import CREATE_NEW, Depth, ProjectLevel, SprintLevel, TaskLevel
from gats.errors import NotFoundError, StoreError, ValidationError
from gats.repository import HierarchyRepository


@pytest.fixture
def workspace(repo: HierarchyRepository, seeded: dict) -> Workspace:
    ws = Workspace(repo)
    ws.reload()
    return ws


def goto(ws: Workspace, path) -> None:
    ws.cursor.path = path
    ws.cursor.renormalize(ws.tree)


class TestReload:
    def test_initial_state(self, workspace: Workspace) -> None:
        assert workspace.depth == Depth.PROJECT
        assert workspace.current_project().title == "Alpha"
        assert workspace.current_member().full_name == "Ada Lovelace"
        assert not workspace.stale

    def test_restored_cursor_is_renormalized(self, repo: HierarchyRepository, seeded: dict) -> None:
        ws = Workspace(repo, TaskLevel(0, 0, 9), member_slot=5)
        ws.reload()
        assert ws.cursor.path == TaskLevel(0, 0, 2)
        assert ws.member_cursor.slot == 1

    def test_empty_store(self, repo: HierarchyRepository) -> None:
        ws = Workspace(repo)
        ws.reload()
        assert ws.cursor.path == ProjectLevel(None)
        assert ws.current_project() is None
        assert ws.current_members() == ()


class TestNavigation:
    def test_walk_down_and_up(self, workspace: Workspace) -> None:
        workspace.increase_depth()
        workspace.move_next()
        workspace.increase_depth()
        assert workspace.current_sprint().title == "Sprint 2"
        assert workspace.current_task().title == "Release"
        workspace.decrease_depth()
        assert workspace.cursor.path == SprintLevel(0, 1)

    def test_member_cursor_resets_on_project_change(self, workspace: Workspace) -> None:
        workspace.member_next()
        assert workspace.current_member().full_name == "Alan Turing"
        workspace.move_next()
        assert workspace.current_project().title == "Beta"
        assert workspace.member_cursor.slot is None
        workspace.move_previous()
        assert workspace.current_member().full_name == "Ada Lovelace"


class TestMutations:
    """Tests for the check, write, reload, renormalize sequence."""

    def test_delete_last_task_scenario(self, workspace: Workspace) -> None:
        goto(workspace, TaskLevel(0, 0, 2))
        assert workspace.current_task().title == "Export"

        assert workspace.delete_task()

        assert len(workspace.current_sprint().tasks) == 2
        assert workspace.cursor.path == TaskLevel(0, 0, 1)

    def test_deleting_every_task_leaves_no_selection(self, workspace: Workspace) -> None:
        goto(workspace, TaskLevel(0, 1, 0))
        workspace.delete_focused()
        assert workspace.cursor.path == TaskLevel(0, 1, None)
        assert workspace.current_task() is None
        assert workspace.delete_task() is False

    def test_delete_project_collapses_cursor(self, workspace: Workspace) -> None:
        goto(workspace, TaskLevel(1, 0, 0))  # Beta has no sprints
        assert workspace.cursor.path == SprintLevel(1, None)
        goto(workspace, ProjectLevel(1))
        workspace.delete_project()
        assert workspace.cursor.path == ProjectLevel(0)
        assert [p.title for p in workspace.tree.projects] == ["Alpha"]

    def test_create_project_needs_selection(self, workspace: Workspace) -> None:
        goto(workspace, ProjectLevel(None))
        assert workspace.create_project("Gamma") is None
        goto(workspace, SprintLevel(0, 0))
        assert workspace.create_project("Gamma") is None
        assert len(workspace.tree.projects) == 2

    def test_create_project_on_create_new_row(self, workspace: Workspace) -> None:
        goto(workspace, ProjectLevel(CREATE_NEW))
        project_id = workspace.create_project("Gamma", "third")
        assert workspace.tree.find_project(project_id).description == "third"
        assert workspace.cursor.path == ProjectLevel(CREATE_NEW)

    def test_create_sprint_and_task(self, workspace: Workspace) -> None:
        goto(workspace, SprintLevel(1, None))
        sprint_id = workspace.create_sprint("Beta 1", "2024-05-01", "2024-05-14")
        assert workspace.current_project().sprints[0].id == sprint_id

        goto(workspace, TaskLevel(1, 0, CREATE_NEW))
        task_id = workspace.create_task("Kickoff", estimated_hours=3)
        assert workspace.tree.find_task(task_id).estimated_hours == 3

    def test_create_task_without_sprint(self, workspace: Workspace) -> None:
        goto(workspace, ProjectLevel(1))
        assert workspace.create_task("Nowhere") is None

    def test_edits(self, workspace: Workspace) -> None:
        workspace.edit_project("Alpha!", "edited")
        goto(workspace, SprintLevel(0, 0))
        workspace.edit_sprint("Sprint One", "2024-01-01", "2024-01-10")
        goto(workspace, TaskLevel(0, 0, 1))
        workspace.edit_task("Cursor", "Completed", "", 8, 8)

        assert workspace.current_project().title == "Alpha!"
        assert workspace.current_sprint().title == "Sprint One"
        assert workspace.current_task().status == "Completed"
        assert workspace.cursor.path == TaskLevel(0, 0, 1)

    def test_delete_focused_on_create_new_is_noop(self, workspace: Workspace) -> None:
        goto(workspace, SprintLevel(0, CREATE_NEW))
        before = workspace.tree
        assert workspace.delete_focused() is False
        assert workspace.tree is before


class TestFailures:
    """A failed write leaves the snapshot and cursors exactly as they were."""

    def test_store_failure_leaves_state(self, workspace: Workspace, fail_statement) -> None:
        goto(workspace, SprintLevel(0, 1))
        tree, path, member_slot = workspace.tree, workspace.cursor.path, workspace.member_cursor.slot
        fail_statement("INSERT INTO project_sprint")

        with pytest.raises(StoreError) as exc_info:
            workspace.create_sprint("Beta", "2024-02-01", "2024-02-14")

        assert exc_info.value.entity == "project"
        assert exc_info.value.entity_id == workspace.current_project().id
        assert workspace.tree is tree
        assert workspace.cursor.path == path
        assert workspace.member_cursor.slot == member_slot
        assert workspace.repository.load_all() == tree

    def test_validation_failure_leaves_state(self, workspace: Workspace) -> None:
        tree = workspace.tree
        with pytest.raises(ValidationError):
            workspace.create_sprint("Backwards", "2024-02-14", "2024-02-01")
        assert workspace.tree is tree

    def test_entity_deleted_elsewhere(self, workspace: Workspace, repo: HierarchyRepository, seeded: dict) -> None:
        goto(workspace, TaskLevel(0, 0, 0))
        repo.delete_task(seeded["t1"])
        tree = workspace.tree

        with pytest.raises(NotFoundError) as exc_info:
            workspace.delete_task()

        assert exc_info.value.entity == "task"
        assert exc_info.value.entity_id == seeded["t1"]
        assert workspace.tree is tree

    def test_reload_failure_keeps_last_snapshot(self, workspace: Workspace, repo: HierarchyRepository, monkeypatch) -> None:
        tree = workspace.tree

        def broken_load_all():
            raise StoreError("connection lost")

        monkeypatch.setattr(repo, "load_all", broken_load_all)
        with pytest.raises(StoreError):
            workspace.edit_project("Renamed")

        assert workspace.stale
        assert workspace.tree is tree

        monkeypatch.undo()
        workspace.reload()
        assert not workspace.stale
        assert workspace.current_project().title == "Renamed"


class TestMembers:
    def test_add_member_to_focused_project(self, workspace: Workspace, seeded: dict) -> None:
        goto(workspace, ProjectLevel(1))
        assert workspace.add_member(seeded["ada"], "lead")
        assert [(m.full_name, m.role) for m in workspace.current_members()] == [("Ada Lovelace", "lead")]
        assert workspace.current_member().full_name == "Ada Lovelace"

    def test_remove_focused_member(self, workspace: Workspace) -> None:
        workspace.member_next()
        assert workspace.remove_member()
        assert [m.full_name for m in workspace.current_members()] == ["Ada Lovelace"]
        assert workspace.member_cursor.slot == 0

    def test_remove_without_focus(self, workspace: Workspace) -> None:
        workspace.member_next()
        workspace.member_next()
        assert workspace.member_cursor.slot is CREATE_NEW
        assert workspace.remove_member() is False

    def test_directory_operations(self, workspace: Workspace, seeded: dict) -> None:
        member_id = workspace.create_member("Grace", "Hopper", "grace@example.com")
        workspace.edit_member(member_id, "Grace", "Hopper", "grace@navy.mil")
        assert workspace.add_member(member_id, "admiral")
        assert workspace.current_members()[-1].email == "grace@navy.mil"

        workspace.delete_member(seeded["ada"])
        assert [m.first_name for m in workspace.current_members()] == ["Alan", "Grace"]
