"""Tests for the GATs CLI."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from gats.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch) -> Path:
    """Point config, logs and the database at a temporary directory."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("GATS_DATABASE_URL", f"sqlite:///{tmp_path / 'gats.db'}")
    monkeypatch.delenv("GATS_LOG_LEVEL", raising=False)
    monkeypatch.delenv("GATS_DEBUG", raising=False)
    return tmp_path


def invoke(runner: CliRunner, *args: str, **kwargs):
    return runner.invoke(cli, list(args), **kwargs)


@pytest.fixture
def populated(runner: CliRunner) -> None:
    """Alpha with one sprint of two tasks, plus Beta and one member."""
    for args in (
        ("projects", "add", "Alpha", "-d", "First"),
        ("projects", "add", "Beta"),
        ("sprints", "add", "1", "Sprint 1", "--start", "2024-01-01", "--end", "2024-01-14"),
        ("tasks", "add", "1", "Schema", "--status", "Completed", "--estimated", "5"),
        ("tasks", "add", "1", "Cursor", "--status", "InProgress"),
        ("members", "add", "Ada", "Lovelace", "--email", "ada@example.com"),
        ("members", "assign", "1", "1", "--role", "owner"),
    ):
        result = invoke(runner, *args)
        assert result.exit_code == 0, result.output


class TestCLI:
    """Tests for the main CLI."""

    def test_cli_version(self, runner: CliRunner) -> None:
        result = invoke(runner, "--version")
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_cli_help(self, runner: CliRunner) -> None:
        result = invoke(runner, "--help")
        assert result.exit_code == 0
        assert "Projects, sprints and tasks" in result.output
        for group in ("projects", "sprints", "tasks", "members", "cursor", "export", "db"):
            assert group in result.output

    def test_tree_empty(self, runner: CliRunner) -> None:
        result = invoke(runner, "tree")
        assert result.exit_code == 0
        assert "No projects yet." in result.output

    def test_tree(self, runner: CliRunner, populated: None) -> None:
        result = invoke(runner, "tree")
        assert result.exit_code == 0
        assert "Project #1: Alpha" in result.output
        assert "Sprint #1: Sprint 1 (2024-01-01 to 2024-01-14)" in result.output
        assert "Task #1: Schema - Completed ✅" in result.output
        assert "Task #2: Cursor - InProgress 🚧" in result.output
        assert "Total: 2 projects, 1 sprints, 2 tasks" in result.output


class TestProjectsCommand:
    def test_add_and_list(self, runner: CliRunner) -> None:
        result = invoke(runner, "projects", "add", "Alpha", "-d", "Test description")
        assert result.exit_code == 0
        assert "Added project #1: Alpha" in result.output

        result = invoke(runner, "projects", "list", "-v")
        assert "#1 Alpha [0 sprints, 0 tasks, 0 members]" in result.output
        assert "Test description" in result.output

    def test_add_blank_title(self, runner: CliRunner) -> None:
        result = invoke(runner, "projects", "add", "  ")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_edit_keeps_unspecified_fields(self, runner: CliRunner, populated: None) -> None:
        result = invoke(runner, "projects", "edit", "1", "--title", "Alpha 2")
        assert result.exit_code == 0
        result = invoke(runner, "projects", "list", "-v")
        assert "#1 Alpha 2" in result.output
        assert "First" in result.output

    def test_remove_cascades(self, runner: CliRunner, populated: None) -> None:
        result = invoke(runner, "projects", "remove", "1", "--yes")
        assert result.exit_code == 0
        assert "Removed project #1: Alpha" in result.output

        result = invoke(runner, "tree")
        assert "Alpha" not in result.output
        assert "Total: 1 projects, 0 sprints, 0 tasks" in result.output

    def test_remove_asks_first(self, runner: CliRunner, populated: None) -> None:
        result = invoke(runner, "projects", "remove", "1", input="n\n")
        assert result.exit_code == 1
        assert "1 sprints and 2 tasks" in result.output
        assert "Alpha" in invoke(runner, "tree").output

    def test_remove_missing(self, runner: CliRunner) -> None:
        result = invoke(runner, "projects", "remove", "999", "--yes")
        assert result.exit_code == 1
        assert "Error: No such project (project #999)" in result.output


class TestSprintsAndTasks:
    def test_sprint_bad_dates(self, runner: CliRunner, populated: None) -> None:
        result = invoke(runner, "sprints", "add", "1", "Late", "--start", "2024-02-01", "--end", "2024-01-01")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_sprint_for_missing_project(self, runner: CliRunner) -> None:
        result = invoke(runner, "sprints", "add", "7", "S", "--start", "2024-01-01", "--end", "2024-01-02")
        assert result.exit_code == 1
        assert "project #7" in result.output

    def test_sprint_edit_and_remove(self, runner: CliRunner, populated: None) -> None:
        assert invoke(runner, "sprints", "edit", "1", "--end", "2024-01-20").exit_code == 0
        assert "(2024-01-01 to 2024-01-20)" in invoke(runner, "tree").output

        result = invoke(runner, "sprints", "remove", "1", "--yes")
        assert result.exit_code == 0
        assert "Total: 2 projects, 0 sprints, 0 tasks" in invoke(runner, "tree").output

    def test_task_edit(self, runner: CliRunner, populated: None) -> None:
        result = invoke(runner, "tasks", "edit", "2", "--status", "Completed", "--committed", "3")
        assert result.exit_code == 0
        assert "Task #2: Cursor - Completed ✅ | 0h estimated, 3h committed" in invoke(runner, "tree").output

    def test_task_negative_hours(self, runner: CliRunner, populated: None) -> None:
        result = invoke(runner, "tasks", "add", "1", "Bad", "--estimated=-4")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_task_oversized_hours(self, runner: CliRunner, populated: None) -> None:
        result = invoke(runner, "tasks", "add", "1", "Huge", "--estimated=99999999999999999999")
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Huge" not in invoke(runner, "tree").output

    def test_task_remove(self, runner: CliRunner, populated: None) -> None:
        assert invoke(runner, "tasks", "remove", "1", "-y").exit_code == 0
        output = invoke(runner, "tree").output
        assert "Schema" not in output
        assert "Cursor" in output


class TestMembersCommand:
    def test_list_by_project(self, runner: CliRunner, populated: None) -> None:
        result = invoke(runner, "members", "list", "--project", "1")
        assert "#1 Ada Lovelace <ada@example.com> [owner]" in result.output
        assert "No members." in invoke(runner, "members", "list", "-p", "2").output

    def test_edit_and_unassign(self, runner: CliRunner, populated: None) -> None:
        assert invoke(runner, "members", "edit", "1", "--phone", "555-0100").exit_code == 0
        assert "555-0100" in invoke(runner, "members", "list").output

        assert invoke(runner, "members", "unassign", "1", "1").exit_code == 0
        result = invoke(runner, "members", "unassign", "1", "1")
        assert result.exit_code == 1
        assert "not part of project #1" in result.output

    def test_remove(self, runner: CliRunner, populated: None) -> None:
        assert invoke(runner, "members", "remove", "1", "--yes").exit_code == 0
        assert "No members." in invoke(runner, "members", "list").output


class TestCursorCommand:
    """Tests for browsing with the persisted cursor."""

    def test_build_hierarchy_through_cursor(self, runner: CliRunner) -> None:
        result = invoke(runner, "cursor", "create", "Alpha")
        assert "Nothing selected" in result.output

        invoke(runner, "cursor", "next")
        result = invoke(runner, "cursor", "create", "Alpha")
        assert result.exit_code == 0
        assert "✓ Created #1" in result.output
        assert "◆ + Create New Project" in result.output

        invoke(runner, "cursor", "prev")
        result = invoke(runner, "cursor", "in")
        assert "◆ + Create New Sprint" not in result.output

        result = invoke(runner, "cursor", "create", "Sprint 1", "--start", "2024-01-01", "--end", "2024-01-14")
        assert result.exit_code == 0
        invoke(runner, "cursor", "next")
        invoke(runner, "cursor", "in")
        result = invoke(runner, "cursor", "create", "Schema", "--estimated", "2")
        assert result.exit_code == 0

        result = invoke(runner, "tree")
        assert "Project #1: Alpha" in result.output
        assert "Sprint #1: Sprint 1" in result.output
        assert "Task #1: Schema" in result.output

    def test_sprint_needs_dates(self, runner: CliRunner, populated: None) -> None:
        invoke(runner, "cursor", "in")
        result = invoke(runner, "cursor", "create", "Sprint 2")
        assert result.exit_code == 2
        assert "--start and --end" in result.output

    def test_position_persists(self, runner: CliRunner, populated: None, isolated_env: Path) -> None:
        invoke(runner, "cursor", "in")
        invoke(runner, "cursor", "in")
        result = invoke(runner, "cursor", "next")
        assert "◆ Task #2: Cursor" in result.output

        config = json.loads((isolated_env / ".gats" / "config.json").read_text())
        assert config["view_state"]["depth"] == "task"
        assert config["view_state"]["task"] == 1

        result = invoke(runner, "cursor", "show")
        assert "◆ Task #2: Cursor" in result.output

    def test_edit_and_delete_focused(self, runner: CliRunner, populated: None) -> None:
        invoke(runner, "cursor", "in")
        invoke(runner, "cursor", "in")
        invoke(runner, "cursor", "next")

        result = invoke(runner, "cursor", "edit", "--title", "Cursor v2")
        assert "✓ Updated" in result.output
        assert "◆ Task #2: Cursor v2" in result.output

        result = invoke(runner, "cursor", "delete", "--yes")
        assert "✓ Deleted" in result.output
        assert "◆ Task #1: Schema" in result.output

    def test_delete_on_create_new_row(self, runner: CliRunner, populated: None) -> None:
        invoke(runner, "cursor", "next", "-n", "5")
        result = invoke(runner, "cursor", "delete", "--yes")
        assert "Nothing selected" in result.output
        assert "Total: 2 projects" in invoke(runner, "tree").output

    def test_members(self, runner: CliRunner, populated: None) -> None:
        invoke(runner, "members", "add", "Alan", "Turing")
        result = invoke(runner, "cursor", "add-member", "2", "--role", "developer")
        assert "✓ Member added" in result.output

        result = invoke(runner, "cursor", "member-next")
        assert "Member: #2 Alan Turing [developer]" in result.output

        assert "✓ Member removed" in invoke(runner, "cursor", "remove-member").output
        result = invoke(runner, "members", "list", "-p", "1")
        assert "Alan" not in result.output


class TestExportCommand:
    def test_json_stdout(self, runner: CliRunner, populated: None) -> None:
        result = invoke(runner, "export", "--format", "json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [p["title"] for p in data["projects"]] == ["Alpha", "Beta"]

    def test_yaml_file(self, runner: CliRunner, populated: None, tmp_path: Path) -> None:
        output = tmp_path / "tree.yaml"
        result = invoke(runner, "export", "-o", str(output))
        assert result.exit_code == 0
        assert "Exported 2 projects" in result.output
        assert "title: Alpha" in output.read_text(encoding="utf-8")


class TestDbCommand:
    def test_db_help(self, runner: CliRunner) -> None:
        result = invoke(runner, "db", "--help")
        assert result.exit_code == 0
        assert "upgrade" in result.output
        assert "downgrade" in result.output

    def test_db_init(self, runner: CliRunner) -> None:
        result = invoke(runner, "db", "init")
        assert result.exit_code == 0
        assert "Database ready" in result.output

    def test_db_upgrade_fresh_database(self, runner: CliRunner) -> None:
        result = invoke(runner, "db", "upgrade")
        assert result.exit_code == 0, result.output
        assert "upgraded successfully" in result.output
        result = invoke(runner, "projects", "add", "Alpha")
        assert result.exit_code == 0, result.output

    def test_db_upgrade_is_repeatable(self, runner: CliRunner) -> None:
        assert invoke(runner, "db", "upgrade").exit_code == 0
        result = invoke(runner, "db", "upgrade")
        assert result.exit_code == 0, result.output

    def test_db_stamp_adopts_created_schema(self, runner: CliRunner) -> None:
        assert invoke(runner, "db", "init").exit_code == 0
        result = invoke(runner, "db", "stamp", "head")
        assert result.exit_code == 0, result.output
        assert "stamped successfully" in result.output
        result = invoke(runner, "db", "upgrade")
        assert result.exit_code == 0, result.output

    def test_db_downgrade_after_upgrade(self, runner: CliRunner) -> None:
        assert invoke(runner, "db", "upgrade").exit_code == 0
        result = invoke(runner, "db", "downgrade", "base")
        assert result.exit_code == 0, result.output
