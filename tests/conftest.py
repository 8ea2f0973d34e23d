"""Shared fixtures: an in-memory store, a repository and a seeded hierarchy."""

import sqlite3
from datetime import date
from typing import Callable

import pytest
from sqlalchemy import event, func
from sqlmodel import select

from gats.models import ContributesTo, Member, PartOf, Project, ProjectSprint, Sprint, Task
from gats.repository import HierarchyRepository
from gats.store import EntityStore

ALL_TABLES = (Project, Sprint, Task, Member, ProjectSprint, PartOf, ContributesTo)


@pytest.fixture
def store():
    """In-memory SQLite store with foreign keys enforced."""
    store = EntityStore.from_url("sqlite://", enforce_foreign_keys=True)
    store.create_schema()
    yield store
    store.dispose()


@pytest.fixture
def repo(store: EntityStore) -> HierarchyRepository:
    return HierarchyRepository(store)


@pytest.fixture
def seeded(repo: HierarchyRepository) -> dict:
    """Two projects; Alpha has two sprints (3 tasks + 1 task) and two members.

    Returns the generated ids by name.
    """
    ids = {}
    ids["alpha"] = repo.create_project("Alpha", "First project")
    ids["beta"] = repo.create_project("Beta")
    ids["s1"] = repo.create_sprint(ids["alpha"], "Sprint 1", date(2024, 1, 1), date(2024, 1, 14))
    ids["s2"] = repo.create_sprint(ids["alpha"], "Sprint 2", "2024-01-15", "2024-01-28")
    ids["t1"] = repo.create_task(ids["s1"], "Schema", "Completed", "", 5, 5)
    ids["t2"] = repo.create_task(ids["s1"], "Cursor", "InProgress", "", 2, 8)
    ids["t3"] = repo.create_task(ids["s1"], "Export")
    ids["t4"] = repo.create_task(ids["s2"], "Release")
    ids["ada"] = repo.create_member("Ada", "Lovelace", "ada@example.com")
    ids["alan"] = repo.create_member("Alan", "Turing")
    repo.add_member(ids["alpha"], ids["ada"], "owner")
    repo.add_member(ids["alpha"], ids["alan"], "developer")
    return ids


def dump_store(store: EntityStore) -> dict:
    """Every row of every table, for before/after comparisons."""
    dump = {}
    for model in ALL_TABLES:
        rows = store.query(select(model))
        dump[model.__tablename__] = sorted(
            tuple(sorted(row.model_dump().items())) for row in rows
        )
    return dump


def row_count(store: EntityStore, model) -> int:
    return store.query(select(func.count()).select_from(model))[0]


@pytest.fixture
def fail_statement(store: EntityStore) -> Callable[[str], None]:
    """Arm a fault: the next SQL statement starting with ``prefix`` raises.

    The error is raised as a driver error so SQLAlchemy wraps it the same way
    it would wrap a real failure.
    """
    listeners = []

    def arm(prefix: str) -> None:
        def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            if statement.lstrip().upper().startswith(prefix.upper()):
                raise sqlite3.OperationalError(f"injected failure on: {prefix}")

        event.listen(store.engine, "before_cursor_execute", before_cursor_execute)
        listeners.append(before_cursor_execute)

    yield arm

    for listener in listeners:
        event.remove(store.engine, "before_cursor_execute", listener)
