"""Entity store: the relational backend behind the hierarchy.

Wraps a SQLAlchemy engine and hands out transactional sessions. Every
statement goes through SQLAlchemy constructs, so values are always bound
parameters.
"""

from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from gats.errors import StoreError
from gats.logs import get_logger

# Registers the table classes on SQLModel.metadata
import gats.models  # noqa: F401

log = get_logger("store")

DEFAULT_DATABASE_URL = "sqlite:///gats.db"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class EntityStore:
    """Transactional access to the relational store."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_url(
        cls,
        url: str = DEFAULT_DATABASE_URL,
        echo: bool = False,
        enforce_foreign_keys: bool = False,
    ) -> "EntityStore":
        """Create a store for a database URL.

        In-memory SQLite shares one connection across sessions so that the
        data survives between them.
        """
        kwargs: dict[str, Any] = {"echo": echo}
        if url.startswith("sqlite") and (":memory:" in url or url == "sqlite://"):
            kwargs["connect_args"] = {"check_same_thread": False}
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        if enforce_foreign_keys and engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return cls(engine)

    def create_schema(self) -> None:
        """Create any missing tables."""
        try:
            SQLModel.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to create schema: {e}") from e

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def transaction(self, action: str = "transaction") -> Iterator[Session]:
        """Run the enclosed statements as one unit.

        Commits on normal exit. Any exception rolls back every statement
        issued inside the block; SQLAlchemy errors surface as StoreError.
        """
        session = Session(self.engine)
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            self._rollback(session, action)
            raise StoreError(f"Failed to {action}: {e.__class__.__name__}: {e}") from e
        except BaseException:
            self._rollback(session, action)
            raise
        finally:
            session.close()

    @contextmanager
    def reading(self, action: str = "read") -> Iterator[Session]:
        """Session for a group of reads; SQLAlchemy errors surface as StoreError."""
        session = Session(self.engine)
        try:
            yield session
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to {action}: {e.__class__.__name__}: {e}") from e
        finally:
            session.close()

    def query(self, statement) -> list:
        """Run a read statement and return all rows."""
        with self.reading("query") as session:
            return list(session.exec(statement).all())

    def _rollback(self, session: Session, action: str) -> None:
        try:
            session.rollback()
        except SQLAlchemyError as e:
            # The caller sees the first error, not this one
            log.warning("Rollback of %s failed: %s", action, e)
