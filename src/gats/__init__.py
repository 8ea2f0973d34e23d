"""GATs - project, sprint and task tracking over a relational store."""

__version__ = "0.1.0"

from gats.coordinator import Workspace
from gats.cursor import CREATE_NEW, Depth, MemberCursor, TreeCursor
from gats.errors import GatsError, NotFoundError, StoreError, ValidationError
from gats.repository import HierarchyRepository
from gats.store import EntityStore

__all__ = [
    "__version__",
    "CREATE_NEW",
    "Depth",
    "EntityStore",
    "GatsError",
    "HierarchyRepository",
    "MemberCursor",
    "NotFoundError",
    "StoreError",
    "TreeCursor",
    "ValidationError",
    "Workspace",
]
