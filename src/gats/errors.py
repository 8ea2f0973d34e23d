"""Exception hierarchy for GATs."""

from typing import Optional


class GatsError(Exception):
    """Base exception for all GATs errors.

    ``entity`` names the kind of record involved ("project", "sprint", "task",
    "member") and ``entity_id`` its identity, when known.
    """

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        entity_id: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.entity = entity
        self.entity_id = entity_id

    def __str__(self) -> str:
        if self.entity and self.entity_id is not None:
            return f"{self.message} ({self.entity} #{self.entity_id})"
        if self.entity:
            return f"{self.message} ({self.entity})"
        return self.message


class StoreError(GatsError):
    """A read, write or commit against the store failed."""
    pass


class ValidationError(GatsError):
    """A caller-supplied field breaks a domain rule."""
    pass


class NotFoundError(GatsError):
    """An id or cursor references an entity that does not exist."""
    pass
