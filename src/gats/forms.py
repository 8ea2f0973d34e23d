"""Input forms validating caller-supplied fields before they reach the store."""

from datetime import date
from typing import Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel, Field, field_validator, model_validator

from gats.errors import ValidationError
from gats.models import TaskStatus

FormT = TypeVar("FormT", bound=BaseModel)

# Largest value a SQLite INTEGER column holds
MAX_HOURS = 2**63 - 1


def _require_text(value: str, what: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{what} cannot be empty")
    return value


class ProjectForm(BaseModel):
    title: str
    description: str = ""

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        return _require_text(v, "title")


class SprintForm(BaseModel):
    """Sprint fields. Dates accept ``date`` objects or ``YYYY-MM-DD`` strings."""

    title: str
    start_date: date
    end_date: date

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        return _require_text(v, "title")

    @model_validator(mode="after")
    def check_range(self) -> "SprintForm":
        if self.start_date > self.end_date:
            raise ValueError(
                f"start date {self.start_date} is after end date {self.end_date}"
            )
        return self


class TaskForm(BaseModel):
    title: str
    status: str = TaskStatus.NOT_STARTED.value
    description: str = ""
    committed_hours: int = Field(default=0, ge=0, le=MAX_HOURS)
    estimated_hours: int = Field(default=0, ge=0, le=MAX_HOURS)

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        return _require_text(v, "title")

    @field_validator("status")
    @classmethod
    def normalize_status(cls, v: str) -> str:
        # Unrecognized statuses are stored verbatim
        return v.strip() or TaskStatus.NOT_STARTED.value


class MemberForm(BaseModel):
    first_name: str
    last_name: str
    email: str = ""
    phone: str = ""

    @field_validator("first_name", "last_name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _require_text(v, "name")

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.strip()
        if v and "@" not in v:
            raise ValueError(f"'{v}' is not an email address")
        return v


def validate_form(
    form: Type[FormT],
    entity: Optional[str] = None,
    entity_id: Optional[int] = None,
    **fields,
) -> FormT:
    """Build ``form`` from ``fields``, raising our ValidationError on failure."""
    try:
        return form(**fields)
    except pydantic.ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'form'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Invalid {entity or 'input'}: {problems}", entity, entity_id) from e
