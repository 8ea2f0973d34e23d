"""GATs configuration management.

Handles persistent settings stored in ~/.gats/config.json
"""

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional

from gats.cursor import CursorPath, ProjectLevel, Slot, decode_slot, encode_slot, path_from_dict, path_to_dict


# Default configuration values
DEFAULT_DATABASE_URL = "sqlite:///gats.db"
DEFAULT_EXPORT_FORMAT = "yaml"  # yaml, json
DATABASE_URL_ENV = "GATS_DATABASE_URL"


@dataclass
class ViewState:
    """Last cursor position, restored on the next run."""

    depth: str = "project"  # project, sprint, task
    project: Any = 0  # index, "new" or None
    sprint: Any = None
    task: Any = None
    member: Any = 0

    @classmethod
    def from_cursor(cls, path: CursorPath, member_slot: Slot) -> "ViewState":
        return cls(**path_to_dict(path), member=encode_slot(member_slot))

    def to_path(self) -> CursorPath:
        return path_from_dict(asdict(self))

    def member_slot(self) -> Slot:
        return decode_slot(self.member)


@dataclass
class GatsConfig:
    """GATs application configuration."""

    # Store
    database_url: str = DEFAULT_DATABASE_URL
    echo_sql: bool = False
    enforce_foreign_keys: bool = False

    # Export preferences
    export_format: str = DEFAULT_EXPORT_FORMAT

    # View state - cursor position from the last `gats cursor` command
    view_state: Optional[ViewState] = None

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the path to the config file."""
        return Path.home() / ".gats" / "config.json"

    @classmethod
    def load(cls) -> "GatsConfig":
        """Load configuration from file, or return defaults if not found."""
        config_path = cls.get_config_path()
        config = cls()

        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                # Only use known fields to avoid issues with old config versions
                known_fields = {f.name for f in cls.__dataclass_fields__.values()}
                filtered_data = {k: v for k, v in data.items() if k in known_fields}

                if isinstance(filtered_data.get("view_state"), dict):
                    view_state_fields = {f.name for f in ViewState.__dataclass_fields__.values()}
                    filtered_data["view_state"] = ViewState(**{
                        k: v for k, v in filtered_data["view_state"].items()
                        if k in view_state_fields
                    })
                else:
                    filtered_data["view_state"] = None

                config = cls(**filtered_data)
            except (json.JSONDecodeError, TypeError, ValueError, AttributeError):
                # Invalid config, use defaults
                config = cls()

        return config

    def resolved_database_url(self) -> str:
        """The database URL, with the environment taking precedence over the file."""
        return os.getenv(DATABASE_URL_ENV) or self.database_url

    def save(self) -> None:
        """Save configuration to file."""
        config_path = self.get_config_path()

        # Ensure directory exists
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2)

    def reset(self) -> None:
        """Reset configuration to defaults."""
        self.database_url = DEFAULT_DATABASE_URL
        self.echo_sql = False
        self.enforce_foreign_keys = False
        self.export_format = DEFAULT_EXPORT_FORMAT
        self.view_state = None

    def cursor_path(self) -> CursorPath:
        """The saved cursor path, or the default top-of-list position."""
        if self.view_state is None:
            return ProjectLevel()
        return self.view_state.to_path()

    def member_slot(self) -> Slot:
        if self.view_state is None:
            return 0
        return self.view_state.member_slot()

    def save_view_state(self, path: CursorPath, member_slot: Slot) -> None:
        """Save the cursor position for restoration on the next command."""
        self.view_state = ViewState.from_cursor(path, member_slot)
        self.save()
