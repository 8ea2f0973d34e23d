"""Snapshot export.

Renders a whole tree as a plain document:

```yaml
gats:
  version: "1.0"
  generated_at: "2026-01-17T10:30:00+00:00"

projects:
  - id: 1
    title: "Alpha"
    description: ""
    members:
      - id: 3
        name: "Ada Lovelace"
        email: "ada@example.com"
        phone: ""
        role: "owner"
    sprints:
      - id: 10
        title: "Sprint 1"
        start_date: "2024-01-01"
        end_date: "2024-01-14"
        tasks:
          - id: 100
            title: "Schema"
            status: "InProgress"
            description: ""
            committed_hours: 2
            estimated_hours: 5
```
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import yaml

from gats.models import ProjectNode, SprintNode, Tree

EXPORT_VERSION = "1.0"
EXPORT_FORMATS = ("yaml", "json")


def _sprint_dict(sprint: SprintNode) -> dict:
    return {
        "id": sprint.id,
        "title": sprint.title,
        "start_date": sprint.start_date.isoformat(),
        "end_date": sprint.end_date.isoformat(),
        "tasks": [
            {
                "id": task.id,
                "title": task.title,
                "status": task.status,
                "description": task.description,
                "committed_hours": task.committed_hours,
                "estimated_hours": task.estimated_hours,
            }
            for task in sprint.tasks
        ],
    }


def _project_dict(project: ProjectNode) -> dict:
    return {
        "id": project.id,
        "title": project.title,
        "description": project.description,
        "members": [
            {
                "id": member.id,
                "name": member.full_name,
                "email": member.email,
                "phone": member.phone,
                "role": member.role,
            }
            for member in project.members
        ],
        "sprints": [_sprint_dict(s) for s in project.sprints],
    }


def tree_to_dict(tree: Tree) -> dict:
    """Convert a snapshot into plain dicts and lists."""
    return {
        "gats": {
            "version": EXPORT_VERSION,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        },
        "projects": [_project_dict(p) for p in tree.projects],
    }


def export_tree(tree: Tree, fmt: str = "yaml", output_path: Optional[Path] = None) -> str:
    """Serialize a snapshot as YAML or JSON.

    Args:
        tree: Snapshot to export
        fmt: "yaml" or "json"
        output_path: Optional path to write the document to

    Returns:
        The serialized document
    """
    data = tree_to_dict(tree)

    if fmt == "json":
        content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    elif fmt == "yaml":
        content = yaml.safe_dump(
            data,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=100,
        )
    else:
        raise ValueError(f"Unknown export format '{fmt}', expected one of {EXPORT_FORMATS}")

    if output_path:
        output_path.write_text(content, encoding="utf-8")

    return content
