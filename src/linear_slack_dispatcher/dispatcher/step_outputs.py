"""Publish values as CI step outputs.

When `GITHUB_OUTPUT` names a file, values are appended to it in the
`name=value` format (or a heredoc block for multi-line values). Otherwise they
are printed, one `name=value` line each.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Mapping
from pathlib import Path

from linear_slack_dispatcher.dispatcher.linear.client import Issue

NO_DESCRIPTION = "No description provided"


def format_output(name: str, value: str) -> str:
    if "\n" in value:
        delimiter = f"EOF_{uuid.uuid4().hex}"
        return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
    return f"{name}={value}\n"


def write_outputs(values: Mapping[str, str], *, output_file: Path | None = None) -> None:
    if output_file is None:
        env_path = os.environ.get("GITHUB_OUTPUT")
        output_file = Path(env_path) if env_path else None

    if output_file is None:
        for name, value in values.items():
            print(f"{name}={value}")
        return

    with output_file.open("a", encoding="utf-8") as fh:
        for name, value in values.items():
            fh.write(format_output(name, value))


def task_outputs(issue: Issue | None) -> dict[str, str]:
    """Step outputs describing the selected task (or its absence)."""

    if issue is None:
        return {"has_task": "false"}
    description = issue.description
    if description is None or not description.strip():
        description = NO_DESCRIPTION
    return {
        "has_task": "true",
        "task_id": issue.id,
        "task_identifier": issue.identifier,
        "task_title": issue.title,
        "task_description": description,
        "task_url": issue.url,
    }
