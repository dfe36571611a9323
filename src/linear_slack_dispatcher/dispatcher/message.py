"""Slack message composition for a selected Linear issue.

Pure formatting only: no network access, no settings lookups. The same issue
and arguments always produce the same string.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from linear_slack_dispatcher.dispatcher.linear.client import Issue

MessageStyle = Literal["branch", "url"]

ELLIPSIS = "..."

# Keeps the message well inside Slack's text limits.
DEFAULT_DESCRIPTION_LIMITS: dict[str, int] = {
    "branch": 2000,
    "url": 500,
}

# Ceiling for any configured limit. Slack truncates text past 40,000 characters
# and recommends keeping messages under 4,000.
MAX_DESCRIPTION_LENGTH = 4000

BRANCH_INSTRUCTION = "IMPORTANT: You MUST name the git branch exactly: {branch_name}"


def truncate_description(text: str, max_length: int) -> str:
    """Cut `text` to `max_length` characters and mark the cut with an ellipsis."""

    if max_length <= 0:
        raise ValueError("max_length must be a positive integer")
    if len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def compose_message(
    issue: Issue,
    *,
    assistant_user_id: str,
    style: MessageStyle = "branch",
    max_description_length: int | None = None,
) -> str:
    """Render the Slack message that hands `issue` to the assistant.

    Layout:
    - `<@assistant>`, then ` in project "<name>"` and ` [<team key>]` when present
    - `, work on: <title>` (url style) or `, work on <identifier>: <title>` (branch style)
    - the description, truncated (never past `MAX_DESCRIPTION_LENGTH`), as its own paragraph
    - the issue URL (url style) or the branch-name instruction (branch style)
    """

    if style not in DEFAULT_DESCRIPTION_LIMITS:
        raise ValueError(f"Unknown message style: {style!r}")
    limit = (
        max_description_length
        if max_description_length is not None
        else DEFAULT_DESCRIPTION_LIMITS[style]
    )
    limit = min(limit, MAX_DESCRIPTION_LENGTH)

    project_info = f' in project "{issue.project.name}"' if issue.project is not None else ""
    team_info = f" [{issue.team.key}]" if issue.team is not None else ""

    if style == "url":
        subject = f"work on: {issue.title}"
    else:
        subject = f"work on {issue.identifier}: {issue.title}"

    parts = [f"<@{assistant_user_id}>{project_info}{team_info}, {subject}"]

    if issue.description is not None and issue.description.strip():
        parts.append(truncate_description(issue.description, limit))

    if style == "url":
        parts.append(issue.url)
    elif issue.branch_name is not None and issue.branch_name.strip():
        parts.append(BRANCH_INSTRUCTION.format(branch_name=issue.branch_name))

    return "\n\n".join(parts)
