"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from linear_slack_dispatcher.dispatcher.linear.client import Issue, Project, Team

DISPATCHER_ENV_VARS = (
    "LINEAR_API_KEY",
    "LINEAR_API_URL",
    "SLACK_USER_TOKEN",
    "SLACK_CHANNEL_ID",
    "SLACK_API_URL",
    "CLAUDE_USER_ID",
    "LINEAR_PROJECT_IDS",
    "LINEAR_TEAM_KEYS",
    "DISPATCH_INCLUDE_BACKLOG",
    "DISPATCH_INCLUDE_UNPRIORITIZED",
    "DISPATCH_MESSAGE_STYLE",
    "DISPATCH_DESCRIPTION_MAX_LENGTH",
    "DISPATCH_SKIP_ALREADY_DISPATCHED",
    "DISPATCH_TRANSITION_STATE",
    "DISPATCH_DEDUP_WORKERS",
    "LOG_LEVEL",
    "GITHUB_OUTPUT",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every test in an empty directory with no dispatcher variables set."""
    for name in DISPATCHER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def full_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide every required setting."""
    monkeypatch.setenv("LINEAR_API_KEY", "lin_api_test")
    monkeypatch.setenv("SLACK_USER_TOKEN", "xoxp-test")
    monkeypatch.setenv("SLACK_CHANNEL_ID", "C0123456")
    monkeypatch.setenv("CLAUDE_USER_ID", "U0CLAUDE")


@pytest.fixture
def make_issue() -> Callable[..., Issue]:
    """Build issues with sensible defaults."""

    def _make(
        identifier: str = "ENG-1",
        *,
        priority: int = 3,
        title: str | None = None,
        description: str | None = None,
        branch_name: str | None = None,
        project: Project | None = None,
        team: Team | None = None,
    ) -> Issue:
        return Issue(
            id=f"id-{identifier.lower()}",
            identifier=identifier,
            title=title if title is not None else f"Task {identifier}",
            priority=priority,
            url=f"https://linear.app/acme/issue/{identifier}",
            description=description,
            branch_name=branch_name,
            project=project,
            team=team,
        )

    return _make
