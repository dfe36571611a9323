"""Unit tests for settings loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from linear_slack_dispatcher.dispatcher.config import (
    ConfigurationError,
    DispatcherSettings,
    LinearSettings,
    TaskSettings,
    parse_csv_set,
)
from linear_slack_dispatcher.dispatcher.linear.client import MAX_POOL_CONNECTIONS
from linear_slack_dispatcher.dispatcher.message import MAX_DESCRIPTION_LENGTH


def test_missing_settings_are_all_reported() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        DispatcherSettings()

    assert excinfo.value.missing == [
        "LINEAR_API_KEY",
        "SLACK_USER_TOKEN",
        "SLACK_CHANNEL_ID",
        "CLAUDE_USER_ID",
    ]
    assert str(excinfo.value) == (
        "Missing required environment variables: "
        "LINEAR_API_KEY, SLACK_USER_TOKEN, SLACK_CHANNEL_ID, CLAUDE_USER_ID"
    )


def test_missing_chat_credential_is_the_only_key_reported(
    full_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("SLACK_USER_TOKEN")

    with pytest.raises(ConfigurationError) as excinfo:
        DispatcherSettings()

    message = str(excinfo.value)
    assert "SLACK_USER_TOKEN" in message
    for present in ("LINEAR_API_KEY", "SLACK_CHANNEL_ID", "CLAUDE_USER_ID"):
        assert present not in message


def test_blank_values_count_as_missing(full_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLAUDE_USER_ID", "   ")

    with pytest.raises(ConfigurationError) as excinfo:
        DispatcherSettings()

    assert excinfo.value.missing == ["CLAUDE_USER_ID"]


def test_settings_load_from_dotenv(isolated_env: Path) -> None:
    (isolated_env / ".env").write_text(
        "\n".join(
            [
                "LINEAR_API_KEY=lin_api_dotenv",
                "SLACK_USER_TOKEN=xoxp-dotenv",
                "SLACK_CHANNEL_ID=C999",
                "CLAUDE_USER_ID=U999",
                "LINEAR_TEAM_KEYS=ENG, OPS,,",
                "LOG_LEVEL=DEBUG",
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = DispatcherSettings()

    assert settings.linear_api_key == "lin_api_dotenv"
    assert settings.assistant_user_id == "U999"
    assert settings.team_keys == frozenset({"ENG", "OPS"})
    assert settings.project_ids == frozenset()
    assert settings.log_level == "DEBUG"


def test_defaults(full_env: None) -> None:
    settings = DispatcherSettings()

    assert settings.linear_api_url == "https://api.linear.app/graphql"
    assert settings.slack_api_url == "https://slack.com/api"
    assert settings.include_backlog is True
    assert settings.include_unprioritized is False
    assert settings.skip_already_dispatched is False
    assert settings.transition_state is True
    assert settings.message_style == "branch"
    assert settings.description_limit == 2000


def test_description_limit_follows_message_style(
    full_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("DISPATCH_MESSAGE_STYLE", "url")
    assert DispatcherSettings().description_limit == 500

    monkeypatch.setenv("DISPATCH_DESCRIPTION_MAX_LENGTH", "120")
    assert DispatcherSettings().description_limit == 120


def test_flags_parse_from_environment(full_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DISPATCH_SKIP_ALREADY_DISPATCHED", "true")
    monkeypatch.setenv("DISPATCH_INCLUDE_BACKLOG", "false")
    monkeypatch.setenv("LINEAR_PROJECT_IDS", "proj-a,proj-b")

    settings = DispatcherSettings()

    assert settings.skip_already_dispatched is True
    assert settings.include_backlog is False
    assert settings.project_ids == frozenset({"proj-a", "proj-b"})


def test_invalid_message_style_is_a_validation_error(
    full_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("DISPATCH_MESSAGE_STYLE", "carrier-pigeon")

    with pytest.raises(ValidationError):
        DispatcherSettings()


def test_task_settings_need_only_the_linear_key(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        TaskSettings()
    assert excinfo.value.missing == ["LINEAR_API_KEY"]

    monkeypatch.setenv("LINEAR_API_KEY", "lin_api_test")
    assert TaskSettings().linear_api_key == "lin_api_test"
    assert LinearSettings().linear_api_key == "lin_api_test"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, frozenset()),
        ("", frozenset()),
        (" , ,", frozenset()),
        ("a,b", frozenset({"a", "b"})),
        (" a , b ,a", frozenset({"a", "b"})),
        (["x", " ", "y "], frozenset({"x", "y"})),
    ],
)
def test_parse_csv_set(raw: object, expected: frozenset[str]) -> None:
    assert parse_csv_set(raw) == expected


def test_description_limit_has_a_ceiling(
    full_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("DISPATCH_DESCRIPTION_MAX_LENGTH", str(MAX_DESCRIPTION_LENGTH))
    assert DispatcherSettings().description_limit == MAX_DESCRIPTION_LENGTH

    monkeypatch.setenv("DISPATCH_DESCRIPTION_MAX_LENGTH", "100000")
    with pytest.raises(ValidationError):
        DispatcherSettings()


def test_dedup_workers_are_capped_at_pool_size(
    full_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("DISPATCH_DEDUP_WORKERS", str(MAX_POOL_CONNECTIONS + 1))

    with pytest.raises(ValidationError):
        TaskSettings()


def test_log_level_is_normalized(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LINEAR_API_KEY", "lin_api_test")
    monkeypatch.setenv("LOG_LEVEL", " debug ")

    assert LinearSettings().log_level == "DEBUG"


def test_unknown_log_level_is_a_validation_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LINEAR_API_KEY", "lin_api_test")
    monkeypatch.setenv("LOG_LEVEL", "verbose")

    with pytest.raises(ValidationError):
        LinearSettings()
