"""Configuration for the dispatcher.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Required credentials default to empty strings so that every missing value can
be reported at once; see `ConfigurationError`.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Annotated, ClassVar, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from linear_slack_dispatcher.dispatcher.linear.client import MAX_POOL_CONNECTIONS
from linear_slack_dispatcher.dispatcher.message import (
    DEFAULT_DESCRIPTION_LIMITS,
    MAX_DESCRIPTION_LENGTH,
    MessageStyle,
)

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class ConfigurationError(Exception):
    """Raised when required settings are missing."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required environment variables: {', '.join(self.missing)}")


def parse_csv_set(value: object) -> frozenset[str]:
    """Parse a comma-separated value into a set of non-empty tokens."""

    if value is None:
        return frozenset()
    if isinstance(value, str):
        parts: Iterable[object] = value.split(",")
    elif isinstance(value, Iterable):
        parts = value
    else:
        raise ValueError("expected a comma-separated string or a collection of strings")
    return frozenset(token for token in (str(p).strip() for p in parts) if token)


class LinearSettings(BaseSettings):
    """Settings needed to talk to Linear.

    Environment variables:
    - LINEAR_API_KEY
    - LINEAR_API_URL  (optional)
    - LOG_LEVEL       (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `LinearSettings(_env_file=path_to_env)`.
    """

    _required_fields: ClassVar[tuple[str, ...]] = ("linear_api_key",)

    linear_api_key: str = Field(
        default="",
        validation_alias="LINEAR_API_KEY",
        description="Linear personal API key",
    )
    linear_api_url: str = Field(
        default="https://api.linear.app/graphql",
        validation_alias="LINEAR_API_URL",
        description="Linear GraphQL endpoint",
    )

    log_level: LogLevel = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _require_credentials(self) -> LinearSettings:
        missing: list[str] = []
        for name in self._required_fields:
            value = getattr(self, name)
            if not value.strip():
                alias = type(self).model_fields[name].validation_alias
                missing.append(alias if isinstance(alias, str) else name.upper())
        if missing:
            raise ConfigurationError(missing)
        return self

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class TaskSettings(LinearSettings):
    """Settings that decide which Linear issue is eligible and selected.

    Environment variables:
    - LINEAR_PROJECT_IDS, LINEAR_TEAM_KEYS  (optional, comma-separated)
    - DISPATCH_INCLUDE_BACKLOG, DISPATCH_INCLUDE_UNPRIORITIZED,
      DISPATCH_SKIP_ALREADY_DISPATCHED, DISPATCH_DEDUP_WORKERS  (optional)
    """

    project_ids: Annotated[frozenset[str], NoDecode] = Field(
        default_factory=frozenset,
        validation_alias="LINEAR_PROJECT_IDS",
        description="Only consider issues in these Linear projects (empty = all)",
    )
    team_keys: Annotated[frozenset[str], NoDecode] = Field(
        default_factory=frozenset,
        validation_alias="LINEAR_TEAM_KEYS",
        description="Only consider issues owned by these Linear teams (empty = all)",
    )

    include_backlog: bool = Field(
        default=True,
        validation_alias="DISPATCH_INCLUDE_BACKLOG",
        description="Also consider issues in backlog states",
    )
    include_unprioritized: bool = Field(
        default=False,
        validation_alias="DISPATCH_INCLUDE_UNPRIORITIZED",
        description="Consider issues without a priority (they sort after every prioritized issue)",
    )
    skip_already_dispatched: bool = Field(
        default=False,
        validation_alias="DISPATCH_SKIP_ALREADY_DISPATCHED",
        description="Exclude candidates that already carry the dispatch comment",
    )
    dedup_workers: int = Field(
        default=4,
        ge=1,
        le=MAX_POOL_CONNECTIONS,
        validation_alias="DISPATCH_DEDUP_WORKERS",
        description="Concurrent comment lookups when skipping already-dispatched issues",
    )

    @field_validator("project_ids", "team_keys", mode="before")
    @classmethod
    def _split_csv(cls, value: object) -> frozenset[str]:
        return parse_csv_set(value)


class DispatcherSettings(TaskSettings):
    """Settings for a full dispatch run.

    Environment variables (in addition to `TaskSettings`):
    - SLACK_USER_TOKEN, SLACK_CHANNEL_ID, CLAUDE_USER_ID
    - SLACK_API_URL  (optional)
    - DISPATCH_MESSAGE_STYLE, DISPATCH_DESCRIPTION_MAX_LENGTH,
      DISPATCH_TRANSITION_STATE  (optional)
    """

    _required_fields: ClassVar[tuple[str, ...]] = (
        "linear_api_key",
        "slack_user_token",
        "slack_channel_id",
        "assistant_user_id",
    )

    slack_user_token: str = Field(
        default="",
        validation_alias="SLACK_USER_TOKEN",
        description="Slack user token (xoxp-); messages must come from a user, not a bot",
    )
    slack_channel_id: str = Field(
        default="",
        validation_alias="SLACK_CHANNEL_ID",
        description="Channel the task message is posted to",
    )
    assistant_user_id: str = Field(
        default="",
        validation_alias="CLAUDE_USER_ID",
        description="Slack user ID of the assistant that picks up the work",
    )
    slack_api_url: str = Field(
        default="https://slack.com/api",
        validation_alias="SLACK_API_URL",
        description="Slack Web API base URL",
    )

    message_style: MessageStyle = Field(
        default="branch",
        validation_alias="DISPATCH_MESSAGE_STYLE",
        description="'branch' asks for a specific git branch name; 'url' links the issue",
    )
    description_max_length: int | None = Field(
        default=None,
        gt=0,
        le=MAX_DESCRIPTION_LENGTH,
        validation_alias="DISPATCH_DESCRIPTION_MAX_LENGTH",
        description="Truncate issue descriptions beyond this many characters",
    )
    transition_state: bool = Field(
        default=True,
        validation_alias="DISPATCH_TRANSITION_STATE",
        description="Move the dispatched issue to the team's in-progress state",
    )

    @property
    def description_limit(self) -> int:
        """Effective description cap for the configured message style."""

        if self.description_max_length is not None:
            return self.description_max_length
        return DEFAULT_DESCRIPTION_LIMITS[self.message_style]
