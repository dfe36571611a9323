"""Dispatch service: select, compose, post, acknowledge.

Ordering rules:
- nothing is written to Linear unless the Slack post succeeded
- the dispatch comment is written even if the state transition fails; the
  comment is what later runs (with dedup enabled) rely on, the state is
  best-effort
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from linear_slack_dispatcher.dispatcher.config import DispatcherSettings
from linear_slack_dispatcher.dispatcher.linear.client import (
    Comment,
    Issue,
    LinearClient,
    TrackerApiError,
    WorkflowState,
)
from linear_slack_dispatcher.dispatcher.message import MessageStyle, compose_message
from linear_slack_dispatcher.dispatcher.selection import DISPATCH_COMMENT_BODY, TaskSelector
from linear_slack_dispatcher.dispatcher.slack.client import PostedMessage, SlackClient

logger = logging.getLogger(__name__)

STARTED_STATE_TYPE = "started"


def choose_in_progress_state(states: Sequence[WorkflowState]) -> WorkflowState | None:
    """Prefer a started state named like "In Progress", else any started state."""

    started = [s for s in states if s.type == STARTED_STATE_TYPE]
    for state in started:
        if "progress" in state.name.lower():
            return state
    return started[0] if started else None


@dataclass(frozen=True, slots=True)
class Acknowledgment:
    """What was written back to Linear for a dispatched issue."""

    comment: Comment
    state: WorkflowState | None


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Outcome of one dispatch run."""

    issue: Issue | None
    message: str | None = None
    posted: PostedMessage | None = None
    acknowledgment: Acknowledgment | None = None

    @property
    def dispatched(self) -> bool:
        return self.posted is not None and self.acknowledgment is not None


class DispatchService:
    """Runs a single Linear → Slack hand-off."""

    def __init__(
        self,
        *,
        linear: LinearClient,
        slack: SlackClient,
        selector: TaskSelector,
        channel_id: str,
        assistant_user_id: str,
        message_style: MessageStyle = "branch",
        description_max_length: int | None = None,
        transition_state: bool = True,
    ) -> None:
        self._linear = linear
        self._slack = slack
        self._selector = selector
        self._channel_id = channel_id
        self._assistant_user_id = assistant_user_id
        self._message_style: MessageStyle = message_style
        self._description_max_length = description_max_length
        self._transition_state = transition_state

    @classmethod
    def from_settings(
        cls, settings: DispatcherSettings, *, linear: LinearClient, slack: SlackClient
    ) -> DispatchService:
        return cls(
            linear=linear,
            slack=slack,
            selector=TaskSelector.from_settings(settings, linear=linear),
            channel_id=settings.slack_channel_id,
            assistant_user_id=settings.assistant_user_id,
            message_style=settings.message_style,
            description_max_length=settings.description_limit,
            transition_state=settings.transition_state,
        )

    def compose(self, issue: Issue) -> str:
        return compose_message(
            issue,
            assistant_user_id=self._assistant_user_id,
            style=self._message_style,
            max_description_length=self._description_max_length,
        )

    def _move_to_in_progress(self, issue: Issue) -> WorkflowState | None:
        if issue.team is None:
            logger.info("Issue has no team; leaving state unchanged", extra={"issue": issue.identifier})
            return None

        target = choose_in_progress_state(self._linear.list_team_states(team_id=issue.team.id))
        if target is None:
            logger.info(
                "Team has no started state; leaving state unchanged",
                extra={"issue": issue.identifier, "team": issue.team.key},
            )
            return None

        reported = self._linear.update_issue_state(issue_id=issue.id, state_id=target.id)
        new_state = reported or target
        logger.info(
            "Issue state updated",
            extra={"issue": issue.identifier, "state": new_state.name},
        )
        return new_state

    def acknowledge(self, issue: Issue) -> Acknowledgment:
        """Mark `issue` as dispatched: best-effort state move, then the dispatch comment."""

        state: WorkflowState | None = None
        if self._transition_state:
            try:
                state = self._move_to_in_progress(issue)
            except TrackerApiError:
                logger.warning(
                    "Could not move issue to an in-progress state; commenting anyway",
                    extra={"issue": issue.identifier},
                    exc_info=True,
                )

        comment = self._linear.create_comment(issue_id=issue.id, body=DISPATCH_COMMENT_BODY)
        logger.info("Dispatch comment added", extra={"issue": issue.identifier})
        return Acknowledgment(comment=comment, state=state)

    def run(self, *, dry_run: bool = False) -> DispatchResult:
        """Dispatch the next task, if any.

        With `dry_run` the task is selected and the message composed, but nothing
        is posted to Slack or written to Linear.
        """

        issue = self._selector.find_next_task()
        if issue is None:
            return DispatchResult(issue=None)

        logger.info(
            "Found task",
            extra={
                "issue": issue.identifier,
                "title": issue.title,
                "priority": issue.priority,
                "project": issue.project.name if issue.project is not None else None,
                "team": issue.team.name if issue.team is not None else None,
            },
        )

        message = self.compose(issue)
        if dry_run:
            logger.info("Dry run; not posting", extra={"issue": issue.identifier})
            return DispatchResult(issue=issue, message=message)

        posted = self._slack.post_message(channel=self._channel_id, text=message)
        acknowledgment = self.acknowledge(issue)
        return DispatchResult(
            issue=issue,
            message=message,
            posted=posted,
            acknowledgment=acknowledgment,
        )
