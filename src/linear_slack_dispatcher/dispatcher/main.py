"""CLI entrypoint for the dispatcher.

Each invocation performs one run and exits; scheduling (cron, CI schedules)
is left to the caller.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from functools import partial

from pydantic import ValidationError

from linear_slack_dispatcher import __version__
from linear_slack_dispatcher.dispatcher.config import (
    ConfigurationError,
    DispatcherSettings,
    LinearSettings,
    TaskSettings,
)
from linear_slack_dispatcher.dispatcher.linear.client import LinearClient
from linear_slack_dispatcher.dispatcher.logging import configure_logging
from linear_slack_dispatcher.dispatcher.selection import TaskSelector
from linear_slack_dispatcher.dispatcher.service import DispatchService
from linear_slack_dispatcher.dispatcher.slack.client import SlackClient
from linear_slack_dispatcher.dispatcher.step_outputs import task_outputs, write_outputs

logger = logging.getLogger(__name__)

ACTION_TRIGGERED_COMMENT = "🤖 Claude Code Action triggered"

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linear-dispatcher",
        description="Hand the highest-priority unassigned Linear issue to an assistant via Slack",
    )
    parser.add_argument(
        "--version", action="version", version=f"linear-slack-dispatcher {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    dispatch = subparsers.add_parser(
        "dispatch",
        help="Post the next task to Slack and mark it as dispatched in Linear",
    )
    dispatch.add_argument(
        "--dry-run",
        action="store_true",
        help="Select the task and print the message without posting or updating Linear",
    )

    subparsers.add_parser(
        "fetch-task",
        help="Select the next task and publish it as CI step outputs (no side effects)",
    )

    add_comment = subparsers.add_parser(
        "add-comment",
        help="Comment on a Linear issue that an automated workflow picked it up",
    )
    add_comment.add_argument("--issue-id", required=True, help="Linear issue ID")
    add_comment.add_argument(
        "--workflow-url",
        default="",
        help="Link to the workflow run, included in the comment when given",
    )

    return parser


def _run_dispatch(settings: DispatcherSettings, *, dry_run: bool) -> int:
    print("=" * 50)
    print("Linear → Slack → Claude Dispatcher")
    print("=" * 50)

    linear = LinearClient(api_key=settings.linear_api_key, api_url=settings.linear_api_url)
    slack = SlackClient(token=settings.slack_user_token, api_url=settings.slack_api_url)
    try:
        service = DispatchService.from_settings(settings, linear=linear, slack=slack)
        result = service.run(dry_run=dry_run)

        if result.issue is None:
            print("\nNo tasks to dispatch.")
            return 0

        issue = result.issue
        print(f"\nFound task: {issue.identifier} - {issue.title}")
        print(f"Priority: {issue.priority or 'None'}")
        print(f"Project: {issue.project.name if issue.project is not None else 'None'}")
        print(f"Team: {issue.team.name if issue.team is not None else 'None'}")
        print("\nMessage to post:")
        print("-" * 40)
        print(result.message)
        print("-" * 40)

        if dry_run:
            print("\nDry run: nothing was posted and Linear was not updated.")
            return 0

        ack = result.acknowledgment
        if ack is not None and ack.state is not None:
            print(f"Issue state updated to: {ack.state.name}")
        print("\n✅ Task dispatched successfully!")
        return 0
    finally:
        slack.close()
        linear.close()


def _run_fetch_task(settings: TaskSettings) -> int:
    linear = LinearClient(api_key=settings.linear_api_key, api_url=settings.linear_api_url)
    try:
        issue = TaskSelector.from_settings(settings, linear=linear).find_next_task()
        if issue is None:
            print("No matching tasks found in Linear")
        else:
            print(f"Found task: {issue.identifier} - {issue.title}")
        write_outputs(task_outputs(issue))
        return 0
    finally:
        linear.close()


def _run_add_comment(settings: LinearSettings, *, issue_id: str, workflow_url: str) -> int:
    body = ACTION_TRIGGERED_COMMENT
    if workflow_url.strip():
        body += f"\n\n[View workflow run]({workflow_url.strip()})"

    linear = LinearClient(api_key=settings.linear_api_key, api_url=settings.linear_api_url)
    try:
        linear.create_comment(issue_id=issue_id, body=body)
        print("Comment added to Linear issue")
        return 0
    finally:
        linear.close()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Each command only needs the settings it uses; fetch-task and add-comment run
    # with nothing but the Linear key.
    settings: LinearSettings
    run: Callable[[], int]
    try:
        if args.command == "dispatch":
            dispatch_settings = DispatcherSettings()
            settings = dispatch_settings
            run = partial(_run_dispatch, dispatch_settings, dry_run=args.dry_run)
        elif args.command == "fetch-task":
            task_settings = TaskSettings()
            settings = task_settings
            run = partial(_run_fetch_task, task_settings)
        else:
            settings = LinearSettings()
            run = partial(
                _run_add_comment,
                settings,
                issue_id=args.issue_id,
                workflow_url=args.workflow_url,
            )
    except (ConfigurationError, ValidationError) as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your environment or .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    try:
        return run()
    except Exception:
        logger.exception("Error running dispatcher")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
