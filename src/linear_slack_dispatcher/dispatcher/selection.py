"""Pick the next Linear issue to dispatch.

The selection rule is deliberately small:
- fetch at most `MAX_CANDIDATES` eligible issues (first page only, no pagination)
- stable-sort by priority, 1 (urgent) first, unset (0) last
- take the first one

Ties keep the order Linear returned them in.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

from linear_slack_dispatcher.dispatcher.config import TaskSettings
from linear_slack_dispatcher.dispatcher.linear.client import (
    MAX_POOL_CONNECTIONS,
    Issue,
    LinearClient,
)
from linear_slack_dispatcher.dispatcher.linear.filters import PRIORITY_UNSET, IssueFilter

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 50

# Substring of the acknowledgment comment; its presence means "already handed off".
DISPATCH_MARKER = "Task dispatched to Claude via Slack"
DISPATCH_COMMENT_BODY = f"🤖 {DISPATCH_MARKER}"

_UNSET_PRIORITY_RANK = 5


def priority_rank(priority: int) -> int:
    """Sort key for Linear priorities: 1 < 2 < 3 < 4 < unset."""

    return _UNSET_PRIORITY_RANK if priority == PRIORITY_UNSET else priority


def select_task(issues: Sequence[Issue]) -> Issue | None:
    """Return the highest-priority issue, or None for an empty batch."""

    if not issues:
        return None
    return sorted(issues, key=lambda issue: priority_rank(issue.priority))[0]


class TaskSelector:
    """Queries Linear and applies the selection rule. Read-only."""

    def __init__(
        self,
        *,
        linear: LinearClient,
        issue_filter: IssueFilter,
        skip_already_dispatched: bool = False,
        dedup_workers: int = 4,
    ) -> None:
        self._linear = linear
        self._filter = issue_filter
        self._skip_already_dispatched = skip_already_dispatched
        self._dedup_workers = min(max(1, dedup_workers), MAX_POOL_CONNECTIONS)

    @classmethod
    def from_settings(cls, settings: TaskSettings, *, linear: LinearClient) -> TaskSelector:
        return cls(
            linear=linear,
            issue_filter=IssueFilter.for_dispatch(
                include_backlog=settings.include_backlog,
                include_unprioritized=settings.include_unprioritized,
                project_ids=settings.project_ids,
                team_keys=settings.team_keys,
            ),
            skip_already_dispatched=settings.skip_already_dispatched,
            dedup_workers=settings.dedup_workers,
        )

    def fetch_candidates(self) -> list[Issue]:
        logger.info("Fetching tasks from Linear", extra={"filter": self._filter.to_graphql()})
        return self._linear.list_issues(issue_filter=self._filter, first=MAX_CANDIDATES)

    def drop_already_dispatched(self, issues: Sequence[Issue]) -> list[Issue]:
        """Remove issues that already have a comment carrying the dispatch marker.

        Linear searches every comment on the issue, not just the first page.
        Lookups run on a small thread pool; `map` keeps the original order.
        """

        if not issues:
            return []

        def _already_dispatched(issue: Issue) -> bool:
            marker = self._linear.find_comment_containing(issue_id=issue.id, text=DISPATCH_MARKER)
            return marker is not None

        workers = min(self._dedup_workers, len(issues))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            flags = list(pool.map(_already_dispatched, issues))

        remaining: list[Issue] = []
        for issue, dispatched in zip(issues, flags, strict=True):
            if dispatched:
                logger.info(
                    "Skipping already dispatched issue",
                    extra={"issue": issue.identifier},
                )
                continue
            remaining.append(issue)
        return remaining

    def find_next_task(self) -> Issue | None:
        """Return the issue to dispatch, with project and team resolved, or None."""

        candidates = self.fetch_candidates()
        if self._skip_already_dispatched:
            candidates = self.drop_already_dispatched(candidates)

        selected = select_task(candidates)
        if selected is None:
            logger.info("No matching tasks found in Linear")
            return None

        project, team = self._linear.get_issue_relations(issue_id=selected.id)
        return replace(selected, project=project, team=team)
