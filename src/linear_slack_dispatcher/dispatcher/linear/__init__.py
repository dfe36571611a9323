"""Linear API access."""

from linear_slack_dispatcher.dispatcher.linear.client import (
    Comment,
    Issue,
    LinearClient,
    Project,
    Team,
    TrackerApiError,
    WorkflowState,
)
from linear_slack_dispatcher.dispatcher.linear.filters import IssueFilter

__all__ = [
    "Comment",
    "Issue",
    "IssueFilter",
    "LinearClient",
    "Project",
    "Team",
    "TrackerApiError",
    "WorkflowState",
]
