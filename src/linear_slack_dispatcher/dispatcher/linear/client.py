"""Linear GraphQL client.

This wraps the handful of Linear API operations the dispatcher needs, keeping
GraphQL out of the service code and making tests easy (inject a session).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests
from requests.adapters import DEFAULT_POOLSIZE

from linear_slack_dispatcher.dispatcher.linear.filters import IssueFilter

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30

MAX_POOL_CONNECTIONS = DEFAULT_POOLSIZE

ISSUES_QUERY = """
query DispatchCandidates($filter: IssueFilter, $first: Int) {
  issues(filter: $filter, first: $first) {
    nodes {
      id
      identifier
      title
      description
      priority
      url
      branchName
    }
  }
}
"""

ISSUE_RELATIONS_QUERY = """
query IssueRelations($id: String!) {
  issue(id: $id) {
    project { id name }
    team { id key name }
  }
}
"""

ISSUE_COMMENT_SEARCH_QUERY = """
query IssueCommentSearch($id: String!, $text: String!) {
  issue(id: $id) {
    comments(filter: { body: { contains: $text } }, first: 1) {
      nodes { id body }
    }
  }
}
"""

TEAM_STATES_QUERY = """
query TeamStates($id: String!) {
  team(id: $id) {
    states {
      nodes { id name type }
    }
  }
}
"""

ISSUE_UPDATE_MUTATION = """
mutation MoveIssue($id: String!, $stateId: String!) {
  issueUpdate(id: $id, input: { stateId: $stateId }) {
    success
    issue {
      state { id name type }
    }
  }
}
"""

COMMENT_CREATE_MUTATION = """
mutation CommentOnIssue($issueId: String!, $body: String!) {
  commentCreate(input: { issueId: $issueId, body: $body }) {
    success
    comment { id body }
  }
}
"""


class TrackerApiError(RuntimeError):
    """Any failure talking to Linear: transport, HTTP status, or GraphQL errors."""


@dataclass(frozen=True, slots=True)
class Project:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class Team:
    id: str
    key: str
    name: str


@dataclass(frozen=True, slots=True)
class Issue:
    """The slice of a Linear issue the dispatcher reads.

    `project` and `team` are only resolved for the selected issue; candidates
    carry `None` until then.
    """

    id: str
    identifier: str
    title: str
    priority: int
    url: str
    description: str | None = None
    branch_name: str | None = None
    project: Project | None = None
    team: Team | None = None


@dataclass(frozen=True, slots=True)
class Comment:
    id: str
    body: str


@dataclass(frozen=True, slots=True)
class WorkflowState:
    id: str
    name: str
    type: str


def _optional_str(value: object) -> str | None:
    if isinstance(value, str):
        return value
    return None


def _require_str(data: dict[str, Any], key: str, *, what: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise TrackerApiError(f"Invalid {what} response: missing {key}")
    return value


def _nodes(container: object) -> list[dict[str, Any]]:
    if not isinstance(container, dict):
        return []
    nodes = container.get("nodes")
    if not isinstance(nodes, list):
        return []
    return [node for node in nodes if isinstance(node, dict)]


class LinearClient:
    """Small wrapper around Linear's GraphQL API.

    Session headers are only written in `__init__`. After that the client is
    read-only state plus independent POSTs, and the selector calls it from a
    few worker threads at once (at most `MAX_POOL_CONNECTIONS`, the size of
    requests' default connection pool).
    """

    def __init__(
        self,
        *,
        api_key: str,
        api_url: str = "https://api.linear.app/graphql",
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if not api_key:
            raise ValueError("Linear API key is required")

        self._api_url = api_url
        self._timeout = timeout
        self._session = session or requests.Session()
        # Personal API keys are sent as-is, without a "Bearer" prefix.
        self._session.headers.update(
            {
                "Authorization": api_key,
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": "linear-slack-dispatcher",
            }
        )

    def _graphql(self, *, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = self._session.post(
                self._api_url,
                json={"query": query, "variables": variables},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            raise TrackerApiError(f"Linear request failed: {e}") from e
        except ValueError as e:
            raise TrackerApiError("Linear returned a non-JSON response") from e

        if not isinstance(payload, dict):
            raise TrackerApiError("Linear returned an unexpected response shape")

        errors = payload.get("errors")
        if errors:
            # Keep logs small and actionable.
            messages = []
            if isinstance(errors, list):
                for item in errors:
                    if isinstance(item, dict):
                        msg = item.get("message")
                        if isinstance(msg, str):
                            messages.append(msg)
            message = "; ".join(messages) if messages else "Unknown GraphQL error"
            raise TrackerApiError(f"Linear GraphQL error: {message}")

        data = payload.get("data")
        if not isinstance(data, dict):
            raise TrackerApiError("Linear response is missing data")
        return data

    @staticmethod
    def _parse_issue_node(node: dict[str, Any]) -> Issue:
        priority = node.get("priority")
        if isinstance(priority, bool) or not isinstance(priority, int | float):
            priority = 0

        return Issue(
            id=_require_str(node, "id", what="issue"),
            identifier=_require_str(node, "identifier", what="issue"),
            title=_optional_str(node.get("title")) or "",
            description=_optional_str(node.get("description")),
            priority=int(priority),
            url=_optional_str(node.get("url")) or "",
            branch_name=_optional_str(node.get("branchName")),
        )

    def list_issues(self, *, issue_filter: IssueFilter, first: int) -> list[Issue]:
        """Return up to `first` issues matching `issue_filter`, in Linear's order."""

        if first <= 0:
            raise ValueError("first must be a positive integer")

        data = self._graphql(
            query=ISSUES_QUERY,
            variables={"filter": issue_filter.to_graphql(), "first": first},
        )
        issues = [self._parse_issue_node(node) for node in _nodes(data.get("issues"))]
        logger.info("Linear issues fetched", extra={"count": len(issues), "first": first})
        return issues

    def get_issue_relations(self, *, issue_id: str) -> tuple[Project | None, Team | None]:
        """Resolve an issue's project and team; either may be absent."""

        data = self._graphql(query=ISSUE_RELATIONS_QUERY, variables={"id": issue_id})
        issue = data.get("issue")
        if not isinstance(issue, dict):
            raise TrackerApiError(f"Linear issue not found: {issue_id}")

        project: Project | None = None
        raw_project = issue.get("project")
        if isinstance(raw_project, dict):
            project = Project(
                id=_require_str(raw_project, "id", what="project"),
                name=_optional_str(raw_project.get("name")) or "",
            )

        team: Team | None = None
        raw_team = issue.get("team")
        if isinstance(raw_team, dict):
            team = Team(
                id=_require_str(raw_team, "id", what="team"),
                key=_optional_str(raw_team.get("key")) or "",
                name=_optional_str(raw_team.get("name")) or "",
            )

        return project, team

    def find_comment_containing(self, *, issue_id: str, text: str) -> Comment | None:
        """Return one comment on the issue whose body contains `text`, or None.

        Linear does the matching across all of the issue's comments, so the
        answer does not depend on how many comments the issue has.
        """

        if not text:
            raise ValueError("text is required")

        data = self._graphql(
            query=ISSUE_COMMENT_SEARCH_QUERY,
            variables={"id": issue_id, "text": text},
        )
        issue = data.get("issue")
        if not isinstance(issue, dict):
            raise TrackerApiError(f"Linear issue not found: {issue_id}")
        for node in _nodes(issue.get("comments")):
            return Comment(
                id=_require_str(node, "id", what="comment"),
                body=_optional_str(node.get("body")) or "",
            )
        return None

    def list_team_states(self, *, team_id: str) -> list[WorkflowState]:
        """Return the team's workflow states in Linear's order."""

        data = self._graphql(query=TEAM_STATES_QUERY, variables={"id": team_id})
        team = data.get("team")
        if not isinstance(team, dict):
            raise TrackerApiError(f"Linear team not found: {team_id}")
        return [
            WorkflowState(
                id=_require_str(node, "id", what="workflow state"),
                name=_optional_str(node.get("name")) or "",
                type=_optional_str(node.get("type")) or "",
            )
            for node in _nodes(team.get("states"))
        ]

    def update_issue_state(self, *, issue_id: str, state_id: str) -> WorkflowState | None:
        """Move an issue to another workflow state.

        Returns:
            The issue's new state as reported by Linear, when included in the response.
        """

        data = self._graphql(
            query=ISSUE_UPDATE_MUTATION,
            variables={"id": issue_id, "stateId": state_id},
        )
        result = data.get("issueUpdate")
        if not isinstance(result, dict) or result.get("success") is not True:
            raise TrackerApiError(f"Linear refused to update issue {issue_id}")

        issue = result.get("issue")
        state = issue.get("state") if isinstance(issue, dict) else None
        if not isinstance(state, dict):
            return None
        return WorkflowState(
            id=_require_str(state, "id", what="workflow state"),
            name=_optional_str(state.get("name")) or "",
            type=_optional_str(state.get("type")) or "",
        )

    def create_comment(self, *, issue_id: str, body: str) -> Comment:
        if not body.strip():
            raise ValueError("Comment body is required")

        data = self._graphql(
            query=COMMENT_CREATE_MUTATION,
            variables={"issueId": issue_id, "body": body},
        )
        result = data.get("commentCreate")
        if not isinstance(result, dict) or result.get("success") is not True:
            raise TrackerApiError(f"Linear refused to comment on issue {issue_id}")

        comment = result.get("comment")
        if not isinstance(comment, dict):
            raise TrackerApiError("Invalid comment response: missing comment")
        created = Comment(
            id=_require_str(comment, "id", what="comment"),
            body=_optional_str(comment.get("body")) or body,
        )
        logger.info("Linear comment created", extra={"issue_id": issue_id, "comment_id": created.id})
        return created

    def close(self) -> None:
        self._session.close()
