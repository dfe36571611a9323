"""Typed builder for Linear's `IssueFilter` GraphQL input."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

ACTIVE_STATE_TYPES: tuple[str, ...] = ("unstarted", "started")
BACKLOG_STATE_TYPE = "backlog"

# Linear priority 0 means "No priority".
PRIORITY_UNSET = 0


@dataclass(frozen=True, slots=True)
class IssueFilter:
    """Which issues are eligible for dispatch.

    Unassigned is always required; the remaining predicates are optional.
    """

    state_types: tuple[str, ...] = ACTIVE_STATE_TYPES
    require_unassigned: bool = True
    exclude_unprioritized: bool = True
    project_ids: frozenset[str] = field(default_factory=frozenset)
    team_keys: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def for_dispatch(
        cls,
        *,
        include_backlog: bool,
        include_unprioritized: bool,
        project_ids: frozenset[str] = frozenset(),
        team_keys: frozenset[str] = frozenset(),
    ) -> IssueFilter:
        state_types = ACTIVE_STATE_TYPES
        if include_backlog:
            state_types = (BACKLOG_STATE_TYPE, *ACTIVE_STATE_TYPES)
        return cls(
            state_types=state_types,
            exclude_unprioritized=not include_unprioritized,
            project_ids=frozenset(project_ids),
            team_keys=frozenset(team_keys),
        )

    def to_graphql(self) -> dict[str, Any]:
        """Serialize to the `filter` variable of Linear's `issues` query."""

        if not self.state_types:
            raise ValueError("at least one workflow state type is required")

        payload: dict[str, Any] = {
            "state": {"type": {"in": list(self.state_types)}},
        }
        if self.require_unassigned:
            payload["assignee"] = {"null": True}
        if self.exclude_unprioritized:
            payload["priority"] = {"neq": PRIORITY_UNSET}
        # Sorted so identical settings always send identical requests.
        if self.project_ids:
            payload["project"] = {"id": {"in": sorted(self.project_ids)}}
        if self.team_keys:
            payload["team"] = {"key": {"in": sorted(self.team_keys)}}
        return payload
