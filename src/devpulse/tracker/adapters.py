"""Convert issue-tracker API payloads into ``Issue`` records.

Only the fields the analyzer reads are extracted. Jira issues must have been
fetched with ``expand=changelog``.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..math.periods import parse_timestamp
from .models import Issue, IssueCycle, StatusTransition

# Jira Software's default "Story point estimate" field
JIRA_STORY_POINTS_FIELD = "customfield_10016"
JIRA_SPRINT_FIELD = "customfield_10020"

LINEAR_PRIORITY_NAMES: dict[int, str] = {
    0: "No priority",
    1: "Urgent",
    2: "High",
    3: "Normal",
    4: "Low",
}

LINEAR_STARTED = "started"
LINEAR_COMPLETED = "completed"


def _name(value: Any, *keys: str) -> Optional[str]:
    """First present key of a nested object, e.g. ``{"name": "Bug"}``."""
    if not isinstance(value, Mapping):
        return None
    for key in keys:
        if value.get(key):
            return str(value[key])
    return None


def _optional_timestamp(value: Optional[str]):
    return parse_timestamp(value) if value else None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _jira_sprint(fields: Mapping[str, Any]) -> Optional[IssueCycle]:
    sprints = fields.get(JIRA_SPRINT_FIELD)
    if isinstance(sprints, list) and sprints:
        # The last sprint is the one the issue currently belongs to
        sprint = sprints[-1]
        if isinstance(sprint, Mapping) and sprint.get("id") is not None:
            return IssueCycle(id=str(sprint["id"]), name=str(sprint.get("name") or sprint["id"]))
    return None


def jira_status_transitions(payload: Mapping[str, Any]) -> list[StatusTransition]:
    """Status changes from ``changelog.histories[].items[]``."""
    histories = (payload.get("changelog") or {}).get("histories") or []
    transitions: list[StatusTransition] = []
    for history in histories:
        created = history.get("created")
        if not created:
            continue
        for item in history.get("items") or []:
            if item.get("field") != "status":
                continue
            transitions.append(
                StatusTransition(
                    timestamp=parse_timestamp(created),
                    from_status=item.get("fromString"),
                    to_status=item.get("toString"),
                )
            )
    return transitions


def issue_from_jira(payload: Mapping[str, Any]) -> Issue:
    """Build an ``Issue`` from a Jira REST search result entry.

    Raises:
        KeyError: If the payload has no ``fields`` or ``created`` entry
    """
    fields = payload["fields"]

    return Issue(
        key=str(payload.get("key") or payload.get("id") or ""),
        issue_type=_name(fields.get("issuetype"), "name") or "Unknown",
        status=_name(fields.get("status"), "name") or "",
        created=parse_timestamp(fields["created"]),
        assignee=_name(fields.get("assignee"), "displayName"),
        resolved=_optional_timestamp(fields.get("resolutiondate")),
        priority=_name(fields.get("priority"), "name"),
        estimate=_number(fields.get(JIRA_STORY_POINTS_FIELD)),
        cycle=_jira_sprint(fields),
        transitions=jira_status_transitions(payload),
    )


def issue_from_linear(payload: Mapping[str, Any]) -> Issue:
    """Build an ``Issue`` from a Linear GraphQL issue node.

    Linear reports workflow state types rather than a changelog, so the
    status is ``state.type`` and transitions are synthesised from
    ``startedAt`` and ``completedAt``. Use with ``LINEAR_STATUS_MAPPING``.
    """
    started = _optional_timestamp(payload.get("startedAt"))
    completed = _optional_timestamp(payload.get("completedAt"))

    transitions: list[StatusTransition] = []
    if started is not None:
        transitions.append(StatusTransition(started, None, LINEAR_STARTED))
    if completed is not None:
        transitions.append(
            StatusTransition(completed, LINEAR_STARTED if started else None, LINEAR_COMPLETED)
        )

    labels = payload.get("labels") or []
    if isinstance(labels, Mapping):
        # GraphQL connection: { nodes: [...] }
        labels = labels.get("nodes") or []
    label_names = [_name(label, "name") for label in labels]
    issue_type = "Bug" if any(label and label.lower() == "bug" for label in label_names) else "Issue"

    cycle = payload.get("cycle")
    issue_cycle = None
    if isinstance(cycle, Mapping) and cycle.get("id"):
        issue_cycle = IssueCycle(
            id=str(cycle["id"]),
            name=str(cycle.get("name") or f"Cycle {cycle.get('number')}"),
        )

    priority = payload.get("priority")
    return Issue(
        key=str(payload.get("identifier") or payload.get("id") or ""),
        issue_type=issue_type,
        status=_name(payload.get("state"), "type") or "",
        created=parse_timestamp(payload["createdAt"]),
        assignee=_name(payload.get("assignee"), "displayName", "name"),
        resolved=completed,
        priority=LINEAR_PRIORITY_NAMES.get(priority, "Unknown") if priority is not None else None,
        estimate=_number(payload.get("estimate")),
        cycle=issue_cycle,
        transitions=transitions,
    )
