"""Build the update payload applied to every issue in a batch.

Flags are resolved once into an :class:`UpdatePlan`. The plan carries the
fields shared by every issue plus the per-issue parts: label additions and
removals (which depend on each issue's current labels) and the relations to
create after the update.

A field is cleared only by the explicit ``none`` sentinel; an absent flag
leaves the field untouched.
"""

import logging
import re
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from linearctl.api.base import RemoteClient
from linearctl.errors import ResolutionError
from linearctl.models import Issue
from linearctl.resolver import EntityResolver

logger = logging.getLogger(__name__)

NONE_SENTINEL = "none"

DUE_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

RELATION_RELATED = "related"
RELATION_DUPLICATE = "duplicate"

# IssueUpdateInput key → name shown to the user
FIELD_NAMES = {
    "title": "title",
    "description": "description",
    "stateId": "state",
    "assigneeId": "assignee",
    "priority": "priority",
    "estimate": "estimate",
    "dueDate": "due date",
    "projectId": "project",
    "cycleId": "cycle",
    "parentId": "parent",
    "labelIds": "labels",
    "subscriberIds": "delegates",
}


def _split(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _clears(value: str, allow_empty: bool = True) -> bool:
    return value == NONE_SENTINEL or (allow_empty and value.strip() == "")


class UpdateFlags(BaseModel):
    """Per-field update flags as given on the command line. ``None`` means "flag absent"."""

    title: str | None = None
    description: str | None = None
    state: str | None = None
    assignee: str | None = None
    priority: int | None = Field(default=None, ge=0, le=4)
    estimate: int | None = None
    due_date: str | None = None
    project: str | None = None
    cycle: str | None = None
    parent: str | None = None
    labels: str | None = None
    add_labels: str | None = None
    remove_labels: str | None = None
    delegate: str | None = None
    links: str | None = None
    duplicate_of: str | None = None

    @field_validator("due_date")
    @classmethod
    def _check_due_date(cls, value: str | None) -> str | None:
        if value is None or value == NONE_SENTINEL:
            return value
        if not DUE_DATE_PATTERN.match(value):
            raise ValueError(f"Invalid due date format: {value}. Use YYYY-MM-DD")
        try:
            date.fromisoformat(value)
        except ValueError as exc:
            raise ValueError(f"Invalid due date: {value}") from exc
        return value

    @model_validator(mode="after")
    def _check_label_modes(self) -> "UpdateFlags":
        if self.labels is not None and (self.add_labels is not None or self.remove_labels is not None):
            raise ValueError("--labels replaces all labels and cannot be combined with --add-labels/--remove-labels")
        return self

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class PlannedRelation(BaseModel):
    model_config = ConfigDict(frozen=True)

    related_id: str
    related_key: str  # as typed by the user, for messages
    type: str  # related | duplicate


class UpdatePlan(BaseModel):
    fields: dict[str, Any] = Field(default_factory=dict)
    add_label_ids: list[str] = Field(default_factory=list)
    remove_label_ids: list[str] = Field(default_factory=list)
    relations: list[PlannedRelation] = Field(default_factory=list)

    @property
    def needs_current_labels(self) -> bool:
        return bool(self.add_label_ids or self.remove_label_ids)

    @property
    def is_empty(self) -> bool:
        return not (self.fields or self.needs_current_labels or self.relations)

    def is_duplicate_target(self, issue_id: str) -> bool:
        return any(r.type == RELATION_DUPLICATE and r.related_id == issue_id for r in self.relations)

    def payload_for(self, current_label_ids: list[str] | None = None, issue_id: str | None = None) -> dict[str, Any]:
        """Return the IssueUpdateInput for one issue, given its current label ids.

        The original of a ``duplicate-of`` never receives the duplicate state.
        """
        payload = dict(self.fields)
        if issue_id and self.is_duplicate_target(issue_id):
            payload.pop("stateId", None)
        if not self.needs_current_labels:
            return payload
        if current_label_ids is None:
            raise ValueError("current label ids are required to add or remove labels")

        label_ids = list(current_label_ids)
        for label_id in self.add_label_ids:
            if label_id not in label_ids:
                label_ids.append(label_id)
        if self.remove_label_ids:
            label_ids = [label_id for label_id in label_ids if label_id not in self.remove_label_ids]
        payload["labelIds"] = label_ids
        return payload

    def updated_fields(self) -> list[str]:
        names = [FIELD_NAMES.get(key, key) for key in self.fields]
        if self.needs_current_labels and "labels" not in names:
            names.append("labels")
        if any(r.type == RELATION_RELATED for r in self.relations):
            names.append("links")
        if any(r.type == RELATION_DUPLICATE for r in self.relations):
            names.append("duplicate")
        return names


class PayloadBuilder:
    """Resolve UpdateFlags into an UpdatePlan, scoped to a sample issue's team."""

    def __init__(self, client: RemoteClient, resolver: EntityResolver | None = None) -> None:
        self._client = client
        self._resolver = resolver or EntityResolver(client)

    async def build(self, flags: UpdateFlags, sample_issue: Issue) -> UpdatePlan:
        plan = UpdatePlan()
        fields = plan.fields
        team_id = sample_issue.team.id if sample_issue.team else None

        def require_team() -> str:
            if not team_id:
                raise ResolutionError(f"Issue {sample_issue.identifier} has no team")
            return team_id

        if flags.title is not None:
            fields["title"] = flags.title

        if flags.description is not None:
            fields["description"] = flags.description

        if flags.state is not None:
            team = require_team()
            state_id = await self._resolver.resolve_state(flags.state, team)
            if not state_id:
                raise ResolutionError(f'State "{flags.state}" not found for team {sample_issue.team.key}')
            fields["stateId"] = state_id

        if flags.assignee is not None:
            if _clears(flags.assignee):
                fields["assigneeId"] = None
            else:
                user_id = await self._resolver.resolve_user(flags.assignee)
                if not user_id:
                    raise ResolutionError(f'Assignee "{flags.assignee}" not found')
                fields["assigneeId"] = user_id

        if flags.priority is not None:
            fields["priority"] = flags.priority

        if flags.estimate is not None:
            fields["estimate"] = flags.estimate

        if flags.due_date is not None:
            # Format already validated on UpdateFlags
            fields["dueDate"] = None if flags.due_date == NONE_SENTINEL else flags.due_date

        if flags.project is not None:
            if _clears(flags.project):
                fields["projectId"] = None
            else:
                project_id = await self._resolver.resolve_project(flags.project, team_id)
                if not project_id:
                    raise ResolutionError(f'Project "{flags.project}" not found')
                fields["projectId"] = project_id

        if flags.cycle is not None:
            if _clears(flags.cycle, allow_empty=False):
                fields["cycleId"] = None
            else:
                team = require_team()
                cycle_id = await self._resolver.resolve_cycle(flags.cycle, team)
                if not cycle_id:
                    raise ResolutionError(f'Cycle "{flags.cycle}" not found for team {sample_issue.team.key}')
                fields["cycleId"] = cycle_id

        if flags.parent is not None:
            if _clears(flags.parent):
                fields["parentId"] = None
            else:
                parent_id = await self._resolver.resolve_issue(flags.parent)
                if parent_id:
                    fields["parentId"] = parent_id
                else:
                    logger.warning('Parent issue "%s" not found, skipping', flags.parent)

        if flags.labels is not None:
            if _clears(flags.labels):
                fields["labelIds"] = []
            else:
                label_ids = await self._resolve_label_ids(_split(flags.labels))
                if label_ids:
                    fields["labelIds"] = label_ids

        if flags.add_labels is not None:
            plan.add_label_ids = await self._resolve_label_ids(_split(flags.add_labels))

        if flags.remove_labels is not None:
            plan.remove_label_ids = await self._resolve_label_ids(
                _split(flags.remove_labels), missing="Label \"%s\" not found, leaving it untouched"
            )

        if flags.delegate is not None:
            if _clears(flags.delegate):
                fields["subscriberIds"] = []
            else:
                delegate_ids = []
                for name, user_id in await self._resolver.resolve_users(_split(flags.delegate)):
                    if user_id:
                        delegate_ids.append(user_id)
                    else:
                        logger.warning('Delegate "%s" not found, skipping', name)
                if delegate_ids:
                    fields["subscriberIds"] = delegate_ids

        if flags.links is not None:
            for key, issue_id in await self._resolver.resolve_issues(_split(flags.links)):
                if issue_id:
                    plan.relations.append(PlannedRelation(related_id=issue_id, related_key=key, type=RELATION_RELATED))
                else:
                    logger.warning('Issue "%s" not found, skipping link', key)

        if flags.duplicate_of is not None:
            await self._plan_duplicate(plan, flags.duplicate_of, team_id)

        return plan

    async def _resolve_label_ids(self, names: list[str], missing: str = 'Label "%s" not found, skipping') -> list[str]:
        label_ids: list[str] = []
        for name, label_id in await self._resolver.resolve_labels(names):
            if not label_id:
                logger.warning(missing, name)
            elif label_id in label_ids:
                logger.warning('Label "%s" given more than once, skipping duplicate', name)
            else:
                label_ids.append(label_id)
        return label_ids

    async def _plan_duplicate(self, plan: UpdatePlan, original_key: str, team_id: str | None) -> None:
        original_id = await self._resolver.resolve_issue(original_key)
        if not original_id:
            logger.warning('Could not mark as duplicate: issue "%s" not found', original_key)
            return

        plan.relations.append(PlannedRelation(related_id=original_id, related_key=original_key, type=RELATION_DUPLICATE))

        if not team_id:
            logger.warning("Issue has no team, leaving state unchanged for duplicate")
            return

        states = await self._client.list_team_states(team_id)
        duplicate_state = next((s for s in states if s.name.lower() == "duplicate"), None) or next(
            (s for s in states if s.type == "canceled"), None
        )
        if duplicate_state:
            plan.fields["stateId"] = duplicate_state.id
        else:
            logger.warning("No Duplicate or canceled state found for team, leaving state unchanged")
