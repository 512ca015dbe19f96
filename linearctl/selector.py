"""Select the working set of issues for a batch update."""

import asyncio
import logging
import re
from typing import Any

from linearctl.api.base import RemoteClient
from linearctl.errors import SelectorError
from linearctl.models import Issue, QueryFilter
from linearctl.query import parse_query
from linearctl.resolver import EntityResolver

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 250  # Linear API max for `first`


def effective_limit(limit: int) -> int:
    """Clamp a requested limit to Linear's page size; non-positive means "as many as possible"."""
    if limit <= 0:
        return MAX_PAGE_SIZE
    return min(limit, MAX_PAGE_SIZE)


def parse_ids(ids: str) -> list[str]:
    """Split a comma and/or whitespace separated list of issue identifiers."""
    return [part for part in re.split(r"[\s,]+", ids) if part]


class WorkingSetSelector:
    def __init__(self, client: RemoteClient, resolver: EntityResolver | None = None) -> None:
        self._client = client
        self._resolver = resolver or EntityResolver(client)

    async def select(self, ids: str | list[str] | None = None, query: str | None = None, limit: int = 50) -> list[Issue]:
        """Return the issues named by ``ids`` or matched by ``query`` (exactly one is required)."""
        if ids and query:
            raise SelectorError("Use either --ids or --query, not both")
        if ids:
            return await self.fetch_by_ids(parse_ids(ids) if isinstance(ids, str) else list(ids))
        if query:
            return await self.fetch_by_query(parse_query(query), limit)
        raise SelectorError("Either --ids or --query is required")

    async def fetch_by_ids(self, identifiers: list[str]) -> list[Issue]:
        if not identifiers:
            raise SelectorError("No issue ids given")
        issues = await asyncio.gather(*(self._client.get_issue(i) for i in identifiers))
        for identifier, issue in zip(identifiers, issues):
            if issue is None:
                raise SelectorError(f"Issue {identifier} not found")
        return list(issues)

    async def build_filter(self, query: QueryFilter) -> dict[str, Any]:
        """Translate a QueryFilter into a Linear IssueFilter, resolving names to ids."""
        issue_filter: dict[str, Any] = {}

        # Team first: state and cycle lookups are scoped to it
        team_id: str | None = None
        if query.team:
            team_id = await self._resolver.resolve_team(query.team)
            if not team_id:
                raise SelectorError(f'Team "{query.team}" not found')
            issue_filter["team"] = {"id": {"eq": team_id}}

        if query.state:
            state_id = await self._resolver.resolve_state(query.state, team_id)
            if not state_id:
                raise SelectorError(f'State "{query.state}" not found')
            issue_filter["state"] = {"id": {"eq": state_id}}

        if query.assignee:
            user_id = await self._resolver.resolve_user(query.assignee)
            if not user_id:
                raise SelectorError(f'Assignee "{query.assignee}" not found')
            issue_filter["assignee"] = {"id": {"eq": user_id}}

        if query.label:
            label_id = await self._resolver.resolve_label(query.label)
            if not label_id:
                raise SelectorError(f'Label "{query.label}" not found')
            issue_filter["labels"] = {"id": {"in": [label_id]}}

        if query.project:
            project_id = await self._resolver.resolve_project(query.project)
            if not project_id:
                raise SelectorError(f'Project "{query.project}" not found')
            issue_filter["project"] = {"id": {"eq": project_id}}

        if query.cycle:
            cycle_id = await self._resolver.resolve_cycle(query.cycle, team_id)
            if not cycle_id:
                raise SelectorError(f'Cycle "{query.cycle}" not found')
            issue_filter["cycle"] = {"id": {"eq": cycle_id}}

        if query.priority is not None:
            issue_filter["priority"] = {"eq": query.priority}

        return issue_filter

    async def fetch_by_query(self, query: QueryFilter, limit: int = 50) -> list[Issue]:
        issue_filter = await self.build_filter(query)
        page_size = effective_limit(limit)
        logger.debug("Query resolved to filter=%s (limit %d)", issue_filter, page_size)

        issues = await self._client.search_issues(issue_filter, page_size)
        if not issues:
            raise SelectorError("No issues found matching query")
        return issues
