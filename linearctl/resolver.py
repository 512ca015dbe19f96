"""Resolve human-readable names (teams, users, states, ...) to Linear ids."""

import asyncio

from linearctl.api.base import RemoteClient


def looks_like_id(value: str) -> bool:
    """Return True if ``value`` should be used as an opaque Linear id without a lookup.

    Linear ids are UUIDs, so anything containing a hyphen is passed through.
    Hyphenated names ("needs-review") are therefore never looked up.
    """
    return "-" in value


class EntityResolver:
    """Name → id lookups against the remote client.

    Every method returns ``None`` when nothing matches; callers decide whether
    that is a hard error or a skip-with-warning.
    """

    def __init__(self, client: RemoteClient) -> None:
        self._client = client

    async def resolve_team(self, name_or_key: str) -> str | None:
        if looks_like_id(name_or_key):
            return name_or_key
        team = await self._client.find_team(name_or_key)
        return team.id if team else None

    async def resolve_user(self, name_or_email: str) -> str | None:
        if looks_like_id(name_or_email):
            return name_or_email
        user = await self._client.find_user(name_or_email)
        return user.id if user else None

    async def resolve_state(self, name: str, team_id: str | None = None) -> str | None:
        if looks_like_id(name):
            return name
        state = await self._client.find_state(name, team_id)
        return state.id if state else None

    async def resolve_label(self, name: str) -> str | None:
        if looks_like_id(name):
            return name
        label = await self._client.find_label(name)
        return label.id if label else None

    async def resolve_project(self, name: str, team_id: str | None = None) -> str | None:
        if looks_like_id(name):
            return name
        project = await self._client.find_project(name, team_id)
        return project.id if project else None

    async def resolve_cycle(self, name_or_number: str, team_id: str | None = None) -> str | None:
        if looks_like_id(name_or_number):
            return name_or_number
        cycle = await self._client.find_cycle(name_or_number, team_id)
        return cycle.id if cycle else None

    async def resolve_issue(self, identifier: str) -> str | None:
        # Issue keys (ENG-123) always contain a hyphen, so no id fast path here
        issue = await self._client.get_issue(identifier)
        return issue.id if issue else None

    async def resolve_labels(self, names: list[str]) -> list[tuple[str, str | None]]:
        ids = await asyncio.gather(*(self.resolve_label(n) for n in names))
        return list(zip(names, ids))

    async def resolve_users(self, names: list[str]) -> list[tuple[str, str | None]]:
        ids = await asyncio.gather(*(self.resolve_user(n) for n in names))
        return list(zip(names, ids))

    async def resolve_issues(self, identifiers: list[str]) -> list[tuple[str, str | None]]:
        ids = await asyncio.gather(*(self.resolve_issue(i) for i in identifiers))
        return list(zip(identifiers, ids))
