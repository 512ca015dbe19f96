"""Linear GraphQL API client."""

import logging
from typing import Any

import httpx

from linearctl.api.base import RemoteClient
from linearctl.errors import LinearApiError
from linearctl.models import Cycle, Issue, Label, Project, Team, User, WorkflowState
from linearctl.settings import DEFAULT_ENDPOINT, LinearctlSettings

logger = logging.getLogger(__name__)

ENDPOINT = DEFAULT_ENDPOINT

_ISSUE_FIELDS = """
    id
    identifier
    title
    priority
    estimate
    dueDate
    state { id name type }
    team { id name key }
    cycle { id name number }
    assignee { id name email }
    project { id name }
    labels { nodes { id name } }
"""

_GET_ISSUE = f"""
query GetIssue($id: String!) {{
  issue(id: $id) {{{_ISSUE_FIELDS}  }}
}}
"""

_SEARCH_ISSUES = f"""
query SearchIssues($filter: IssueFilter, $first: Int) {{
  issues(filter: $filter, first: $first) {{
    nodes {{{_ISSUE_FIELDS}    }}
  }}
}}
"""

_ISSUE_LABELS = """
query IssueLabels($id: String!) {
  issue(id: $id) {
    labels { nodes { id name } }
  }
}
"""

_TEAMS_BY_NAME = """
query TeamsByName($name: String!) {
  teams(filter: { name: { eqIgnoreCase: $name } }, first: 1) {
    nodes { id name key }
  }
}
"""

_TEAMS_BY_KEY = """
query TeamsByKey($key: String!) {
  teams(filter: { key: { eq: $key } }, first: 1) {
    nodes { id name key }
  }
}
"""

_USERS_BY_NAME = """
query UsersByName($name: String!) {
  users(filter: { name: { eqIgnoreCase: $name } }) {
    nodes { id name email }
  }
}
"""

_USERS_BY_EMAIL = """
query UsersByEmail($email: String!) {
  users(filter: { email: { eq: $email } }) {
    nodes { id name email }
  }
}
"""

_TEAM_STATES = """
query TeamStates($id: String!) {
  team(id: $id) {
    states { nodes { id name type } }
  }
}
"""

_STATES_BY_NAME = """
query StatesByName($name: String!) {
  workflowStates(filter: { name: { eqIgnoreCase: $name } }, first: 1) {
    nodes { id name type }
  }
}
"""

_LABELS_BY_NAME = """
query LabelsByName($name: String!) {
  issueLabels(filter: { name: { eqIgnoreCase: $name } }, first: 1) {
    nodes { id name }
  }
}
"""

_PROJECTS_BY_NAME = """
query ProjectsByName($name: String!) {
  projects(filter: { name: { eqIgnoreCase: $name } }) {
    nodes {
      id
      name
      teams { nodes { id } }
    }
  }
}
"""

_TEAM_CYCLES = """
query TeamCycles($id: String!) {
  team(id: $id) {
    cycles { nodes { id name number } }
  }
}
"""

_CYCLES_BY_NAME = """
query CyclesByName($name: String!) {
  cycles(filter: { name: { eqIgnoreCase: $name } }, first: 1) {
    nodes { id name number }
  }
}
"""

_CYCLES_BY_NUMBER = """
query CyclesByNumber($number: Float!) {
  cycles(filter: { number: { eq: $number } }, first: 1) {
    nodes { id name number }
  }
}
"""

_UPDATE_ISSUE = """
mutation UpdateIssue($id: String!, $input: IssueUpdateInput!) {
  issueUpdate(id: $id, input: $input) {
    success
  }
}
"""

_CREATE_RELATION = """
mutation CreateIssueRelation($input: IssueRelationCreateInput!) {
  issueRelationCreate(input: $input) {
    success
  }
}
"""

_STATUS_MESSAGES = {
    401: "Authentication failed: your Linear API key is invalid or expired. Get a new one at https://linear.app/settings/api",
    403: "Permission denied: you don't have access to this resource",
    429: "Rate limit exceeded: too many requests, wait a moment and try again",
}


class LinearClient(RemoteClient):
    def __init__(self, settings: LinearctlSettings, http: httpx.AsyncClient | None = None) -> None:
        if not settings.api_key:
            raise RuntimeError("api_key is required")
        self._endpoint = settings.endpoint
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            headers={
                "Authorization": settings.api_key.get_secret_value(),
                "Content-Type": "application/json",
            },
            timeout=settings.timeout,
        )

    async def __aenter__(self) -> "LinearClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _gql(self, query: str, variables: dict | None = None) -> dict:
        try:
            response = await self._http.post(
                self._endpoint,
                json={"query": query, "variables": variables or {}},
            )
        except httpx.HTTPError as exc:
            raise LinearApiError(f"Network error: {exc}") from exc

        if response.status_code in _STATUS_MESSAGES:
            raise LinearApiError(_STATUS_MESSAGES[response.status_code])

        # Linear reports validation problems as HTTP 400 with a GraphQL error body
        if response.status_code != 400:
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise LinearApiError(f"Linear API returned HTTP {response.status_code}") from exc

        invalid = f"Invalid response from Linear (HTTP {response.status_code})"
        try:
            data = response.json()
        except ValueError as exc:
            raise LinearApiError(invalid) from exc
        if not isinstance(data, dict):
            raise LinearApiError(invalid)
        if data.get("errors"):
            raise LinearApiError(f"Linear API error: {data['errors']}", errors=data["errors"])
        if not isinstance(data.get("data"), dict):
            raise LinearApiError(invalid)
        return data["data"]

    # --- node mapping ----------------------------------------------------

    def _issue_from_node(self, node: dict) -> Issue:
        project = node.get("project")
        return Issue(
            id=node["id"],
            identifier=node["identifier"],
            title=node["title"],
            priority=node.get("priority"),
            estimate=node.get("estimate"),
            due_date=node.get("dueDate"),
            state=WorkflowState(**node["state"]) if node.get("state") else None,
            team=Team(**node["team"]) if node.get("team") else None,
            cycle=Cycle(**node["cycle"]) if node.get("cycle") else None,
            assignee=User(**node["assignee"]) if node.get("assignee") else None,
            project=Project(id=project["id"], name=project["name"]) if project else None,
            labels=[Label(**n) for n in node.get("labels", {}).get("nodes", [])],
        )

    # --- reads -----------------------------------------------------------

    async def find_team(self, name_or_key: str) -> Team | None:
        data = await self._gql(_TEAMS_BY_NAME, {"name": name_or_key})
        nodes = data["teams"]["nodes"]
        if not nodes:
            data = await self._gql(_TEAMS_BY_KEY, {"key": name_or_key.upper()})
            nodes = data["teams"]["nodes"]
        return Team(**nodes[0]) if nodes else None

    async def find_user(self, name_or_email: str) -> User | None:
        data = await self._gql(_USERS_BY_NAME, {"name": name_or_email})
        nodes = data["users"]["nodes"]
        if not nodes:
            data = await self._gql(_USERS_BY_EMAIL, {"email": name_or_email})
            nodes = data["users"]["nodes"]
        return User(**nodes[0]) if nodes else None

    async def list_team_states(self, team_id: str) -> list[WorkflowState]:
        data = await self._gql(_TEAM_STATES, {"id": team_id})
        team = data["team"]
        if not team:
            return []
        return [WorkflowState(**n) for n in team["states"]["nodes"]]

    async def find_state(self, name: str, team_id: str | None = None) -> WorkflowState | None:
        if team_id:
            states = await self.list_team_states(team_id)
            return next((s for s in states if s.name.lower() == name.lower()), None)
        data = await self._gql(_STATES_BY_NAME, {"name": name})
        nodes = data["workflowStates"]["nodes"]
        return WorkflowState(**nodes[0]) if nodes else None

    async def find_label(self, name: str) -> Label | None:
        data = await self._gql(_LABELS_BY_NAME, {"name": name})
        nodes = data["issueLabels"]["nodes"]
        return Label(**nodes[0]) if nodes else None

    async def find_project(self, name: str, team_id: str | None = None) -> Project | None:
        data = await self._gql(_PROJECTS_BY_NAME, {"name": name})
        projects = [
            Project(id=n["id"], name=n["name"], team_ids=[t["id"] for t in n.get("teams", {}).get("nodes", [])])
            for n in data["projects"]["nodes"]
        ]
        if team_id:
            projects = [p for p in projects if team_id in p.team_ids]
        return projects[0] if projects else None

    async def find_cycle(self, name_or_number: str, team_id: str | None = None) -> Cycle | None:
        if team_id:
            data = await self._gql(_TEAM_CYCLES, {"id": team_id})
            team = data["team"]
            cycles = [Cycle(**n) for n in team["cycles"]["nodes"]] if team else []
            wanted = name_or_number.lower()
            return next(
                (c for c in cycles if (c.name and c.name.lower() == wanted) or str(c.number) == name_or_number),
                None,
            )
        if name_or_number.isdigit():
            data = await self._gql(_CYCLES_BY_NUMBER, {"number": int(name_or_number)})
        else:
            data = await self._gql(_CYCLES_BY_NAME, {"name": name_or_number})
        nodes = data["cycles"]["nodes"]
        return Cycle(**nodes[0]) if nodes else None

    async def get_issue(self, identifier: str) -> Issue | None:
        try:
            data = await self._gql(_GET_ISSUE, {"id": identifier})
        except LinearApiError as exc:
            if exc.not_found:
                return None
            raise
        node = data["issue"]
        return self._issue_from_node(node) if node else None

    async def search_issues(self, filter: dict[str, Any], limit: int) -> list[Issue]:
        logger.debug("Searching issues filter=%s first=%d", filter, limit)
        data = await self._gql(_SEARCH_ISSUES, {"filter": filter, "first": limit})
        return [self._issue_from_node(n) for n in data["issues"]["nodes"]]

    async def get_issue_labels(self, issue_id: str) -> list[Label]:
        data = await self._gql(_ISSUE_LABELS, {"id": issue_id})
        node = data["issue"]
        if not node:
            raise LinearApiError(f"Issue '{issue_id}' not found in Linear")
        return [Label(**n) for n in node["labels"]["nodes"]]

    # --- writes ----------------------------------------------------------

    async def update_issue(self, issue_id: str, payload: dict[str, Any]) -> bool:
        data = await self._gql(_UPDATE_ISSUE, {"id": issue_id, "input": payload})
        return bool(data["issueUpdate"]["success"])

    async def create_issue_relation(self, issue_id: str, related_id: str, type: str) -> bool:
        data = await self._gql(
            _CREATE_RELATION,
            {"input": {"issueId": issue_id, "relatedIssueId": related_id, "type": type}},
        )
        return bool(data["issueRelationCreate"]["success"])
