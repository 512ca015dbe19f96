"""Shared test fixtures: an in-memory RemoteClient and sample Linear entities."""

from typing import Any

import pytest

from linearctl.api.base import RemoteClient
from linearctl.models import Cycle, Issue, Label, Project, Team, User, WorkflowState

ENG = Team(id="team-eng", name="Engineering", key="ENG")
DES = Team(id="team-des", name="Design", key="DES")

TODO_STATE = WorkflowState(id="state-todo", name="Todo", type="unstarted")
IN_PROGRESS = WorkflowState(id="state-progress", name="In Progress", type="started")
DONE = WorkflowState(id="state-done", name="Done", type="completed")
CANCELED = WorkflowState(id="state-canceled", name="Canceled", type="canceled")
DUPLICATE = WorkflowState(id="state-duplicate", name="Duplicate", type="canceled")

BUG = Label(id="bug-id", name="bug")
URGENT = Label(id="label-urgent", name="urgent")
FEATURE = Label(id="feature-id", name="feature")

JANE = User(id="user-jane", name="Jane Doe", email="jane@example.com")
JOHN = User(id="user-john", name="John Smith", email="john@example.com")

CYCLE_5 = Cycle(id="cycle-5", name="Cycle 5", number=5)
CYCLE_6 = Cycle(id="cycle-6", name=None, number=6)


def make_issue(number: int, labels: list[Label] | None = None, **overrides: Any) -> Issue:
    values: dict[str, Any] = {
        "id": f"issue-{number}",
        "identifier": f"ENG-{number}",
        "title": f"Issue {number}",
        "priority": 3,
        "state": TODO_STATE,
        "team": ENG,
        "labels": labels or [],
    }
    values.update(overrides)
    return Issue(**values)


class FakeClient(RemoteClient):
    """In-memory RemoteClient recording every mutation."""

    def __init__(self) -> None:
        self.teams: list[Team] = [ENG, DES]
        self.users: list[User] = [JANE, JOHN]
        self.states: dict[str, list[WorkflowState]] = {ENG.id: [TODO_STATE, IN_PROGRESS, DONE, CANCELED, DUPLICATE]}
        self.labels: list[Label] = [BUG, URGENT, FEATURE]
        self.projects: list[Project] = [
            Project(id="project-q4", name="Q4 Roadmap", team_ids=[ENG.id]),
            Project(id="project-brand", name="Brand", team_ids=[DES.id]),
        ]
        self.cycles: dict[str, list[Cycle]] = {ENG.id: [CYCLE_5, CYCLE_6]}
        self.issues: dict[str, Issue] = {}
        self.search_results: list[Issue] = []

        # Scripted update outcomes per issue id: True/False or an exception to raise
        self.update_outcomes: dict[str, list[bool | Exception]] = {}

        self.searches: list[tuple[dict[str, Any], int]] = []
        self.label_reads: list[str] = []
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.relations: list[tuple[str, str, str]] = []
        self.closed = False

    def add_issues(self, *issues: Issue) -> None:
        for issue in issues:
            self.issues[issue.identifier] = issue

    async def aclose(self) -> None:
        self.closed = True

    async def find_team(self, name_or_key: str) -> Team | None:
        return next(
            (t for t in self.teams if t.name.lower() == name_or_key.lower() or t.key == name_or_key.upper()),
            None,
        )

    async def find_user(self, name_or_email: str) -> User | None:
        by_name = next((u for u in self.users if u.name.lower() == name_or_email.lower()), None)
        return by_name or next((u for u in self.users if u.email == name_or_email), None)

    async def find_state(self, name: str, team_id: str | None = None) -> WorkflowState | None:
        pool = self.states.get(team_id, []) if team_id else [s for states in self.states.values() for s in states]
        return next((s for s in pool if s.name.lower() == name.lower()), None)

    async def find_label(self, name: str) -> Label | None:
        return next((label for label in self.labels if label.name.lower() == name.lower()), None)

    async def find_project(self, name: str, team_id: str | None = None) -> Project | None:
        matches = [p for p in self.projects if p.name.lower() == name.lower()]
        if team_id:
            matches = [p for p in matches if team_id in p.team_ids]
        return matches[0] if matches else None

    async def find_cycle(self, name_or_number: str, team_id: str | None = None) -> Cycle | None:
        pool = self.cycles.get(team_id, []) if team_id else [c for cycles in self.cycles.values() for c in cycles]
        return next(
            (
                c
                for c in pool
                if (c.name and c.name.lower() == name_or_number.lower()) or str(c.number) == name_or_number
            ),
            None,
        )

    async def get_issue(self, identifier: str) -> Issue | None:
        if identifier in self.issues:
            return self.issues[identifier]
        return next((i for i in self.issues.values() if i.id == identifier), None)

    async def search_issues(self, filter: dict[str, Any], limit: int) -> list[Issue]:
        self.searches.append((filter, limit))
        return self.search_results[:limit]

    async def get_issue_labels(self, issue_id: str) -> list[Label]:
        self.label_reads.append(issue_id)
        issue = await self.get_issue(issue_id)
        return list(issue.labels) if issue else []

    async def list_team_states(self, team_id: str) -> list[WorkflowState]:
        return list(self.states.get(team_id, []))

    async def update_issue(self, issue_id: str, payload: dict[str, Any]) -> bool:
        self.updates.append((issue_id, payload))
        outcomes = self.update_outcomes.get(issue_id)
        if not outcomes:
            return True
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def create_issue_relation(self, issue_id: str, related_id: str, type: str) -> bool:
        self.relations.append((issue_id, related_id, type))
        return True


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_client() -> FakeClient:
    client = FakeClient()
    client.add_issues(
        make_issue(1, labels=[BUG], cycle=CYCLE_5, assignee=JANE),
        make_issue(2, labels=[BUG, URGENT]),
        make_issue(3),
    )
    return client


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
