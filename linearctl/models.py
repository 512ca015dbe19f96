"""Shared pydantic models: the contract between the API client and the batch engine."""

from pydantic import BaseModel, ConfigDict, Field


class Team(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    key: str  # ENG


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str | None = None


class WorkflowState(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: str | None = None  # backlog | unstarted | started | completed | canceled


class Label(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class Project(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    team_ids: list[str] = []


class Cycle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None  # Linear cycles are often unnamed
    number: int | None = None


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str  # Linear UUID
    identifier: str  # ENG-123
    title: str
    priority: int | None = None
    estimate: float | None = None
    due_date: str | None = None
    state: WorkflowState | None = None
    team: Team | None = None
    cycle: Cycle | None = None
    assignee: User | None = None
    project: Project | None = None
    labels: list[Label] = []

    @property
    def label_ids(self) -> list[str]:
        return [label.id for label in self.labels]


class QueryFilter(BaseModel):
    """Flat AND-only filter produced by the query parser."""

    state: str | None = None
    team: str | None = None
    assignee: str | None = None
    label: str | None = None
    project: str | None = None
    cycle: str | None = None
    priority: int | None = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class BatchFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str  # human identifier, ENG-123
    error: str


class BatchResult(BaseModel):
    """Aggregate outcome of one batch run; one entry per issue in the working set."""

    succeeded: list[str] = Field(default_factory=list)
    failed: list[BatchFailure] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)
