"""Abstract remote capability consumed by the batch engine.

Lookups return ``None`` (or an empty list) for "not found" and raise only for
transport, authentication or API failures.
"""

from abc import ABC, abstractmethod
from typing import Any

from linearctl.models import Cycle, Issue, Label, Project, Team, User, WorkflowState


class RemoteClient(ABC):
    async def aclose(self) -> None:
        """Release transport resources. No-op unless the client holds connections."""

    # --- reads -----------------------------------------------------------

    @abstractmethod
    async def find_team(self, name_or_key: str) -> Team | None: ...

    @abstractmethod
    async def find_user(self, name_or_email: str) -> User | None: ...

    @abstractmethod
    async def find_state(self, name: str, team_id: str | None = None) -> WorkflowState | None: ...

    @abstractmethod
    async def find_label(self, name: str) -> Label | None: ...

    @abstractmethod
    async def find_project(self, name: str, team_id: str | None = None) -> Project | None: ...

    @abstractmethod
    async def find_cycle(self, name_or_number: str, team_id: str | None = None) -> Cycle | None: ...

    @abstractmethod
    async def get_issue(self, identifier: str) -> Issue | None: ...

    @abstractmethod
    async def search_issues(self, filter: dict[str, Any], limit: int) -> list[Issue]: ...

    @abstractmethod
    async def get_issue_labels(self, issue_id: str) -> list[Label]: ...

    @abstractmethod
    async def list_team_states(self, team_id: str) -> list[WorkflowState]: ...

    # --- writes ----------------------------------------------------------

    @abstractmethod
    async def update_issue(self, issue_id: str, payload: dict[str, Any]) -> bool: ...

    @abstractmethod
    async def create_issue_relation(self, issue_id: str, related_id: str, type: str) -> bool: ...
