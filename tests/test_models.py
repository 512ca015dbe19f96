"""Tests for linearctl.models."""

import pytest
from conftest import BUG, URGENT, make_issue

from linearctl.errors import LinearApiError
from linearctl.models import BatchFailure, BatchResult, Issue, QueryFilter, Team


def test_issue_frozen() -> None:
    issue = make_issue(1)
    with pytest.raises(Exception):  # ValidationError or TypeError depending on pydantic version
        issue.title = "changed"  # type: ignore[misc]


def test_issue_defaults() -> None:
    issue = Issue(id="1", identifier="ENG-1", title="Test")
    assert issue.priority is None
    assert issue.team is None
    assert issue.cycle is None
    assert issue.labels == []


def test_label_ids() -> None:
    assert make_issue(1, labels=[BUG, URGENT]).label_ids == ["bug-id", "label-urgent"]


def test_team_frozen() -> None:
    team = Team(id="t1", name="Engineering", key="ENG")
    with pytest.raises(Exception):
        team.key = "OPS"  # type: ignore[misc]


def test_query_filter_empty() -> None:
    assert QueryFilter().is_empty()
    assert not QueryFilter(priority=0).is_empty()


def test_batch_result_total() -> None:
    result = BatchResult(succeeded=["ENG-1"], failed=[BatchFailure(id="ENG-2", error="boom")])
    assert result.total == 2


def test_batch_results_do_not_share_lists() -> None:
    first, second = BatchResult(), BatchResult()
    first.succeeded.append("ENG-1")
    assert second.succeeded == []


def test_api_error_not_found() -> None:
    assert LinearApiError("x", errors=[{"message": "Entity not found: Issue"}]).not_found
    assert not LinearApiError("x", errors=[{"message": "Internal error"}]).not_found
    assert not LinearApiError("x").not_found
