"""Tests for linearctl.reporter."""

import json

import pytest
from conftest import BUG, CYCLE_5, JANE, make_issue

from linearctl import reporter
from linearctl.models import BatchFailure, BatchResult
from linearctl.payload import PlannedRelation, UpdateFlags, UpdatePlan


class TestResultJson:
    def test_shape(self) -> None:
        result = BatchResult(succeeded=["ENG-1"], failed=[BatchFailure(id="ENG-2", error="Update failed")])
        assert json.loads(reporter.result_to_json(result, total=2)) == {
            "succeeded": ["ENG-1"],
            "failed": [{"id": "ENG-2", "error": "Update failed"}],
            "total": 2,
        }

    def test_empty_lists(self) -> None:
        assert reporter.result_to_dict(BatchResult(), total=0) == {"succeeded": [], "failed": [], "total": 0}


class TestPrintSummary:
    def test_successes_and_failures(self, capsys: pytest.CaptureFixture[str]) -> None:
        result = BatchResult(
            succeeded=["ENG-1", "ENG-3"],
            failed=[BatchFailure(id="ENG-2", error="Rate limit exceeded [429]")],
        )
        reporter.print_summary(result)
        out = capsys.readouterr().out

        assert "Batch Update Summary" in out
        assert "Successfully updated: 2 issue(s)" in out
        assert "Failed: 1 issue(s)" in out
        assert "ENG-2: Rate limit exceeded [429]" in out

    def test_no_failures_section_when_clean(self, capsys: pytest.CaptureFixture[str]) -> None:
        reporter.print_summary(BatchResult(succeeded=["ENG-1"]))
        out = capsys.readouterr().out
        assert "Failed" not in out


class TestDescribeUpdates:
    def test_set_and_clear(self) -> None:
        flags = UpdateFlags(cycle="5", assignee="none", add_labels="bug", due_date="none", priority=1)
        assert reporter.describe_updates(flags) == [
            "Clear assignee",
            "Set priority to: 🔴 Urgent (1)",
            "Clear due date",
            "Set cycle to: 5",
            "Add labels: bug",
        ]

    def test_relations(self) -> None:
        flags = UpdateFlags(links="ENG-2", duplicate_of="ENG-3")
        assert reporter.describe_updates(flags) == ["Link issues: ENG-2", "Mark as duplicate of: ENG-3"]


class TestDryRun:
    def test_dict_per_issue_payload(self) -> None:
        issues = [make_issue(1, labels=[BUG], cycle=CYCLE_5, assignee=JANE), make_issue(2)]
        plan = UpdatePlan(
            fields={"cycleId": "cycle-6"},
            add_label_ids=["label-urgent"],
            relations=[PlannedRelation(related_id="issue-9", related_key="ENG-9", type="related")],
        )
        data = reporter.dry_run_to_dict(issues, plan)

        assert data["dryRun"] is True
        assert data["total"] == 2
        first, second = data["issues"]
        assert first["current"]["cycle"] == 5
        assert first["current"]["assignee"] == "Jane Doe"
        assert first["changes"] == {"cycleId": "cycle-6", "labelIds": ["bug-id", "label-urgent"]}
        assert second["changes"] == {"cycleId": "cycle-6", "labelIds": ["label-urgent"]}
        assert first["relations"] == [{"type": "related", "issue": "ENG-9"}]

    def test_duplicate_target_shows_no_state_change(self) -> None:
        plan = UpdatePlan(
            fields={"stateId": "state-duplicate"},
            relations=[PlannedRelation(related_id="issue-1", related_key="ENG-1", type="duplicate")],
        )
        data = reporter.dry_run_to_dict([make_issue(1), make_issue(2)], plan)
        assert [i["changes"] for i in data["issues"]] == [{}, {"stateId": "state-duplicate"}]

    def test_print(self, capsys: pytest.CaptureFixture[str]) -> None:
        issues = [make_issue(1)]
        reporter.print_dry_run(issues, UpdateFlags(cycle="none"), UpdatePlan(fields={"cycleId": None}))
        out = capsys.readouterr().out

        assert "DRY RUN - No changes will be made" in out
        assert "Clear cycle" in out
        assert "Issues to update (1)" in out
