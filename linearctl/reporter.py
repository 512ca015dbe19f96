"""Render batch results and dry-run previews as JSON or rich terminal output."""

import json
from typing import Any

from rich import print as rprint
from rich.markup import escape
from rich.table import Table

from linearctl.models import BatchResult, Issue
from linearctl.payload import NONE_SENTINEL, UpdateFlags, UpdatePlan

_PRIORITY_LABEL = {0: "— (No priority)", 1: "🔴 Urgent", 2: "🟠 High", 3: "🟡 Medium", 4: "🟢 Low"}

_RULE = "─" * 80


def result_to_dict(result: BatchResult, total: int) -> dict[str, Any]:
    return {
        "succeeded": list(result.succeeded),
        "failed": [{"id": f.id, "error": f.error} for f in result.failed],
        "total": total,
    }


def result_to_json(result: BatchResult, total: int) -> str:
    return json.dumps(result_to_dict(result, total), indent=2)


def print_summary(result: BatchResult) -> None:
    rprint("")
    rprint("[bold]Batch Update Summary[/bold]")
    rprint(f"[dim]{_RULE}[/dim]")

    if result.succeeded:
        rprint(f"[green]✓[/green] Successfully updated: {len(result.succeeded)} issue(s)")

    if result.failed:
        rprint(f"[red]✗ Failed: {len(result.failed)} issue(s)[/red]")
        rprint("")
        rprint("[bold]Failed issues:[/bold]")
        for failure in result.failed:
            rprint(f"  • [cyan]{failure.id}[/cyan]: {escape(failure.error)}")

    rprint("")


def describe_updates(flags: UpdateFlags) -> list[str]:
    """Human-readable list of the changes the flags ask for."""
    updates: list[str] = []

    def set_or_clear(value: str | None, what: str) -> None:
        if value is None:
            return
        if value == NONE_SENTINEL or not value.strip():
            updates.append(f"Clear {what}")
        else:
            updates.append(f"Set {what} to: {value}")

    if flags.title is not None:
        updates.append(f"Set title to: {flags.title}")
    if flags.description is not None:
        updates.append("Set description")
    if flags.state is not None:
        updates.append(f"Set state to: {flags.state}")
    set_or_clear(flags.assignee, "assignee")
    if flags.priority is not None:
        updates.append(f"Set priority to: {_PRIORITY_LABEL.get(flags.priority, flags.priority)} ({flags.priority})")
    if flags.estimate is not None:
        updates.append(f"Set estimate to: {flags.estimate}")
    if flags.due_date is not None:
        updates.append("Clear due date" if flags.due_date == NONE_SENTINEL else f"Set due date to: {flags.due_date}")
    set_or_clear(flags.project, "project")
    set_or_clear(flags.cycle, "cycle")
    set_or_clear(flags.parent, "parent")
    set_or_clear(flags.labels, "labels")
    if flags.add_labels is not None:
        updates.append(f"Add labels: {flags.add_labels}")
    if flags.remove_labels is not None:
        updates.append(f"Remove labels: {flags.remove_labels}")
    set_or_clear(flags.delegate, "delegates")
    if flags.links is not None:
        updates.append(f"Link issues: {flags.links}")
    if flags.duplicate_of is not None:
        updates.append(f"Mark as duplicate of: {flags.duplicate_of}")

    return updates


def current_values(issue: Issue) -> dict[str, Any]:
    return {
        "state": issue.state.name if issue.state else None,
        "assignee": issue.assignee.name if issue.assignee else None,
        "priority": issue.priority,
        "cycle": issue.cycle.number if issue.cycle else None,
        "project": issue.project.name if issue.project else None,
        "dueDate": issue.due_date,
        "labels": [label.name for label in issue.labels],
    }


def dry_run_to_dict(issues: list[Issue], plan: UpdatePlan) -> dict[str, Any]:
    return {
        "dryRun": True,
        "total": len(issues),
        "issues": [
            {
                "id": issue.identifier,
                "title": issue.title,
                "current": current_values(issue),
                "changes": plan.payload_for(issue.label_ids, issue_id=issue.id),
                "relations": [{"type": r.type, "issue": r.related_key} for r in plan.relations],
            }
            for issue in issues
        ],
    }


def _format_change(key: str, value: Any) -> str:
    if value is None:
        return f"{key}: (clear)"
    if isinstance(value, list):
        return f"{key}: [{', '.join(map(str, value))}]" if value else f"{key}: []"
    return f"{key}: {value}"


def _format_current(issue: Issue) -> str:
    cycle = f"Cycle {issue.cycle.number}" if issue.cycle else "No cycle"
    state = issue.state.name if issue.state else "Unknown state"
    assignee = issue.assignee.name if issue.assignee else "Unassigned"
    labels = ", ".join(label.name for label in issue.labels) or "no labels"
    return f"{cycle} | {state} | {assignee} | {labels}"


def print_dry_run(issues: list[Issue], flags: UpdateFlags, plan: UpdatePlan) -> None:
    rprint("")
    rprint("[bold yellow]DRY RUN - No changes will be made[/bold yellow]")
    rprint(f"[dim]{_RULE}[/dim]")
    rprint("")

    rprint("[bold]Updates to apply:[/bold]")
    for update in describe_updates(flags):
        rprint(f"  • {escape(update)}")
    rprint("")

    table = Table(title=f"Issues to update ({len(issues)})")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Current", style="dim")
    table.add_column("Changes")

    for issue in issues:
        changes = [_format_change(k, v) for k, v in plan.payload_for(issue.label_ids, issue_id=issue.id).items()]
        changes += [f"{r.type}: {r.related_key}" for r in plan.relations]
        table.add_row(issue.identifier, escape(issue.title), escape(_format_current(issue)), escape("\n".join(changes)))

    rprint(table)
