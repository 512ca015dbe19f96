"""linearctl CLI: batch and single issue updates."""

import asyncio
import json
from typing import Annotated, NoReturn

import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

from linearctl import reporter
from linearctl.api.base import RemoteClient
from linearctl.api.linear import LinearClient
from linearctl.errors import LinearctlError, SelectorError
from linearctl.executor import BatchExecutor
from linearctl.logging import setup_logging, stderr_console
from linearctl.payload import PayloadBuilder, UpdateFlags
from linearctl.query import supported_query_keys
from linearctl.resolver import EntityResolver
from linearctl.retry import RetryConfig
from linearctl.selector import WorkingSetSelector
from linearctl.settings import LinearctlSettings, get_settings

app = typer.Typer(help="linearctl: bulk and single issue updates for Linear", no_args_is_help=True)

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", help="Profile name from ~/.config/linearctl/config.toml"),
]
JsonOpt = Annotated[bool, typer.Option("--json", help="Output as JSON")]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Log lookups and retries to stderr")]

# Update flags shared by issue-batch and issue-update
StateOpt = Annotated[str | None, typer.Option("--state", "-s", help="State name or ID")]
AssigneeOpt = Annotated[str | None, typer.Option("--assignee", "-a", help='Assignee name, email or ID ("none" to clear)')]
PriorityOpt = Annotated[
    int | None,
    typer.Option("--priority", "-p", min=0, max=4, help="Priority (0=None, 1=Urgent, 2=High, 3=Normal, 4=Low)"),
]
EstimateOpt = Annotated[int | None, typer.Option("--estimate", "-e", help="Estimate value")]
DueDateOpt = Annotated[str | None, typer.Option("--due-date", help='Due date (YYYY-MM-DD) or "none" to clear')]
ProjectOpt = Annotated[str | None, typer.Option("--project", help='Project name or ID ("none" to clear)')]
CycleOpt = Annotated[str | None, typer.Option("--cycle", "-c", help='Cycle name, number or ID ("none" to clear)')]
ParentOpt = Annotated[str | None, typer.Option("--parent", help='Parent issue ID ("none" to clear)')]
LabelsOpt = Annotated[str | None, typer.Option("--labels", "-l", help='Replace all labels (comma-separated, "none" to clear)')]
AddLabelsOpt = Annotated[str | None, typer.Option("--add-labels", help="Add labels, preserving existing ones")]
RemoveLabelsOpt = Annotated[str | None, typer.Option("--remove-labels", help="Remove labels, preserving others")]
DelegateOpt = Annotated[
    str | None, typer.Option("--delegate", help='Comma-separated delegate emails/names, or "none" to clear')
]
LinksOpt = Annotated[str | None, typer.Option("--links", help="Comma-separated issue IDs to link (e.g. ENG-123,ENG-124)")]
DuplicateOfOpt = Annotated[
    str | None, typer.Option("--duplicate-of", help="Mark as duplicate of issue (creates the relation and sets state)")
]


# ---------------------------------------------------------------------------
# Client factory
# ---------------------------------------------------------------------------


def get_client(settings: LinearctlSettings) -> RemoteClient:
    return LinearClient(settings)


def _retry_config(settings: LinearctlSettings) -> RetryConfig:
    return RetryConfig(max_retries=settings.max_retries, base_delay=settings.retry_base_delay)


# ---------------------------------------------------------------------------
# Error output
# ---------------------------------------------------------------------------


def _fail(message: str, as_json: bool) -> NoReturn:
    if as_json:
        typer.echo(json.dumps({"error": message}, indent=2))
    else:
        rprint(f"[red]✗ {escape(message)}[/red]")
    raise typer.Exit(1)


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(err["msg"].removeprefix("Value error, ") for err in exc.errors())


def _make_flags(as_json: bool, **values: object) -> UpdateFlags:
    try:
        return UpdateFlags(**values)
    except ValidationError as exc:
        _fail(_validation_message(exc), as_json)


def _print_no_changes(as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps({"message": "No changes provided", "success": False}, indent=2))
    else:
        rprint("[yellow]No changes provided[/yellow]")


# ---------------------------------------------------------------------------
# Async command bodies
# ---------------------------------------------------------------------------


async def _run_batch(
    client: RemoteClient,
    retry: RetryConfig,
    flags: UpdateFlags,
    ids: str | None,
    query: str | None,
    limit: int,
    dry_run: bool,
    as_json: bool,
) -> None:
    try:
        resolver = EntityResolver(client)
        issues = await WorkingSetSelector(client, resolver).select(ids=ids, query=query, limit=limit)
        plan = await PayloadBuilder(client, resolver).build(flags, issues[0])

        if plan.is_empty:
            _print_no_changes(as_json)
            return

        if dry_run:
            if as_json:
                typer.echo(json.dumps(reporter.dry_run_to_dict(issues, plan), indent=2))
            else:
                reporter.print_dry_run(issues, flags, plan)
            return

        with Progress(
            TextColumn("Updating"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("issues"),
            console=stderr_console,
            disable=as_json,
        ) as progress:
            task = progress.add_task("update", total=len(issues))
            executor = BatchExecutor(client, retry, on_progress=lambda issue, ok: progress.advance(task))
            result = await executor.execute(issues, plan)
    finally:
        await client.aclose()

    if as_json:
        typer.echo(reporter.result_to_json(result, total=len(issues)))
    else:
        reporter.print_summary(result)


async def _run_update(
    client: RemoteClient,
    retry: RetryConfig,
    flags: UpdateFlags,
    issue_id: str,
    as_json: bool,
) -> None:
    try:
        issue = await client.get_issue(issue_id)
        if issue is None:
            raise SelectorError(f"Issue {issue_id} not found")

        plan = await PayloadBuilder(client).build(flags, issue)
        if plan.is_empty:
            _print_no_changes(as_json)
            return

        if not as_json:
            rprint(f"[dim]Updating issue {issue.identifier}...[/dim]")
        await BatchExecutor(client, retry).apply(issue, plan)
    finally:
        await client.aclose()

    updated = plan.updated_fields()
    if as_json:
        typer.echo(
            json.dumps({"id": issue.id, "identifier": issue.identifier, "success": True, "updated": updated}, indent=2)
        )
    else:
        rprint(f"[green]✓[/green] Issue [bold]{issue.identifier}[/bold] updated successfully!")
        rprint(f"[dim]Updated: {', '.join(updated)}[/dim]")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("issue-batch")
def issue_batch(
    ids: Annotated[
        str | None, typer.Option("--ids", help="Comma-separated issue IDs (e.g. ENG-123,ENG-124)")
    ] = None,
    query: Annotated[
        str | None, typer.Option("--query", "-q", help='Query selecting issues (e.g. "state:Todo team:ENG")')
    ] = None,
    limit: Annotated[
        int, typer.Option("--limit", help="Maximum issues to update with --query (0 = max page size of 250)")
    ] = 50,
    state: StateOpt = None,
    assignee: AssigneeOpt = None,
    priority: PriorityOpt = None,
    estimate: EstimateOpt = None,
    due_date: DueDateOpt = None,
    project: ProjectOpt = None,
    cycle: CycleOpt = None,
    parent: ParentOpt = None,
    labels: LabelsOpt = None,
    add_labels: AddLabelsOpt = None,
    remove_labels: RemoveLabelsOpt = None,
    delegate: DelegateOpt = None,
    links: LinksOpt = None,
    duplicate_of: DuplicateOfOpt = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Preview changes without updating")] = False,
    as_json: JsonOpt = False,
    profile: ProfileOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Update multiple issues at once, selected by --ids or --query."""
    setup_logging(verbose)

    if ids and query:
        _fail("Use either --ids or --query, not both", as_json)
    if not ids and not query:
        _fail("Either --ids or --query is required", as_json)

    flags = _make_flags(
        as_json,
        state=state,
        assignee=assignee,
        priority=priority,
        estimate=estimate,
        due_date=due_date,
        project=project,
        cycle=cycle,
        parent=parent,
        labels=labels,
        add_labels=add_labels,
        remove_labels=remove_labels,
        delegate=delegate,
        links=links,
        duplicate_of=duplicate_of,
    )
    if flags.is_empty():
        _fail("At least one update field is required (e.g. --cycle, --state, --assignee)", as_json)

    settings = get_settings(profile=profile)
    client = get_client(settings)
    try:
        asyncio.run(_run_batch(client, _retry_config(settings), flags, ids, query, limit, dry_run, as_json))
    except LinearctlError as exc:
        _fail(str(exc), as_json)


@app.command("issue-update")
def issue_update(
    issue_id: Annotated[str, typer.Argument(help="Issue ID (e.g. ENG-123)")],
    title: Annotated[str | None, typer.Option("--title", "-t", help="Issue title")] = None,
    description: Annotated[
        str | None, typer.Option("--description", "-d", help="Issue description (markdown supported)")
    ] = None,
    state: StateOpt = None,
    assignee: AssigneeOpt = None,
    priority: PriorityOpt = None,
    estimate: EstimateOpt = None,
    due_date: DueDateOpt = None,
    project: ProjectOpt = None,
    cycle: CycleOpt = None,
    parent: ParentOpt = None,
    labels: LabelsOpt = None,
    add_labels: AddLabelsOpt = None,
    remove_labels: RemoveLabelsOpt = None,
    delegate: DelegateOpt = None,
    links: LinksOpt = None,
    duplicate_of: DuplicateOfOpt = None,
    as_json: JsonOpt = False,
    profile: ProfileOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Update a single issue."""
    setup_logging(verbose)

    flags = _make_flags(
        as_json,
        title=title,
        description=description,
        state=state,
        assignee=assignee,
        priority=priority,
        estimate=estimate,
        due_date=due_date,
        project=project,
        cycle=cycle,
        parent=parent,
        labels=labels,
        add_labels=add_labels,
        remove_labels=remove_labels,
        delegate=delegate,
        links=links,
        duplicate_of=duplicate_of,
    )
    if flags.is_empty():
        _print_no_changes(as_json)
        return

    settings = get_settings(profile=profile)
    client = get_client(settings)
    try:
        asyncio.run(_run_update(client, _retry_config(settings), flags, issue_id, as_json))
    except LinearctlError as exc:
        _fail(str(exc), as_json)


@app.command("query-keys")
def query_keys(as_json: JsonOpt = False) -> None:
    """List the keys understood by --query."""
    keys = supported_query_keys()
    if as_json:
        typer.echo(json.dumps(keys))
        return
    rprint("Supported query keys: " + ", ".join(f"[cyan]{k}[/cyan]" for k in keys))
    rprint('[dim]Example: lc issue-batch --query "state:Todo team:ENG priority:1" --cycle 5[/dim]')
