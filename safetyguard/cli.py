"""SafetyGuard CLI.

Commands:
- stores: List the store catalog, optionally filtered by name
- sites: Show a store's sites as a role sees them on a given day
- dashboard: Monitoring view (statistics, role coverage, high-risk list)
- summary: AI daily risk summary for a store and day

SITE/LOG data is read from a JSON snapshot: {"sites": [...], "logs": [...]}.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from safetyguard.aggregation.engine import logs_for_date
from safetyguard.catalog.stores import get_store, group_by_category, search_stores
from safetyguard.config import get_config
from safetyguard.core.logging import configure_logging
from safetyguard.errors import SyncError
from safetyguard.intelligence.ai_service import SafetyAI
from safetyguard.lifecycle.engine import TemporalKind, compute_temporal_status, sort_for_display
from safetyguard.models import FIELD_ROLES, Role, StoreCategory
from safetyguard.session.context import GateState, SessionContext
from safetyguard.session.scope import ScopedSession
from safetyguard.sync.memory import InMemorySyncBackend

app = typer.Typer(
    name="safetyguard",
    help="SafetyGuard - construction site safety inspections for retail stores",
    no_args_is_help=True,
)

console = Console()

_STATUS_STYLE = {
    TemporalKind.URGENT: "yellow",
    TemporalKind.ACTIVE: "blue",
    TemporalKind.EXPIRED: "dim",
}
_RISK_STYLE = {"NORMAL": "green", "CAUTION": "yellow", "WARNING": "bold red"}


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    """Configure logging before any command runs."""
    configure_logging("DEBUG" if verbose else None)


def _parse_day(value: str | None) -> date:
    if not value:
        return datetime.now(get_config().lifecycle.tzinfo).date()
    try:
        return date.fromisoformat(value)
    except ValueError:
        console.print(f"[red]Invalid date '{value}' (expected YYYY-MM-DD)[/red]")
        raise typer.Exit(1)


def _open_scope(snapshot: Path, store_id: str, role: Role) -> ScopedSession:
    store = get_store(store_id)
    if store is None:
        console.print(f"[red]Unknown store: {store_id}[/red]")
        raise typer.Exit(1)
    try:
        backend = InMemorySyncBackend.from_file(snapshot)
    except SyncError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    state = GateState.MONITORING if role == Role.SUPPORT else GateState.FIELD_WORK
    context = SessionContext(state=state, app_unlocked=True, active_store=store, active_role=role)
    return ScopedSession(backend, context)


@app.command()
def stores(search: str = typer.Option("", "--search", "-s", help="Filter by store name")):
    """List stores grouped by category."""
    matches = search_stores(search)
    if not matches:
        console.print("[yellow]No stores found.[/yellow]")
        return

    titles = {StoreCategory.DEPARTMENT: "Department stores", StoreCategory.OUTLET: "Outlets"}
    for category, group in group_by_category(matches).items():
        if not group:
            continue
        table = Table(title=titles[category])
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        for store in group:
            table.add_row(store.id, store.name)
        console.print(table)


@app.command()
def sites(
    snapshot: Path = typer.Argument(..., help="JSON snapshot file"),
    store_id: str = typer.Option(..., "--store", help="Store ID"),
    as_of: str | None = typer.Option(None, "--as-of", help="Reference day (YYYY-MM-DD)"),
    role: Role = typer.Option(Role.SUPPORT, "--role", help="Role whose view to show"),
):
    """Show sites with their computed status, as the given role sees them."""
    day = _parse_day(as_of)
    scope = _open_scope(snapshot, store_id, role)
    visible = sort_for_display(scope.visible_sites(day), day)

    table = Table(title=f"Sites ({role.capability.label}, {day.isoformat()})")
    table.add_column("Floor")
    table.add_column("Name", style="bold")
    table.add_column("Department")
    table.add_column("Period")
    table.add_column("Status")
    for site in visible:
        status = compute_temporal_status(site, day)
        table.add_row(
            site.floor_label,
            site.name,
            site.department,
            f"{site.start_date} ~ {site.end_date}",
            f"[{_STATUS_STYLE[status.kind]}]{status.label}[/{_STATUS_STYLE[status.kind]}]",
        )
    console.print(table)
    if not visible:
        console.print("[yellow]No sites in progress.[/yellow]")


@app.command()
def dashboard(
    snapshot: Path = typer.Argument(..., help="JSON snapshot file"),
    store_id: str = typer.Option(..., "--store", help="Store ID"),
    selected: str | None = typer.Option(None, "--date", help="Day to inspect (YYYY-MM-DD)"),
    as_of: str | None = typer.Option(None, "--as-of", help="Today for status badges"),
):
    """Monitoring view for one store and day."""
    day = _parse_day(selected)
    today = _parse_day(as_of)
    scope = _open_scope(snapshot, store_id, Role.SUPPORT)
    view = scope.monitoring_view(day, today)
    stats = view.statistics

    console.print(f"[bold]Monitoring {day.isoformat()}[/bold]")
    console.print(
        f"  Completion: {stats.completion_percent}%  "
        f"Facility {stats.facility_checks} / Safety {stats.safety_checks} / Sales {stats.sales_checks}  "
        f"[red]Warnings: {stats.warning_count}[/red]"
    )

    table = Table(title="Sites")
    table.add_column("Site", style="bold")
    table.add_column("Status")
    for role in FIELD_ROLES:
        table.add_column(role.capability.short_label)
    table.add_column("Work")
    for overview in view.overviews:
        chips = []
        for role in FIELD_ROLES:
            log = overview.role_status.get(role)
            if log is None:
                chips.append("[dim]-[/dim]")
            else:
                style = _RISK_STYLE[log.risk_level.value]
                chips.append(f"[{style}]{log.risk_level.value}[/{style}]")
        table.add_row(
            overview.site.name,
            overview.temporal_status.label,
            *chips,
            overview.work_type or "",
        )
    console.print(table)

    tally = view.failure_tally
    console.print(
        f"Failed checks: PPE {tally.ppe}, fire safety {tally.fire_safety}, "
        f"electrical {tally.electrical}, environment {tally.environment}"
    )
    if view.high_risk:
        console.print("[bold red]High-risk inspections:[/bold red]")
        for log in view.high_risk:
            console.print(f"  {log.site_name} ({log.inspector_role.capability.short_label}): {log.notes}")
    else:
        console.print("[green]No WARNING-level sites.[/green]")


@app.command()
def summary(
    snapshot: Path = typer.Argument(..., help="JSON snapshot file"),
    store_id: str = typer.Option(..., "--store", help="Store ID"),
    selected: str | None = typer.Option(None, "--date", help="Day to summarise (YYYY-MM-DD)"),
):
    """Generate the AI daily risk summary."""
    day = _parse_day(selected)
    scope = _open_scope(snapshot, store_id, Role.SUPPORT)
    day_logs = logs_for_date(scope.logs, day)
    if not day_logs:
        console.print("[yellow]No inspections recorded for this day.[/yellow]")
        return

    text = asyncio.run(SafetyAI().summarize(day_logs))
    console.print(text)


if __name__ == "__main__":
    app()
