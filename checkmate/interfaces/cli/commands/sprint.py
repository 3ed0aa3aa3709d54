"""Sprint CLI commands.

Listing the rolling sprint window, per-sprint capacity overrides and
sprint health.
"""

from typing import Optional

import typer

from checkmate.application import sprint_service
from checkmate.domain.sprint import HealthStatus, Sprint, sprint_label
from checkmate.infrastructure import Repositories
from checkmate.interfaces.cli.common import (
    SprintOption,
    get_repositories,
    local_now,
    print_header,
    print_success,
    unwrap,
)

app = typer.Typer(help="Sprint commands")

HEALTH_COLORS = {
    HealthStatus.ON_TRACK: typer.colors.GREEN,
    HealthStatus.AT_RISK: typer.colors.YELLOW,
    HealthStatus.OFF_TRACK: typer.colors.RED,
}


def resolve_sprint(repos: Repositories, sprint_id: str | None) -> Sprint:
    """The named sprint, or the current one when no id is given."""
    if sprint_id is None:
        return unwrap(sprint_service.get_current_sprint(repos, local_now()))
    return unwrap(repos.sprints.find_by_id(sprint_id))


@app.command("list")
def list_sprints() -> None:
    """Show the current and upcoming sprints."""
    repos = get_repositories()
    for index, sprint in enumerate(unwrap(sprint_service.upcoming_sprints(repos, local_now()))):
        overrides = ""
        if sprint.capacity_overrides:
            pairs = ", ".join(f"{k}={v}" for k, v in sprint.capacity_overrides.items())
            overrides = f"  capacity: {pairs}"
        typer.echo(f"{sprint.id}  {sprint_label(index):<15} {sprint.label}{overrides}")


@app.command("health")
def health(sprint: SprintOption = None) -> None:
    """Show burn-rate health per tag."""
    repos = get_repositories()
    target = resolve_sprint(repos, sprint)
    report = unwrap(sprint_service.get_sprint_health(repos, target.id, local_now()))

    print_header(f"Sprint {target.label}")
    typer.echo(f"Days remaining: {report.days_remaining}")
    overall = typer.style(report.overall.value, fg=HEALTH_COLORS[report.overall])
    typer.echo(f"Overall: {overall}\n")
    for tag in report.by_tag:
        status = typer.style(tag.health.value, fg=HEALTH_COLORS[tag.health])
        typer.echo(
            f"  {tag.tag_name:<16} {tag.assigned_points:>3}/{tag.capacity:<3} pts  "
            f"{tag.burn_rate_needed:.1f}/day needed, {tag.sustainable_rate:.1f}/day sustainable  {status}"
        )
    for warning in report.warnings:
        typer.echo(typer.style(f"! {warning}", fg=typer.colors.YELLOW))


@app.command("capacity")
def capacity(
    tag_id: str = typer.Argument(..., help="Tag ID"),
    points: Optional[int] = typer.Argument(None, help="Capacity for this sprint"),
    sprint: SprintOption = None,
    clear: bool = typer.Option(False, "--clear", help="Remove the override"),
) -> None:
    """Override (or clear) a tag's capacity for one sprint."""
    repos = get_repositories()
    target = resolve_sprint(repos, sprint)
    if clear:
        unwrap(sprint_service.clear_capacity_override(repos, target.id, tag_id))
        print_success(f"Cleared capacity override for {tag_id}")
        return
    if points is None:
        raise typer.BadParameter("Give a capacity or --clear")
    unwrap(sprint_service.set_capacity_override(repos, target.id, tag_id, points))
    print_success(f"{tag_id} capacity for {target.label}: {points}")
