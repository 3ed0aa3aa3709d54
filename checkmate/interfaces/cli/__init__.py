"""CLI interface for Checkmate using Typer.

Usage:
    checkmate focus                 # What to work on right now
    checkmate task add "Title" -p work=3 -s current
    checkmate task skip <id> --day -r "waiting on review"
    checkmate health                # Sprint burn-rate health
    checkmate spawn                 # Materialize recurring tasks for the week

The CLI is structured as:
- app: Main Typer application
- commands/: Command groups (task, sprint, tag, routine)
- common.py: Shared wiring and output helpers
- main.py: Entry point that runs the app
"""

import logging
from datetime import timedelta
from typing import Optional

import typer

from checkmate import __version__
from checkmate.application import recurrence_service, routine_service, stats_service
from checkmate.application.focus_service import get_focus
from checkmate.config import get_settings
from checkmate.domain.types import start_of_day
from checkmate.interfaces.cli.commands import routine, sprint, tag, task
from checkmate.interfaces.cli.common import (
    SprintOption,
    format_task_line,
    get_calculator,
    get_evaluator,
    get_repositories,
    local_now,
    print_header,
    print_info,
    print_success,
    unwrap,
)

app = typer.Typer(
    name="checkmate",
    help="Pick the one task to work on right now",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"checkmate version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
) -> None:
    """Checkmate - point-based focus, weekly sprints and routines."""
    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


# =============================================================================
# Register Command Groups
# =============================================================================

app.add_typer(task.app, name="task")
app.add_typer(sprint.app, name="sprint")
app.add_typer(tag.app, name="tag")
app.add_typer(routine.app, name="routine")


# =============================================================================
# Top-Level Shortcuts for Common Commands
# =============================================================================


@app.command("focus")
def focus(
    sprint_id: SprintOption = None,
    all_tasks: bool = typer.Option(False, "--all", "-a", help="Ignore the active routine"),
) -> None:
    """Show the focus task and what is up next."""
    repos = get_repositories()
    evaluator = get_evaluator()
    now = local_now()
    target = sprint.resolve_sprint(repos, sprint_id)

    active_routine = None
    if not all_tasks:
        active_routine = unwrap(
            routine_service.get_active_routine(
                repos, evaluator, now, override_id=get_settings().active_routine_override
            )
        )

    view = unwrap(get_focus(repos, target.id, routine=active_routine, evaluator=evaluator, now=now))
    tags_by_id = {t.id: t for t in unwrap(repos.tags.find_all())}

    if view.routine is not None:
        print_info(f"Routine: {view.routine.icon} {view.routine.name}")
    if view.focus is None:
        print_info("Nothing to focus on in this sprint.")
    else:
        print_header("FOCUS")
        typer.echo(format_task_line(view.focus, tags_by_id))
    if view.up_next:
        typer.echo("\nUp next:")
        for item in view.up_next:
            typer.echo(f"  {format_task_line(item, tags_by_id)}")
    if view.queue.hidden_count:
        typer.echo(f"\n{view.queue.hidden_count} hidden until tomorrow")


@app.command("health")
def health(sprint_id: SprintOption = None) -> None:
    """Show sprint health (shortcut for 'sprint health')."""
    sprint.health(sprint=sprint_id)


@app.command("spawn")
def spawn(
    days: int = typer.Option(7, "--days", "-d", min=1, help="How many days ahead to cover"),
) -> None:
    """Create due instances of recurring tasks, starting today."""
    now = local_now()
    start = start_of_day(now)
    end = start + timedelta(days=days) - timedelta(microseconds=1)
    spawned, _ = unwrap(
        recurrence_service.spawn_instances(get_repositories(), get_calculator(), start, end, now)
    )
    if not spawned:
        print_info("Nothing to spawn.")
        return
    for instance in spawned:
        typer.echo(f"  {instance.id}  {instance.title}")
    print_success(f"Spawned {len(spawned)} task(s) into the backlog")


@app.command("stats")
def stats(
    by_tag: bool = typer.Option(False, "--tags", "-t", help="Also show points per tag for a sprint"),
    sprint_id: SprintOption = None,
) -> None:
    """Show this week's progress."""
    repos = get_repositories()
    summary = unwrap(stats_service.get_stats(repos, local_now()))
    week = summary.week
    print_header(f"Week of {week.week_start:%b %d}")
    typer.echo(f"Completed: {week.tasks_completed} tasks, {week.points_completed} pts")
    typer.echo(f"Focus:     {week.focus_time_seconds // 60} min in {week.sessions_count} sessions")
    quality = summary.focus_quality
    if quality.total:
        typer.echo(f"Quality:   {quality.focused_percent}% focused")
    typer.echo(f"Streak:    {summary.streak} day(s)")
    comparison = summary.comparison
    typer.echo(
        f"Trend:     {comparison.trend.value} ({comparison.this_week_points} pts vs "
        f"{comparison.last_week_points} last week)"
    )
    canceled = summary.canceled
    if canceled.canceled_this_week:
        typer.echo(
            f"Canceled:  {canceled.canceled_this_week} tasks, "
            f"{canceled.canceled_points_this_week} pts this week"
        )

    if by_tag:
        target = sprint.resolve_sprint(repos, sprint_id)
        print_header(f"By tag, {target.label}")
        for item in unwrap(stats_service.get_tag_performance(repos, target.id)):
            typer.echo(
                f"  {item.tag_name:<16} {item.points_completed:>3}/{item.points_total:<3} pts"
                f"  {item.percentage:>3}%"
            )


__all__ = ["app"]
