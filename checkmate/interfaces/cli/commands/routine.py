"""Routine CLI commands.

Routines narrow the focus queue by time of day. Expressions use names such
as ``day_of_week``, ``hour``, ``time`` (minutes since midnight),
``is_weekday`` for activation, and ``title``, ``points``, ``tags``,
``has_tag("Work")`` for task filters.
"""

from typing import Optional

import typer

from checkmate.application import routine_service
from checkmate.config import get_settings, save_settings
from checkmate.interfaces.cli.common import (
    get_evaluator,
    get_repositories,
    local_now,
    print_info,
    print_success,
    unwrap,
)

app = typer.Typer(help="Routine commands")


@app.command("list")
def list_routines() -> None:
    """List routines by priority."""
    routines = unwrap(routine_service.list_routines(get_repositories()))
    if not routines:
        print_info("No routines.")
        return
    for routine in routines:
        typer.echo(f"{routine.id}  {routine.icon} {routine.name} (priority {routine.priority})")
        typer.echo(f"    when:   {routine.activation_expression or '-'}")
        typer.echo(f"    filter: {routine.task_filter_expression or '-'}")


@app.command("add")
def add(
    name: str = typer.Argument(..., help="Routine name"),
    priority: int = typer.Option(5, "--priority", "-p", help="1 (low) to 10 (high)"),
    when: str = typer.Option("", "--when", "-w", help="Activation expression"),
    task_filter: str = typer.Option("", "--filter", "-f", help="Task filter expression"),
    icon: Optional[str] = typer.Option(None, "--icon", help="Icon"),
    color: Optional[str] = typer.Option(None, "--color", help="Color"),
) -> None:
    """Create a routine."""
    routine = unwrap(
        routine_service.create_routine(
            get_repositories(), get_evaluator(), name, priority, when, task_filter, icon, color
        )
    )
    print_success(f"Created {routine.id}: {routine.name}")


@app.command("edit")
def edit(
    routine_id: str = typer.Argument(..., help="Routine ID"),
    name: Optional[str] = typer.Option(None, "--name", help="New name"),
    priority: Optional[int] = typer.Option(None, "--priority", "-p", help="New priority"),
    when: Optional[str] = typer.Option(None, "--when", "-w", help="New activation expression"),
    task_filter: Optional[str] = typer.Option(None, "--filter", "-f", help="New task filter"),
) -> None:
    """Change a routine."""
    routine = unwrap(
        routine_service.update_routine(
            get_repositories(),
            get_evaluator(),
            routine_id,
            name=name,
            priority=priority,
            activation_expression=when,
            task_filter_expression=task_filter,
        )
    )
    print_success(f"Updated {routine.id}: {routine.name}")


@app.command("rm")
def remove(routine_id: str = typer.Argument(..., help="Routine ID")) -> None:
    """Delete a routine."""
    unwrap(routine_service.delete_routine(get_repositories(), routine_id))
    settings = get_settings()
    if settings.active_routine_override == routine_id:
        save_settings(settings.model_copy(update={"active_routine_override": None}))
    print_success(f"Deleted {routine_id}")


@app.command("active")
def active() -> None:
    """Show which routine is active right now."""
    settings = get_settings()
    routine = unwrap(
        routine_service.get_active_routine(
            get_repositories(),
            get_evaluator(),
            local_now(),
            override_id=settings.active_routine_override,
        )
    )
    if routine is None:
        print_info("No routine active; all tasks are shown.")
        return
    source = " (manual override)" if routine.id == settings.active_routine_override else ""
    typer.echo(f"{routine.icon} {routine.name}{source}")


@app.command("use")
def use(
    routine_id: Optional[str] = typer.Argument(None, help="Routine ID to force on"),
    clear: bool = typer.Option(False, "--clear", help="Go back to automatic activation"),
) -> None:
    """Force a routine on, or clear the override."""
    settings = get_settings()
    if clear or routine_id is None:
        save_settings(settings.model_copy(update={"active_routine_override": None}))
        print_success("Routine override cleared")
        return
    routine = unwrap(get_repositories().routines.find_by_id(routine_id))
    save_settings(settings.model_copy(update={"active_routine_override": routine.id}))
    print_success(f"Using {routine.name} until cleared")
