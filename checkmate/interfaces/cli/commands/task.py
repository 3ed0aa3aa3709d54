"""Task management CLI commands.

Commands for the task lifecycle: creating, listing, moving, skipping,
completing and canceling tasks, plus comments and focus sessions.
"""

from typing import Annotated, Optional

import typer

from checkmate.application import sprint_service, task_service
from checkmate.domain.task import FocusLevel, SkipType, Task
from checkmate.interfaces.cli.commands.sprint import resolve_sprint
from checkmate.interfaces.cli.common import (
    SprintOption,
    format_points,
    format_task_line,
    get_calculator,
    get_repositories,
    local_now,
    parse_tag_points,
    parse_timestamp,
    print_header,
    print_info,
    print_success,
    unwrap,
)

app = typer.Typer(help="Task management commands")

PointsOption = Annotated[
    Optional[list[str]],
    typer.Option("--points", "-p", help="Effort as tag=points, repeatable (e.g. work=5)"),
]


def _tags_by_id(repos) -> dict:
    return {tag.id: tag for tag in unwrap(sprint_service.list_tags(repos))}


def _print_details(task: Task, tags_by_id: dict) -> None:
    print_header(task.title)
    typer.echo(f"ID:       {task.id}")
    typer.echo(f"Status:   {task.status.value}")
    typer.echo(f"Location: {task.location}")
    typer.echo(f"Points:   {task.total_points} ({format_points(task, tags_by_id)})")
    if task.description:
        typer.echo(f"\n{task.description}")
    if task.recurrence:
        typer.echo(f"Recurs:   {get_calculator().describe(task.recurrence)}")
    if task.parent_id:
        typer.echo(f"Template: {task.parent_id}")
    if task.sprint_history:
        typer.echo(f"History:  {', '.join(task.sprint_history)}")
    if task.skip_state is not None:
        skip = task.skip_state
        state = "returned" if skip.returned else f"until {skip.return_at}" if skip.return_at else ""
        typer.echo(f"Skipped:  {skip.type.value} {state}".rstrip())

    if task.comments:
        typer.echo("\nComments:")
        for comment in task.comments:
            flag = " (skip reason)" if comment.is_skip_justification else ""
            flag = " (cancel reason)" if comment.is_cancel_justification else flag
            typer.echo(f"  {comment.id}  {comment.content}{flag}")

    if task.sessions:
        typer.echo("\nSessions:")
        for session in task.sessions:
            minutes = session.duration_seconds // 60
            level = f" {session.focus_level.value}" if session.focus_level else ""
            typer.echo(f"  {session.id}  {session.status.value}{level} {minutes} min")


# =============================================================================
# Commands
# =============================================================================


@app.command("add")
def add(
    title: str = typer.Argument(..., help="Task title"),
    points: PointsOption = None,
    description: str = typer.Option("", "--description", "-d", help="Description"),
    sprint: Optional[str] = typer.Option(
        None, "--sprint", "-s", help="Sprint ID, or 'current' (default: backlog)"
    ),
    recurrence: Optional[str] = typer.Option(
        None, "--recurrence", "-r", help="RRULE, e.g. FREQ=WEEKLY;BYDAY=MO (makes a template)"
    ),
) -> None:
    """Create a task in the backlog or a sprint."""
    repos = get_repositories()
    tags = unwrap(sprint_service.list_tags(repos))
    allocation = parse_tag_points(points, tags) if points else {"untagged": 1}

    sprint_id = None
    if sprint is not None:
        sprint_id = resolve_sprint(repos, None if sprint == "current" else sprint).id

    task, _ = unwrap(
        task_service.create_task(
            repos,
            title,
            allocation,
            description=description,
            sprint_id=sprint_id,
            recurrence=recurrence,
            calculator=get_calculator(),
            now=local_now(),
        )
    )
    print_success(f"Created {task.id}: {task.title} ({task.total_points} pts)")


@app.command("list")
def list_tasks(
    sprint: SprintOption = None,
    backlog: bool = typer.Option(False, "--backlog", "-b", help="List the backlog"),
    show_all: bool = typer.Option(False, "--all", "-a", help="Include completed and canceled"),
    templates: bool = typer.Option(False, "--templates", "-t", help="Include recurring templates"),
) -> None:
    """List tasks in a sprint (default: current) or the backlog."""
    repos = get_repositories()
    sprint_id = None if backlog else resolve_sprint(repos, sprint).id
    tasks = unwrap(
        task_service.list_tasks(
            repos,
            sprint_id=sprint_id,
            backlog=backlog,
            include_inactive=show_all,
            include_templates=templates,
        )
    )
    if not tasks:
        print_info("No tasks.")
        return
    tags_by_id = _tags_by_id(repos)
    for task in tasks:
        typer.echo(format_task_line(task, tags_by_id))


@app.command("show")
def show(task_id: str = typer.Argument(..., help="Task ID")) -> None:
    """Show a task with its comments and sessions."""
    repos = get_repositories()
    task = unwrap(task_service.get_task(repos, task_id))
    _print_details(task, _tags_by_id(repos))


@app.command("edit")
def edit(
    task_id: str = typer.Argument(..., help="Task ID"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description"),
    points: PointsOption = None,
) -> None:
    """Change a task's title, description or effort."""
    repos = get_repositories()
    allocation = None
    if points:
        allocation = parse_tag_points(points, unwrap(sprint_service.list_tags(repos)))
    task = unwrap(
        task_service.update_task(
            repos, task_id, title=title, description=description, tag_points=allocation
        )
    )
    print_success(f"Updated {task.id}")


@app.command("done")
def done(task_id: str = typer.Argument(..., help="Task ID")) -> None:
    """Mark a task completed."""
    task, event = unwrap(task_service.complete_task(get_repositories(), task_id, local_now()))
    print_success(f"Completed: {task.title} (+{event.total_points} pts)")


@app.command("cancel")
def cancel(
    task_id: str = typer.Argument(..., help="Task ID"),
    reason: Optional[str] = typer.Option(None, "--reason", "-r", help="Why it is canceled"),
) -> None:
    """Cancel a task."""
    task, _ = unwrap(task_service.cancel_task(get_repositories(), task_id, reason, local_now()))
    print_success(f"Canceled: {task.title}")


@app.command("move")
def move(
    task_id: str = typer.Argument(..., help="Task ID"),
    sprint: SprintOption = None,
    backlog: bool = typer.Option(False, "--backlog", "-b", help="Move to the backlog"),
) -> None:
    """Move a task to a sprint (default: current) or the backlog."""
    repos = get_repositories()
    if backlog:
        _, event = unwrap(task_service.move_task_to_backlog(repos, task_id))
    else:
        target = resolve_sprint(repos, sprint)
        _, event = unwrap(task_service.move_task_to_sprint(repos, task_id, target.id))
    print_success(f"Moved {task_id}: {event.from_location} -> {event.to_location}")


@app.command("skip")
def skip(
    task_id: str = typer.Argument(..., help="Task ID"),
    day: bool = typer.Option(False, "--day", help="Hide until tomorrow (needs --reason)"),
    reason: Optional[str] = typer.Option(None, "--reason", "-r", help="Why it is skipped"),
) -> None:
    """Skip a task for now, or for the rest of the day."""
    skip_type = SkipType.FOR_DAY if day else SkipType.FOR_NOW
    task, _ = unwrap(
        task_service.skip_task(get_repositories(), task_id, skip_type, reason, local_now())
    )
    if day:
        print_success(f"Skipped for the day: {task.title}")
    else:
        print_success(f"Skipped for now: {task.title}")


@app.command("unskip")
def unskip(task_id: str = typer.Argument(..., help="Task ID")) -> None:
    """Clear a task's skip."""
    task = unwrap(task_service.clear_skip(get_repositories(), task_id))
    print_success(f"Unskipped: {task.title}")


@app.command("comment")
def comment(
    task_id: str = typer.Argument(..., help="Task ID"),
    content: str = typer.Argument(..., help="Comment text"),
) -> None:
    """Add a comment to a task."""
    task = unwrap(task_service.add_comment(get_repositories(), task_id, content, local_now()))
    print_success(f"Added {task.comments[-1].id}")


@app.command("uncomment")
def uncomment(
    task_id: str = typer.Argument(..., help="Task ID"),
    comment_id: str = typer.Argument(..., help="Comment ID"),
) -> None:
    """Delete a comment."""
    unwrap(task_service.delete_comment(get_repositories(), task_id, comment_id))
    print_success(f"Deleted {comment_id}")


@app.command("start")
def start(task_id: str = typer.Argument(..., help="Task ID")) -> None:
    """Start a focus session."""
    _, event = unwrap(task_service.start_session(get_repositories(), task_id, local_now()))
    print_success(f"Session {event.session_id} started")


@app.command("stop")
def stop(
    task_id: str = typer.Argument(..., help="Task ID"),
    focus: FocusLevel = typer.Option(FocusLevel.NEUTRAL, "--focus", "-f", help="How it went"),
    note: Optional[str] = typer.Option(None, "--note", "-n", help="Session note"),
) -> None:
    """Complete the in-progress focus session."""
    _, event = unwrap(
        task_service.end_session(get_repositories(), task_id, focus, note=note, now=local_now())
    )
    print_success(f"Session done: {event.duration_seconds // 60} min, {focus.value}")


@app.command("abandon")
def abandon(task_id: str = typer.Argument(..., help="Task ID")) -> None:
    """Abandon the in-progress focus session."""
    unwrap(task_service.abandon_session(get_repositories(), task_id, now=local_now()))
    print_success("Session abandoned")


@app.command("log")
def log_session(
    task_id: str = typer.Argument(..., help="Task ID"),
    started: str = typer.Option(..., "--start", help="Start time (ISO 8601)"),
    ended: str = typer.Option(..., "--end", help="End time (ISO 8601)"),
    focus: FocusLevel = typer.Option(FocusLevel.NEUTRAL, "--focus", "-f", help="How it went"),
    note: Optional[str] = typer.Option(None, "--note", "-n", help="Session note"),
) -> None:
    """Record a past focus session."""
    _, event = unwrap(
        task_service.add_manual_session(
            get_repositories(),
            task_id,
            parse_timestamp(started),
            parse_timestamp(ended),
            focus,
            note,
        )
    )
    print_success(f"Logged {event.duration_seconds // 60} min session")


@app.command("rm")
def remove(task_id: str = typer.Argument(..., help="Task ID")) -> None:
    """Delete a task permanently."""
    unwrap(task_service.delete_task(get_repositories(), task_id))
    print_success(f"Deleted {task_id}")
