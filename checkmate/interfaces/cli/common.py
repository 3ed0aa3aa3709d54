"""Shared utilities for Checkmate CLI commands.

- Repository and adapter wiring from the user's settings
- Result unwrapping (Err -> red error line, exit code 1)
- Formatted output helpers (error, success, info)
- Parsing of ``tag=points`` pairs and timestamps
"""

from datetime import datetime
from typing import Annotated, Optional, TypeVar

import typer

from checkmate.config import get_data_dir, get_settings
from checkmate.domain.shared import Err, Result
from checkmate.domain.sprint import Tag
from checkmate.domain.task import Task
from checkmate.infrastructure import (
    Repositories,
    RRuleRecurrenceCalculator,
    SimpleEvalExpressionEvaluator,
)

T = TypeVar("T")

# Reusable sprint option for CLI commands
# Usage: def my_command(sprint: SprintOption = None) -> None:
SprintOption = Annotated[
    Optional[str],
    typer.Option("--sprint", "-s", help="Sprint ID (default: current sprint)"),
]


# =============================================================================
# Wiring
# =============================================================================


def get_repositories() -> Repositories:
    """Repositories for the configured data directory."""
    return Repositories.in_directory(get_data_dir(get_settings()))


def get_evaluator() -> SimpleEvalExpressionEvaluator:
    return SimpleEvalExpressionEvaluator()


def get_calculator() -> RRuleRecurrenceCalculator:
    return RRuleRecurrenceCalculator()


def local_now() -> datetime:
    """Current time in the local timezone, so days end at local midnight."""
    return datetime.now().astimezone()


# =============================================================================
# Output
# =============================================================================


def print_error(msg: str) -> None:
    typer.echo(typer.style(f"Error: {msg}", fg=typer.colors.RED), err=True)


def print_success(msg: str) -> None:
    typer.echo(typer.style(msg, fg=typer.colors.GREEN))


def print_info(msg: str) -> None:
    typer.echo(typer.style(msg, fg=typer.colors.BLUE))


def print_warning(msg: str) -> None:
    typer.echo(typer.style(f"Warning: {msg}", fg=typer.colors.YELLOW), err=True)


def print_separator(char: str = "=", width: int = 60) -> None:
    typer.echo(char * width)


def print_header(title: str, width: int = 60) -> None:
    print_separator("=", width)
    typer.echo(title)
    print_separator("=", width)


def unwrap(result: Result[T, str]) -> T:
    """Return the Ok value, or print the error and exit with status 1."""
    if isinstance(result, Err):
        print_error(result.error)
        raise typer.Exit(1)
    return result.value


def format_points(task: Task, tags_by_id: dict[str, Tag] | None = None) -> str:
    tags_by_id = tags_by_id or {}
    parts = []
    for tag_id, points in task.tag_points.to_dict().items():
        tag = tags_by_id.get(tag_id)
        label = f"{tag.icon} {tag.name}" if tag else tag_id
        parts.append(f"{label}:{points}")
    return ", ".join(parts)


def format_task_line(task: Task, tags_by_id: dict[str, Tag] | None = None) -> str:
    """One-line summary: id, title, points, and markers for skip/session."""
    markers = []
    if task.skip_state is not None:
        markers.append(f"skipped {task.skip_state.type.value}")
    if task.active_session is not None:
        markers.append("in session")
    if task.is_recurring_template:
        markers.append(f"recurs {task.recurrence}")
    if not task.is_active:
        markers.append(task.status.value)
    suffix = f" [{'; '.join(markers)}]" if markers else ""
    return f"{task.id}  {task.title} ({task.total_points} pts: {format_points(task, tags_by_id)}){suffix}"


# =============================================================================
# Parsing
# =============================================================================


def parse_tag_points(pairs: list[str], tags: list[Tag]) -> dict[str, int]:
    """Parse ``tag=points`` pairs; a tag may be given by id or by name.

    Raises:
        typer.BadParameter: On malformed pairs or unknown tags.
    """
    by_name = {tag.name.casefold(): tag.id for tag in tags}
    ids = {tag.id for tag in tags}
    allocation: dict[str, int] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected tag=points, got: {pair}")
        try:
            points = int(value)
        except ValueError:
            raise typer.BadParameter(f"Points must be a number: {pair}") from None
        key = key.strip()
        tag_id = key if key in ids else by_name.get(key.casefold())
        if tag_id is None:
            raise typer.BadParameter(f"Unknown tag: {key}")
        allocation[tag_id] = points
    return allocation


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as local time."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Not an ISO 8601 timestamp: {value}") from None
    return parsed if parsed.tzinfo else parsed.astimezone()


__all__ = [
    "SprintOption",
    "get_repositories",
    "get_evaluator",
    "get_calculator",
    "local_now",
    "print_error",
    "print_success",
    "print_info",
    "print_warning",
    "print_separator",
    "print_header",
    "unwrap",
    "format_points",
    "format_task_line",
    "parse_tag_points",
    "parse_timestamp",
]
