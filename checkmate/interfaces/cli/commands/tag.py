"""Tag CLI commands."""

from typing import Optional

import typer

from checkmate.application import sprint_service
from checkmate.config import get_settings
from checkmate.interfaces.cli.common import get_repositories, print_success, unwrap

app = typer.Typer(help="Tag commands")


@app.command("list")
def list_tags() -> None:
    """List tags with their default weekly capacity."""
    for tag in unwrap(sprint_service.list_tags(get_repositories())):
        protected = "  (protected)" if tag.is_untagged else ""
        typer.echo(f"{tag.id}  {tag.icon} {tag.name:<16} {tag.default_capacity:>3} pts/week{protected}")


@app.command("add")
def add(
    name: str = typer.Argument(..., help="Tag name"),
    capacity: Optional[int] = typer.Option(
        None, "--capacity", "-c", help="Default weekly capacity (default from settings)"
    ),
    icon: Optional[str] = typer.Option(None, "--icon", help="Icon"),
    color: Optional[str] = typer.Option(None, "--color", help="Color, e.g. #22c55e"),
) -> None:
    """Create a tag."""
    default_capacity = capacity if capacity is not None else get_settings().default_tag_capacity
    tag = unwrap(sprint_service.create_tag(get_repositories(), name, default_capacity, icon, color))
    print_success(f"Created {tag.id}: {tag.name}")


@app.command("edit")
def edit(
    tag_id: str = typer.Argument(..., help="Tag ID"),
    name: Optional[str] = typer.Option(None, "--name", help="New name"),
    capacity: Optional[int] = typer.Option(None, "--capacity", "-c", help="New default capacity"),
    icon: Optional[str] = typer.Option(None, "--icon", help="New icon"),
    color: Optional[str] = typer.Option(None, "--color", help="New color"),
) -> None:
    """Change a tag."""
    tag = unwrap(
        sprint_service.update_tag(
            get_repositories(),
            tag_id,
            name=name,
            icon=icon,
            color=color,
            default_capacity=capacity,
        )
    )
    print_success(f"Updated {tag.id}: {tag.name}")


@app.command("rm")
def remove(tag_id: str = typer.Argument(..., help="Tag ID")) -> None:
    """Delete a tag that no active task uses."""
    unwrap(sprint_service.delete_tag(get_repositories(), tag_id))
    print_success(f"Deleted {tag_id}")
