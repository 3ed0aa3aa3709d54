"""CLI command groups for Checkmate.

Each module is a Typer app registered with the main app via
``app.add_typer()``:

- task: Task lifecycle, comments and focus sessions
- sprint: Sprint window, capacity overrides, health
- tag: Tags
- routine: Routines and the manual override
"""

from checkmate.interfaces.cli.commands import routine, sprint, tag, task

__all__ = ["task", "sprint", "tag", "routine"]
