"""Interfaces layer for Checkmate.

Adapters for external interaction. Currently the Typer CLI, which accepts
user input, calls application services and formats their output.
"""

from checkmate.interfaces.cli import app

__all__ = ["app"]
