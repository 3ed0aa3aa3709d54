"""Entry point for the Checkmate CLI.

Usage:
    python -m checkmate.interfaces.cli.main

Or via installed entry point:
    checkmate <command>
"""

from checkmate.interfaces.cli import app


def main() -> None:
    """Run the Checkmate CLI application."""
    app()


if __name__ == "__main__":
    main()
