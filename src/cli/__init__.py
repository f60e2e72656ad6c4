"""Main CLI application module.

This module provides the main entry point for the ``up`` CLI.

Command Groups:
- uxp: Install, upgrade, uninstall and inspect Universal Crossplane
"""

import typer

from .commands import uxp_app

# Create the main CLI application
app = typer.Typer(
    help="Install and manage Universal Crossplane releases",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(uxp_app, name="uxp", help="Universal Crossplane (UXP) commands")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
