"""Shared utilities for CLI commands.

This module provides console output, confirmation dialogs, and the error
handling decorator used by every command.
"""

from collections.abc import Callable

import typer
from rich.console import Console, ConsoleRenderable
from rich.panel import Panel
from rich.status import Status

from src.installer.errors import InstallerError


class CLIConsole:
    """Rich console wrapper for consistent CLI output."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the CLI console."""
        self.console = console or Console()

    def print(self, msg: ConsoleRenderable | str | None = None) -> None:
        self.console.print(msg)

    def status(self, status: str) -> Status:
        return self.console.status(status)

    def ok(self, msg: str) -> None:
        self.console.print(f"[green]✅[/green] {msg}")

    def error(self, msg: str) -> None:
        self.console.print(f"[red]❌[/red] {msg}")

    def warn(self, msg: str) -> None:
        self.console.print(f"[yellow]⚠️[/yellow]  {msg}")

    def confirm_action(
        self,
        action: str,
        details: str | None = None,
        force: bool = False,
    ) -> bool:
        """Prompt user to confirm a potentially destructive action.

        Args:
            action: Description of the action (e.g., "Uninstall UXP")
            details: Additional details about what will be affected
            force: If True, skip the confirmation prompt

        Returns:
            True if the user confirmed, False otherwise
        """
        if force:
            return True

        warning_lines = [f"[bold red]⚠️  {action}[/bold red]"]
        if details:
            warning_lines.append(f"\n{details}")

        self.console.print(
            Panel(
                "\n".join(warning_lines),
                title="Confirmation Required",
                border_style="red",
            )
        )

        try:
            response = self.console.input(
                "\n[bold]Are you sure you want to proceed?[/bold] \\[y/N]: "
            )
            return response.strip().lower() in ("y", "yes")
        except (KeyboardInterrupt, EOFError):
            self.console.print("\n[dim]Cancelled.[/dim]")
            return False

    def handle_error(
        self, message: str, details: str | None = None, exit_code: int = 1
    ) -> None:
        """Handle an error by printing a message and exiting.

        Args:
            message: Error message to display
            details: Optional additional details
            exit_code: Exit code to use
        """
        self.error(f"[bold red]{message}[/bold red]")
        if details:
            self.console.print(Panel(details, title="Details", border_style="red"))
        raise typer.Exit(exit_code)

    def print_header(self, title: str, style: str = "blue") -> None:
        """Print a styled header panel.

        Args:
            title: Header title text
            style: Border style color
        """
        self.console.print(
            Panel.fit(
                f"[bold {style}]{title}[/bold {style}]",
                border_style=style,
            )
        )


def with_error_handling(func: Callable[..., None]) -> Callable[..., None]:
    """Decorator to wrap command functions with standard error handling.

    Installer errors are printed verbatim (with details when present) and
    exit with code 1; Ctrl-C exits with 130.

    Args:
        func: The command function to wrap

    Returns:
        Wrapped function with error handling
    """
    from functools import wraps

    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> None:
        try:
            func(*args, **kwargs)
        except InstallerError as e:
            console.handle_error(e.message, e.details)
        except KeyboardInterrupt:
            console.print("\n[dim]Operation cancelled by user.[/dim]")
            raise typer.Exit(130) from None

    return wrapper


# Shared console instance for consistent output
console = CLIConsole()
