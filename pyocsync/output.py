"""Console output for the command line tool."""

from rich.console import Console
from rich.markup import escape


class OutputFormatter:
    """Formats user-facing messages.

    Informational output goes to stdout, warnings and errors to stderr.
    In quiet mode only warnings and errors are shown.
    """

    def __init__(self, quiet: bool = False, no_color: bool = False):
        self.quiet = quiet
        self.console = Console(no_color=no_color, highlight=False, soft_wrap=True)
        self.err_console = Console(
            stderr=True, no_color=no_color, highlight=False, soft_wrap=True
        )

    def info(self, message: str) -> None:
        """Print an informational message unless quiet."""
        if not self.quiet:
            self.console.print(message, markup=False)

    def success(self, message: str) -> None:
        """Print a success message unless quiet."""
        if not self.quiet:
            self.console.print(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str) -> None:
        """Print a warning to stderr."""
        self.err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        """Print an error to stderr."""
        self.err_console.print(f"[red]Error:[/red] {escape(message)}")
