"""Diagnostic output shared by the crawler components."""

from rich.console import Console
from rich.markup import escape


class DiagnosticLog:
    """Debug and warning sink written to standard error.

    Passed explicitly to each component so callers and tests decide where
    diagnostics go. ``quiet`` mutes debug messages; warnings are always shown.
    """

    def __init__(self, console: Console | None = None, quiet: bool = False):
        self.console = console or Console(stderr=True)
        self.quiet = quiet

    def debug(self, message: str) -> None:
        if self.quiet:
            return
        self.console.print(
            f"[bold cyan]downstream:[/bold cyan] {escape(message)}",
            highlight=False,
            soft_wrap=True,
        )

    def warn(self, message: str) -> None:
        self.console.print(
            f"[bold red]downstream:[/bold red] {escape(message)}",
            highlight=False,
            soft_wrap=True,
        )
