"""Terminal output handling using Rich library.

Supports verbosity levels and the --no-color flag.
"""

from contextlib import contextmanager
from typing import Iterator, List

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.spinner import Spinner

from ..publisher.models import FilePublishResult


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.info("Publishing pages")
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False, console: Console = None):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
            console: Console to print to; a new one when omitted
        """
        self.verbosity = verbosity
        self.console = console or Console(
            no_color=no_color,
            highlight=False,
        )

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(escape(message))

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner while a long operation runs.

        Example:
            >>> with handler.spinner("Publishing pages..."):
            ...     publisher.publish()
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def print_file_result(self, result: FilePublishResult) -> None:
        """Display one line for a published (or failed) page."""
        path = escape(result.node.file.absolute_file_path)
        upload = result.successful_upload_result
        if upload is None:
            self.console.print(f"[red]✗[/red] {path}: {escape(result.reason or 'Unknown error')}")
            return

        changes = {
            "content": upload.content_result,
            "images": upload.image_result,
            "labels": upload.label_result,
        }
        changed = [name for name, value in changes.items() if value == "updated"]
        if changed:
            self.console.print(f"[green]↑[/green] {path} ([green]{', '.join(changed)} updated[/green])")
        elif self.verbosity >= 1:
            self.console.print(f"[dim]─[/dim] {path} [dim](unchanged)[/dim]")
        if result.node.page_url:
            self.debug(f"    {result.node.page_url}")

    def print_publish_summary(self, results: List[FilePublishResult]) -> None:
        """Display per-page lines and the publish summary with color coding."""
        for result in results:
            self.print_file_result(result)

        updated = 0
        unchanged = 0
        failed = 0
        for result in results:
            upload = result.successful_upload_result
            if upload is None:
                failed += 1
            elif "updated" in (upload.content_result, upload.image_result, upload.label_result):
                updated += 1
            else:
                unchanged += 1

        self.console.print("\n[bold]Publish Summary:[/bold]")
        if updated > 0:
            self.console.print(f"  [green]↑[/green] Updated: {updated} page(s)")
        if unchanged > 0:
            self.console.print(f"  [dim]─[/dim] Unchanged: {unchanged} page(s)")
        if failed > 0:
            self.console.print(f"  [red]✗[/red] Failed: {failed} page(s)")

        if not results:
            self.console.print("\n[yellow]No pages to publish[/yellow]")
        elif failed > 0:
            self.console.print("\n[red]Publish completed with failures[/red]")
        elif updated == 0:
            self.console.print("\n[green]Already up to date. No changes published.[/green]")
        else:
            self.console.print("\n[green]Publish completed successfully[/green]")
