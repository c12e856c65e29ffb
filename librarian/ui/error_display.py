"""Clean error display for loader errors."""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..errors import ErrorKind
from ..errors import LoaderError

_TITLES = {
    ErrorKind.ALREADY_LOADED: "Already Loaded",
    ErrorKind.NOT_READABLE: "Class File Not Found",
    ErrorKind.NOT_DECLARED: "Class Not Declared",
}


def display_loader_error(console: Console, error: Exception, verbose: bool = False) -> bool:
    """Display a LoaderError with clean Rich formatting.

    Args:
        console: Rich console for output
        error: The error to display
        verbose: If True, also print traceback

    Returns:
        True if error was handled as a LoaderError, False if not (caller should handle)
    """
    if not isinstance(error, LoaderError):
        return False

    border_style = "yellow" if error.kind is ErrorKind.ALREADY_LOADED else "red"
    title = _TITLES[error.kind]

    content = Text()
    if error.name:
        content.append("Name: ", style="dim")
        content.append(error.name, style="bold cyan")
        content.append("\n\n")
    # First line only; the probed paths get their own table
    content.append(str(error).splitlines()[0], style="white")

    console.print()
    console.print(
        Panel(
            content,
            title=f"[bold {border_style}]{title}[/bold {border_style}]",
            border_style=border_style,
            padding=(1, 2),
        )
    )

    if error.tried_paths:
        paths_table = Table(show_header=False, box=None, padding=(0, 1))
        paths_table.add_column("Status", style="red", width=3)
        paths_table.add_column("Path", style="dim")
        for path in error.tried_paths:
            paths_table.add_row("✗", Text(path))
        console.print(paths_table)
        console.print()

    console.print(f"[dim]Tip: {_get_actionable_tip(error)}[/dim]")
    console.print()

    if verbose:
        console.print("[dim]─── Traceback ───[/dim]")
        console.print_exception()

    return True


def _get_actionable_tip(error: LoaderError) -> str:
    """Generate an actionable tip based on the error kind."""
    if error.kind is ErrorKind.NOT_READABLE:
        if not error.tried_paths:
            return "No prefix matched and no fallback is configured. Add one with --prefix or --fallback."
        return "Check the prefix directories and that the file name matches the class name."

    if error.kind is ErrorKind.NOT_DECLARED:
        return "The file was executed but defines no class with that name. Check the class name in the file."

    return "The class is already live; loading it again is a no-op outside debug mode."
