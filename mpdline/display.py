"""Output formatting for rich terminal display.

Turns response records, server errors and idle events into Rich
renderables or markup strings for the CLI.
"""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .errors import ServerError
from .idle import IdleEvent
from .response import ResponseRecord

console = Console()

# Keys that start a new entity in list replies; rows after one are grouped
# under a rule in the table.
_SECTION_KEYS = {"file", "directory", "playlist", "outputid"}


def format_record(record: ResponseRecord) -> Table | str:
    """Render a reply's pairs as a two-column table.

    Returns the plain "OK" marker for replies with no pairs.
    """
    if not record.pairs:
        return "[green]OK[/green]"

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("key", style="cyan", no_wrap=True)
    table.add_column("value")

    seen_section = False
    for key, value in record.pairs:
        if key in _SECTION_KEYS:
            if seen_section:
                table.add_section()
            seen_section = True
        table.add_row(escape(key), escape(value))
    return table


def format_error(error: ServerError) -> str:
    """Format an ACK error as Rich markup."""
    code = getattr(error.code, "name", str(error.code))
    where = f" {{{escape(error.command)}}}" if error.command else ""
    return f"[red]Error[/red] [dim]{escape(code)}@{error.index}[/dim]{where} {escape(error.message)}"


def format_idle_event(event: IdleEvent) -> str:
    """Format the changed subsystems of one idle cycle."""
    if not event:
        return "[dim](no changes)[/dim]"
    return " ".join(f"[yellow]{escape(name)}[/yellow]" for name in event)


def print_records(records: list[ResponseRecord]) -> None:
    """Print the members of a command list reply in order."""
    for index, record in enumerate(records):
        console.print(f"[dim]--- {index} ---[/dim]")
        if record.error is not None:
            console.print(format_error(record.error))
        else:
            console.print(format_record(record))
