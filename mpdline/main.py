"""Click CLI entry point for mpdline.

Handles argument parsing, connection setup, and the send / idle / repl
subcommands.
"""

import logging
import sys

import click
from rich.console import Console

from . import __version__
from .config import ClientSettings, split_host
from .connection import Connection, connect
from .display import format_error, format_idle_event, format_record
from .errors import MPDError, ServerError
from .quoting import split_args

console = Console()


@click.group()
@click.option("--host", default=None, help="Server host, socket path, or password@host.")
@click.option("--port", default=None, type=int, help="Server TCP port.")
@click.option("--password", default=None, help="Password sent after connecting.")
@click.option("--timeout", default=None, type=float, help="Reply timeout in seconds.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log protocol traffic.")
@click.version_option(version=__version__, prog_name="mpdline")
@click.pass_context
def cli(
    ctx: click.Context,
    host: str | None,
    port: int | None,
    password: str | None,
    timeout: float | None,
    verbose: bool,
) -> None:
    """Talk to a Music Player Daemon over its text protocol.

    Connection settings default to MPD_HOST, MPD_PORT and MPD_TIMEOUT.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(name)s %(message)s"
        )

    try:
        settings = ClientSettings.from_env()
    except ValueError as exc:
        raise click.UsageError(f"Invalid MPD environment setting: {exc}") from exc

    if host is not None:
        host, host_password = split_host(host)
        settings = ClientSettings(
            host=host,
            port=settings.port,
            password=host_password or settings.password,
            timeout=settings.timeout,
        )
    ctx.obj = ClientSettings(
        host=settings.host,
        port=port if port is not None else settings.port,
        password=password if password is not None else settings.password,
        timeout=timeout if timeout is not None else settings.timeout,
    )


@cli.command()
@click.argument("verb")
@click.argument("args", nargs=-1)
@click.pass_obj
def send(settings: ClientSettings, verb: str, args: tuple[str, ...]) -> None:
    """Run one command and print its reply.

    A single quoted argument containing spaces is split the way the
    server would split it, so `mpdline send 'add "a b.flac"'` works.
    """
    if not args and " " in verb:
        verb, *rest = split_args(verb)
        args = tuple(rest)

    conn = _open(settings)
    try:
        record = conn.execute(verb, *args)
        console.print(format_record(record))
    except ServerError as exc:
        console.print(format_error(exc))
        sys.exit(1)
    except MPDError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    finally:
        conn.close()


@cli.command()
@click.argument("subsystems", nargs=-1)
@click.option("--count", default=0, type=int, help="Stop after this many events (0: forever).")
@click.option("--wait", "wait_timeout", default=None, type=float, help="Give up after this many seconds per event.")
@click.pass_obj
def idle(
    settings: ClientSettings,
    subsystems: tuple[str, ...],
    count: int,
    wait_timeout: float | None,
) -> None:
    """Print changed subsystems as the server reports them."""
    from .repl import wait_interruptibly

    conn = _open(settings)
    seen = 0
    try:
        while count == 0 or seen < count:
            event = wait_interruptibly(conn, subsystems, timeout=wait_timeout)
            console.print(format_idle_event(event))
            seen += 1
            if event.cancelled:
                break
    except ServerError as exc:
        console.print(format_error(exc))
        sys.exit(1)
    except MPDError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    finally:
        conn.close()


@cli.command()
@click.pass_obj
def repl(settings: ClientSettings) -> None:
    """Start an interactive prompt."""
    from .repl import run_repl

    conn = _open(settings)
    _print_banner(conn)
    run_repl(conn)


def _open(settings: ClientSettings) -> Connection:
    """Connect with the given settings, exiting on failure."""
    try:
        return connect(
            settings.host,
            settings.port,
            timeout=settings.timeout,
            password=settings.password,
        )
    except ServerError as exc:
        console.print(f"[red]Authentication failed:[/red] {exc.message}")
        sys.exit(1)
    except MPDError as exc:
        console.print(f"[red]Connection failed:[/red] {exc}")
        sys.exit(1)


def _print_banner(conn: Connection) -> None:
    """Print the welcome banner with version info."""
    console.print()
    console.print(f"[bold]mpdline[/bold] v{__version__}", highlight=False)
    console.print(f"[dim]Server protocol {conn.version}[/dim]")
    console.print("[dim]Type .help for commands, .quit to exit[/dim]")
    console.print()


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
