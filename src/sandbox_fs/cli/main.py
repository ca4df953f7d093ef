"""
Command line interface for Sandbox FS.

Every command operates inside one root directory, given with --root or
taken from the configuration (see sandbox_fs.settings).
"""

import asyncio
import fnmatch
import logging
import signal
import sys
from typing import Optional

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from sandbox_fs.filesystem import (
    FileSystemError,
    LocalFileSystemService,
    WatchEvent,
    WatchEventKind,
)
from sandbox_fs.settings import load_config

# Load environment variables
load_dotenv()

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup rich logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    # watchfiles logs every raw batch at debug level
    logging.getLogger("watchfiles").setLevel(logging.WARNING)


def build_ignore_filter(patterns: tuple[str, ...]):
    """Build an ignore filter from fnmatch patterns (matched against path and name)."""
    if not patterns:
        return None

    def is_ignored(path: str) -> bool:
        name = path.rstrip("/").rsplit("/", 1)[-1]
        return any(
            fnmatch.fnmatch(path, pattern) or fnmatch.fnmatch(name, pattern)
            for pattern in patterns
        )

    return is_ignored


def _service(ctx: click.Context) -> LocalFileSystemService:
    return ctx.obj["service"]


def _fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    sys.exit(1)


exclude_option = click.option(
    "--exclude",
    "-x",
    multiple=True,
    help="Glob pattern to ignore (repeatable), e.g. -x .git -x '*.pyc'",
)


@click.group()
@click.version_option(version="0.1.0")
@click.option("--root", "-r", default=None, help="Root directory (overrides config)")
@click.option("--config", "-c", "config_path", default=None, help="Configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, root: Optional[str], config_path: Optional[str], verbose: bool):
    """Sandbox FS - root-confined filesystem access."""
    setup_logging(verbose)
    try:
        config = load_config(config_path, root_directory=root, fallback_root=".")
    except (FileNotFoundError, ValueError, ValidationError) as e:
        _fail(str(e))
    ctx.obj = {"service": LocalFileSystemService(config)}


@cli.command()
@click.argument("directory", default="")
@click.option("--recursive/--no-recursive", default=True, help="Descend into subdirectories")
@exclude_option
@click.pass_context
def tree(ctx: click.Context, directory: str, recursive: bool, exclude: tuple[str, ...]):
    """
    List entries below DIRECTORY (directories end with '/').

    Examples:

        sandbox-fs tree src -x __pycache__
    """
    service = _service(ctx)
    ignore_filter = build_ignore_filter(exclude)

    async def _tree():
        async for entry in service.get_directory_tree(
            directory, ignore_filter=ignore_filter, recursive=recursive
        ):
            style = "bold blue" if entry.endswith("/") else ""
            console.print(entry, style=style, highlight=False)

    try:
        asyncio.run(_tree())
    except FileSystemError as e:
        _fail(str(e))


@cli.command()
@click.argument("path")
@click.pass_context
def cat(ctx: click.Context, path: str):
    """Print a file."""
    try:
        content = asyncio.run(_service(ctx).read_file(path))
    except (FileSystemError, UnicodeDecodeError) as e:
        _fail(str(e))
    click.echo(content, nl=False)


@cli.command()
@click.argument("text")
@click.option("--before", "-B", default=0, type=int, help="Context lines before a match")
@click.option("--after", "-A", default=0, type=int, help="Context lines after a match")
@exclude_option
@click.pass_context
def grep(ctx: click.Context, text: str, before: int, after: int, exclude: tuple[str, ...]):
    """
    Find lines containing TEXT (plain substring).

    Examples:

        sandbox-fs grep TODO -x node_modules -A 2
    """
    try:
        results = asyncio.run(
            _service(ctx).grep(
                text,
                ignore_filter=build_ignore_filter(exclude),
                lines_before=before,
                lines_after=after,
            )
        )
    except FileSystemError as e:
        _fail(str(e))

    for result in results:
        console.print(f"[magenta]{result.file}[/magenta]:[green]{result.line}[/green]: {result.match}", highlight=False)
        if result.content is not None:
            console.print(result.content, style="dim", highlight=False)
            console.print("--", style="dim")

    if not results:
        sys.exit(1)


@cli.command("glob")
@click.argument("pattern")
@exclude_option
@click.pass_context
def glob_command(ctx: click.Context, pattern: str, exclude: tuple[str, ...]):
    """List files matching PATTERN, e.g. 'src/**/*.py'."""
    try:
        files = asyncio.run(
            _service(ctx).glob(pattern, ignore_filter=build_ignore_filter(exclude))
        )
    except FileSystemError as e:
        _fail(str(e))
    for file in files:
        console.print(file, highlight=False)


@cli.command()
@click.argument("path")
@click.pass_context
def stat(ctx: click.Context, path: str):
    """Show metadata for PATH."""
    try:
        metadata = asyncio.run(_service(ctx).stat(path))
    except FileSystemError as e:
        _fail(str(e))

    table = Table(show_header=False)
    for key, value in metadata.model_dump().items():
        table.add_row(key, str(value))
    console.print(table)


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--timeout", "-t", default=None, type=float, help="Timeout in seconds (5-600)")
@click.option("--cwd", default="./", help="Working directory relative to the root")
@click.option("--shell/--no-shell", default=True, help="Run through the shell (default)")
@click.pass_context
def run(ctx: click.Context, command: tuple[str, ...], timeout: Optional[float], cwd: str, shell: bool):
    """
    Run a command inside the root directory.

    Examples:

        sandbox-fs run -- ls -la

        sandbox-fs run --no-shell -- git status --short
    """
    cmd = " ".join(command) if shell else list(command)
    try:
        result = asyncio.run(
            _service(ctx).execute_command(cmd, timeout_seconds=timeout, working_directory=cwd)
        )
    except FileSystemError as e:
        _fail(str(e))

    if result.stdout:
        click.echo(result.stdout)
    if result.stderr:
        click.echo(result.stderr, err=True)
    if not result.ok:
        console.print(f"[bold red]{result.error}[/bold red]")
    sys.exit(result.exit_code)


@cli.command()
@click.argument("directory", default="")
@click.option("--poll-interval", default=None, type=int, help="Stability poll interval (ms)")
@click.option("--stability-threshold", default=None, type=int, help="Time a file must stay unchanged (ms)")
@click.option("--ignore-initial", is_flag=True, help="Don't report existing files")
@exclude_option
@click.pass_context
def watch(
    ctx: click.Context,
    directory: str,
    poll_interval: Optional[int],
    stability_threshold: Optional[int],
    ignore_initial: bool,
    exclude: tuple[str, ...],
):
    """
    Print change notifications until interrupted.

    Examples:

        sandbox-fs watch src -x '*.swp'
    """
    asyncio.run(
        _watch(
            _service(ctx),
            directory,
            build_ignore_filter(exclude),
            poll_interval,
            stability_threshold,
            ignore_initial,
        )
    )


async def _watch(
    service: LocalFileSystemService,
    directory: str,
    ignore_filter,
    poll_interval: Optional[int],
    stability_threshold: Optional[int],
    ignore_initial: bool,
) -> None:
    colors = {
        WatchEventKind.ADD: "green",
        WatchEventKind.CHANGE: "yellow",
        WatchEventKind.UNLINK: "red",
        WatchEventKind.ERROR: "bold red",
        WatchEventKind.READY: "cyan",
    }

    def show(event: WatchEvent) -> None:
        console.print(str(event), style=colors[event.kind], highlight=False)

    try:
        session = await service.watch(
            directory,
            ignore_filter=ignore_filter,
            poll_interval=poll_interval,
            stability_threshold=stability_threshold,
            ignore_initial=ignore_initial,
        )
    except FileSystemError as e:
        _fail(str(e))

    for kind in WatchEventKind:
        session.on(kind, show)

    # Handle shutdown gracefully
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except NotImplementedError:
            pass

    try:
        await shutdown_event.wait()
    finally:
        await session.close()


if __name__ == "__main__":
    cli()
