"""quickzip CLI entrypoint.

This module provides the `quickzip` click group with three commands:

- `create SOURCE DESTINATION`: archive a file or a directory.
- `extract ARCHIVE DESTINATION`: unpack an archive into a directory.
- `list ARCHIVE`: show the entries of an archive.

Usage example (from shell):
    quickzip create saves/ backup/saves.zip --level 6
    quickzip extract backup/saves.zip restored/

Work is handed to the dispatcher's asynchronous API and the command polls
the returned future through a `CooperativeScheduler` while rich renders the
progress bar, the same way a frame loop would.
"""

import logging
import sys
from dataclasses import replace
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import BarColumn, DownloadColumn, Progress, SpinnerColumn, TextColumn, TransferSpeedColumn
from rich.table import Table

from .ArchiveDispatcher import ArchiveDispatcher
from .Errors import ZipManagerError
from .Futures import PollableFuture
from .Scheduler import CooperativeScheduler
from .Settings import DEFAULT_COMPRESSION_LEVEL, ZipSettings

logger = logging.getLogger(__name__)

# Create a single console instance for the CLI UI (rich console handles colors/formatting)
console = Console()


def _await_future(future: PollableFuture):
    result = yield future
    return result


def _run_to_completion(future: PollableFuture, settings: ZipSettings):
    """Poll `future` from a scheduler loop and return its result."""
    scheduler = CooperativeScheduler(settings.poll_interval)
    task = scheduler.start(_await_future(future), name=future.name)
    scheduler.run()
    return task.result()


def _progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        console=console,
    )


def _source_size(source: Path) -> int:
    if source.is_dir():
        return sum(p.stat().st_size for p in source.rglob("*") if p.is_file())
    return source.stat().st_size


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Create, extract and inspect ZIP archives."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    ctx.obj = ZipSettings()
    logger.debug("Using %s", ctx.obj)


@cli.command()
@click.argument("source", type=click.Path(exists=True, path_type=Path))
@click.argument("destination", type=click.Path(dir_okay=False, writable=True, path_type=Path))
@click.option("--level", "-l", type=click.IntRange(0, 9), default=DEFAULT_COMPRESSION_LEVEL,
              show_default=True, help="Deflate compression level")
@click.pass_obj
def create(settings: ZipSettings, source: Path, destination: Path, level: int):
    """Archive SOURCE (a file or a directory) into DESTINATION."""
    settings = replace(settings, compression_level=level)
    try:
        with ArchiveDispatcher(settings=settings) as dispatcher, _progress() as progress:
            task = progress.add_task(f"Archiving {source.name}...", total=_source_size(source))
            future = dispatcher.create_archive_async(
                source, destination,
                progress_callback=lambda n: progress.update(task, advance=n))
            _run_to_completion(future, settings)
        console.print(f"Created {destination}")
    except ZipManagerError as e:
        # Surface the error to the user with a non-zero exit status.
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)


@cli.command()
@click.argument("archive", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("destination", type=click.Path(file_okay=False, path_type=Path))
@click.pass_obj
def extract(settings: ZipSettings, archive: Path, destination: Path):
    """Extract ARCHIVE into the DESTINATION directory."""
    try:
        with ArchiveDispatcher(settings=settings) as dispatcher:
            total = sum(entry.file_size for entry in dispatcher.list_archive(archive))
            with _progress() as progress:
                task = progress.add_task(f"Extracting {archive.name}...", total=total)
                future = dispatcher.extract_archive_async(
                    archive, destination,
                    progress_callback=lambda n: progress.update(task, advance=n))
                _run_to_completion(future, settings)
        console.print(f"Extracted {archive} into {destination}")
    except ZipManagerError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)


@cli.command(name="list")
@click.argument("archive", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def list_entries(settings: ZipSettings, archive: Path):
    """List the entries of ARCHIVE."""
    try:
        with ArchiveDispatcher(settings=settings) as dispatcher:
            entries = dispatcher.list_archive(archive)
    except ZipManagerError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    table = Table(title=archive.name)
    table.add_column("Name", justify="left")
    table.add_column("Size", justify="right")
    table.add_column("Compressed", justify="right")
    table.add_column("Modified", justify="left")
    for entry in entries:
        modified = "{:04d}-{:02d}-{:02d} {:02d}:{:02d}:{:02d}".format(*entry.date_time)
        table.add_row(entry.filename, str(entry.file_size), str(entry.compress_size), modified)
    console.print(table)
