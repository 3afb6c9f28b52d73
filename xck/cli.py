"""CLI interface for xck."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from xck import __version__
from xck.config.manager import ConfigManager
from xck.config.settings import settings
from xck.output.field_names import FieldNameGenerator
from xck.processor import ConversionProcessor

console = Console()
stderr_console = Console(file=sys.stderr)


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.getLevelName(settings.log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = RichHandler(
        console=stderr_console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


config_option = click.option(
    '--config', '-c',
    'config_path',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help='Path to the YAML mapping configuration'
)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.option('--quiet', '-q', is_flag=True, help='Only log warnings and errors')
def cli(verbose: bool, quiet: bool) -> None:
    """xck - Convert XML documents to CSV files using XPath mappings"""
    setup_logging(verbose=verbose, quiet=quiet)


@cli.command()
@config_option
@click.argument('inputs', nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option(
    '--output', '-o',
    'output_dir',
    type=click.Path(file_okay=False, path_type=Path),
    default=Path('.'),
    show_default=True,
    help='Directory for the CSV files'
)
@click.option('--append', '-a', is_flag=True, help='Append to existing CSV files')
@click.option('--preserve-whitespace', '-w', is_flag=True, help='Do not trim extracted values')
@click.option('--fail-fast', is_flag=True, help='Stop at the first document that cannot be converted')
def convert(
    config_path: Path,
    inputs: tuple[Path, ...],
    output_dir: Path,
    append: bool,
    preserve_whitespace: bool,
    fail_fast: bool,
) -> None:
    """Convert XML files (or directories of XML files) to CSV."""
    console.print("[blue]Starting conversion...[/blue]")

    try:
        config_manager = ConfigManager(config_path)
        configuration = config_manager.build_configuration(
            trim_whitespace=False if preserve_whitespace else None
        )
        processor = ConversionProcessor(
            configuration,
            output_dir,
            append=append,
            fail_fast=fail_fast,
            console=stderr_console,
        )
        stats = processor.process(inputs)
    except Exception as e:
        stderr_console.print(f"[red]✗ Conversion failed: {e}[/red]")
        raise click.Abort()

    table = Table(title="Conversion Summary")
    table.add_column("Output", style="cyan")
    table.add_column("Rows", style="green")
    for name, rows in stats.rows.items():
        table.add_row(name, str(rows))

    files = Table(title="Files")
    files.add_column("Processed", style="green")
    files.add_column("Skipped", style="yellow")
    files.add_column("Failed", style="red")
    files.add_row(str(stats.processed), str(stats.skipped), str(stats.failed))

    console.print(Panel(
        table,
        title="Success" if not stats.failed else "Completed with errors",
        border_style="green" if not stats.failed else "yellow"
    ))
    console.print(files)
    for path, error in stats.errors:
        stderr_console.print(f"[red]✗ {path}: {error}[/red]")

    if stats.failed:
        console.print(f"[yellow]! {stats.failed} file(s) could not be converted[/yellow]")
    else:
        console.print("[green]✓ Conversion completed successfully![/green]")


@cli.command(name="fields")
@config_option
def fields(config_path: Path) -> None:
    """Show the CSV columns each container produces."""
    try:
        configuration = ConfigManager(config_path).build_configuration()
    except Exception as e:
        stderr_console.print(f"[red]✗ Loading configuration failed: {e}[/red]")
        raise click.Abort()

    for container in configuration:
        table = Table(title=container.name)
        table.add_column("#", style="cyan")
        table.add_column("Column", style="green")
        for position, name in enumerate(FieldNameGenerator(container).field_names(), start=1):
            table.add_row(str(position), name)
        console.print(table)
        if not container.has_fixed_output_cardinality():
            console.print(f"[yellow]! {container.name}: further columns depend on the input documents[/yellow]")


if __name__ == "__main__":
    cli()
