"""
Command-line interface for sqlresource.

Provides inspect, export and list commands for building and examining SQL
resource metadata.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from sqlresource import __version__
from sqlresource.config import load_config
from sqlresource.definition import load_definition
from sqlresource.errors import SqlResourceError
from sqlresource.metadata import MetadataResolver
from sqlresource.models import SqlResourceMetaData
from sqlresource.registry import SqlResourceRegistry

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def build_metadata(definition: Path, config: Path, name: Optional[str]) -> SqlResourceMetaData:
    """Build metadata for a definition file, exiting with status 1 on failure."""
    resource_name = name or definition.stem

    try:
        resolver = MetadataResolver.from_config(load_config(config))
        registry = SqlResourceRegistry(resolver)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task(f"Resolving metadata for {resource_name}...", total=None)
            metadata = registry.load(resource_name, load_definition(definition))
            progress.update(task, completed=True)

    except (SqlResourceError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    return metadata


@click.group()
@click.version_option(version=__version__, prog_name="sqlresource")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """
    sqlresource - Relational metadata for SQL resources

    Derive table roles, primary keys and foreign keys for a resource from its
    query and definition.
    """
    setup_logging(verbose)


@cli.command()
@click.option(
    "--definition",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="YAML resource definition file",
)
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="YAML connection configuration file",
)
@click.option(
    "--name",
    type=str,
    default=None,
    help="Resource name (defaults to the definition file name)",
)
def inspect(definition: Path, config: Path, name: Optional[str]) -> None:
    """
    Build and display metadata for a resource.

    Example:

        sqlresource inspect --definition res/orders.yaml --config db.yaml
    """
    metadata = build_metadata(definition, config, name)

    console.print(f"[bold blue]Resource: {metadata.resource_name}[/bold blue]")
    console.print(f"Hierarchical: {metadata.hierarchical}")
    console.print(f"Multiple databases: {metadata.multiple_databases}")

    tables_table = Table(title="Tables")
    tables_table.add_column("Table", style="cyan")
    tables_table.add_column("Role", style="magenta")
    tables_table.add_column("Alias", style="blue")
    tables_table.add_column("Columns", style="green", justify="right")
    tables_table.add_column("PK", style="yellow")

    for table in metadata.tables:
        tables_table.add_row(
            table.qualified_table_name,
            table.table_role.value,
            table.table_alias or "-",
            str(len(table.columns)),
            ", ".join(pk.column_name for pk in table.primary_keys) or "-",
        )

    console.print(tables_table)

    columns_table = Table(title="Columns")
    columns_table.add_column("Column", style="cyan")
    columns_table.add_column("Label", style="green")
    columns_table.add_column("Type", style="blue")
    columns_table.add_column("Flags", style="yellow")

    for table in metadata.tables:
        for column in table.columns.values():
            flags = [
                flag for flag, on in (
                    ("pk", column.primary_key),
                    ("read-only", column.read_only),
                    ("fk", column.non_queried_foreign_key),
                ) if on
            ]
            columns_table.add_row(
                column.qualified_column_name,
                column.column_label,
                column.column_type_name or "-",
                ", ".join(flags) or "-",
            )

    console.print(columns_table)


@cli.command()
@click.option(
    "--definition",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="YAML resource definition file",
)
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="YAML connection configuration file",
)
@click.option(
    "--name",
    type=str,
    default=None,
    help="Resource name (defaults to the definition file name)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["xml", "json"]),
    default="xml",
    help="Serialization format",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write to this file instead of stdout",
)
def export(
    definition: Path,
    config: Path,
    name: Optional[str],
    output_format: str,
    output: Optional[Path],
) -> None:
    """
    Serialize resource metadata as XML or JSON.

    Example:

        sqlresource export --definition res/orders.yaml --config db.yaml \\
            --format json --output orders.json
    """
    metadata = build_metadata(definition, config, name)
    text = metadata.to_xml() if output_format == "xml" else metadata.to_json()

    if output:
        with open(output, "w") as f:
            f.write(text)
        console.print(f"[green]Saved metadata to: {output}[/green]")
    else:
        click.echo(text)


@cli.command(name="list")
@click.option(
    "--definitions_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    required=True,
    help="Directory of YAML resource definitions",
)
def list_resources(definitions_dir: Path) -> None:
    """
    List resource names found in a definitions directory.

    Example:

        sqlresource list --definitions_dir res/
    """
    registry = SqlResourceRegistry(resolver=None, definitions_dir=definitions_dir)
    names = registry.resource_names()

    if not names:
        console.print("[yellow]No resource definitions found.[/yellow]")
        return

    for name in names:
        click.echo(name)


if __name__ == "__main__":
    cli()
