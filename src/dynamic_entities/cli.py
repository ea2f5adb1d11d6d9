"""
Command-line interface for dynamic_entities.

Provides explore and generate commands for deriving entity types and
relationships from a live or static database schema.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from dynamic_entities import __version__
from dynamic_entities.catalog import Database
from dynamic_entities.config import ExplorerConfig
from dynamic_entities.exceptions import DynamicEntitiesError

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


def source_options(f):
    """Options shared by every command that explores a schema."""
    options = [
        click.option(
            "--config",
            "config_file",
            type=click.Path(exists=True, path_type=Path),
            default=None,
            help="YAML explorer configuration",
        ),
        click.option(
            "--url",
            type=str,
            default=None,
            help="SQLAlchemy connection URL (e.g. sqlite:///app.db)",
        ),
        click.option(
            "--oracle_conn",
            type=str,
            default=None,
            help="Oracle connection string (user/pwd@host:port/service)",
        ),
        click.option(
            "--schema",
            type=str,
            default=None,
            help="Schema/owner name to introspect",
        ),
        click.option(
            "--schema_file",
            type=click.Path(exists=True, path_type=Path),
            default=None,
            help="Static YAML schema (offline exploration)",
        ),
        click.option(
            "--skip",
            multiple=True,
            help="Table to skip; glob patterns such as stats_* are allowed (repeatable)",
        ),
        click.option(
            "--include",
            multiple=True,
            help="Restrict exploration to these tables or patterns (repeatable)",
        ),
        click.option(
            "--foreign_key",
            "foreign_keys",
            multiple=True,
            help="Manual foreign key TABLE:COLUMN[:LABEL] (repeatable)",
        ),
        click.option(
            "--id_suffix",
            type=str,
            default=None,
            help="Foreign key column suffix (default: _id)",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def parse_foreign_key(value: str) -> Tuple[str, str, Optional[str]]:
    """Split ``TABLE:COLUMN[:LABEL]``."""
    parts = value.split(":")
    if len(parts) not in (2, 3) or not all(parts):
        raise click.BadParameter(
            f"'{value}' is not TABLE:COLUMN[:LABEL]", param_hint="--foreign_key"
        )
    table_name, column = parts[0], parts[1]
    label = parts[2] if len(parts) == 3 else None
    return table_name, column, label


def build_config(
    config_file: Optional[Path],
    url: Optional[str],
    oracle_conn: Optional[str],
    schema: Optional[str],
    schema_file: Optional[Path],
    skip: Tuple[str, ...],
    include: Tuple[str, ...],
    foreign_keys: Tuple[str, ...],
    id_suffix: Optional[str],
) -> ExplorerConfig:
    """Merge command-line options over an optional configuration file."""
    config = ExplorerConfig.from_yaml(config_file) if config_file else ExplorerConfig()

    if url:
        config.connection_url = url
    if oracle_conn:
        config.oracle_conn = oracle_conn
    if schema:
        config.schema = schema
    if schema_file:
        config.schema_file = schema_file
    if id_suffix:
        config.id_suffix = id_suffix

    for table in skip:
        config.skip_table(table)
    config.include_tables.extend(include)

    for value in foreign_keys:
        config.foreign_key(*parse_foreign_key(value))

    return config


def run_exploration(config: ExplorerConfig) -> Database:
    """Explore with a spinner, reporting library errors and exiting with status 1."""
    from dynamic_entities.discovery import Explorer

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Exploring schema...", total=None)
            database = Explorer.from_config(config)
            progress.update(task, completed=True)
    except DynamicEntitiesError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    return database


@click.group()
@click.version_option(version=__version__, prog_name="dynamic-entities")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """
    Dynamic Entities - Entity types and relationships from database schemas

    Inspect a schema and derive one entity type per table, with belongs_to,
    has_many, has_one and has_and_belongs_to_many relationships inferred
    from foreign key columns, unique indexes and join tables.
    """
    setup_logging(verbose)


@cli.command()
@source_options
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output YAML file for the discovered relationships",
)
def explore(
    config_file: Optional[Path],
    url: Optional[str],
    oracle_conn: Optional[str],
    schema: Optional[str],
    schema_file: Optional[Path],
    skip: Tuple[str, ...],
    include: Tuple[str, ...],
    foreign_keys: Tuple[str, ...],
    id_suffix: Optional[str],
    output: Optional[Path],
) -> None:
    """
    Explore a schema and show entity types and relationships.

    Examples:

        # Explore a SQLite database, skipping statistics tables
        dynamic-entities explore --url sqlite:///app.db --skip "stats_*"

        # Explore an Oracle schema with a manual foreign key
        dynamic-entities explore --oracle_conn "user/pwd@localhost:1521/ORCL" \\
            --foreign_key websites:company_website_id:company_website \\
            --output relationships.yaml
    """
    from dynamic_entities.output import dump_relationships

    try:
        config = build_config(
            config_file, url, oracle_conn, schema, schema_file,
            skip, include, foreign_keys, id_suffix,
        )
    except DynamicEntitiesError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print("[bold blue]Dynamic Entities Exploration[/bold blue]")
    database = run_exploration(config)

    console.print(f"\n[green]Exploration complete![/green]")

    entities_table = Table(title="Entity Types")
    entities_table.add_column("Table", style="cyan")
    entities_table.add_column("Type", style="green")
    entities_table.add_column("Columns", style="yellow", justify="right")
    entities_table.add_column("PK", style="magenta")

    for model in database.models:
        entities_table.add_row(
            model.table_name,
            model.type_name,
            str(len(model.column_names)),
            model.primary_key or "-",
        )

    console.print(entities_table)

    relationships: List[Tuple[str, str, str, str, str]] = [
        (
            model.type_name,
            rel.kind.value,
            rel.name,
            rel.class_name,
            rel.join_table or rel.foreign_key or "-",
        )
        for model in database.models
        for rel in model.relationships
    ]

    if relationships:
        rel_table = Table(title="Relationships")
        rel_table.add_column("Entity", style="cyan")
        rel_table.add_column("Kind", style="blue")
        rel_table.add_column("Name", style="green")
        rel_table.add_column("Target", style="yellow")
        rel_table.add_column("Via", style="magenta")

        for row in relationships:
            rel_table.add_row(*row)

        console.print(rel_table)
    else:
        console.print("\n[yellow]No relationships discovered.[/yellow]")
        console.print("Check the foreign key suffix or register manual foreign keys.")

    if output:
        output = Path(output)
        data = dump_relationships(database.models)
        data["config"] = config.to_dict()

        with open(output, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        console.print(f"\n[green]Saved relationships to: {output}[/green]")


@cli.command()
@source_options
@click.option(
    "--output_dir",
    type=click.Path(path_type=Path),
    required=True,
    help="Directory for the generated entity stubs",
)
@click.option(
    "--base_class",
    type=str,
    default="Entity",
    help="Base class name used by the generated stubs",
)
def generate(
    config_file: Optional[Path],
    url: Optional[str],
    oracle_conn: Optional[str],
    schema: Optional[str],
    schema_file: Optional[Path],
    skip: Tuple[str, ...],
    include: Tuple[str, ...],
    foreign_keys: Tuple[str, ...],
    id_suffix: Optional[str],
    output_dir: Path,
    base_class: str,
) -> None:
    """
    Generate editable Python class stubs for every entity type.

    Examples:

        dynamic-entities generate --schema_file schema.yaml --output_dir models/
    """
    from dynamic_entities.output import TemplateWriter

    try:
        config = build_config(
            config_file, url, oracle_conn, schema, schema_file,
            skip, include, foreign_keys, id_suffix,
        )
    except DynamicEntitiesError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print("[bold blue]Dynamic Entities Generation[/bold blue]")
    database = run_exploration(config)

    writer = TemplateWriter(output_dir, base_class=base_class)
    output_paths = writer.write(database.models)

    files_table = Table(title="Generated Stubs")
    files_table.add_column("Table", style="cyan")
    files_table.add_column("File", style="green")

    for table_name, path in output_paths.items():
        files_table.add_row(table_name, path.name)

    console.print(files_table)
    console.print(f"\n[green]Wrote {len(output_paths)} stubs to: {output_dir}[/green]")


if __name__ == "__main__":
    cli()
