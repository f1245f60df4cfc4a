"""Command line interface for the Prisma to Laravel generator."""

import logging
import sys
from collections import Counter
from collections.abc import Iterable
from dataclasses import asdict
from datetime import datetime
from json import dumps
from pathlib import Path
from typing import Literal

from cyclopts import App
from dmmf import DirectiveError, SchemaError, database_to_document, load_document, read_only_sqlite
from dmmf.types import Document
from migrator import CircularDependencyError, MigrationPrinter, RuleContractError, generate_migrations
from modeler import ModelDefinition, ModelPrinter, MorphConfig, build_enums, build_models
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from prisma_laravel.config import GeneratorConfig, load_config
from prisma_laravel.writer import WriteStatus, migration_filename, write_with_markers

app = App(help="Generate Laravel migrations and Eloquent models from a Prisma schema")

type Format = Literal["table", "json"]

console = Console()
err_console = Console(stderr=True)

JSON_EXTENSIONS = {".json"}
SQLITE_EXTENSIONS = {".sqlite", ".db", ".sqlite3"}
GENERATION_ERRORS = (SchemaError, DirectiveError, RuleContractError, CircularDependencyError)


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def setup_logging(*, verbose: bool) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def load_settings(config: Path | None) -> GeneratorConfig:
    """Load the TOML config or exit with an error."""
    if config is not None and not config.exists():
        print_error(f"Config file does not exist: {config}")
        sys.exit(1)
    try:
        return load_config(config)
    except ValueError as e:
        print_error(str(e))
        sys.exit(1)


def load_source(source: Path) -> Document:
    """Read a DMMF JSON document or reflect a SQLite database."""
    if not source.exists():
        print_error(f"Source does not exist: {source}")
        sys.exit(1)

    suffix = source.suffix.lower()
    if suffix in JSON_EXTENSIONS:
        try:
            return load_document(source)
        except (ValueError, KeyError) as e:
            print_error(f"Invalid DMMF document {source}: {e}")
            sys.exit(1)
    if suffix in SQLITE_EXTENSIONS:
        engine = read_only_sqlite(source)
        try:
            return database_to_document(engine)
        except SQLAlchemyError as e:
            print_error(f"Failed to reflect database: {e}")
            sys.exit(1)
        finally:
            engine.dispose()

    print_error(
        f"Source has invalid extension, expected one of: "
        f"{', '.join(sorted(JSON_EXTENSIONS | SQLITE_EXTENSIONS))}",
    )
    sys.exit(1)


def morph_config(settings: GeneratorConfig) -> MorphConfig:
    """Polymorphic column suffixes from the settings."""
    return MorphConfig(
        id_suffix=settings["morph"]["id_suffix"],
        type_suffix=settings["morph"]["type_suffix"],
    )


def report(statuses: Iterable[WriteStatus], kind: str) -> None:
    """Summarize what happened to the written files."""
    counts = Counter(statuses)
    summary = ", ".join(f"{counts[status]} {status}" for status in WriteStatus if counts[status])
    print_success(f"Generated {kind}: {summary or 'nothing to write'}")


def format_relations_table(models: Iterable[ModelDefinition]) -> None:
    """Format inferred relations as a rich table."""
    table = Table(title="Inferred Relations")
    table.add_column("Model", style="bold cyan")
    table.add_column("Relation", style="bold")
    table.add_column("Kind", style="bold yellow")
    table.add_column("Target")
    table.add_column("Keys")

    for model in models:
        for relation in model.relations:
            keys = relation.pivot_table or ", ".join(relation.foreign_key) or ""
            if relation.morph_name and not relation.pivot_table:
                keys = relation.morph_name
            table.add_row(
                model.class_name,
                relation.name,
                str(relation.kind),
                relation.target or "",
                keys,
            )

    console.print(table)


@app.command
def migrations(
    source: Path,
    *,
    config: Path | None = None,
    output: Path | None = None,
    dry_run: bool = False,
    verbose: bool = False,
) -> None:
    """Generate Laravel migration files."""
    setup_logging(verbose=verbose)
    settings = load_settings(config)
    directory = output or Path(settings["migrations_dir"])
    print_info(f"Source: {source}")
    print_info(f"Output directory: {directory}")

    document = load_source(source)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
    ) as progress:
        progress.add_task("Resolving migrations...", total=None)
        try:
            units = generate_migrations(document)
        except GENERATION_ERRORS as e:
            progress.stop()
            print_error(str(e))
            sys.exit(1)

    printer = MigrationPrinter(settings["start_marker"], settings["end_marker"])
    now = datetime.now()  # noqa: DTZ005
    statuses: list[WriteStatus] = []
    for index, unit in enumerate(units, start=1):
        if unit.silent:
            continue
        content = printer.print(unit)
        if dry_run:
            sys.stdout.write(content)
            continue
        path = migration_filename(directory, unit.table, index, now)
        statuses.append(
            write_with_markers(
                path,
                content,
                printer.block(unit),
                settings["start_marker"],
                settings["end_marker"],
                overwrite=settings["overwrite"],
            ),
        )

    if not dry_run:
        report(statuses, "migrations")


@app.command
def models(
    source: Path,
    *,
    config: Path | None = None,
    output: Path | None = None,
    dry_run: bool = False,
    verbose: bool = False,
) -> None:
    """Generate Eloquent model and enum files."""
    setup_logging(verbose=verbose)
    settings = load_settings(config)
    directory = output or Path(settings["models_dir"])
    enums_directory = Path(settings["enums_dir"])
    print_info(f"Source: {source}")
    print_info(f"Output directory: {directory}")

    document = load_source(source)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
    ) as progress:
        progress.add_task("Inferring relations...", total=None)
        try:
            definitions = build_models(document, morph_config(settings))
        except GENERATION_ERRORS as e:
            progress.stop()
            print_error(str(e))
            sys.exit(1)
        enums = build_enums(document)

    printer = ModelPrinter(
        namespace=settings["namespace"],
        enum_namespace=settings["enum_namespace"],
        start_marker=settings["start_marker"],
        end_marker=settings["end_marker"],
    )
    statuses: list[WriteStatus] = []
    for model in definitions:
        if model.silent:
            continue
        content = printer.print(model)
        if dry_run:
            sys.stdout.write(content)
            continue
        statuses.append(
            write_with_markers(
                directory / f"{model.class_name}.php",
                content,
                printer.block(model),
                settings["start_marker"],
                settings["end_marker"],
                overwrite=settings["overwrite"],
            ),
        )

    for enum in enums:
        content = printer.print_enum(enum)
        if dry_run:
            sys.stdout.write(content)
            continue
        statuses.append(
            write_with_markers(
                enums_directory / f"{enum.name}.php",
                content,
                content,
                settings["start_marker"],
                settings["end_marker"],
                overwrite=settings["overwrite"],
            ),
        )

    if not dry_run:
        report(statuses, "models")


@app.command
def relations(
    source: Path,
    fmt: Format = "table",
    *,
    config: Path | None = None,
    verbose: bool = False,
) -> None:
    """Print the relations inferred for every model."""
    setup_logging(verbose=verbose)
    settings = load_settings(config)
    document = load_source(source)
    try:
        definitions = build_models(document, morph_config(settings))
    except GENERATION_ERRORS as e:
        print_error(str(e))
        sys.exit(1)

    if fmt == "json":
        sys.stdout.write(
            dumps(
                {
                    model.class_name: [asdict(relation) for relation in model.relations]
                    for model in definitions
                },
            ),
        )
    elif fmt == "table":
        format_relations_table(definitions)

    for model in definitions:
        for collision in model.diagnostics:
            print_info(
                f"{collision.model}.{collision.name}: {collision.dropped} dropped "
                f"in favour of {collision.kept}",
            )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
