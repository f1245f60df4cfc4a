"""Generate ordered migration units from a DMMF document."""

from __future__ import annotations

from collections.abc import Iterable
from logging import getLogger

from dmmf.directives import parse_directives
from dmmf.main import table_name
from dmmf.types import Document, Model

from migrator.columns import MIGRATOR, ColumnBuilder
from migrator.resolver import RuleResolver
from migrator.sort import sort_migrations
from migrator.types import MigrationUnit

logger = getLogger(__name__)


def migration_unit(
    builder: ColumnBuilder,
    resolver: RuleResolver,
    model: Model,
) -> MigrationUnit:
    """Resolve one model into its migration unit."""
    columns = builder.column_set(model)
    statements = resolver.resolve(columns)
    silent = parse_directives(model["documentation"]).is_scoped("silent", MIGRATOR)
    if silent:
        logger.debug("Table %s is silent and will not be written", table_name(model))
    return MigrationUnit(
        table=columns.table,
        statements=tuple(statements),
        descriptors=tuple(columns),
        silent=silent,
    )


def generate_migrations(
    document: Document,
    rules: Iterable[object] = (),
) -> list[MigrationUnit]:
    """Resolve every model, then order the units by foreign key dependencies.

    Custom rules are validated before any table is processed.
    """
    resolver = RuleResolver(rules=rules)
    builder = ColumnBuilder(document)
    units = [
        migration_unit(builder, resolver, model)
        for model in document["datamodel"]["models"]
    ]
    return sort_migrations(units)
