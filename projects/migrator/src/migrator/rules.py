"""Built-in rules turning column descriptors into schema builder statements.

A ``Rule`` looks at one descriptor (by handle) together with its siblings and
may suppress siblings it folds into its own statement. A ``UtilityRule`` runs
once per table over the whole ``ColumnSet``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from migrator.type_map import format_default, php_literal
from migrator.types import (
    AUTO_INCREMENT_TYPES,
    INTEGER_TYPES,
    SIGNABLE_TYPES,
    ColumnDescriptor,
    ColumnSet,
    MigrationType,
    Relationship,
)

type Test = Callable[[ColumnSet, int], bool]
type Render = Callable[[ColumnSet, int], list[str]]

ID_SUFFIX = "_id"
TYPE_SUFFIX = "_type"

TZ_TIMESTAMP_TYPES = frozenset({MigrationType.DATETIME_TZ, MigrationType.TIMESTAMP_TZ})
PLAIN_TIMESTAMP_TYPES = frozenset({MigrationType.DATETIME, MigrationType.TIMESTAMP})

FOREIGN_ID_METHODS = {
    MigrationType.INTEGER: "foreignId",
    MigrationType.BIG_INTEGER: "foreignId",
    MigrationType.UNSIGNED_INTEGER: "foreignId",
    MigrationType.UNSIGNED_BIG_INTEGER: "foreignId",
    MigrationType.UUID: "foreignUuid",
    MigrationType.ULID: "foreignUlid",
}

TIMESTAMP_PAIR = {"created_at": "updated_at", "updated_at": "created_at"}


@dataclass(frozen=True)
class Rule:
    """A (test, render) pair evaluated against one descriptor."""

    name: str
    test: Test
    render: Render


@dataclass(frozen=True)
class UtilityRule:
    """A rule applied once to a whole table."""

    name: str
    apply: Callable[[ColumnSet], list[str]]


def quote(value: str) -> str:
    """Single-quoted PHP string."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def php_list(values: Iterable[str]) -> str:
    """Single-quoted PHP array of strings."""
    return f"[{', '.join(quote(value) for value in values)}]"


def php_columns(values: tuple[str, ...]) -> str:
    """One column as a string, several as an array."""
    return quote(values[0]) if len(values) == 1 else php_list(values)


def modifiers(descriptor: ColumnDescriptor) -> str:
    """Nullability, default and comment modifiers of a column."""
    chain = ""
    if descriptor.nullable:
        chain += "->nullable()"
    if descriptor.has_default:
        chain += format_default(descriptor.column, descriptor.default)
    if descriptor.is_updated_at:
        chain += "->useCurrentOnUpdate()"
    if descriptor.comment:
        chain += f"->comment({php_literal(descriptor.comment)})"
    return chain


def actions(relationship: Relationship) -> str:
    """``onDelete`` / ``onUpdate`` modifiers, when specified."""
    chain = ""
    if relationship.on_delete:
        chain += f"->onDelete({quote(relationship.on_delete)})"
    if relationship.on_update:
        chain += f"->onUpdate({quote(relationship.on_update)})"
    return chain


# Identity


def _is_identity(columns: ColumnSet, index: int) -> bool:
    return columns[index].migration_type == MigrationType.ID


def _render_identity(columns: ColumnSet, index: int) -> list[str]:
    column = columns[index].column
    return ["$table->id();" if column == "id" else f"$table->id({quote(column)});"]


# Timestamps and soft deletes


def _timestamp_sibling(
    columns: ColumnSet,
    index: int,
    types: frozenset[MigrationType],
) -> int | None:
    """Handle of the other half of a created_at/updated_at pair of ``types``."""
    descriptor = columns[index]
    other = TIMESTAMP_PAIR.get(descriptor.column)
    if other is None or descriptor.migration_type not in types:
        return None
    sibling = columns.find(other)
    if sibling is None or columns[sibling].ignore:
        return None
    return sibling if columns[sibling].migration_type in types else None


def _timestamps(types: frozenset[MigrationType], method: str) -> tuple[Test, Render]:
    def test(columns: ColumnSet, index: int) -> bool:
        return _timestamp_sibling(columns, index, types) is not None

    def render(columns: ColumnSet, index: int) -> list[str]:
        sibling = _timestamp_sibling(columns, index, types)
        if sibling is not None:
            columns.ignore(sibling)
        return [f"$table->{method}();"]

    return test, render


def _soft_deletes(types: frozenset[MigrationType], method: str) -> tuple[Test, Render]:
    def test(columns: ColumnSet, index: int) -> bool:
        descriptor = columns[index]
        return descriptor.column == "deleted_at" and descriptor.migration_type in types

    def render(columns: ColumnSet, index: int) -> list[str]:  # noqa: ARG001
        return [f"$table->{method}();"]

    return test, render


def _is_remember_token(columns: ColumnSet, index: int) -> bool:
    descriptor = columns[index]
    return (
        descriptor.column == "remember_token"
        and descriptor.migration_type == MigrationType.STRING
    )


def _render_remember_token(columns: ColumnSet, index: int) -> list[str]:  # noqa: ARG001
    return ["$table->rememberToken();"]


# Foreign keys


def _foreign_owner(columns: ColumnSet, index: int) -> int | None:
    """Handle of the relation marker a ``<x>_id`` column can collapse into."""
    descriptor = columns[index]
    if descriptor.migration_type not in FOREIGN_ID_METHODS:
        return None
    if not descriptor.column.endswith(ID_SUFFIX):
        return None
    owner = columns.owner_of(descriptor.name)
    if owner is None:
        return None
    relationship = columns[owner].relationship
    if relationship is None or relationship.local or columns[owner].ignore:
        return None
    return owner


def _collapses_later(columns: ColumnSet, index: int) -> bool:
    """Whether a relation marker will be folded into a later ``foreignId`` column."""
    relationship = columns[index].relationship
    if relationship is None or len(relationship.fields) != 1:
        return False
    handle = columns.find_field(relationship.fields[0])
    if handle is None or handle < index or columns[handle].ignore:
        return False
    return _foreign_owner(columns, handle) == index


def _is_foreign_id(columns: ColumnSet, index: int) -> bool:
    return _foreign_owner(columns, index) is not None


def _render_foreign_id(columns: ColumnSet, index: int) -> list[str]:
    descriptor = columns[index]
    owner = _foreign_owner(columns, index)
    relationship = columns[owner].relationship if owner is not None else None
    if owner is None or relationship is None:
        return default_build(columns, index)
    columns.ignore(owner)

    method = FOREIGN_ID_METHODS[descriptor.migration_type]
    references = relationship.references[0] if relationship.references else "id"
    statement = (
        f"$table->{method}({quote(descriptor.column)})"
        f"{modifiers(descriptor)}"
        f"->constrained({quote(relationship.on)}, {quote(references)})"
        f"{actions(relationship)};"
    )
    return [statement]


# Polymorphic columns


def _morph_pair(columns: ColumnSet, index: int) -> tuple[str, int, int] | None:
    """``(base, id handle, type handle)`` when a descriptor is half of a morph pair."""
    column = columns[index].column
    if column.endswith(ID_SUFFIX):
        base = column.removesuffix(ID_SUFFIX)
    elif column.endswith(TYPE_SUFFIX):
        base = column.removesuffix(TYPE_SUFFIX)
    else:
        return None
    if not base:
        return None
    id_index = columns.find(base + ID_SUFFIX)
    type_index = columns.find(base + TYPE_SUFFIX)
    if id_index is None or type_index is None:
        return None
    if columns[id_index].ignore or columns[type_index].ignore:
        return None
    if columns[type_index].migration_type != MigrationType.STRING:
        return None
    return base, id_index, type_index


def _is_keyed_morph(columns: ColumnSet, index: int) -> bool:
    pair = _morph_pair(columns, index)
    return pair is not None and columns[pair[1]].migration_type in (
        MigrationType.UUID,
        MigrationType.ULID,
    )


def _render_keyed_morph(columns: ColumnSet, index: int) -> list[str]:
    pair = _morph_pair(columns, index)
    if pair is None:
        return default_build(columns, index)
    base, id_index, type_index = pair
    key = "Uuid" if columns[id_index].migration_type == MigrationType.UUID else "Ulid"
    nullable = columns[id_index].nullable or columns[type_index].nullable
    method = f"nullable{key}Morphs" if nullable else f"{key.lower()}Morphs"
    columns.ignore(id_index)
    columns.ignore(type_index)
    return [f"$table->{method}({quote(base)});"]


def _integer_morph(*, nullable: bool) -> tuple[Test, Render]:
    method = "nullableMorphs" if nullable else "morphs"

    def test(columns: ColumnSet, index: int) -> bool:
        pair = _morph_pair(columns, index)
        if pair is None:
            return False
        _, id_index, type_index = pair
        if columns[id_index].migration_type not in INTEGER_TYPES:
            return False
        either_nullable = columns[id_index].nullable or columns[type_index].nullable
        return either_nullable == nullable

    def render(columns: ColumnSet, index: int) -> list[str]:
        pair = _morph_pair(columns, index)
        if pair is None:
            return default_build(columns, index)
        base, id_index, type_index = pair
        columns.ignore(id_index)
        columns.ignore(type_index)
        return [f"$table->{method}({quote(base)});"]

    return test, render


# Table-level rules


def _composite_primary(columns: ColumnSet) -> list[str]:
    if len(columns.primary_key) < 2 or not columns.consume("primary"):  # noqa: PLR2004
        return []
    return [f"$table->primary({php_list(columns.primary_key)});"]


def _single_primary(columns: ColumnSet) -> list[str]:
    if len(columns.primary_key) != 1:
        return []
    handle = columns.find(columns.primary_key[0])
    if handle is not None and columns[handle].migration_type in AUTO_INCREMENT_TYPES:
        return []
    if not columns.consume("primary"):
        return []
    return [f"$table->primary({quote(columns.primary_key[0])});"]


def _indexes(columns: ColumnSet) -> list[str]:
    if not columns.indexes or not columns.consume("indexes"):
        return []
    statements: list[str] = []
    for spec in columns.indexes:
        name = f", {quote(spec.name)}" if spec.name else ""
        match spec.kind:
            case "unique" if len(spec.columns) == 1:
                statements.append(f"$table->unique({quote(spec.columns[0])});")
            case "unique":
                statements.append(f"$table->unique({php_list(spec.columns)}{name});")
            case "fulltext":
                statements.append(f"$table->fullText({php_list(spec.columns)}{name});")
            case _:
                statements.append(f"$table->index({php_list(spec.columns)}{name});")
    return statements


# Fallback


def default_build(columns: ColumnSet, index: int) -> list[str]:
    """Render a descriptor no rule claimed.

    Plain columns become ``$table->type('col', ...args)`` with their modifiers.
    An owning relation marker becomes a standalone foreign key constraint.
    """
    descriptor = columns[index]
    relationship = descriptor.relationship

    if descriptor.migration_type == MigrationType.RELATION:
        if relationship is None or not relationship.owning or relationship.local:
            return []
        if _collapses_later(columns, index):
            return []
        references = relationship.references or ("id",) * len(relationship.columns)
        return [
            f"$table->foreign({php_columns(relationship.columns)})"
            f"->references({php_columns(references)})"
            f"->on({quote(relationship.on)})"
            f"{actions(relationship)};",
        ]

    arguments = "".join(f", {php_literal(arg)}" for arg in descriptor.args)
    statement = f"$table->{descriptor.migration_type}({quote(descriptor.column)}{arguments})"
    if descriptor.unsigned and descriptor.migration_type in SIGNABLE_TYPES:
        statement += "->unsigned()"
    return [f"{statement}{modifiers(descriptor)};"]


UTILITY_RULES: tuple[UtilityRule, ...] = (
    UtilityRule("composite_primary", _composite_primary),
    UtilityRule("single_primary", _single_primary),
    UtilityRule("indexes", _indexes),
)

BUILTIN_RULES: tuple[Rule, ...] = (
    Rule("identity", _is_identity, _render_identity),
    Rule("timestamps_tz", *_timestamps(TZ_TIMESTAMP_TYPES, "timestampsTz")),
    Rule("timestamps", *_timestamps(PLAIN_TIMESTAMP_TYPES, "timestamps")),
    Rule("soft_deletes_tz", *_soft_deletes(TZ_TIMESTAMP_TYPES, "softDeletesTz")),
    Rule("soft_deletes", *_soft_deletes(PLAIN_TIMESTAMP_TYPES, "softDeletes")),
    Rule("remember_token", _is_remember_token, _render_remember_token),
    Rule("foreign_id", _is_foreign_id, _render_foreign_id),
    Rule("keyed_morphs", _is_keyed_morph, _render_keyed_morph),
    Rule("morphs", *_integer_morph(nullable=False)),
    Rule("nullable_morphs", *_integer_morph(nullable=True)),
)
