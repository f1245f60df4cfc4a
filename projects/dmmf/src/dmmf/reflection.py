"""Build a DMMF document by reflecting an existing database."""

from __future__ import annotations

import re
from collections import defaultdict
from pathlib import Path
from typing import Any
from warnings import catch_warnings, filterwarnings

from sqlalchemy import Engine, MetaData, create_engine
from sqlalchemy.exc import SAWarning
from sqlalchemy.schema import (
    Column,
    ForeignKeyConstraint,
    Table,
    UniqueConstraint,
)
from sqlalchemy.types import (
    JSON,
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Float,
    Integer,
    LargeBinary,
    Numeric,
    SmallInteger,
    String,
    Text,
    Time,
    TypeEngine,
    Uuid,
)

from dmmf.main import make_document, make_field, make_index, make_model
from dmmf.types import (
    DefaultValue,
    Document,
    Field,
    Index,
    Model,
    ReferentialAction,
)

ACTIONS: dict[str, ReferentialAction] = {
    "CASCADE": "Cascade",
    "RESTRICT": "Restrict",
    "NO ACTION": "NoAction",
    "SET NULL": "SetNull",
    "SET DEFAULT": "SetDefault",
}

NOW_DEFAULTS = {"CURRENT_TIMESTAMP", "NOW()", "CURRENT_TIMESTAMP()"}
NUMBER = re.compile(r"^-?\d+(\.\d+)?$")


def read_only_sqlite(sqlite_location: Path) -> Engine:
    """Create a read-only SQLAlchemy engine for SQLite database."""
    connection_string = f"sqlite:///{sqlite_location}?mode=ro"
    return create_engine(connection_string, connect_args={"uri": True})


def pascal_case(name: str) -> str:
    """Convert a table name to PascalCase."""
    return "".join(word[:1].upper() + word[1:] for word in name.split("_") if word)


def prisma_type(sql_type: TypeEngine[Any]) -> tuple[str, tuple[str, list[str]] | None]:
    """Map a SQLAlchemy type to a Prisma scalar type and optional native type."""
    match sql_type:
        case Boolean():
            return "Boolean", None
        case BigInteger():
            return "BigInt", None
        case SmallInteger():
            return "Int", ("SmallInt", [])
        case Integer():
            return "Int", None
        case Float():
            return "Float", None
        case Numeric() if sql_type.precision is not None:
            scale = [] if sql_type.scale is None else [str(sql_type.scale)]
            return "Decimal", ("Decimal", [str(sql_type.precision), *scale])
        case Numeric():
            return "Decimal", None
        case Uuid():
            return "String", ("Uuid", [])
        case Text():
            return "String", ("Text", [])
        case String() if sql_type.length:
            return "String", ("VarChar", [str(sql_type.length)])
        case String():
            return "String", None
        case DateTime() if sql_type.timezone:
            return "DateTime", ("Timestamptz", [])
        case DateTime():
            return "DateTime", None
        case Date():
            return "DateTime", ("Date", [])
        case Time():
            return "DateTime", ("Time", [])
        case LargeBinary():
            return "Bytes", None
        case JSON():
            return "Json", None
        case _:
            return "String", None


def reflected_default(column: Column[Any]) -> DefaultValue | None:
    """Translate a reflected server default into a DMMF default."""
    if column.server_default is None:
        return None

    text = str(getattr(column.server_default, "arg", "")).strip()
    if text.upper() in NOW_DEFAULTS:
        return {"name": "now", "args": []}
    if len(text) >= 2 and text[0] == text[-1] == "'":  # noqa: PLR2004
        return text[1:-1]
    if NUMBER.match(text):
        return float(text) if "." in text else int(text)
    return {"name": "dbgenerated", "args": [text]}


def _is_autoincrement(table: Table, column: Column[Any]) -> bool:
    """Single integer primary keys are implicitly auto-incremented."""
    pk_columns = list(table.primary_key.columns)
    return (
        len(pk_columns) == 1
        and pk_columns[0] is column
        and isinstance(column.type, Integer)
        and column.autoincrement in (True, "auto")
    )


def _scalar_field(table: Table, column: Column[Any]) -> Field:
    """Derive a scalar Field from a reflected column."""
    type_name, native_type = prisma_type(column.type)
    default = (
        {"name": "autoincrement", "args": []}
        if _is_autoincrement(table, column)
        else reflected_default(column)
    )
    return make_field(
        column.name,
        type_name,
        native_type=native_type,
        is_required=not column.nullable,
        is_id=column.primary_key and len(table.primary_key.columns) == 1,
        is_unique=any(
            isinstance(c, UniqueConstraint) and list(c.columns.keys()) == [column.name]
            for c in table.constraints
        ),
        default=default,
        documentation=column.comment,
    )


def _relation_accessor(constraint: ForeignKeyConstraint) -> str:
    """Name of the owning relation field for a foreign key."""
    columns = constraint.column_keys
    if len(columns) == 1 and columns[0].endswith("_id"):
        return columns[0].removesuffix("_id")
    return constraint.referred_table.name


def _unique_name(name: str, taken: set[str]) -> str:
    """Suffix a name until it does not clash with existing field names."""
    candidate = name
    while candidate in taken:
        candidate = f"{candidate}_rel"
    taken.add(candidate)
    return candidate


def _relation_fields(
    tables: list[Table],
    fields: dict[str, list[Field]],
) -> None:
    """Add owning relation fields and their back-references for every FK."""
    taken = {table.name: {field["name"] for field in fields[table.name]} for table in tables}

    for table in tables:
        for constraint in sorted(table.foreign_key_constraints, key=lambda c: c.column_keys):
            target = constraint.referred_table
            if target.name not in fields:
                continue
            local = list(constraint.column_keys)
            referred = [element.column.name for element in constraint.elements]
            relation = f"{table.name}_{'_'.join(local)}"
            nullable = any(table.columns[name].nullable for name in local)
            one_to_one = any(
                isinstance(c, UniqueConstraint) and set(c.columns.keys()) == set(local)
                for c in table.constraints
            ) or set(local) == set(table.primary_key.columns.keys())

            fields[table.name].append(
                make_field(
                    _unique_name(_relation_accessor(constraint), taken[table.name]),
                    pascal_case(target.name),
                    kind="object",
                    is_required=not nullable,
                    relation_name=relation,
                    relation_from=local,
                    relation_to=referred,
                    on_delete=ACTIONS.get((constraint.ondelete or "").upper()),
                    on_update=ACTIONS.get((constraint.onupdate or "").upper()),
                ),
            )
            fields[target.name].append(
                make_field(
                    _unique_name(table.name, taken[target.name]),
                    pascal_case(table.name),
                    kind="object",
                    is_list=not one_to_one,
                    is_required=not one_to_one,
                    relation_name=relation,
                ),
            )


def _indexes(table: Table) -> list[Index]:
    """Document indexes for a reflected table."""
    model = pascal_case(table.name)
    return [
        make_index(
            model,
            "unique" if index.unique else "normal",
            [column.name for column in index.columns],
            index.name,
        )
        for index in sorted(table.indexes, key=lambda ix: ix.name or "")
    ]


def _model(table: Table, fields: list[Field]) -> Model:
    """Derive a Model from a reflected table."""
    pk = list(table.primary_key.columns.keys())
    uniques = sorted(
        list(constraint.columns.keys())
        for constraint in table.constraints
        if isinstance(constraint, UniqueConstraint) and len(constraint.columns) > 1
    )
    return make_model(
        pascal_case(table.name),
        fields,
        db_name=table.name,
        primary_key=pk if len(pk) > 1 else None,
        unique_fields=uniques,
        documentation=table.comment,
    )


def reflect_tables(engine: Engine) -> list[Table]:
    """Reflect all tables of a database in dependency order."""
    metadata = MetaData()
    metadata.reflect(bind=engine)
    with catch_warnings():
        filterwarnings("ignore", category=SAWarning)
        return metadata.sorted_tables


def database_to_document(engine: Engine) -> Document:
    """Generate a DMMF document from a database using metadata reflection."""
    tables = reflect_tables(engine)
    fields: dict[str, list[Field]] = defaultdict(list)
    for table in tables:
        fields[table.name] = [_scalar_field(table, column) for column in table.columns]

    _relation_fields(tables, fields)

    return make_document(
        [_model(table, fields[table.name]) for table in tables],
        indexes=[index for table in tables for index in _indexes(table)],
    )
