"""Mapping of Prisma scalar and native types onto Laravel column types."""

from __future__ import annotations

import json

from dmmf.types import DefaultValue, Field, ReferentialAction

from migrator.types import Action, MigrationType

UUID_LENGTH = 36
ULID_LENGTH = 26

NATIVE_TYPES: dict[str, MigrationType] = {
    # Text
    "Text": MigrationType.TEXT,
    "TinyText": MigrationType.TINY_TEXT,
    "MediumText": MigrationType.MEDIUM_TEXT,
    "LongText": MigrationType.LONG_TEXT,
    "Char": MigrationType.CHAR,
    "NChar": MigrationType.CHAR,
    "CatalogSingleChar": MigrationType.CHAR,
    "VarChar": MigrationType.STRING,
    "NVarChar": MigrationType.STRING,
    "String": MigrationType.STRING,
    "Xml": MigrationType.TEXT,
    "NText": MigrationType.TEXT,
    "Citext": MigrationType.TEXT,
    # Boolean
    "Boolean": MigrationType.BOOLEAN,
    "Bool": MigrationType.BOOLEAN,
    "Bit": MigrationType.BOOLEAN,
    "VarBit": MigrationType.BINARY,
    # Integers
    "TinyInt": MigrationType.TINY_INTEGER,
    "UnsignedTinyInt": MigrationType.UNSIGNED_TINY_INTEGER,
    "SmallInt": MigrationType.SMALL_INTEGER,
    "UnsignedSmallInt": MigrationType.UNSIGNED_SMALL_INTEGER,
    "MediumInt": MigrationType.MEDIUM_INTEGER,
    "UnsignedMediumInt": MigrationType.UNSIGNED_MEDIUM_INTEGER,
    "Int2": MigrationType.SMALL_INTEGER,
    "Int4": MigrationType.INTEGER,
    "Int8": MigrationType.BIG_INTEGER,
    "Integer": MigrationType.INTEGER,
    "Int": MigrationType.INTEGER,
    "BigInt": MigrationType.BIG_INTEGER,
    "Long": MigrationType.BIG_INTEGER,
    "Oid": MigrationType.INTEGER,
    "UnsignedInt": MigrationType.UNSIGNED_INTEGER,
    "UnsignedBigInt": MigrationType.UNSIGNED_BIG_INTEGER,
    # Floating point and fixed precision
    "Float4": MigrationType.FLOAT,
    "Float8": MigrationType.DOUBLE,
    "Float": MigrationType.FLOAT,
    "Double": MigrationType.DOUBLE,
    "DoublePrecision": MigrationType.DOUBLE,
    "Real": MigrationType.DOUBLE,
    "Decimal": MigrationType.DECIMAL,
    "Money": MigrationType.DECIMAL,
    "SmallMoney": MigrationType.DECIMAL,
    # Date and time
    "Date": MigrationType.DATE,
    "Time": MigrationType.TIME,
    "Timetz": MigrationType.TIME_TZ,
    "Timestamp": MigrationType.TIMESTAMP,
    "Timestamptz": MigrationType.TIMESTAMP_TZ,
    "DateTime": MigrationType.TIMESTAMP,
    "DateTime2": MigrationType.DATETIME,
    "SmallDateTime": MigrationType.DATETIME,
    "DateTimeOffset": MigrationType.DATETIME_TZ,
    "Year": MigrationType.YEAR,
    # JSON and binary
    "Json": MigrationType.JSON,
    "JsonB": MigrationType.JSONB,
    "ByteA": MigrationType.BINARY,
    "Binary": MigrationType.BINARY,
    "VarBinary": MigrationType.BINARY,
    "TinyBlob": MigrationType.BINARY,
    "Blob": MigrationType.BINARY,
    "MediumBlob": MigrationType.BINARY,
    "LongBlob": MigrationType.BINARY,
    "BinData": MigrationType.BINARY,
    "Image": MigrationType.BINARY,
    "Bytes": MigrationType.BINARY,
    # Identifiers
    "Uuid": MigrationType.UUID,
    "UniqueIdentifier": MigrationType.UUID,
    "ObjectId": MigrationType.STRING,
    # Network
    "Inet": MigrationType.IP_ADDRESS,
}

# Native types whose arguments are not column widths
ARGUMENTLESS_TYPES = frozenset(
    {MigrationType.UUID, MigrationType.ULID, MigrationType.BOOLEAN, MigrationType.JSON},
)

ACTIONS: dict[ReferentialAction, Action] = {
    "Cascade": "cascade",
    "Restrict": "restrict",
    "NoAction": "no action",
    "SetNull": "set null",
    "SetDefault": "set default",
}


def _generator(default: DefaultValue) -> str | None:
    """Name of a function default, if the default is one."""
    if isinstance(default, dict):
        return default["name"]
    return None


def migration_type(field: Field) -> MigrationType:
    """Resolve the Laravel column type of a scalar field."""
    generator = _generator(field.get("default"))
    native = field["nativeType"]

    # Only a true auto-increment primary key called "id" becomes $table->id()
    if (
        field["name"] == "id"
        and field["kind"] == "scalar"
        and field["isId"]
        and generator == "autoincrement"
    ):
        return MigrationType.ID

    if generator == "autoincrement":
        return (
            MigrationType.BIG_INCREMENTS
            if field["type"] == "BigInt"
            else MigrationType.INCREMENTS
        )

    if field["type"] == "String" and native and native[0] == "Char" and native[1]:
        length = int(native[1][0]) if native[1][0].isdigit() else None
        if length == UUID_LENGTH:
            return MigrationType.UUID
        if length == ULID_LENGTH:
            return MigrationType.ULID

    key = native[0] if native else field["type"]
    return NATIVE_TYPES.get(key, MigrationType.STRING)


def native_arguments(field: Field) -> list[str | int | float | list[str]]:
    """Width, precision and scale hints from a native type."""
    native = field["nativeType"]
    if not native:
        return []
    arguments: list[str | int | float | list[str]] = []
    for arg in native[1]:
        try:
            arguments.append(int(arg))
        except ValueError:
            try:
                arguments.append(float(arg))
            except ValueError:
                arguments.append(arg)
    return arguments


def referential_action(action: ReferentialAction | None) -> Action | None:
    """Map a Prisma referential action to a Laravel one."""
    if action is None:
        return None
    return ACTIONS.get(action, "restrict")


def php_literal(value: object) -> str:
    """Render a Python value as a PHP literal."""
    return json.dumps(value, ensure_ascii=False)


def format_default(column: str, default: DefaultValue) -> str:
    """Render the default-value modifier chain for a column."""
    if default is None:
        return ""

    if isinstance(default, dict):
        name = default["name"]
        args = default.get("args") or []
        match name:
            case "autoincrement":
                return ""
            case "now":
                return "->useCurrent()"
            case "dbgenerated":
                expression = args[0] if args else ""
                return f"->default(DB::raw({php_literal(expression)}))"
            case "sequence":
                sequence = args[0] if args else f"{column}_seq"
                return f"->default(DB::raw(\"nextval('{sequence}')\"))"
            case "uuid":
                return "->default(DB::raw('gen_random_uuid()'))"
            case _:
                # cuid(), ulid(), nanoid() and friends have no native equivalent
                return f"->default(DB::raw('{name}()'))"

    return f"->default({php_literal(default)})"
