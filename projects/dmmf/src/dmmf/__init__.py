"""Prisma DMMF schema documents: loading, lookups, directives and reflection."""

from dmmf.directives import DirectiveSet, parse_directives, strip_directives
from dmmf.errors import DirectiveError, SchemaError
from dmmf.main import (
    column_name,
    get_field,
    get_model,
    is_unique_on,
    load_document,
    parse_document,
    primary_key_fields,
    table_name,
)
from dmmf.reflection import database_to_document, read_only_sqlite

__all__ = [
    "DirectiveError",
    "DirectiveSet",
    "SchemaError",
    "column_name",
    "database_to_document",
    "get_field",
    "get_model",
    "is_unique_on",
    "load_document",
    "parse_directives",
    "parse_document",
    "primary_key_fields",
    "read_only_sqlite",
    "strip_directives",
    "table_name",
]
