"""Loading and querying DMMF documents."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from dmmf.errors import SchemaError
from dmmf.types import (
    Datamodel,
    DefaultValue,
    Document,
    Enum,
    Field,
    FieldKind,
    Index,
    IndexType,
    Model,
    ReferentialAction,
)

FIELD_DEFAULTS: dict[str, Any] = {
    "dbName": None,
    "nativeType": None,
    "isList": False,
    "isRequired": True,
    "isId": False,
    "isUnique": False,
    "isUpdatedAt": False,
    "isGenerated": False,
    "hasDefaultValue": False,
    "relationName": None,
    "relationOnDelete": None,
    "relationOnUpdate": None,
    "documentation": None,
}


def _field_from_json(data: Mapping[str, Any]) -> Field:
    """Fill in optional DMMF field keys."""
    field: dict[str, Any] = {**FIELD_DEFAULTS, **data}
    field["relationFromFields"] = list(data.get("relationFromFields") or [])
    field["relationToFields"] = list(data.get("relationToFields") or [])
    if native := data.get("nativeType"):
        name, args = native
        field["nativeType"] = (name, [str(arg) for arg in args or []])
    return Field(**field)  # type: ignore[typeddict-item]


def _model_from_json(data: Mapping[str, Any]) -> Model:
    """Fill in optional DMMF model keys."""
    return {
        "name": data["name"],
        "dbName": data.get("dbName"),
        "fields": [_field_from_json(field) for field in data.get("fields", [])],
        "primaryKey": data.get("primaryKey"),
        "uniqueFields": [list(fields) for fields in data.get("uniqueFields", [])],
        "uniqueIndexes": [
            {"name": unique.get("name"), "fields": list(unique["fields"])}
            for unique in data.get("uniqueIndexes", [])
        ],
        "documentation": data.get("documentation"),
    }


def _index_from_json(data: Mapping[str, Any]) -> Index:
    """Normalize an index entry; field references may be plain names."""
    return {
        "model": data["model"],
        "type": data["type"],
        "name": data.get("name"),
        "dbName": data.get("dbName"),
        "isDefinedOnField": bool(data.get("isDefinedOnField", False)),
        "fields": [
            {"name": field} if isinstance(field, str) else {"name": field["name"]}
            for field in data.get("fields", [])
        ],
    }


def parse_document(data: Mapping[str, Any]) -> Document:
    """Build a Document from decoded DMMF JSON.

    Accepts either the full document (``{"datamodel": {...}}``) or the bare
    datamodel.
    """
    datamodel = data.get("datamodel", data)
    enums: list[Enum] = [
        {
            "name": enum["name"],
            "values": [
                {"name": value["name"], "dbName": value.get("dbName")}
                for value in enum.get("values", [])
            ],
        }
        for enum in datamodel.get("enums", [])
    ]
    return {
        "datamodel": {
            "models": [_model_from_json(model) for model in datamodel["models"]],
            "enums": enums,
            "indexes": [_index_from_json(ix) for ix in datamodel.get("indexes", [])],
        },
    }


def load_document(path: Path) -> Document:
    """Load a DMMF document from a JSON file."""
    with path.open(encoding="utf-8") as f:
        return parse_document(json.load(f))


def get_model(document: Document, name: str) -> Model:
    """Get a model by name.

    Raises:
        SchemaError: If no model has that name.

    """
    for model in document["datamodel"]["models"]:
        if model["name"] == name:
            return model
    msg = f"Unknown model referenced: {name}"
    raise SchemaError(msg)


def get_enum(document: Document, name: str) -> Enum | None:
    """Get an enum by name."""
    return next((e for e in document["datamodel"]["enums"] if e["name"] == name), None)


def get_field(model: Model, name: str) -> Field | None:
    """Get a field of a model by name."""
    return next((f for f in model["fields"] if f["name"] == name), None)


def table_name(model: Model) -> str:
    """Physical table name of a model."""
    return model["dbName"] or model["name"]


def column_name(field: Field) -> str:
    """Physical column name of a field."""
    return field["dbName"] or field["name"]


def column_names(model: Model, field_names: Iterable[str]) -> list[str]:
    """Map field names of a model to physical column names."""
    names: list[str] = []
    for name in field_names:
        field = get_field(model, name)
        names.append(column_name(field) if field else name)
    return names


def relation_fields(model: Model) -> list[Field]:
    """Relation (object) fields of a model."""
    return [field for field in model["fields"] if field["kind"] == "object"]


def scalar_fields(model: Model) -> list[Field]:
    """Column-backed fields of a model."""
    return [field for field in model["fields"] if field["kind"] != "object"]


def owns_foreign_key(field: Field) -> bool:
    """Check whether a relation field holds the foreign key columns."""
    return bool(field["relationFromFields"])


def primary_key_fields(model: Model) -> list[str]:
    """Primary key field names, from ``@@id`` or ``@id`` fields."""
    if model["primaryKey"] and model["primaryKey"]["fields"]:
        return list(model["primaryKey"]["fields"])
    return [field["name"] for field in model["fields"] if field["isId"]]


def model_indexes(document: Document, model: Model) -> list[Index]:
    """Document-level indexes declared for a model."""
    return [ix for ix in document["datamodel"]["indexes"] if ix["model"] == model["name"]]


def unique_sets(document: Document, model: Model) -> list[list[str]]:
    """Every field set that is unique on a model."""
    sets: list[list[str]] = [list(fields) for fields in model["uniqueFields"]]
    sets.extend(list(unique["fields"]) for unique in model["uniqueIndexes"])
    sets.extend(
        [field["name"] for field in index["fields"]]
        for index in model_indexes(document, model)
        if index["type"] in ("id", "unique")
    )
    sets.extend([field["name"]] for field in model["fields"] if field["isUnique"])
    if primary_key := primary_key_fields(model):
        sets.append(primary_key)
    return sets


def is_unique_on(document: Document, model: Model, fields: Iterable[str]) -> bool:
    """Check whether a set of fields is covered by a unique constraint."""
    wanted = set(fields)
    if not wanted:
        return False
    return any(set(unique) == wanted for unique in unique_sets(document, model))


def make_field(  # noqa: PLR0913
    name: str,
    type_: str,
    *,
    kind: FieldKind = "scalar",
    db_name: str | None = None,
    native_type: tuple[str, list[str]] | None = None,
    is_list: bool = False,
    is_required: bool = True,
    is_id: bool = False,
    is_unique: bool = False,
    is_updated_at: bool = False,
    default: DefaultValue | None = None,
    relation_name: str | None = None,
    relation_from: Iterable[str] = (),
    relation_to: Iterable[str] = (),
    on_delete: ReferentialAction | None = None,
    on_update: ReferentialAction | None = None,
    documentation: str | None = None,
) -> Field:
    """Build a Field with DMMF defaults for everything not given."""
    field: Field = {
        "name": name,
        "dbName": db_name,
        "kind": kind,
        "type": type_,
        "nativeType": native_type,
        "isList": is_list,
        "isRequired": is_required,
        "isId": is_id,
        "isUnique": is_unique,
        "isUpdatedAt": is_updated_at,
        "isGenerated": False,
        "hasDefaultValue": default is not None,
        "relationName": relation_name,
        "relationFromFields": list(relation_from),
        "relationToFields": list(relation_to),
        "relationOnDelete": on_delete,
        "relationOnUpdate": on_update,
        "documentation": documentation,
    }
    if default is not None:
        field["default"] = default
    return field


def make_model(
    name: str,
    fields: list[Field],
    *,
    db_name: str | None = None,
    primary_key: list[str] | None = None,
    unique_fields: list[list[str]] | None = None,
    documentation: str | None = None,
) -> Model:
    """Build a Model with DMMF defaults for everything not given."""
    return {
        "name": name,
        "dbName": db_name,
        "fields": fields,
        "primaryKey": {"name": None, "fields": primary_key} if primary_key else None,
        "uniqueFields": unique_fields or [],
        "uniqueIndexes": [],
        "documentation": documentation,
    }


def make_index(
    model: str,
    index_type: IndexType,
    fields: list[str],
    name: str | None = None,
) -> Index:
    """Build an Index over the given fields."""
    return {
        "model": model,
        "type": index_type,
        "name": name,
        "dbName": None,
        "isDefinedOnField": len(fields) == 1,
        "fields": [{"name": field} for field in fields],
    }


def make_document(
    models: list[Model],
    enums: list[Enum] | None = None,
    indexes: list[Index] | None = None,
) -> Document:
    """Wrap models, enums and indexes into a Document."""
    datamodel: Datamodel = {
        "models": models,
        "enums": enums or [],
        "indexes": indexes or [],
    }
    return {"datamodel": datamodel}
