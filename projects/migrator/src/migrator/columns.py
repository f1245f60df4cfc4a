"""Builds column descriptors from DMMF fields."""

from __future__ import annotations

from dmmf.directives import parse_directives
from dmmf.main import (
    column_name,
    column_names,
    get_enum,
    get_field,
    get_model,
    model_indexes,
    primary_key_fields,
    relation_fields,
    table_name,
)
from dmmf.types import Document, Field, Model

from migrator.type_map import (
    ARGUMENTLESS_TYPES,
    migration_type,
    native_arguments,
    referential_action,
)
from migrator.types import (
    ColumnDescriptor,
    ColumnSet,
    IndexSpec,
    MigrationType,
    Relationship,
)

MIGRATOR = "migrator"


class ColumnBuilder:
    """Normalizes every field of a model into a ColumnDescriptor."""

    def __init__(self, document: Document) -> None:
        """Keep the document for cross-model lookups."""
        self.document = document

    def columns(self, model: Model) -> list[ColumnDescriptor]:
        """Descriptors for all fields of a model, in declaration order."""
        return [self.column(model, field) for field in model["fields"]]

    def column_set(self, model: Model) -> ColumnSet:
        """A fresh arena for one resolution pass over a model."""
        return ColumnSet(
            table_name(model),
            self.columns(model),
            primary_key=column_names(model, primary_key_fields(model)),
            indexes=self.indexes(model),
        )

    def column(self, model: Model, field: Field) -> ColumnDescriptor:
        """Build the descriptor for one field."""
        directives = parse_directives(field["documentation"])
        native = field["nativeType"]
        descriptor = ColumnDescriptor(
            name=field["name"],
            column=column_name(field),
            kind=field["kind"],
            migration_type=migration_type(field),
            native_type=f"{native[0]}({','.join(native[1])})" if native else field["type"],
            args=native_arguments(field),
            nullable=not field["isRequired"],
            unsigned=self.is_unsigned(model, field),
            has_default=field["hasDefaultValue"],
            default=field.get("default"),
            comment=directives.text,
            is_id=field["isId"],
            is_unique=field["isUnique"],
            is_updated_at=field["isUpdatedAt"],
        )

        if field["kind"] == "enum":
            enum = get_enum(self.document, field["type"])
            descriptor.migration_type = MigrationType.ENUM
            descriptor.args = [[value["dbName"] or value["name"] for value in enum["values"]]] if enum else []

        if descriptor.migration_type in ARGUMENTLESS_TYPES:
            descriptor.args = []

        if field["kind"] == "object" and field["relationName"]:
            relationship = self.relationship(model, field)
            descriptor.migration_type = MigrationType.RELATION
            descriptor.relationship = relationship
            descriptor.args = []
            descriptor.ignore = relationship.ignore or relationship.local

        return descriptor

    def relationship(self, model: Model, field: Field) -> Relationship:
        """Foreign key metadata for a relation field."""
        related = get_model(self.document, field["type"])
        references = field["relationToFields"] or (primary_key_fields(related) or ["id"])
        return Relationship(
            on=table_name(related),
            references=tuple(column_names(related, references)),
            columns=tuple(column_names(model, field["relationFromFields"])),
            fields=tuple(field["relationFromFields"]),
            on_delete=referential_action(field["relationOnDelete"]),
            on_update=referential_action(field["relationOnUpdate"]),
            ignore=not field["relationFromFields"],
            local=parse_directives(field["documentation"]).is_scoped("local", MIGRATOR),
        )

    def is_unsigned(
        self,
        model: Model,
        field: Field,
        seen: frozenset[tuple[str, str]] = frozenset(),
    ) -> bool:
        """Whether a column is unsigned, inheriting through foreign keys."""
        if field["isId"] or field["isGenerated"]:
            return True
        native = field["nativeType"]
        if native and "unsigned" in native[0].lower():
            return True
        if parse_directives(field["documentation"]).has("unsigned"):
            return True

        key = (model["name"], field["name"])
        if key in seen:
            return False

        for relation in relation_fields(model):
            if field["name"] not in relation["relationFromFields"]:
                continue
            position = relation["relationFromFields"].index(field["name"])
            if position >= len(relation["relationToFields"]):
                continue
            related = get_model(self.document, relation["type"])
            referenced = get_field(related, relation["relationToFields"][position])
            if referenced is not None:
                return self.is_unsigned(related, referenced, seen | {key})
        return False

    def indexes(self, model: Model) -> list[IndexSpec]:
        """Unique, normal and full-text indexes of a model over physical columns."""
        specs: dict[tuple[str, tuple[str, ...]], IndexSpec] = {}

        def add(spec: IndexSpec) -> None:
            specs.setdefault((spec.kind, spec.columns), spec)

        for field in model["fields"]:
            if field["isUnique"] and field["kind"] != "object":
                add(IndexSpec("unique", (column_name(field),)))
        for fields in model["uniqueFields"]:
            add(IndexSpec("unique", tuple(column_names(model, fields))))
        for unique in model["uniqueIndexes"]:
            add(IndexSpec("unique", tuple(column_names(model, unique["fields"])), unique["name"]))
        for index in model_indexes(self.document, model):
            if index["type"] == "id":
                continue
            columns = tuple(column_names(model, [f["name"] for f in index["fields"]]))
            add(IndexSpec(index["type"], columns, index["dbName"] or index["name"]))

        return list(specs.values())
