"""Build Eloquent model definitions from a DMMF document."""

from __future__ import annotations

from logging import getLogger

from dmmf.directives import DirectiveSet, parse_directives
from dmmf.main import column_name, get_enum, relation_fields, scalar_fields, table_name
from dmmf.types import Document, Field, Model

from modeler.morph import MorphConfig
from modeler.relations import MODEL, infer_relations
from modeler.types import (
    EnumDefinition,
    ModelDefinition,
    PropertyDefinition,
    TypeAnnotation,
)

logger = getLogger(__name__)

PHP_TYPES = {
    "String": "string",
    "Boolean": "bool",
    "Int": "int",
    "BigInt": "int",
    "Float": "float",
    "Decimal": "string",
    "DateTime": "\\Illuminate\\Support\\Carbon",
    "Json": "array",
    "Bytes": "string",
}


def php_type(document: Document, field: Field) -> str:
    """PHP type of a column-backed field."""
    if field["kind"] == "enum" and get_enum(document, field["type"]):
        return field["type"]
    return PHP_TYPES.get(field["type"], "mixed")


def type_annotation(directives: DirectiveSet) -> TypeAnnotation | None:
    """``@type{import: "App\\Types\\Meta", type: "Meta"}``."""
    options = directives.mapping("type")
    if not options.get("type"):
        return None
    return TypeAnnotation(type=options["type"], import_=options.get("import"))


def build_property(document: Document, field: Field) -> PropertyDefinition:
    """Model attribute for a scalar or enum field."""
    directives = parse_directives(field["documentation"])
    cast = directives.get("cast")
    enum = get_enum(document, field["type"]) if field["kind"] == "enum" else None
    return PropertyDefinition(
        name=field["name"],
        column=column_name(field),
        php_type=php_type(document, field),
        fillable=directives.has("fillable"),
        hidden=directives.has("hidden"),
        ignore=directives.has("ignore"),
        cast=cast.body if cast and cast.body else None,
        enum_ref=enum["name"] if enum else None,
        type_annotation=type_annotation(directives),
        optional=not field["isRequired"],
        is_list=field["isList"],
    )


def eager_loads(model: Model, directives: DirectiveSet) -> list[str]:
    """Relations listed by model-level ``@with(...)`` or flagged ``@with`` fields."""
    names = dict.fromkeys(directives.list_from("with"))
    for field in relation_fields(model):
        if parse_directives(field["documentation"]).has("with"):
            names[field["name"]] = None
    return list(names)


def first_body(directives: DirectiveSet, tag: str) -> str | None:
    """Body of the first occurrence of a tag."""
    directive = directives.get(tag)
    return directive.body if directive and directive.body else None


def build_model(
    document: Document,
    model: Model,
    morph: MorphConfig | None = None,
) -> ModelDefinition:
    """Model definition with properties, relations and directive metadata."""
    directives = parse_directives(model["documentation"])
    registry = infer_relations(document, model, morph)
    guarded = directives.list_from("guarded") if directives.has("guarded") else None

    return ModelDefinition(
        class_name=model["name"],
        table=table_name(model),
        properties=[build_property(document, field) for field in scalar_fields(model)],
        relations=registry.relations,
        diagnostics=registry.collisions,
        guarded=guarded,
        with_=eager_loads(model, directives),
        traits=list(
            dict.fromkeys((directive.body, directive.alias) for directive in directives.all("trait") if directive.body),
        ),
        implements=[
            (directive.body, directive.alias)
            for directive in directives.all("implements")
            if directive.body
        ],
        observer=first_body(directives, "observer"),
        factory=first_body(directives, "factory"),
        extends=first_body(directives, "extend"),
        touches=directives.list_from("touch"),
        appends=directives.list_from("appends"),
        silent=directives.is_scoped("silent", MODEL),
        doc=directives.text,
    )


def build_models(document: Document, morph: MorphConfig | None = None) -> list[ModelDefinition]:
    """Model definitions for every model, in document order."""
    models = [build_model(document, model, morph) for model in document["datamodel"]["models"]]
    logger.debug("Built %d model definitions", len(models))
    return models


def build_enums(document: Document) -> list[EnumDefinition]:
    """Backed enum definitions; the case value is the database name."""
    return [
        EnumDefinition(
            name=enum["name"],
            cases=tuple((value["name"], value["dbName"] or value["name"]) for value in enum["values"]),
        )
        for enum in document["datamodel"]["enums"]
    ]
