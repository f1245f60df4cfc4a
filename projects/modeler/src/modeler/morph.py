"""Polymorphic relations: child-side detection and owner-side ``@morph``."""

from __future__ import annotations

import re
from dataclasses import dataclass

from dmmf.directives import parse_directives, parse_pairs, split_arguments
from dmmf.errors import DirectiveError
from dmmf.main import column_name, get_model, scalar_fields
from dmmf.types import Document, Model

from modeler.types import MORPH_OWNER_KINDS, RelationDefinition, RelationKind

SIBILANT = re.compile(r"(s|x|z|ch|sh)$")
CONSONANT_Y = re.compile(r"[^aeiou]y$")


@dataclass(frozen=True)
class MorphConfig:
    """Column suffixes marking a ``<base>_id`` / ``<base>_type`` pair."""

    id_suffix: str = "_id"
    type_suffix: str = "_type"


def pluralize(word: str) -> str:
    """Naive English plural, good enough for accessor names."""
    if CONSONANT_Y.search(word):
        return word[:-1] + "ies"
    if SIBILANT.search(word):
        return word + "es"
    return word + "s"


def lower_camel(name: str) -> str:
    """``BlogPost`` -> ``blogPost``."""
    return name[:1].lower() + name[1:]


def morph_accessor(model_name: str, kind: RelationKind) -> str:
    """Default method name of an owner-side morph relation."""
    base = lower_camel(model_name)
    return base if kind == RelationKind.MORPH_ONE else pluralize(base)


def detect_morph_to(model: Model, config: MorphConfig | None = None) -> list[RelationDefinition]:
    """Find ``<base><id_suffix>`` + ``<base><type_suffix>`` column pairs."""
    config = config or MorphConfig()
    columns = [column_name(field) for field in scalar_fields(model)]
    present = set(columns)

    relations: list[RelationDefinition] = []
    for column in columns:
        if not column.endswith(config.id_suffix):
            continue
        base = column.removesuffix(config.id_suffix)
        type_column = f"{base}{config.type_suffix}"
        if not base or type_column not in present:
            continue
        relations.append(
            RelationDefinition(
                name=base,
                kind=RelationKind.MORPH_TO,
                morph_name=base,
                morph_id_field=column,
                morph_type_field=type_column,
            ),
        )
    return relations


def parse_morph_owner_directives(document: Document, model: Model) -> list[RelationDefinition]:
    """Relations declared with ``@morph(name: ..., type: ..., model: ...)``.

    Raises:
        DirectiveError: If name, type or model is missing or the type is unknown.
        SchemaError: If the named model does not exist.

    """
    relations: list[RelationDefinition] = []
    for directive in parse_directives(model["documentation"]).all("morph"):
        options = parse_pairs(split_arguments(directive.body or ""))

        missing = [key for key in ("name", "type", "model") if not options.get(key)]
        if missing:
            msg = f"@morph on {model['name']} is missing {', '.join(missing)}"
            raise DirectiveError(msg)

        kind = MORPH_OWNER_KINDS.get(re.sub(r"\s+", "", options["type"].lower()))
        if kind is None:
            msg = (
                f"@morph on {model['name']} has unknown type {options['type']!r}; "
                "expected one, many, to many or by many"
            )
            raise DirectiveError(msg)

        target = get_model(document, options["model"])
        relations.append(
            RelationDefinition(
                name=options.get("as") or morph_accessor(target["name"], kind),
                kind=kind,
                target=target["name"],
                pivot_table=options.get("table"),
                morph_name=options["name"],
                morph_id_field=options.get("idfield"),
                morph_type_field=options.get("typefield"),
                raw_chain=options.get("raw"),
            ),
        )
    return relations
