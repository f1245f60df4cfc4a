"""Relationship inference from foreign key metadata and directives.

List-valued relation fields resolve by strict precedence:

1. implicit many-to-many (neither side owns a key, counterpart is a list)
2. explicit many-to-many through a pivot model
3. hasMany (the counterpart owns the key)
4. nothing (pure back-reference or ambiguous)
"""

from __future__ import annotations

import re
from logging import getLogger

from dmmf.directives import parse_directives
from dmmf.main import (
    column_names,
    get_model,
    is_unique_on,
    owns_foreign_key,
    primary_key_fields,
    relation_fields,
    table_name,
)
from dmmf.types import Document, Field, Model

from modeler.morph import MorphConfig, detect_morph_to, parse_morph_owner_directives
from modeler.types import RelationCollision, RelationDefinition, RelationKind

logger = getLogger(__name__)

MODEL = "model"
ID_SUFFIX = re.compile(r"(_id|Id)$")


def relation_name(field_name: str) -> str:
    """Accessor name for a relation field, without a trailing id suffix."""
    return ID_SUFFIX.sub("", field_name) or field_name


def pivot_name(first: str, second: str) -> str:
    """Conventional pivot table name for two tables."""
    return "_".join(sorted((first.lower(), second.lower())))


def counterpart(document: Document, model: Model, field: Field) -> Field | None:
    """The field on the other side of a relation.

    For self-relations the field itself is excluded.
    """
    related = get_model(document, field["type"])
    for candidate in relation_fields(related):
        if candidate["relationName"] != field["relationName"]:
            continue
        if candidate["type"] != model["name"]:
            continue
        if related["name"] == model["name"] and candidate["name"] == field["name"]:
            continue
        return candidate
    return None


def pivot_endpoints(
    document: Document,
    model: Model,
    field: Field,
) -> tuple[Field, Field] | None:
    """``(relation to this model, relation to the other end)`` on a pivot model.

    The related model is a pivot when the relation back to this model owns its
    key, no other owning relation points back here, and exactly one other
    owning relation has disjoint key fields whose union with the first is
    unique. Anything else is ambiguous.
    """
    pivot = get_model(document, field["type"])
    to_me = counterpart(document, model, field)
    if to_me is None or not owns_foreign_key(to_me):
        return None

    mine = set(to_me["relationFromFields"])
    others = [
        relation
        for relation in relation_fields(pivot)
        if relation is not to_me
        and owns_foreign_key(relation)
        and not mine & set(relation["relationFromFields"])
        and is_unique_on(document, pivot, mine | set(relation["relationFromFields"]))
    ]
    if len(others) != 1:
        return None
    back_to_me = [
        relation
        for relation in relation_fields(pivot)
        if owns_foreign_key(relation) and relation["type"] == model["name"]
    ]
    if any(relation is not to_me and relation is not others[0] for relation in back_to_me):
        return None
    return to_me, others[0]


def pivot_columns(pivot: Model, to_me: Field, to_them: Field) -> tuple[str, ...]:
    """Extra pivot columns marked with ``@pivot``, excluding key fields."""
    keys = {
        *to_me["relationFromFields"],
        *to_me["relationToFields"],
        *to_them["relationFromFields"],
        *to_them["relationToFields"],
    }
    names = dict.fromkeys(parse_directives(pivot["documentation"]).list_from("pivot"))
    for field in pivot["fields"]:
        if field["kind"] != "object" and parse_directives(field["documentation"]).has("pivot"):
            names[field["name"]] = None

    scalars = {field["name"] for field in pivot["fields"] if field["kind"] != "object"}
    return tuple(
        column_names(pivot, [name for name in names if name in scalars and name not in keys]),
    )


def pivot_chain(alias: str | None, columns: tuple[str, ...], *, timestamps: bool) -> str | None:
    """``as('alias')->withPivot('a', 'b')->withTimestamps()`` or None."""
    parts: list[str] = []
    if alias:
        parts.append(f"as('{alias}')")
    if columns:
        quoted = ", ".join(f"'{column}'" for column in columns)
        parts.append(f"withPivot({quoted})")
    if timestamps:
        parts.append("withTimestamps()")
    return "->".join(parts) or None


def list_relation(document: Document, model: Model, field: Field) -> RelationDefinition | None:
    """Resolve a list-valued relation field."""
    related = get_model(document, field["type"])
    other = counterpart(document, model, field)
    name = relation_name(field["name"])

    if other is not None and other["isList"] and not owns_foreign_key(field) and not owns_foreign_key(other):
        return RelationDefinition(
            name=name,
            kind=RelationKind.BELONGS_TO_MANY,
            target=related["name"],
            mode="implicit",
            pivot_table=pivot_name(table_name(model), table_name(related)),
            local_key=tuple(column_names(model, primary_key_fields(model))),
            foreign_key=tuple(column_names(related, primary_key_fields(related))),
        )

    if endpoints := pivot_endpoints(document, model, field):
        to_me, to_them = endpoints
        target = get_model(document, to_them["type"])
        directives = parse_directives(related["documentation"])
        aliases = directives.list_from("pivotAlias")
        alias = aliases[0] if aliases else None
        columns = pivot_columns(related, to_me, to_them)
        timestamps = directives.has("withTimestamps")
        return RelationDefinition(
            name=name,
            kind=RelationKind.BELONGS_TO_MANY,
            target=target["name"],
            mode="explicit",
            pivot_table=table_name(related),
            pivot_local=tuple(column_names(related, to_me["relationFromFields"])),
            pivot_foreign=tuple(column_names(related, to_them["relationFromFields"])),
            pivot_columns=columns,
            pivot_alias=alias,
            with_timestamps=timestamps,
            local_key=tuple(column_names(model, to_me["relationToFields"])),
            foreign_key=tuple(column_names(target, to_them["relationToFields"])),
            raw_chain=pivot_chain(alias, columns, timestamps=timestamps),
        )

    if other is not None and owns_foreign_key(other):
        return RelationDefinition(
            name=name,
            kind=RelationKind.HAS_MANY,
            target=related["name"],
            foreign_key=tuple(column_names(related, other["relationFromFields"])),
            local_key=tuple(column_names(model, other["relationToFields"])),
        )

    return None


def single_relation(document: Document, model: Model, field: Field) -> RelationDefinition | None:
    """Resolve a non-list relation field."""
    related = get_model(document, field["type"])
    name = relation_name(field["name"])

    if owns_foreign_key(field):
        return RelationDefinition(
            name=name,
            kind=RelationKind.BELONGS_TO,
            target=related["name"],
            foreign_key=tuple(column_names(model, field["relationFromFields"])),
            local_key=tuple(column_names(related, field["relationToFields"])),
        )

    other = counterpart(document, model, field)
    if other is None or not owns_foreign_key(other):
        return None
    return RelationDefinition(
        name=name,
        kind=RelationKind.HAS_MANY if other["isList"] else RelationKind.HAS_ONE,
        target=related["name"],
        foreign_key=tuple(column_names(related, other["relationFromFields"])),
        local_key=tuple(column_names(model, other["relationToFields"])),
    )


class RelationRegistry:
    """Collects relations for one model; the first relation with a name wins."""

    def __init__(self, model: str) -> None:
        """Start an empty registry for a model."""
        self.model = model
        self.relations: list[RelationDefinition] = []
        self.collisions: list[RelationCollision] = []
        self._by_name: dict[str, RelationDefinition] = {}

    def add(self, relation: RelationDefinition) -> bool:
        """Register a relation unless its name is taken."""
        kept = self._by_name.get(relation.name)
        if kept is not None:
            logger.warning(
                "%s.%s: %s relation dropped, name already used by %s",
                self.model,
                relation.name,
                relation.kind,
                kept.kind,
            )
            self.collisions.append(
                RelationCollision(self.model, relation.name, kept.kind, relation.kind),
            )
            return False
        self._by_name[relation.name] = relation
        self.relations.append(relation)
        return True


def infer_relations(
    document: Document,
    model: Model,
    morph: MorphConfig | None = None,
) -> RelationRegistry:
    """Infer every relation of a model, with name collisions recorded."""
    registry = RelationRegistry(model["name"])

    for field in relation_fields(model):
        if not field["relationName"]:
            continue
        directives = parse_directives(field["documentation"])
        if directives.has("ignore") or directives.is_scoped("local", MODEL):
            continue
        relation = (
            list_relation(document, model, field)
            if field["isList"]
            else single_relation(document, model, field)
        )
        if relation is None:
            logger.debug("%s.%s resolves to no relation", model["name"], field["name"])
            continue
        registry.add(relation)

    for relation in detect_morph_to(model, morph):
        registry.add(relation)
    for relation in parse_morph_owner_directives(document, model):
        registry.add(relation)

    return registry


def build_relations(
    document: Document,
    model: Model,
    morph: MorphConfig | None = None,
) -> list[RelationDefinition]:
    """Every relation of a model, each exactly once."""
    return infer_relations(document, model, morph).relations
