"""Type definitions for Eloquent model generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

type PivotMode = Literal["implicit", "explicit"]


class RelationKind(StrEnum):
    """Eloquent relation methods."""

    BELONGS_TO = "belongsTo"
    HAS_ONE = "hasOne"
    HAS_MANY = "hasMany"
    BELONGS_TO_MANY = "belongsToMany"
    MORPH_TO = "morphTo"
    MORPH_ONE = "morphOne"
    MORPH_MANY = "morphMany"
    MORPH_TO_MANY = "morphToMany"
    MORPHED_BY_MANY = "morphedByMany"


# Morph kinds declared on the owner side, keyed by the normalized @morph type
MORPH_OWNER_KINDS = {
    "one": RelationKind.MORPH_ONE,
    "many": RelationKind.MORPH_MANY,
    "tomany": RelationKind.MORPH_TO_MANY,
    "bymany": RelationKind.MORPHED_BY_MANY,
}


@dataclass(frozen=True)
class RelationDefinition:
    """A resolved relation method of a model.

    ``foreign_key`` and ``local_key`` follow Eloquent's argument order: for
    belongsTo the foreign key lives on this model, for hasOne/hasMany on the
    related one. All key tuples hold physical column names.
    """

    name: str
    kind: RelationKind
    target: str | None = None
    foreign_key: tuple[str, ...] = ()
    local_key: tuple[str, ...] = ()
    mode: PivotMode | None = None
    pivot_table: str | None = None
    pivot_local: tuple[str, ...] = ()
    pivot_foreign: tuple[str, ...] = ()
    pivot_columns: tuple[str, ...] = ()
    pivot_alias: str | None = None
    with_timestamps: bool = False
    morph_name: str | None = None
    morph_id_field: str | None = None
    morph_type_field: str | None = None
    raw_chain: str | None = None


@dataclass(frozen=True)
class RelationCollision:
    """A relation dropped because an earlier one already used its name."""

    model: str
    name: str
    kept: RelationKind
    dropped: RelationKind


@dataclass(frozen=True)
class TypeAnnotation:
    """``@type{import: ..., type: ...}`` hint for a property."""

    type: str
    import_: str | None = None


@dataclass(frozen=True)
class PropertyDefinition:
    """A column-backed attribute of a model."""

    name: str
    column: str
    php_type: str
    fillable: bool = False
    hidden: bool = False
    ignore: bool = False
    cast: str | None = None
    enum_ref: str | None = None
    type_annotation: TypeAnnotation | None = None
    optional: bool = False
    is_list: bool = False


@dataclass(frozen=True)
class EnumDefinition:
    """A schema enum rendered as a backed PHP enum."""

    name: str
    cases: tuple[tuple[str, str], ...]


@dataclass
class ModelDefinition:
    """Everything needed to print one Eloquent model."""

    class_name: str
    table: str
    properties: list[PropertyDefinition] = field(default_factory=list)
    relations: list[RelationDefinition] = field(default_factory=list)
    diagnostics: list[RelationCollision] = field(default_factory=list)
    guarded: list[str] | None = None
    with_: list[str] = field(default_factory=list)
    traits: list[tuple[str, str | None]] = field(default_factory=list)
    implements: list[tuple[str, str | None]] = field(default_factory=list)
    observer: str | None = None
    factory: str | None = None
    extends: str | None = None
    touches: list[str] = field(default_factory=list)
    appends: list[str] = field(default_factory=list)
    silent: bool = False
    doc: str | None = None
