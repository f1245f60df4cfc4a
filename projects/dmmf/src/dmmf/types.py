"""TypedDict schemas mirroring the Prisma DMMF document.

Keys keep the camelCase spelling of the DMMF JSON wire format so that a
document produced by ``prisma generate`` can be loaded without translation.
"""

from __future__ import annotations

from typing import Literal, NotRequired, TypedDict

type FieldKind = Literal["scalar", "enum", "object", "unsupported"]

type ReferentialAction = Literal[
    "Cascade",
    "Restrict",
    "NoAction",
    "SetNull",
    "SetDefault",
]

type IndexType = Literal["id", "unique", "normal", "fulltext"]

type Scalar = str | int | float | bool | None


class DefaultGenerator(TypedDict):
    """Default produced by a named function, e.g. ``now()`` or ``uuid(4)``."""

    name: str
    args: list[str | int | float | bool]


type DefaultValue = DefaultGenerator | Scalar | list[Scalar]


class Field(TypedDict):
    """A model field: scalar column, enum column or relation."""

    name: str
    dbName: str | None
    kind: FieldKind
    type: str
    nativeType: tuple[str, list[str]] | None
    isList: bool
    isRequired: bool
    isId: bool
    isUnique: bool
    isUpdatedAt: bool
    isGenerated: bool
    hasDefaultValue: bool
    default: NotRequired[DefaultValue]
    relationName: str | None
    relationFromFields: list[str]
    relationToFields: list[str]
    relationOnDelete: ReferentialAction | None
    relationOnUpdate: ReferentialAction | None
    documentation: str | None


class PrimaryKey(TypedDict):
    """Compound ``@@id`` declaration."""

    name: str | None
    fields: list[str]


class UniqueIndex(TypedDict):
    """Compound ``@@unique`` declaration."""

    name: str | None
    fields: list[str]


class Model(TypedDict):
    """A Prisma model backed by one table."""

    name: str
    dbName: str | None
    fields: list[Field]
    primaryKey: PrimaryKey | None
    uniqueFields: list[list[str]]
    uniqueIndexes: list[UniqueIndex]
    documentation: str | None


class EnumValue(TypedDict):
    """One member of an enum."""

    name: str
    dbName: str | None


class Enum(TypedDict):
    """A Prisma enum."""

    name: str
    values: list[EnumValue]


class IndexField(TypedDict):
    """Field reference inside an index."""

    name: str


class Index(TypedDict):
    """Primary, unique, normal or full-text index over a model's fields."""

    model: str
    type: IndexType
    name: str | None
    dbName: str | None
    isDefinedOnField: bool
    fields: list[IndexField]


class Datamodel(TypedDict):
    """Models, enums and indexes of a schema."""

    models: list[Model]
    enums: list[Enum]
    indexes: list[Index]


class Document(TypedDict):
    """Root of a DMMF document."""

    datamodel: Datamodel
