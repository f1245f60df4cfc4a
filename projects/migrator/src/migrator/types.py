"""Type definitions for the migration generator."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

from dmmf.types import DefaultValue, FieldKind

type Action = Literal["cascade", "restrict", "no action", "set null", "set default"]


class MigrationType(StrEnum):
    """Column types of the Laravel schema builder, plus the relation marker."""

    ID = "id"
    INCREMENTS = "increments"
    BIG_INCREMENTS = "bigIncrements"
    TINY_INTEGER = "tinyInteger"
    SMALL_INTEGER = "smallInteger"
    MEDIUM_INTEGER = "mediumInteger"
    INTEGER = "integer"
    BIG_INTEGER = "bigInteger"
    UNSIGNED_TINY_INTEGER = "unsignedTinyInteger"
    UNSIGNED_SMALL_INTEGER = "unsignedSmallInteger"
    UNSIGNED_MEDIUM_INTEGER = "unsignedMediumInteger"
    UNSIGNED_INTEGER = "unsignedInteger"
    UNSIGNED_BIG_INTEGER = "unsignedBigInteger"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    CHAR = "char"
    STRING = "string"
    TINY_TEXT = "tinyText"
    TEXT = "text"
    MEDIUM_TEXT = "mediumText"
    LONG_TEXT = "longText"
    DATE = "date"
    TIME = "time"
    TIME_TZ = "timeTz"
    DATETIME = "dateTime"
    DATETIME_TZ = "dateTimeTz"
    TIMESTAMP = "timestamp"
    TIMESTAMP_TZ = "timestampTz"
    YEAR = "year"
    JSON = "json"
    JSONB = "jsonb"
    BINARY = "binary"
    UUID = "uuid"
    ULID = "ulid"
    IP_ADDRESS = "ipAddress"
    ENUM = "enum"
    RELATION = "relation"


AUTO_INCREMENT_TYPES = frozenset(
    {MigrationType.ID, MigrationType.INCREMENTS, MigrationType.BIG_INCREMENTS},
)

INTEGER_TYPES = frozenset(
    {
        MigrationType.TINY_INTEGER,
        MigrationType.SMALL_INTEGER,
        MigrationType.MEDIUM_INTEGER,
        MigrationType.INTEGER,
        MigrationType.BIG_INTEGER,
        MigrationType.UNSIGNED_TINY_INTEGER,
        MigrationType.UNSIGNED_SMALL_INTEGER,
        MigrationType.UNSIGNED_MEDIUM_INTEGER,
        MigrationType.UNSIGNED_INTEGER,
        MigrationType.UNSIGNED_BIG_INTEGER,
    },
)

# Types that accept a trailing ->unsigned() modifier
SIGNABLE_TYPES = frozenset(
    {
        MigrationType.TINY_INTEGER,
        MigrationType.SMALL_INTEGER,
        MigrationType.MEDIUM_INTEGER,
        MigrationType.INTEGER,
        MigrationType.BIG_INTEGER,
        MigrationType.FLOAT,
        MigrationType.DOUBLE,
        MigrationType.DECIMAL,
    },
)


@dataclass(frozen=True)
class Relationship:
    """Foreign key metadata carried by a relation field."""

    on: str
    references: tuple[str, ...]
    columns: tuple[str, ...]
    fields: tuple[str, ...]
    on_delete: Action | None = None
    on_update: Action | None = None
    ignore: bool = False
    local: bool = False

    @property
    def owning(self) -> bool:
        """Whether this side holds the foreign key columns."""
        return not self.ignore and bool(self.fields)


@dataclass
class ColumnDescriptor:
    """Normalized, per-field column description."""

    name: str
    column: str
    kind: FieldKind
    migration_type: MigrationType
    native_type: str
    args: list[str | int | float | list[str]] = field(default_factory=list)
    nullable: bool = False
    unsigned: bool = False
    has_default: bool = False
    default: DefaultValue = None
    comment: str | None = None
    is_id: bool = False
    is_unique: bool = False
    is_updated_at: bool = False
    relationship: Relationship | None = None
    ignore: bool = False


@dataclass(frozen=True)
class IndexSpec:
    """An index the table declares over physical columns."""

    kind: Literal["unique", "normal", "fulltext"]
    columns: tuple[str, ...]
    name: str | None = None


class ColumnSet(Sequence[ColumnDescriptor]):
    """Index-addressable arena of one table's descriptors.

    Rules address siblings by integer handle. ``ignore`` only ever sets the
    flag, so a suppressed descriptor stays suppressed for the rest of the pass.
    """

    def __init__(
        self,
        table: str,
        descriptors: Sequence[ColumnDescriptor],
        primary_key: Sequence[str] = (),
        indexes: Sequence[IndexSpec] = (),
    ) -> None:
        """Create the arena for one resolution pass."""
        self.table = table
        self._descriptors = list(descriptors)
        self.primary_key = tuple(primary_key)
        self.indexes = tuple(indexes)
        self.consumed: set[str] = set()

    def __getitem__(self, index: int) -> ColumnDescriptor:  # type: ignore[override]
        """Get the descriptor at a handle."""
        return self._descriptors[index]

    def __len__(self) -> int:
        """Return the number of descriptors."""
        return len(self._descriptors)

    def __iter__(self) -> Iterator[ColumnDescriptor]:
        """Iterate over descriptors in declaration order."""
        return iter(self._descriptors)

    def find(self, column: str) -> int | None:
        """Handle of the descriptor with a physical column name."""
        return next(
            (i for i, d in enumerate(self._descriptors) if d.column == column),
            None,
        )

    def find_field(self, name: str) -> int | None:
        """Handle of the descriptor for a field name."""
        return next(
            (i for i, d in enumerate(self._descriptors) if d.name == name),
            None,
        )

    def owner_of(self, name: str) -> int | None:
        """Handle of the relation whose only foreign key field is ``name``."""
        return next(
            (
                i
                for i, d in enumerate(self._descriptors)
                if d.relationship
                and d.relationship.owning
                and d.relationship.fields == (name,)
            ),
            None,
        )

    def ignore(self, index: int) -> None:
        """Suppress a descriptor for the rest of the pass."""
        self._descriptors[index].ignore = True

    def consume(self, flag: str) -> bool:
        """Mark a once-per-table flag; return False if it was already set."""
        if flag in self.consumed:
            return False
        self.consumed.add(flag)
        return True


@dataclass(frozen=True)
class MigrationUnit:
    """The resolved output for one table."""

    table: str
    statements: tuple[str, ...]
    descriptors: tuple[ColumnDescriptor, ...]
    silent: bool = False
