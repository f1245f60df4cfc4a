"""Laravel migration generation from DMMF documents."""

from migrator.columns import ColumnBuilder
from migrator.errors import CircularDependencyError, RuleContractError
from migrator.main import generate_migrations
from migrator.printer import MigrationPrinter
from migrator.resolver import RuleResolver, validate_rules
from migrator.rules import Rule, UtilityRule
from migrator.sort import sort_migrations
from migrator.types import ColumnDescriptor, ColumnSet, MigrationType, MigrationUnit

__all__ = [
    "CircularDependencyError",
    "ColumnBuilder",
    "ColumnDescriptor",
    "ColumnSet",
    "MigrationPrinter",
    "MigrationType",
    "MigrationUnit",
    "Rule",
    "RuleContractError",
    "RuleResolver",
    "UtilityRule",
    "generate_migrations",
    "sort_migrations",
    "validate_rules",
]
