"""Ordered, first-match-wins resolution of a table's descriptors."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from logging import getLogger

from migrator.errors import RuleContractError
from migrator.rules import BUILTIN_RULES, UTILITY_RULES, Rule, UtilityRule, default_build
from migrator.types import ColumnSet

logger = getLogger(__name__)


def validate_rules(rules: Iterable[object]) -> tuple[Rule, ...]:
    """Check caller-supplied rules before any table is processed.

    Raises:
        RuleContractError: If a rule has no callable ``test`` or ``render``.

    """
    checked: list[Rule] = []
    for position, rule in enumerate(rules):
        test = getattr(rule, "test", None)
        render = getattr(rule, "render", None)
        if not callable(test) or not callable(render):
            name = getattr(rule, "name", None) or f"#{position}"
            msg = f"Custom rule {name} must provide callable 'test' and 'render'"
            raise RuleContractError(msg)
        if isinstance(rule, Rule):
            checked.append(rule)
        else:
            checked.append(Rule(getattr(rule, "name", f"custom_{position}"), test, render))
    return tuple(checked)


class RuleResolver:
    """Maps each descriptor of a table to statements.

    Built-in rules come first and are never shadowed by caller rules. A
    descriptor that is ignored when its turn comes is skipped; rules may
    ignore siblings (and themselves) while rendering.
    """

    def __init__(
        self,
        rules: Iterable[object] = (),
        utility_rules: Sequence[UtilityRule] = UTILITY_RULES,
    ) -> None:
        """Validate caller rules and fix the evaluation order."""
        self.custom_rules = validate_rules(rules)
        self.rules = (*BUILTIN_RULES, *self.custom_rules)
        self.utility_rules = tuple(utility_rules)

    def resolve(self, columns: ColumnSet) -> list[str]:
        """Resolve every descriptor, then apply the table-level rules once."""
        statements: list[str] = []
        for index in range(len(columns)):
            if columns[index].ignore:
                continue
            statements.extend(self.resolve_column(columns, index))

        for utility in self.utility_rules:
            statements.extend(utility.apply(columns))

        logger.debug("Resolved %s into %d statements", columns.table, len(statements))
        return statements

    def resolve_column(self, columns: ColumnSet, index: int) -> list[str]:
        """Statements for one descriptor from the first matching rule."""
        for rule in self.rules:
            if rule.test(columns, index):
                logger.debug(
                    "%s.%s matched rule %s",
                    columns.table,
                    columns[index].column,
                    rule.name,
                )
                return list(rule.render(columns, index))
        return default_build(columns, index)
