"""Dependency ordering of migration units."""

from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Sequence
from logging import getLogger

from migrator.errors import CircularDependencyError
from migrator.types import MigrationUnit

logger = getLogger(__name__)


def dependency_edges(units: Sequence[MigrationUnit]) -> list[tuple[str, str]]:
    """``(child, parent)`` pairs for every owning foreign key inside the batch.

    Edges to tables outside the batch and self references are dropped.
    """
    tables = {unit.table for unit in units}
    edges: dict[tuple[str, str], None] = {}
    for unit in units:
        for descriptor in unit.descriptors:
            relationship = descriptor.relationship
            if relationship is None or not relationship.owning or relationship.local:
                continue
            if relationship.on == unit.table or relationship.on not in tables:
                continue
            edges[(unit.table, relationship.on)] = None
    return list(edges)


def sort_migrations(units: Sequence[MigrationUnit]) -> list[MigrationUnit]:
    """Order units so every referenced table precedes the tables referring to it.

    Ties keep input order.

    Raises:
        CircularDependencyError: If the foreign keys form a cycle.

    """
    by_table = {unit.table: unit for unit in units}
    edges = dependency_edges(units)

    in_degree = dict.fromkeys(by_table, 0)
    dependents: dict[str, list[str]] = defaultdict(list)
    for child, parent in edges:
        dependents[parent].append(child)
        in_degree[child] += 1

    queue = deque(table for table, degree in in_degree.items() if degree == 0)
    order: list[str] = []

    while queue:
        current = queue.popleft()
        order.append(current)
        for child in dependents[current]:
            in_degree[child] -= 1
            if in_degree[child] == 0:
                queue.append(child)

    if len(order) != len(by_table):
        stuck = [table for table, degree in in_degree.items() if degree > 0]
        raise CircularDependencyError(stuck, edges)

    logger.debug("Migration order: %s", ", ".join(order))
    return [by_table[table] for table in order]
