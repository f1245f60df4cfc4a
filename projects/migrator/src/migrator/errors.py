"""Exceptions raised by the migration generator."""

from __future__ import annotations


class RuleContractError(TypeError):
    """A caller-supplied rule lacks a callable ``test`` or ``render``."""


class CircularDependencyError(ValueError):
    """Foreign keys between tables form a cycle."""

    def __init__(self, stuck: list[str], edges: list[tuple[str, str]]) -> None:
        """Keep the tables that could not be ordered and every edge considered."""
        self.stuck = stuck
        self.edges = edges
        dump = ", ".join(f"{child} -> {parent}" for child, parent in edges)
        super().__init__(
            f"Circular foreign key dependency between tables {', '.join(stuck)} "
            f"(edges: {dump})",
        )
