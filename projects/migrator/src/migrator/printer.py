"""Render migration units as Laravel migration files."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from migrator.types import MigrationUnit

DEFAULT_START_MARKER = "// <prisma-laravel:start>"
DEFAULT_END_MARKER = "// <prisma-laravel:end>"
INDENT = " " * 12


class MigrationPrinter:
    """Prints a unit into the migration template.

    The statements are wrapped in start/end marker comments so a later run can
    replace only the generated region of a file that was edited by hand.
    """

    def __init__(
        self,
        start_marker: str = DEFAULT_START_MARKER,
        end_marker: str = DEFAULT_END_MARKER,
    ) -> None:
        """Set up the Jinja2 environment over the bundled templates."""
        self.start_marker = start_marker
        self.end_marker = end_marker
        template_dir = Path(__file__).parent / "templates"
        env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=False,  # noqa: S701
            keep_trailing_newline=True,
        )
        self.template = env.get_template("migration.php.jinja")

    def block(self, unit: MigrationUnit) -> str:
        """The marked region holding the unit's statements."""
        lines = [self.start_marker, *unit.statements, self.end_marker]
        return "\n".join(f"{INDENT}{line}" for line in lines)

    def print(self, unit: MigrationUnit) -> str:
        """Full text of the migration file."""
        return self.template.render(table=unit.table, block=self.block(unit))
