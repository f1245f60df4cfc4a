"""Write generated files without clobbering hand-written code."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from logging import getLogger
from pathlib import Path

logger = getLogger(__name__)


class WriteStatus(StrEnum):
    """Outcome of writing one generated file."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


def marked_region(text: str, start: str, end: str) -> tuple[int, int] | None:
    """Span of the lines holding the start marker through the end marker."""
    start_at = text.find(start)
    if start_at == -1:
        return None
    end_at = text.find(end, start_at + len(start))
    if end_at == -1:
        return None
    line_start = text.rfind("\n", 0, start_at) + 1
    line_end = text.find("\n", end_at)
    return line_start, len(text) if line_end == -1 else line_end


def merge_content(
    existing: str,
    content: str,
    generated: str,
    start: str,
    end: str,
    *,
    overwrite: bool,
) -> str | None:
    """New text for an existing file, or None when it must be left alone.

    When both markers are present only the marked lines are replaced with
    ``generated``; everything outside them is kept. Without markers the whole
    file is replaced only if ``overwrite`` is set.
    """
    if region := marked_region(existing, start, end):
        line_start, line_end = region
        return existing[:line_start] + generated + existing[line_end:]
    if overwrite:
        return content
    return None


def write_with_markers(
    path: Path,
    content: str,
    generated: str,
    start: str,
    end: str,
    *,
    overwrite: bool = False,
) -> WriteStatus:
    """Create or update a generated file."""
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.debug("Created %s", path)
        return WriteStatus.CREATED

    existing = path.read_text(encoding="utf-8")
    updated = merge_content(existing, content, generated, start, end, overwrite=overwrite)
    if updated is None:
        logger.info("Skipped %s: no generated region and overwrite is off", path)
        return WriteStatus.SKIPPED
    if updated == existing:
        return WriteStatus.UNCHANGED

    path.write_text(updated, encoding="utf-8")
    logger.debug("Updated %s", path)
    return WriteStatus.UPDATED


def migration_filename(directory: Path, table: str, index: int, now: datetime) -> Path:
    """Path of the migration creating a table.

    An existing ``*_create_<table>_table.php`` is reused so that reruns update
    it in place; otherwise a Laravel timestamp prefix is used, with ``index``
    keeping files generated in the same second in dependency order.
    """
    suffix = f"_create_{table}_table.php"
    if directory.is_dir():
        existing = sorted(p for p in directory.iterdir() if p.name.endswith(suffix))
        if existing:
            return existing[0]
    return directory / f"{now:%Y_%m_%d_%H%M%S}_{index}{suffix}"
