"""Generator settings loaded from a TOML file."""

from __future__ import annotations

from pathlib import Path
from tomllib import TOMLDecodeError, load
from typing import Any, TypedDict

from modeler.printer import DEFAULT_END_MARKER, DEFAULT_START_MARKER


class MorphSettings(TypedDict):
    """Column suffixes used to detect polymorphic pairs."""

    id_suffix: str
    type_suffix: str


class GeneratorConfig(TypedDict):
    """Where generated files go and how they are merged."""

    migrations_dir: str
    models_dir: str
    enums_dir: str
    namespace: str
    enum_namespace: str
    overwrite: bool
    start_marker: str
    end_marker: str
    morph: MorphSettings


CONFIG_FILE = "prisma-laravel.toml"


def default_config() -> GeneratorConfig:
    """Settings used for every key the file leaves out."""
    return {
        "migrations_dir": "database/migrations",
        "models_dir": "app/Models",
        "enums_dir": "app/Enums",
        "namespace": "App\\Models",
        "enum_namespace": "App\\Enums",
        "overwrite": False,
        "start_marker": DEFAULT_START_MARKER,
        "end_marker": DEFAULT_END_MARKER,
        "morph": {"id_suffix": "_id", "type_suffix": "_type"},
    }


def _merge(defaults: dict[str, Any], values: dict[str, Any], prefix: str = "") -> None:
    """Overlay known keys onto the defaults, checking their types."""
    for key, default in defaults.items():
        if key not in values:
            continue
        value = values[key]
        if isinstance(default, dict):
            if not isinstance(value, dict):
                msg = f"Config section [{prefix}{key}] must be a table"
                raise ValueError(msg)
            _merge(default, value, f"{prefix}{key}.")
        elif not isinstance(value, type(default)):
            msg = (
                f"Config key {prefix}{key} must be {type(default).__name__}, "
                f"got {type(value).__name__}"
            )
            raise ValueError(msg)
        else:
            defaults[key] = value


def load_config(path: Path | None = None) -> GeneratorConfig:
    """Load generator settings, falling back to defaults.

    Without an explicit path, ``prisma-laravel.toml`` in the working directory
    is used when present. Unknown keys and sections are ignored.

    Raises:
        ValueError: If the file is not valid TOML or a key has the wrong type.

    """
    config = default_config()
    if path is None:
        path = Path.cwd() / CONFIG_FILE
        if not path.exists():
            return config

    with path.open("rb") as f:
        try:
            values = load(f)
        except TOMLDecodeError as err:
            msg = f"Invalid config file {path}: {err}"
            raise ValueError(msg) from err

    _merge(config, values)  # type: ignore[arg-type]
    return config
