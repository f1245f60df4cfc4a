"""Exceptions raised while reading DMMF documents."""

from __future__ import annotations


class SchemaError(ValueError):
    """The document references a model that does not exist."""


class DirectiveError(ValueError):
    """A documentation directive is malformed."""
