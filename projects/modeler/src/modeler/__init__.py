"""Eloquent model and relationship generation from DMMF documents."""

from modeler.main import build_enums, build_model, build_models
from modeler.morph import MorphConfig, detect_morph_to, parse_morph_owner_directives
from modeler.printer import ModelPrinter
from modeler.relations import build_relations, infer_relations
from modeler.types import (
    EnumDefinition,
    ModelDefinition,
    PropertyDefinition,
    RelationCollision,
    RelationDefinition,
    RelationKind,
)

__all__ = [
    "EnumDefinition",
    "ModelDefinition",
    "ModelPrinter",
    "MorphConfig",
    "PropertyDefinition",
    "RelationCollision",
    "RelationDefinition",
    "RelationKind",
    "build_enums",
    "build_model",
    "build_models",
    "build_relations",
    "detect_morph_to",
    "infer_relations",
    "parse_morph_owner_directives",
]
