"""Subsurface formation model."""
from .model import (
    DEFAULT_PROPERTIES,
    FormationError,
    FormationLayer,
    FormationModel,
    FormationProperties,
    Lithology,
    RecommendedParameters,
)

__all__ = [
    "DEFAULT_PROPERTIES",
    "FormationError",
    "FormationLayer",
    "FormationModel",
    "FormationProperties",
    "Lithology",
    "RecommendedParameters",
]
