"""Configuration module for the drilling simulator."""
from pydantic import ValidationError

from .schemas import (
    ControlSettings,
    EngineSettings,
    FormationLayerConfig,
    ScenarioName,
    SessionConfig,
    WellTypeName,
)

__all__ = [
    "ControlSettings",
    "EngineSettings",
    "FormationLayerConfig",
    "ScenarioName",
    "SessionConfig",
    "ValidationError",
    "WellTypeName",
]
