"""Drilling simulation engine."""
from .checkpoints import Checkpoint, CheckpointStore
from .events import (
    ActionRecord,
    EventRecord,
    FormationTransition,
    LogEntry,
    MissedWarning,
    Severity,
    WarningKind,
)
from .recorder import LogSample
from .risk import RiskAssessment, RiskType
from .scenarios import Scenario
from .simulation import SimulationEngine
from .state import (
    BopStatus,
    ClockStatus,
    ControlState,
    Drawworks,
    EngineSnapshot,
    EquipmentStatus,
    SimulationState,
    TripDirection,
    WellType,
)
from .terminal import GameOverRecord

__all__ = [
    "ActionRecord",
    "BopStatus",
    "Checkpoint",
    "CheckpointStore",
    "ClockStatus",
    "ControlState",
    "Drawworks",
    "EngineSnapshot",
    "EquipmentStatus",
    "EventRecord",
    "FormationTransition",
    "GameOverRecord",
    "LogEntry",
    "LogSample",
    "MissedWarning",
    "RiskAssessment",
    "RiskType",
    "Scenario",
    "Severity",
    "SimulationEngine",
    "SimulationState",
    "TripDirection",
    "WarningKind",
    "WellType",
]
