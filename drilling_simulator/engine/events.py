"""Event records, event type constants and warning bookkeeping.

Every record here is immutable once created. The engine appends them to
bounded logs and hands out copies.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

# =============================================================================
# Event Type Constants
# =============================================================================

EVENT_KICK = "kick"
EVENT_KICK_DETECTED = "kickDetected"
EVENT_KICK_HANDLED = "kickHandled"
EVENT_LOST_CIRCULATION = "lostCirculation"
EVENT_SEVERE_LOST_CIRCULATION = "severeLostCirculation"
EVENT_SWAB_KICK = "swabKick"
EVENT_SURGE_LOSS = "surgeLoss"
EVENT_HIGH_VIBRATION = "highVibration"
EVENT_HIGH_TORQUE = "highTorque"
EVENT_BOP_WITH_ROTATION = "bopWithRotation"
EVENT_BOP_ACTIVATION = "bopActivation"
EVENT_FORMATION_TRANSITION = "formationTransition"
EVENT_RISK_INCREASED = "riskIncreased"
EVENT_RISK_DECREASED = "riskDecreased"
EVENT_CHECKPOINT = "checkpoint"
EVENT_CHECKPOINT_LOADED = "checkpointLoaded"
EVENT_CASING_RUN = "casingRun"
EVENT_GAME_OVER = "gameOver"


class Severity(str, Enum):
    """How loudly the host should present an event."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"
    SUCCESS = "success"


def _now_iso() -> str:
    """Return current time as ISO format string."""
    return datetime.now().isoformat()


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class EventRecord:
    """A discrete event for the event log or the timeline.

    Attributes:
        type: Event type constant (EVENT_*)
        tick: Simulation tick at which the event happened
        depth: Bit depth in ft
        severity: Presentation severity
        description: Human-readable message
        parameters: Event-specific values
        layer: One-based formation layer index at the bit
        timestamp: Wall-clock ISO timestamp
        id: Unique event identifier
    """

    type: str
    tick: int
    depth: float
    severity: Severity
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)
    layer: int = 1
    timestamp: str = field(default_factory=_now_iso)
    id: str = field(default_factory=lambda: _new_id("event"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "tick": self.tick,
            "timestamp": self.timestamp,
            "depth": self.depth,
            "layer": self.layer,
            "severity": self.severity.value,
            "description": self.description,
            "parameters": dict(self.parameters),
        }


@dataclass(frozen=True)
class ActionRecord:
    """An operator action with the measurements at the time it was taken."""

    action: str
    value: Any
    tick: int
    depth: float
    parameters: dict[str, Any] = field(default_factory=dict)
    control: str | None = None
    timestamp: str = field(default_factory=_now_iso)


@dataclass(frozen=True)
class FormationTransition:
    """The bit entered a new layer."""

    tick: int
    depth: float
    from_formation: str
    to_formation: str
    properties: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=_now_iso)


@dataclass(frozen=True)
class MissedWarning:
    """A warning the operator did not act on in time."""

    warning: str
    tick: int
    required_action: str
    time_allowed: str


@dataclass(frozen=True)
class LogEntry:
    """Merged depth/time log row built from every record kind."""

    depth: float
    tick: int
    timestamp: str
    event_type: str
    parameters: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Warning Tracking
# =============================================================================


class WarningKind(str, Enum):
    """Conditions that are reported once per sustained occurrence."""

    KICK = "kick"
    LOST_CIRCULATION = "lostCirculation"
    SEVERE_LOST_CIRCULATION = "severeLostCirculation"
    GAS_INFLUX = "gasInflux"
    HIGH_VIBRATION = "highVibration"
    HIGH_TORQUE = "highTorque"
    BOP_WITH_ROTATION = "bopWithRotation"
    SWAB_KICK = "swabKick"
    SURGE_LOSS = "surgeLoss"


@dataclass(frozen=True)
class ActiveWarning:
    """When a warning condition began.

    Attributes:
        since_tick: Tick at which the condition was first seen
        since_action: Length of the action log at that moment, so actions
            taken afterwards can be found by slicing
    """

    since_tick: int
    since_action: int


class WarningTracker:
    """Presence/absence timers keyed by WarningKind."""

    def __init__(self) -> None:
        self._active: dict[WarningKind, ActiveWarning] = {}

    def activate(self, kind: WarningKind, tick: int, action_count: int = 0) -> bool:
        """Start tracking a condition.

        Returns:
            True if the condition was not already active (first occurrence)
        """
        if kind in self._active:
            return False
        self._active[kind] = ActiveWarning(since_tick=tick, since_action=action_count)
        return True

    def restart(self, kind: WarningKind, tick: int, action_count: int = 0) -> None:
        self._active[kind] = ActiveWarning(since_tick=tick, since_action=action_count)

    def clear(self, *kinds: WarningKind) -> None:
        for kind in kinds:
            self._active.pop(kind, None)

    def get(self, kind: WarningKind) -> ActiveWarning | None:
        return self._active.get(kind)

    def is_active(self, kind: WarningKind) -> bool:
        return kind in self._active

    def reset(self) -> None:
        self._active.clear()
