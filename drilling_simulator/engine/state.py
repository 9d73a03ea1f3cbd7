"""Engine-owned state records.

The engine owns exactly one live instance of each mutable record below.
Anything that leaves the engine is a deep copy produced by ``snapshot()``;
restoring a checkpoint goes through ``EngineSnapshot`` the same way.
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import Any, Mapping

from drilling_simulator.engine.events import EventRecord

# ============================================================================
# Enums
# ============================================================================


class BopStatus(str, Enum):
    """Blowout preventer position."""

    OPEN = "open"
    CLOSED = "closed"


class Drawworks(str, Enum):
    """Drawworks brake state. Unlocked hands depth to the hook position."""

    LOCKED = "locked"
    UNLOCKED = "unlocked"


class WellType(str, Enum):
    """Well trajectory, which scales string friction."""

    VERTICAL = "vertical"
    DEVIATED = "deviated"
    HORIZONTAL = "horizontal"

    @property
    def friction_factor(self) -> float:
        return _WELL_TYPE_FACTORS[self]


_WELL_TYPE_FACTORS = {
    WellType.VERTICAL: 1.0,
    WellType.DEVIATED: 1.2,
    WellType.HORIZONTAL: 1.5,
}


class TripDirection(str, Enum):
    """Direction of pipe movement while tripping."""

    NONE = "none"
    IN = "in"
    OUT = "out"


class ClockStatus(str, Enum):
    """Lifecycle of the simulation clock."""

    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


# ============================================================================
# Control State
# ============================================================================

_CONTROL_ENUMS: dict[str, type[Enum]] = {
    "bop_status": BopStatus,
    "drawworks": Drawworks,
}


@dataclass
class ControlState:
    """Operator-settable inputs."""

    rop: float = 50.0
    pump_rate: float = 50.0
    rotary_speed: float = 60.0
    mud_weight: float = 10.0
    choke_position: float = 0.0
    bop_status: BopStatus = BopStatus.OPEN
    hook_position: float = 0.0
    drawworks: Drawworks = Drawworks.LOCKED

    def merged(self, changes: Mapping[str, Any]) -> ControlState:
        """Return a copy with changes applied.

        Values are taken as given; only enum fields are coerced.

        Raises:
            ValueError: If a key is not a control or an enum value is unknown
        """
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown control(s): {', '.join(sorted(unknown))}")
        coerced = {
            key: _CONTROL_ENUMS[key](value) if key in _CONTROL_ENUMS else value
            for key, value in changes.items()
        }
        return replace(self, **coerced)


# ============================================================================
# Simulation State
# ============================================================================


@dataclass
class SimulationState:
    """Derived physical measurements, recomputed every tick."""

    bit_depth: float = 0.0
    rop: float = 0.0
    pump_pressure: float = 0.0
    standpipe_pressure: float = 0.0
    annular_pressure: float = 0.0
    formation_pressure: float = 0.0
    mud_weight: float = 10.0
    mud_temperature: float = 120.0
    gas_level: float = 0.0
    pit_level: float = 50.0
    hookload: float = 250.0
    torque: float = 0.0
    rpm: float = 0.0
    choke_position: float = 0.0
    bop_status: BopStatus = BopStatus.OPEN
    events: list[EventRecord] = field(default_factory=list)

    def snapshot(self) -> SimulationState:
        """Deep copy safe to hand to callers."""
        return copy.deepcopy(self)

    def to_dict(self, include_events: bool = False) -> dict[str, Any]:
        """Plain dict view with enum values unwrapped."""
        data = {
            f.name: getattr(self, f.name) for f in fields(self) if f.name != "events"
        }
        data["bop_status"] = self.bop_status.value
        if include_events:
            data["events"] = [event.to_dict() for event in self.events]
        return data


# ============================================================================
# Equipment Status
# ============================================================================


@dataclass
class PumpStatus:
    health: float = 100.0
    overuse_duration: float = 0.0


@dataclass
class DrillStringStatus:
    health: float = 100.0
    vibration: float = 0.0
    torque: float = 0.0


@dataclass
class BopUnitStatus:
    health: float = 100.0
    last_closed: int = 0


@dataclass
class EquipmentStatus:
    """Health of the three monitored units, each kept within [0, 100]."""

    pumps: PumpStatus = field(default_factory=PumpStatus)
    drill_string: DrillStringStatus = field(default_factory=DrillStringStatus)
    bop: BopUnitStatus = field(default_factory=BopUnitStatus)

    def healths(self) -> dict[str, float]:
        """Unit name to health, in failure-priority order."""
        return {
            "pumps": self.pumps.health,
            "drill_string": self.drill_string.health,
            "bop": self.bop.health,
        }

    def snapshot(self) -> EquipmentStatus:
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class TrippingStatus:
    """Pipe movement bookkeeping used for swab/surge detection."""

    is_tripping: bool = False
    direction: TripDirection = TripDirection.NONE
    speed: float = 0.0
    last_depth: float = 0.0
    last_tick: int = 0


# ============================================================================
# Snapshot
# ============================================================================


@dataclass(frozen=True)
class EngineSnapshot:
    """Everything a checkpoint needs to restore the engine.

    Build with ``capture`` and read back with ``restore``; both deep copy so
    neither side can alias the other.
    """

    current: SimulationState
    controls: ControlState
    equipment: EquipmentStatus
    casing_depth: float
    last_casing_tick: int
    tick: int

    @classmethod
    def capture(
        cls,
        current: SimulationState,
        controls: ControlState,
        equipment: EquipmentStatus,
        casing_depth: float,
        last_casing_tick: int,
        tick: int,
    ) -> EngineSnapshot:
        return cls(
            current=copy.deepcopy(current),
            controls=copy.deepcopy(controls),
            equipment=copy.deepcopy(equipment),
            casing_depth=casing_depth,
            last_casing_tick=last_casing_tick,
            tick=tick,
        )

    def restore(self) -> tuple[SimulationState, ControlState, EquipmentStatus]:
        """Fresh copies of the mutable records."""
        return (
            copy.deepcopy(self.current),
            copy.deepcopy(self.controls),
            copy.deepcopy(self.equipment),
        )
