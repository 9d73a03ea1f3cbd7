"""Per-tick context handed to the detector, equipment, risk and terminal stages."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any

from drilling_simulator.engine.events import EventRecord, MissedWarning, Severity, WarningTracker
from drilling_simulator.engine.physics import equivalent_pressure, hydrostatic_pressure
from drilling_simulator.engine.recorder import SimulationRecorder
from drilling_simulator.engine.state import (
    ControlState,
    EquipmentStatus,
    SimulationState,
    TrippingStatus,
)
from drilling_simulator.formation import FormationProperties, Lithology

DEFAULT_KICK_RISK = 0.2


@dataclass
class TickContext:
    """Live references to engine state for the duration of one tick.

    Stages mutate ``state``, ``equipment`` and ``tripping`` in place and report
    through ``emit`` (event log) and ``timeline``.
    """

    tick: int
    speed: float
    state: SimulationState
    controls: ControlState
    equipment: EquipmentStatus
    tripping: TrippingStatus
    props: FormationProperties
    layer_index: int
    warnings: WarningTracker
    recorder: SimulationRecorder
    rng: random.Random
    casing_depth: float = 0.0
    last_casing_tick: int = 0
    scenario: str = "normal"
    missed_warnings: list[MissedWarning] = field(default_factory=list)

    @property
    def depth(self) -> float:
        return self.state.bit_depth

    @property
    def kick_risk(self) -> float:
        if self.props.kick_risk is None:
            return DEFAULT_KICK_RISK
        return self.props.kick_risk

    @property
    def hydrostatic_psi(self) -> float:
        return hydrostatic_pressure(self.state.mud_weight, self.depth)

    @property
    def pore_psi(self) -> float:
        return equivalent_pressure(self.props.pore_pressure, self.depth)

    @property
    def uncased_depth(self) -> float:
        return self.depth - self.casing_depth

    @property
    def unstable_formation(self) -> bool:
        """Shale or tight rock that needs casing support."""
        return self.props.lithology == Lithology.SHALE or self.props.permeability < 0.01

    def emit(self, event_type: str, severity: Severity, description: str, **parameters: Any) -> EventRecord:
        """Append to the event log and to this tick's event list."""
        event = EventRecord(
            type=event_type,
            tick=self.tick,
            depth=self.depth,
            severity=severity,
            description=description,
            parameters=parameters,
            layer=self.layer_index,
        )
        self.recorder.record_event(event)
        self.state.events.append(event)
        return event

    def timeline(self, event_type: str, severity: Severity, description: str, **parameters: Any) -> EventRecord:
        """Append to the timeline, defaulting the depth to the bit depth."""
        parameters.setdefault("depth", self.depth)
        return self.recorder.add_timeline_event(
            event_type, self.tick, description, severity, parameters
        )
