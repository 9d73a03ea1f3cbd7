"""Time-series and discrete-event history for a drilling session.

Keeps five histories side by side:
- log samples (periodic measurements, bounded)
- the terse event log (bounded)
- the richer timeline (bounded)
- the operator action log
- formation transitions

and merges them into depth- or time-ordered views for log viewers.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any

from drilling_simulator.engine.events import (
    EVENT_FORMATION_TRANSITION,
    ActionRecord,
    EventRecord,
    FormationTransition,
    LogEntry,
    Severity,
    _now_iso,
)

DEFAULT_LOG_RETENTION = 1000
DEFAULT_EVENT_RETENTION = 1000
DEFAULT_TIMELINE_RETENTION = 100


@dataclass(frozen=True)
class LogSample:
    """Measurements captured at one tick."""

    tick: int
    depth: float
    rop: float
    pump_pressure: float
    standpipe_pressure: float
    pit_level: float
    gas_level: float
    mud_weight: float
    formation_pressure: float
    annular_pressure: float
    torque: float
    rpm: float
    hookload: float
    timestamp: str = field(default_factory=_now_iso)


class SimulationRecorder:
    """Bounded, append-only logs. Oldest entries are dropped first."""

    def __init__(
        self,
        log_retention: int = DEFAULT_LOG_RETENTION,
        event_retention: int = DEFAULT_EVENT_RETENTION,
        timeline_retention: int = DEFAULT_TIMELINE_RETENTION,
    ) -> None:
        self._samples: deque[LogSample] = deque(maxlen=log_retention)
        self._events: deque[EventRecord] = deque(maxlen=event_retention)
        self._timeline: deque[EventRecord] = deque(maxlen=timeline_retention)
        self._actions: list[ActionRecord] = []
        self._transitions: list[FormationTransition] = []

    # =========================================================================
    # Appenders
    # =========================================================================

    def record_sample(self, tick: int, state: Any) -> LogSample:
        sample = LogSample(
            tick=tick,
            depth=state.bit_depth,
            rop=state.rop,
            pump_pressure=state.pump_pressure,
            standpipe_pressure=state.standpipe_pressure,
            pit_level=state.pit_level,
            gas_level=state.gas_level,
            mud_weight=state.mud_weight,
            formation_pressure=state.formation_pressure,
            annular_pressure=state.annular_pressure,
            torque=state.torque,
            rpm=state.rpm,
            hookload=state.hookload,
        )
        self._samples.append(sample)
        return sample

    def record_event(self, event: EventRecord) -> None:
        self._events.append(event)

    def add_timeline_event(
        self,
        event_type: str,
        tick: int,
        description: str,
        severity: Severity,
        parameters: dict[str, Any] | None = None,
    ) -> EventRecord:
        """Append a timeline entry. Its depth is taken from parameters."""
        parameters = dict(parameters or {})
        event = EventRecord(
            type=event_type,
            tick=tick,
            depth=float(parameters.get("depth", 0.0)),
            severity=severity,
            description=description,
            parameters=parameters,
        )
        self._timeline.append(event)
        return event

    def log_action(self, action: ActionRecord) -> None:
        self._actions.append(action)

    def record_transition(self, transition: FormationTransition) -> None:
        self._transitions.append(transition)

    def clear(self) -> None:
        self._samples.clear()
        self._events.clear()
        self._timeline.clear()
        self._actions.clear()
        self._transitions.clear()

    # =========================================================================
    # Readers (records are frozen, so list copies are enough)
    # =========================================================================

    @property
    def samples(self) -> list[LogSample]:
        return list(self._samples)

    @property
    def events(self) -> list[EventRecord]:
        return list(self._events)

    @property
    def timeline(self) -> list[EventRecord]:
        return list(self._timeline)

    @property
    def actions(self) -> list[ActionRecord]:
        return list(self._actions)

    @property
    def action_count(self) -> int:
        return len(self._actions)

    def actions_since(self, index: int) -> list[ActionRecord]:
        return self._actions[index:]

    @property
    def transitions(self) -> list[FormationTransition]:
        return list(self._transitions)

    # =========================================================================
    # Merged Views
    # =========================================================================

    def depth_logs(self) -> list[LogEntry]:
        """Every record as a LogEntry, shallowest first."""
        return sorted(self._merged(), key=lambda entry: entry.depth)

    def time_logs(self) -> list[LogEntry]:
        """Every record as a LogEntry, oldest first."""
        return sorted(self._merged(), key=lambda entry: entry.tick)

    def _merged(self) -> list[LogEntry]:
        entries = [
            LogEntry(
                depth=event.depth,
                tick=event.tick,
                timestamp=event.timestamp,
                event_type=event.type,
                parameters={
                    "layer": event.layer,
                    "severity": event.severity.value,
                    **event.parameters,
                },
            )
            for event in self._events
        ]
        entries.extend(
            LogEntry(
                depth=event.depth,
                tick=event.tick,
                timestamp=event.timestamp,
                event_type=event.type,
                parameters=dict(event.parameters),
            )
            for event in self._timeline
        )
        entries.extend(
            LogEntry(
                depth=transition.depth,
                tick=transition.tick,
                timestamp=transition.timestamp,
                event_type=EVENT_FORMATION_TRANSITION,
                parameters={
                    "from_formation": transition.from_formation,
                    "to_formation": transition.to_formation,
                    **transition.properties,
                },
            )
            for transition in self._transitions
        )
        entries.extend(
            LogEntry(
                depth=action.depth,
                tick=action.tick,
                timestamp=action.timestamp,
                event_type=f"action_{action.action}",
                parameters={"value": action.value, **action.parameters},
            )
            for action in self._actions
        )
        return entries
