"""Drilling simulation engine.

SimulationEngine is the single entry point for hosts. It owns the clock, the
operator controls and every piece of derived state, and runs one fixed update
pipeline per tick:

    depth move -> formation lookup -> mechanics -> hydraulics -> detectors
    -> equipment -> risk -> terminal rules -> kick tracking
    -> auto checkpoint -> log sample

Every public method takes the engine lock, so a host thread may read or write
at any time while the clock thread ticks. Getters return copies.

Example:
    >>> engine = SimulationEngine(FormationModel.default())
    >>> engine.set_controls(rop=80, mud_weight=10.5)
    >>> engine.step(60)
    60
    >>> engine.get_current_data().bit_depth > 0
    True
"""

from __future__ import annotations

import copy
import logging
import math
import random
import threading
from dataclasses import replace
from typing import Any, Mapping

from drilling_simulator.config.schemas import EngineSettings
from drilling_simulator.engine.checkpoints import Checkpoint, CheckpointStore
from drilling_simulator.engine.clock import SimulationClock
from drilling_simulator.engine.context import TickContext
from drilling_simulator.engine.detector import run_detectors
from drilling_simulator.engine.equipment import update_equipment
from drilling_simulator.engine.events import (
    EVENT_BOP_ACTIVATION,
    EVENT_CASING_RUN,
    EVENT_CHECKPOINT,
    EVENT_CHECKPOINT_LOADED,
    EVENT_FORMATION_TRANSITION,
    EVENT_GAME_OVER,
    EVENT_KICK_HANDLED,
    ActionRecord,
    EventRecord,
    FormationTransition,
    LogEntry,
    MissedWarning,
    Severity,
    WarningTracker,
    _now_iso,
)
from drilling_simulator.engine.physics import next_bit_depth, update_hydraulics, update_mechanics
from drilling_simulator.engine.recorder import LogSample, SimulationRecorder
from drilling_simulator.engine.risk import RiskAggregator, RiskAssessment
from drilling_simulator.engine.scenarios import Scenario, apply_scenario
from drilling_simulator.engine.state import (
    BopStatus,
    ClockStatus,
    ControlState,
    EngineSnapshot,
    EquipmentStatus,
    SimulationState,
    TripDirection,
    TrippingStatus,
    WellType,
)
from drilling_simulator.engine.terminal import (
    FailureCause,
    GameOverRecord,
    TerminalContext,
    evaluate_terminal,
)
from drilling_simulator.formation import (
    DEFAULT_PROPERTIES,
    FormationLayer,
    FormationModel,
    FormationProperties,
)

logger = logging.getLogger(__name__)

KICK_HANDLING_GAS_LEVEL = 3.0
GAME_OVER_ACTION_HISTORY = 20

_REFERENCE_FORMATION = FormationModel.reference()


def derive_kick_risk(layer: FormationLayer) -> float:
    """Kick risk from pore pressure above 9 ppg and permeability."""
    pressure_factor = max(0.0, (layer.pore_pressure - 9.0) / 5)
    permeability_factor = min(1.0, layer.permeability * 2)
    return min(0.8, pressure_factor * 0.7 + permeability_factor * 0.3)


class SimulationEngine:
    """Discrete-time drilling simulator for operator training.

    Lifecycle: STOPPED -> RUNNING <-> PAUSED -> STOPPED. One tick is one
    simulated second; the clock fires every ``1 / speed`` wall-clock seconds.
    Hosts that drive the simulation themselves call ``step()`` instead.

    Once a terminal rule fires the engine is paused and further ticks change
    nothing until ``load_checkpoint()`` or ``reset()``.
    """

    def __init__(
        self,
        formation: FormationModel | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        """Initialize engine.

        Args:
            formation: Formation to drill through. None uses default rock
                properties at every depth.
            settings: Engine settings (defaults when omitted)
        """
        self.settings = settings or EngineSettings()
        self._lock = threading.RLock()
        self._clock = SimulationClock(self._on_clock_tick)
        self._status = ClockStatus.STOPPED

        self._speed = self.settings.speed
        self._training_mode = self.settings.training_mode
        self._well_type = WellType(self.settings.well_type)
        self._scenario = Scenario.NORMAL
        self._target_depth: float | None = None
        self._formation: FormationModel | None = None

        self._recorder = SimulationRecorder(
            log_retention=self.settings.log_retention,
            event_retention=self.settings.event_retention,
            timeline_retention=self.settings.timeline_retention,
        )
        self._checkpoints = CheckpointStore(limit=self.settings.checkpoint_limit)
        self._warnings = WarningTracker()
        self._risk = RiskAggregator()

        self._attach_formation(formation)
        self._init_state()

    def _init_state(self) -> None:
        self._current = SimulationState()
        self._controls = ControlState()
        self._equipment = EquipmentStatus()
        self._tripping = TrippingStatus()
        self._tick = 0
        self._casing_depth = 0.0
        self._last_casing_tick = 0
        self._deepest_depth = 0.0
        self._previous_gas = 0.0
        self._kick_under_control = False
        self._bop_activations = 0
        self._kicks_handled = 0
        self._missed_warnings: list[MissedWarning] = []
        self._game_over: GameOverRecord | None = None
        self._rng = random.Random(self.settings.rng_seed)
        self._layer_name = self._layer_name_at(0.0)

        self._recorder.clear()
        self._checkpoints.clear()
        self._warnings.reset()
        self._risk.reset()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Start ticking on the wall clock. No-op while already running."""
        with self._lock:
            if self._status == ClockStatus.RUNNING:
                return
            self._status = ClockStatus.RUNNING
            self._clock.start(1.0 / self._speed)
        logger.info(f"Simulation started at {self._speed}x speed")

    def pause(self) -> None:
        with self._lock:
            if self._status != ClockStatus.RUNNING:
                return
            self._status = ClockStatus.PAUSED
            self._clock.stop(wait=False)
        logger.info("Simulation paused")

    def resume(self) -> None:
        with self._lock:
            if self._status != ClockStatus.PAUSED:
                return
            self._status = ClockStatus.RUNNING
            self._clock.start(1.0 / self._speed)
        logger.info("Simulation resumed")

    def stop(self) -> None:
        """Stop the clock. State is kept for a later ``start()``."""
        with self._lock:
            self._status = ClockStatus.STOPPED
            self._clock.stop(wait=False)
        logger.info("Simulation stopped")

    def reset(self) -> None:
        """Stop and restore every field to its initial value.

        Logs, timeline, checkpoints and counters are cleared. The formation,
        scenario, speed, well type and target depth are kept.
        """
        with self._lock:
            self._status = ClockStatus.STOPPED
            self._clock.stop(wait=False)
            self._init_state()
        logger.info("Simulation reset")

    def step(self, ticks: int = 1) -> int:
        """Advance synchronously by ``ticks`` ticks and return the tick count."""
        with self._lock:
            for _ in range(ticks):
                self._advance()
            return self._tick

    def status(self) -> ClockStatus:
        with self._lock:
            return self._status

    @property
    def tick(self) -> int:
        with self._lock:
            return self._tick

    def _on_clock_tick(self) -> None:
        with self._lock:
            # A thread superseded by pause/stop/set_speed may still be waiting on the lock
            if self._status == ClockStatus.RUNNING and self._clock.is_clock_thread():
                self._advance()

    # =========================================================================
    # Settings
    # =========================================================================

    def set_speed(self, speed: float) -> None:
        """Change the clock rate. A running clock restarts at the new rate.

        Raises:
            ValueError: If speed is not positive
        """
        if speed <= 0:
            raise ValueError(f"Speed must be positive, got {speed}")
        with self._lock:
            self._speed = speed
            if self._status == ClockStatus.RUNNING:
                self._clock.stop(wait=False)
                self._clock.start(1.0 / speed)

    @property
    def speed(self) -> float:
        return self._speed

    def set_training_mode(self, enabled: bool) -> None:
        with self._lock:
            self._training_mode = bool(enabled)

    @property
    def training_mode(self) -> bool:
        return self._training_mode

    def set_well_type(self, well_type: WellType | str) -> None:
        """Raises ValueError for an unknown well type."""
        with self._lock:
            self._well_type = WellType(well_type)

    @property
    def well_type(self) -> WellType:
        return self._well_type

    @property
    def scenario(self) -> Scenario:
        return self._scenario

    def set_formation(self, formation: FormationModel | None) -> None:
        """Attach a formation, deriving kick risk for layers that lack one."""
        with self._lock:
            self._attach_formation(formation)
            self._layer_name = self._layer_name_at(self._current.bit_depth)

    def _attach_formation(self, formation: FormationModel | None) -> None:
        self._formation = formation
        if formation is None:
            return
        for layer in formation.get_layers():
            if layer.kick_risk is None:
                layer.kick_risk = derive_kick_risk(layer)
                formation.update_layer(layer)

    @property
    def formation(self) -> FormationModel | None:
        return self._formation

    def load_scenario(self, name: Scenario | str) -> None:
        """Reshape the formation for a training scenario, then reset.

        Raises:
            ValueError: If the scenario name is unknown
        """
        with self._lock:
            self._scenario = apply_scenario(self._formation, name)
        self.reset()
        logger.info(f"Loaded scenario {self._scenario.value!r}")

    def set_target_depth(self, depth: float | None) -> None:
        with self._lock:
            self._target_depth = depth

    def get_target_depth(self) -> float | None:
        with self._lock:
            return self._target_depth

    def is_target_depth_reached(self) -> bool:
        with self._lock:
            return self._target_depth is not None and self._current.bit_depth >= self._target_depth

    # =========================================================================
    # Operator Actions
    # =========================================================================

    def set_controls(self, changes: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        """Apply control changes.

        Each changed control is written to the action log with the current
        measurements. An open-to-closed BOP transition counts as an activation.

        Raises:
            ValueError: If a key is not a control or an enum value is unknown
        """
        updates = {**(changes or {}), **kwargs}
        with self._lock:
            previous = self._controls
            controls = previous.merged(updates)

            if previous.bop_status == BopStatus.OPEN and controls.bop_status == BopStatus.CLOSED:
                self._bop_activations += 1
                self._equipment.bop.last_closed = self._tick
                self._timeline(
                    EVENT_BOP_ACTIVATION,
                    Severity.INFO,
                    "BOP activated",
                    gas_level=self._current.gas_level,
                )

            for key in updates:
                old, new = getattr(previous, key), getattr(controls, key)
                if old != new:
                    self._log_action(f"change_{key}", getattr(new, "value", new), control=key)

            self._controls = controls

    def run_casing(self) -> None:
        """Case the hole down to the current bit depth."""
        with self._lock:
            self._casing_depth = self._current.bit_depth
            self._last_casing_tick = self._tick
            self._log_action("run_casing", self._casing_depth)
            self._timeline(
                EVENT_CASING_RUN,
                Severity.INFO,
                f"Casing run to {self._casing_depth:.0f}ft",
            )

    def start_tripping(self, direction: TripDirection | str, speed: float) -> None:
        """Begin moving pipe in or out of the hole at ``speed`` ft/min.

        Raises:
            ValueError: If direction is not "in" or "out"
        """
        direction = TripDirection(direction)
        if direction == TripDirection.NONE:
            raise ValueError("Tripping direction must be 'in' or 'out'")
        with self._lock:
            self._tripping = TrippingStatus(
                is_tripping=True,
                direction=direction,
                speed=speed,
                last_depth=self._current.bit_depth,
                last_tick=self._tick,
            )
            self._log_action("start_tripping", {"direction": direction.value, "speed": speed})

    def stop_tripping(self) -> None:
        with self._lock:
            self._tripping = TrippingStatus(
                last_depth=self._current.bit_depth, last_tick=self._tick
            )
            self._log_action("stop_tripping", None)

    # =========================================================================
    # Checkpoints
    # =========================================================================

    def create_checkpoint(self, automatic: bool = False) -> Checkpoint:
        """Snapshot every mutable record. Manual saves go on the timeline."""
        with self._lock:
            snapshot = EngineSnapshot.capture(
                self._current,
                self._controls,
                self._equipment,
                self._casing_depth,
                self._last_casing_tick,
                self._tick,
            )
            checkpoint = Checkpoint.create(snapshot, automatic=automatic)
            self._checkpoints.add(checkpoint)
            if not automatic:
                self._timeline(
                    EVENT_CHECKPOINT,
                    Severity.INFO,
                    f"Checkpoint created: {checkpoint.name}",
                    checkpoint_id=checkpoint.id,
                )
            logger.debug(f"Created checkpoint {checkpoint.id} ({checkpoint.name})")
            return copy.deepcopy(checkpoint)

    def load_checkpoint(self, checkpoint_id: str) -> bool:
        """Restore a checkpoint and clear any terminal state.

        Returns:
            True on success, False if the id is unknown (nothing changes)
        """
        with self._lock:
            checkpoint = self._checkpoints.get(checkpoint_id)
            if checkpoint is None:
                logger.warning(f"Unknown checkpoint: {checkpoint_id}")
                return False

            snapshot = checkpoint.state
            self._current, self._controls, self._equipment = snapshot.restore()
            self._casing_depth = snapshot.casing_depth
            self._last_casing_tick = snapshot.last_casing_tick
            self._tick = snapshot.tick
            self._tripping = TrippingStatus(last_depth=self._current.bit_depth, last_tick=self._tick)
            self._previous_gas = self._current.gas_level
            self._kick_under_control = False
            self._game_over = None
            self._warnings.reset()
            self._risk.reset()
            self._layer_name = self._layer_name_at(self._current.bit_depth)

            self._timeline(
                EVENT_CHECKPOINT_LOADED,
                Severity.INFO,
                f"Checkpoint loaded: {checkpoint.name}",
                depth=checkpoint.depth,
                checkpoint_id=checkpoint.id,
            )
            logger.info(f"Loaded checkpoint {checkpoint.id} at {checkpoint.depth:.0f}ft")
            return True

    def get_checkpoints(self) -> list[Checkpoint]:
        with self._lock:
            return copy.deepcopy(self._checkpoints.list())

    # =========================================================================
    # Getters
    # =========================================================================

    def get_current_data(self) -> SimulationState:
        with self._lock:
            return self._current.snapshot()

    def get_controls(self) -> ControlState:
        with self._lock:
            return copy.deepcopy(self._controls)

    def get_equipment_status(self) -> EquipmentStatus:
        with self._lock:
            return self._equipment.snapshot()

    def get_log_data(self) -> list[LogSample]:
        with self._lock:
            return self._recorder.samples

    def get_event_log(self) -> list[EventRecord]:
        with self._lock:
            return copy.deepcopy(self._recorder.events)

    def get_timeline_events(self) -> list[EventRecord]:
        with self._lock:
            return copy.deepcopy(self._recorder.timeline)

    def get_depth_logs(self) -> list[LogEntry]:
        with self._lock:
            return copy.deepcopy(self._recorder.depth_logs())

    def get_time_logs(self) -> list[LogEntry]:
        with self._lock:
            return copy.deepcopy(self._recorder.time_logs())

    def get_action_log(self) -> list[ActionRecord]:
        with self._lock:
            return copy.deepcopy(self._recorder.actions)

    def get_formation_transitions(self) -> list[FormationTransition]:
        with self._lock:
            return copy.deepcopy(self._recorder.transitions)

    def get_missed_warnings(self) -> list[MissedWarning]:
        with self._lock:
            return list(self._missed_warnings)

    def get_risk_level(self) -> RiskAssessment:
        with self._lock:
            last = self._risk.last
            return replace(last, components=dict(last.components))

    def is_game_over(self) -> bool:
        with self._lock:
            return self._game_over is not None

    def get_game_over_reason(self) -> str:
        with self._lock:
            return self._game_over.reason if self._game_over else ""

    def get_game_over_details(self) -> GameOverRecord | None:
        with self._lock:
            return copy.deepcopy(self._game_over)

    def get_bop_activations(self) -> int:
        with self._lock:
            return self._bop_activations

    def get_kicks_handled(self) -> int:
        with self._lock:
            return self._kicks_handled

    def get_formation_at_depth(self, depth: float) -> FormationLayer | None:
        """Layer at a depth, from the reference section when none is attached."""
        with self._lock:
            formation = self._formation or _REFERENCE_FORMATION
            return formation.get_layer_at_depth(depth)

    def refresh_logs(self) -> None:
        """Append a log sample of the current state outside the tick cadence."""
        with self._lock:
            self._recorder.record_sample(self._tick, self._current)

    # =========================================================================
    # Tick Pipeline
    # =========================================================================

    def _advance(self) -> None:
        if self._game_over is not None:
            return

        self._tick += 1
        state = self._current
        state.events = []

        state.bit_depth = next_bit_depth(
            state.bit_depth,
            self._controls,
            self._tripping,
            self._speed,
            self.settings.ticks_per_hour,
        )
        props = self._properties_at(state.bit_depth)
        self._track_formation(props)

        update_mechanics(state, self._controls, props, self._well_type)
        update_hydraulics(state, self._controls, props)

        ctx = self._context(props)
        run_detectors(ctx)
        update_equipment(ctx)
        risk = self._risk.assess(ctx)

        cause = evaluate_terminal(TerminalContext(ctx, risk, self._recorder.actions))
        if cause is not None:
            self._trigger_game_over(cause, ctx)
            return

        self._track_kick_handling()
        self._maybe_auto_checkpoint()

        if self._tick % self.settings.log_interval == 0:
            self._recorder.record_sample(self._tick, state)

    def _context(self, props: FormationProperties) -> TickContext:
        return TickContext(
            tick=self._tick,
            speed=self._speed,
            state=self._current,
            controls=self._controls,
            equipment=self._equipment,
            tripping=self._tripping,
            props=props,
            layer_index=self._layer_index_at(self._current.bit_depth),
            warnings=self._warnings,
            recorder=self._recorder,
            rng=self._rng,
            casing_depth=self._casing_depth,
            last_casing_tick=self._last_casing_tick,
            scenario=self._scenario.value,
            missed_warnings=self._missed_warnings,
        )

    def _properties_at(self, depth: float) -> FormationProperties:
        if self._formation is None:
            return DEFAULT_PROPERTIES
        return self._formation.get_properties_at_depth(depth)

    def _layer_index_at(self, depth: float) -> int:
        if self._formation is None:
            return 1
        return self._formation.get_layer_index_at_depth(depth)

    def _layer_name_at(self, depth: float) -> str | None:
        if self._formation is None:
            return None
        layer = self._formation.get_layer_at_depth(depth)
        return layer.name if layer else None

    def _track_formation(self, props: FormationProperties) -> None:
        depth = self._current.bit_depth
        name = self._layer_name_at(depth)
        previous = self._layer_name
        self._layer_name = name
        if name is None or previous is None or name == previous:
            return

        properties = {
            "pore_pressure": props.pore_pressure,
            "fracture_pressure": props.fracture_pressure,
            "permeability": props.permeability,
            "lithology": props.lithology.value,
        }
        self._recorder.record_transition(
            FormationTransition(
                tick=self._tick,
                depth=depth,
                from_formation=previous,
                to_formation=name,
                properties=properties,
            )
        )
        self._timeline(
            EVENT_FORMATION_TRANSITION,
            Severity.INFO,
            f"Entered {name} formation at {depth:.0f}ft",
            from_formation=previous,
            to_formation=name,
            **properties,
        )

    def _track_kick_handling(self) -> None:
        gas = self._current.gas_level
        if gas > self._previous_gas:
            self._kick_under_control = False
        elif (
            self._previous_gas > KICK_HANDLING_GAS_LEVEL
            and gas < self._previous_gas
            and self._controls.bop_status == BopStatus.CLOSED
            and not self._kick_under_control
        ):
            self._kicks_handled += 1
            self._kick_under_control = True
            self._timeline(
                EVENT_KICK_HANDLED,
                Severity.SUCCESS,
                "Kick successfully controlled",
                gas_level=gas,
                previous_gas_level=self._previous_gas,
            )
        self._previous_gas = gas

    def _maybe_auto_checkpoint(self) -> None:
        depth = self._current.bit_depth
        interval = self.settings.checkpoint_interval
        if math.floor(depth / interval) > math.floor(self._deepest_depth / interval):
            self.create_checkpoint(automatic=True)
        self._deepest_depth = max(self._deepest_depth, depth)

    def _trigger_game_over(self, cause: FailureCause, ctx: TickContext) -> None:
        ctx.emit(EVENT_GAME_OVER, Severity.CRITICAL, f"GAME OVER: {cause.reason}", reason=cause.reason)
        actions = self._recorder.actions
        self._game_over = GameOverRecord(
            reason=cause.reason,
            description=cause.description,
            consequence=cause.consequence,
            prevention_tips=cause.prevention_tips,
            tick=self._tick,
            depth=self._current.bit_depth,
            elapsed_time=self._tick / self._speed,
            snapshot=self._current.snapshot(),
            missed_warnings=tuple(self._missed_warnings),
            action_log=tuple(actions[-GAME_OVER_ACTION_HISTORY:]),
            timestamp=_now_iso(),
        )
        if self._status == ClockStatus.RUNNING:
            self._status = ClockStatus.PAUSED
            self._clock.stop(wait=False)
        logger.warning(
            f"Game over at tick {self._tick} ({self._current.bit_depth:.0f}ft): {cause.reason}"
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _timeline(self, event_type: str, severity: Severity, description: str, **parameters: Any) -> EventRecord:
        parameters.setdefault("depth", self._current.bit_depth)
        return self._recorder.add_timeline_event(
            event_type, self._tick, description, severity, parameters
        )

    def _log_action(self, action: str, value: Any, control: str | None = None) -> None:
        self._recorder.log_action(
            ActionRecord(
                action=action,
                value=value,
                tick=self._tick,
                depth=self._current.bit_depth,
                parameters=self._current.to_dict(),
                control=control,
            )
        )
