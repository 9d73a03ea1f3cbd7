"""Hazard event detection.

The detector is an ordered tuple of rules. Every rule runs every tick (there
is no short circuit); each one mutates the tick's state and reports the first
occurrence of a sustained condition through the warning tracker.
"""

from __future__ import annotations

from typing import Callable

from drilling_simulator.engine.context import TickContext
from drilling_simulator.engine.events import (
    EVENT_KICK,
    EVENT_KICK_DETECTED,
    EVENT_LOST_CIRCULATION,
    EVENT_SEVERE_LOST_CIRCULATION,
    EVENT_SURGE_LOSS,
    EVENT_SWAB_KICK,
    Severity,
    WarningKind,
)
from drilling_simulator.engine.physics import PSI_PER_FT_PER_PPG, clamp
from drilling_simulator.engine.state import TripDirection

MIN_KICK_DEPTH = 500.0
KICK_GAS_GAIN = 1.0
KICK_PIT_GAIN = 0.5
SEVERE_LOSS_RATE = 5.0
TRIP_SPEED_LIMIT = 100.0  # ft/min

DetectionRule = Callable[[TickContext], None]


def detect_kick(ctx: TickContext) -> None:
    """Influx when pore pressure exceeds the mud column past 500 ft."""
    state = ctx.state
    hydrostatic = ctx.hydrostatic_psi
    pore = ctx.pore_psi

    if not (ctx.depth > MIN_KICK_DEPTH and pore > hydrostatic and state.pit_level < 100):
        ctx.warnings.clear(WarningKind.KICK)
        return

    differential_psi = pore - hydrostatic
    probability = min(1.0, differential_psi * 0.1 * ctx.kick_risk)
    if ctx.rng.random() >= probability:
        return

    differential_ppg = differential_psi / (PSI_PER_FT_PER_PPG * ctx.depth)
    state.gas_level = clamp(state.gas_level + differential_ppg * KICK_GAS_GAIN, 0.0, 100.0)
    state.pit_level = clamp(state.pit_level + differential_ppg * KICK_PIT_GAIN, 0.0, 100.0)

    if ctx.warnings.activate(WarningKind.KICK, ctx.tick):
        ctx.emit(
            EVENT_KICK,
            Severity.WARNING,
            "Potential kick detected - formation pressure exceeds hydrostatic pressure",
        )
        ctx.timeline(
            EVENT_KICK_DETECTED,
            Severity.CRITICAL,
            f"Kick detected at {ctx.depth:.0f}ft - formation pressure: "
            f"{ctx.props.pore_pressure:.1f} ppg",
            formation_pressure=ctx.props.pore_pressure,
            hydrostatic_pressure=hydrostatic,
            mud_weight=state.mud_weight,
        )


def detect_lost_circulation(ctx: TickContext) -> None:
    """Mud lost to the formation once fracture pressure is exceeded."""
    state = ctx.state
    frac = ctx.props.fracture_pressure

    if not (state.mud_weight > frac or state.standpipe_pressure > frac * 150):
        ctx.warnings.clear(WarningKind.LOST_CIRCULATION, WarningKind.SEVERE_LOST_CIRCULATION)
        return

    loss_rate = max(
        (state.mud_weight - frac) * 2,
        (state.standpipe_pressure - frac * 150) * 0.01,
    )
    state.pit_level = clamp(state.pit_level - loss_rate * 0.1, 0.0, 100.0)

    if ctx.warnings.activate(WarningKind.LOST_CIRCULATION, ctx.tick):
        ctx.emit(
            EVENT_LOST_CIRCULATION,
            Severity.WARNING,
            "Lost circulation detected - formation fracture pressure exceeded",
        )
        ctx.timeline(
            EVENT_LOST_CIRCULATION,
            Severity.WARNING,
            f"Lost circulation at {ctx.depth:.0f}ft - fracture pressure: {frac:.1f} ppg",
            fracture_pressure=frac,
            mud_weight=state.mud_weight,
            standpipe_pressure=state.standpipe_pressure,
        )

    if loss_rate > SEVERE_LOSS_RATE and ctx.warnings.activate(
        WarningKind.SEVERE_LOST_CIRCULATION, ctx.tick
    ):
        ctx.emit(
            EVENT_SEVERE_LOST_CIRCULATION,
            Severity.CRITICAL,
            "Severe lost circulation - significant fluid loss to formation",
            loss_rate=loss_rate,
        )


def detect_trip_transients(ctx: TickContext) -> None:
    """Swab and surge pressures from moving pipe faster than 100 ft/min."""
    tripping = ctx.tripping
    if not tripping.is_tripping:
        ctx.warnings.clear(WarningKind.SWAB_KICK, WarningKind.SURGE_LOSS)
        return

    elapsed = ctx.tick - tripping.last_tick
    if elapsed <= 0:
        return

    actual_speed = abs(ctx.depth - tripping.last_depth) / (elapsed / 60)
    tripping.last_depth = ctx.depth
    tripping.last_tick = ctx.tick

    state = ctx.state
    swabbing = surging = False
    excess = actual_speed - TRIP_SPEED_LIMIT

    if excess > 0 and tripping.direction == TripDirection.OUT:
        swab = excess * 0.05
        state.formation_pressure += swab
        # Compared as ppg equivalents: mud column vs swabbed formation
        if state.mud_weight < state.formation_pressure:
            swabbing = True
            state.gas_level = clamp(state.gas_level + swab * 0.5, 0.0, 100.0)
            state.pit_level = clamp(state.pit_level + swab * 0.2, 0.0, 100.0)
            if ctx.warnings.activate(WarningKind.SWAB_KICK, ctx.tick):
                ctx.emit(
                    EVENT_SWAB_KICK,
                    Severity.WARNING,
                    "Swab-induced kick detected - tripping out too fast",
                    trip_speed=actual_speed,
                )

    elif excess > 0 and tripping.direction == TripDirection.IN:
        surge = excess * 0.1
        state.annular_pressure += surge
        if state.annular_pressure > ctx.props.fracture_pressure * 100:
            surging = True
            state.pit_level = clamp(state.pit_level - surge * 0.5, 0.0, 100.0)
            if ctx.warnings.activate(WarningKind.SURGE_LOSS, ctx.tick):
                ctx.emit(
                    EVENT_SURGE_LOSS,
                    Severity.WARNING,
                    "Surge-induced losses detected - tripping in too fast",
                    trip_speed=actual_speed,
                )

    if not swabbing:
        ctx.warnings.clear(WarningKind.SWAB_KICK)
    if not surging:
        ctx.warnings.clear(WarningKind.SURGE_LOSS)


DETECTION_RULES: tuple[DetectionRule, ...] = (
    detect_kick,
    detect_lost_circulation,
    detect_trip_transients,
)


def run_detectors(ctx: TickContext, rules: tuple[DetectionRule, ...] = DETECTION_RULES) -> None:
    """Evaluate every detection rule in order."""
    for rule in rules:
        rule(ctx)
