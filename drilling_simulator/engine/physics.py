"""Simplified analytic drilling physics.

Pure functions for the depth/mechanics and hydraulics updaters. Units are
field units: ft, psi, ppg, gpm, rpm.
"""

from __future__ import annotations

from drilling_simulator.engine.state import (
    BopStatus,
    ControlState,
    Drawworks,
    SimulationState,
    TrippingStatus,
    TripDirection,
    WellType,
)
from drilling_simulator.formation import FormationProperties, Lithology

PSI_PER_FT_PER_PPG = 0.052
HARD_ROCK_FACTOR = 1.5
HOOK_GAIN = 10.0
SURFACE_MUD_TEMPERATURE = 120.0
MUD_TEMPERATURE_GRADIENT = 0.01  # degF per ft
GAS_DECAY_FRACTION = 0.02
CHOKE_BLEED_RATE = 0.5


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def hydrostatic_pressure(mud_weight: float, depth: float) -> float:
    """Mud column pressure in psi."""
    return mud_weight * PSI_PER_FT_PER_PPG * depth


def equivalent_pressure(ppg: float, depth: float) -> float:
    """Convert a ppg-equivalent gradient to psi at depth."""
    return ppg * PSI_PER_FT_PER_PPG * depth


# =============================================================================
# Depth / Mechanics
# =============================================================================


def lithology_factor(lithology: Lithology) -> float:
    return HARD_ROCK_FACTOR if lithology.is_hard else 1.0


def calculate_torque(rotary_speed: float, lithology: Lithology) -> float:
    return rotary_speed * 0.5 * lithology_factor(lithology)


def calculate_hookload(depth: float, well_type: WellType) -> float:
    return (100 + depth * 0.05) * well_type.friction_factor


def calculate_vibration(
    rotary_speed: float, rop: float, lithology: Lithology, depth: float
) -> float:
    """Drill string vibration index (0-100)."""
    base = rotary_speed * 0.5
    rop_factor = rop / 50
    depth_factor = 1 + (depth / 10000) * 0.5
    return min(100.0, base * rop_factor * lithology_factor(lithology) * depth_factor)


def next_bit_depth(
    depth: float,
    controls: ControlState,
    tripping: TrippingStatus,
    speed: float,
    ticks_per_hour: int,
) -> float:
    """Bit depth after one tick.

    Unlocked drawworks steer toward the hook position; a trip moves the pipe
    at the trip speed (ft/min); otherwise the bit drills ahead at ROP.
    """
    if controls.drawworks == Drawworks.UNLOCKED:
        target_change = (controls.hook_position - depth / 100) * HOOK_GAIN
        return max(0.0, depth + target_change)

    if tripping.is_tripping:
        step = tripping.speed / 60
        if tripping.direction == TripDirection.OUT:
            return max(0.0, depth - step)
        return depth + step

    return depth + controls.rop / (ticks_per_hour / speed)


def update_mechanics(
    state: SimulationState,
    controls: ControlState,
    props: FormationProperties,
    well_type: WellType,
) -> None:
    """Drilling parameters at the (already moved) bit."""
    state.rop = controls.rop
    state.rpm = controls.rotary_speed
    state.torque = calculate_torque(controls.rotary_speed, props.lithology)
    state.hookload = calculate_hookload(state.bit_depth, well_type)


# =============================================================================
# Hydraulics
# =============================================================================


def calculate_pump_pressure(pump_rate: float, depth: float) -> float:
    return pump_rate * 3 * (1 + (depth / 10000) * 0.5)


def calculate_standpipe_pressure(pump_pressure: float, choke_position: float) -> float:
    return pump_pressure * (1 + (choke_position / 100) * 0.5)


def calculate_annular_pressure(standpipe_pressure: float, depth: float) -> float:
    return standpipe_pressure * max(0.5, 1 - depth / 20000)


def update_hydraulics(
    state: SimulationState, controls: ControlState, props: FormationProperties
) -> None:
    state.mud_weight = controls.mud_weight
    state.mud_temperature = SURFACE_MUD_TEMPERATURE + state.bit_depth * MUD_TEMPERATURE_GRADIENT
    state.pump_pressure = calculate_pump_pressure(controls.pump_rate, state.bit_depth)
    state.standpipe_pressure = calculate_standpipe_pressure(
        state.pump_pressure, controls.choke_position
    )
    state.annular_pressure = calculate_annular_pressure(state.standpipe_pressure, state.bit_depth)
    state.formation_pressure = props.pore_pressure
    state.bop_status = controls.bop_status
    state.choke_position = controls.choke_position

    # A shut-in well circulates gas out through the choke
    if controls.bop_status == BopStatus.CLOSED and state.gas_level > 0:
        bleed = state.gas_level * GAS_DECAY_FRACTION + (controls.choke_position / 100) * CHOKE_BLEED_RATE
        state.gas_level = max(0.0, state.gas_level - bleed)

    state.pit_level = clamp(state.pit_level, 0.0, 100.0)
