"""Equipment wear model for mud pumps, drill string and BOP.

Each unit loses health while overstressed and recovers slowly otherwise.
Health always stays within [0, 100]; zero is a terminal failure handled by
the terminal evaluator.
"""

from __future__ import annotations

from drilling_simulator.engine.context import TickContext
from drilling_simulator.engine.events import (
    EVENT_BOP_WITH_ROTATION,
    EVENT_HIGH_TORQUE,
    EVENT_HIGH_VIBRATION,
    Severity,
    WarningKind,
)
from drilling_simulator.engine.physics import calculate_vibration, clamp
from drilling_simulator.engine.state import BopStatus

PUMP_RATED_CAPACITY = 800.0
VIBRATION_LIMIT = 80.0
TORQUE_LIMIT = 90.0
BOP_ROTATION_LIMIT = 30.0
RECOVERY_PER_TICK = 0.01


def _recover(health: float) -> float:
    return clamp(health + RECOVERY_PER_TICK, 0.0, 100.0)


def update_pumps(ctx: TickContext) -> None:
    pumps = ctx.equipment.pumps
    pump_rate = ctx.controls.pump_rate

    if pump_rate > PUMP_RATED_CAPACITY:
        pumps.overuse_duration += 1
        damage_rate = (pump_rate - PUMP_RATED_CAPACITY) / 200
        pumps.health = clamp(pumps.health - damage_rate * 0.1, 0.0, 100.0)
    else:
        pumps.overuse_duration = max(0.0, pumps.overuse_duration - 0.5)
        pumps.health = _recover(pumps.health)


def update_drill_string(ctx: TickContext) -> None:
    string = ctx.equipment.drill_string
    string.vibration = calculate_vibration(
        ctx.controls.rotary_speed, ctx.controls.rop, ctx.props.lithology, ctx.depth
    )
    string.torque = ctx.state.torque

    over_vibration = string.vibration > VIBRATION_LIMIT
    over_torque = string.torque > TORQUE_LIMIT
    if not (over_vibration or over_torque):
        ctx.warnings.clear(WarningKind.HIGH_VIBRATION, WarningKind.HIGH_TORQUE)
        string.health = _recover(string.health)
        return

    vibration_damage = max(0.0, (string.vibration - VIBRATION_LIMIT) * 0.05)
    torque_damage = max(0.0, (string.torque - TORQUE_LIMIT) * 0.1)
    string.health = clamp(string.health - vibration_damage - torque_damage, 0.0, 100.0)

    if over_vibration and ctx.warnings.activate(WarningKind.HIGH_VIBRATION, ctx.tick):
        ctx.emit(
            EVENT_HIGH_VIBRATION,
            Severity.WARNING,
            "High vibration detected - risk of drill string damage",
            vibration=string.vibration,
        )
    if over_torque and ctx.warnings.activate(WarningKind.HIGH_TORQUE, ctx.tick):
        ctx.emit(
            EVENT_HIGH_TORQUE,
            Severity.WARNING,
            "High torque detected - risk of drill string damage or twist-off",
            torque=string.torque,
        )


def update_bop(ctx: TickContext) -> None:
    bop = ctx.equipment.bop
    rotary_speed = ctx.controls.rotary_speed

    # Closing the annular preventer on rotating pipe tears the element
    if ctx.controls.bop_status == BopStatus.CLOSED and rotary_speed > BOP_ROTATION_LIMIT:
        bop.health = clamp(bop.health - rotary_speed * 0.1, 0.0, 100.0)
        if ctx.warnings.activate(WarningKind.BOP_WITH_ROTATION, ctx.tick):
            ctx.emit(
                EVENT_BOP_WITH_ROTATION,
                Severity.WARNING,
                "BOP closed while pipe is rotating - risk of equipment damage",
                rotary_speed=rotary_speed,
            )
    else:
        ctx.warnings.clear(WarningKind.BOP_WITH_ROTATION)
        bop.health = _recover(bop.health)


def update_equipment(ctx: TickContext) -> None:
    """Apply one tick of wear and recovery to every unit."""
    update_pumps(ctx)
    update_drill_string(ctx)
    update_bop(ctx)
