"""Terminal-state (game over) evaluation.

``TERMINAL_RULES`` is an ordered list of guard rules evaluated top to bottom;
the first rule that returns a cause wins and the rest are not evaluated.

    1. Mud pit depletion
    2. Blowout
    3. Formation breakdown with kick
    4. Ignored gas influx (H2S exposure / uncontrolled influx)
    5. Equipment failure (pumps, drill string, BOP)
    6. Wellbore collapse
    7. Saturated composite risk
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from drilling_simulator.engine.context import TickContext
from drilling_simulator.engine.events import ActionRecord, MissedWarning, WarningKind
from drilling_simulator.engine.risk import RiskAssessment, RiskType
from drilling_simulator.engine.state import BopStatus, SimulationState
from drilling_simulator.formation import Lithology

MIN_INFLUX_DEPTH = 500.0
BLOWOUT_GAS_LEVEL = 20.0
INFLUX_GAS_LEVEL = 5.0
INFLUX_RESPONSE_SECONDS = 60
COLLAPSE_UNCASED_DEPTH = 1500.0
COLLAPSE_TICKS_SINCE_CASING = 1000
MITIGATING_CONTROLS = frozenset({"bop_status", "mud_weight", "choke_position"})


@dataclass(frozen=True)
class FailureCause:
    """Why the session ended and what the trainee should learn from it."""

    reason: str
    description: str
    consequence: str
    prevention_tips: tuple[str, ...] = ()


@dataclass(frozen=True)
class GameOverRecord:
    """Immutable report of a terminal transition."""

    reason: str
    description: str
    consequence: str
    prevention_tips: tuple[str, ...]
    tick: int
    depth: float
    elapsed_time: float
    snapshot: SimulationState
    missed_warnings: tuple[MissedWarning, ...] = ()
    action_log: tuple[ActionRecord, ...] = ()
    timestamp: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "reason": self.reason,
            "description": self.description,
            "consequence": self.consequence,
            "prevention_tips": list(self.prevention_tips),
            "tick": self.tick,
            "depth": self.depth,
            "elapsed_time": self.elapsed_time,
            "timestamp": self.timestamp,
            "parameters": self.snapshot.to_dict(),
            "missed_warnings": [
                {
                    "warning": warning.warning,
                    "tick": warning.tick,
                    "required_action": warning.required_action,
                    "time_allowed": warning.time_allowed,
                }
                for warning in self.missed_warnings
            ],
            "action_log": [
                {"action": action.action, "value": _plain(action.value), "tick": action.tick}
                for action in self.action_log
            ],
        }


def _plain(value: Any) -> Any:
    return getattr(value, "value", value)


# =============================================================================
# Failure Catalogue
# =============================================================================

MUD_PIT_DEPLETION = FailureCause(
    "Mud Pit Depletion",
    "Mud depleted - circulation impossible - formation fluids uncontrolled.",
    "Without drilling fluid, the wellbore cannot maintain hydrostatic pressure, leading to "
    "an uncontrolled influx of formation fluids and potential blowout.",
    (
        "Monitor pit levels continuously",
        "Reduce pump rate when pit levels are low",
        "Add lost circulation material when losses are detected",
        "Maintain adequate reserve pit volume at all times",
    ),
)

BLOWOUT = FailureCause(
    "Blowout Event",
    "Uncontrolled kick has escalated to a blowout.",
    "Formation fluids have reached the surface in an uncontrolled manner, creating a dangerous "
    "situation with risk of fire, environmental damage, and personnel injury.",
    (
        "Monitor for kick indicators (pit gain, flow rate changes)",
        "Close BOP immediately when kick is detected",
        "Properly weight up mud to control formation pressure",
        "Maintain proper choke control during well control operations",
    ),
)

FORMATION_BREAKDOWN = FailureCause(
    "Formation Breakdown with Kick",
    "Excessive pressure fractured the formation, causing severe losses followed by an influx.",
    "The combination of lost circulation and kick is one of the most dangerous scenarios in "
    "drilling, as the well can no longer be controlled with conventional methods.",
    (
        "Maintain mud weight below fracture gradient",
        "Control pump pressure and avoid pressure spikes",
        "Perform leak-off tests to determine safe operating pressures",
        "Reduce ECD (Equivalent Circulating Density) when approaching weak zones",
    ),
)

H2S_EXPOSURE = FailureCause(
    "H2S Exposure",
    "Gas influx containing H2S reached dangerous levels without mitigation.",
    "H2S is extremely toxic and can cause rapid unconsciousness and death at high "
    "concentrations. The entire rig is now in a life-threatening situation.",
    (
        "Monitor for H2S continuously in high-risk formations",
        "Respond immediately to gas influx indicators",
        "Ensure all personnel are trained in H2S safety procedures",
        "Maintain proper BOP and well control equipment",
    ),
)

UNCONTROLLED_GAS_INFLUX = FailureCause(
    "Uncontrolled Gas Influx",
    "Gas influx was ignored and has escalated to an uncontrollable situation.",
    "The increasing gas volume has displaced drilling fluid, reducing hydrostatic pressure and "
    "allowing more formation fluids to enter the wellbore in a dangerous cycle.",
    (
        "Monitor for kick indicators continuously",
        "Take immediate action when gas is detected",
        "Properly train personnel in well control procedures",
        "Maintain adequate mud weight for formation pressure",
    ),
)

PUMP_FAILURE = FailureCause(
    "Pump Failure",
    "Pumps failed due to extended operation beyond rated capacity.",
    "Without functional mud pumps, circulation is impossible, leading to inability to control "
    "wellbore pressure and remove cuttings.",
    (
        "Monitor pump pressure and maintain within specifications",
        "Perform regular maintenance checks",
        "Reduce pump rate when high pressures are observed",
        "Use multiple pumps to distribute load when high rates are needed",
    ),
)

DRILL_STRING_FAILURE = FailureCause(
    "Drill String Failure",
    "Drill string failed due to excessive torque and vibration.",
    "A drill string failure can result in dropped pipe, fishing operations, or in severe cases, "
    "loss of well control if it occurs during a critical operation.",
    (
        "Monitor torque and vibration continuously",
        "Adjust drilling parameters (WOB, RPM) to minimize vibration",
        "Perform regular inspections of drill pipe",
        "Use shock subs and other vibration dampening tools",
    ),
)

BOP_FAILURE = FailureCause(
    "BOP Failure",
    "BOP failed due to improper operation.",
    "A non-functional BOP means the last line of defense against a blowout is compromised, "
    "creating an extremely dangerous situation.",
    (
        "Never close annular preventer while pipe is rotating",
        "Perform regular BOP tests and maintenance",
        "Ensure proper training for BOP operation",
        "Follow manufacturer's guidelines for BOP operation",
    ),
)

WELLBORE_COLLAPSE = FailureCause(
    "Wellbore Collapse",
    "Wellbore collapsed due to drilling too deep without casing in unstable formation.",
    "Wellbore collapse has trapped the drill string, making it impossible to circulate or trip "
    "out. The well must now be abandoned or sidetracked at significant cost.",
    (
        "Run casing at appropriate intervals based on formation stability",
        "Monitor for signs of wellbore instability (tight hole, high torque)",
        "Use appropriate mud properties to stabilize the wellbore",
        "Perform caliper logs to assess wellbore condition before running casing",
    ),
)

_RISK_TIPS = (
    "Monitor warning signs closely",
    "Take immediate action when risks are detected",
    "Follow proper procedures for well control",
    "Maintain equipment within operational parameters",
)
_RISK_CONSEQUENCE = "The operation has failed due to unmanaged risks."

RISK_FAILURES: dict[RiskType, FailureCause] = {
    RiskType.KICK: FailureCause(
        "Uncontrolled Kick",
        "Formation fluids entered the wellbore and were not properly controlled.",
        _RISK_CONSEQUENCE,
        _RISK_TIPS,
    ),
    RiskType.LOST_CIRCULATION: FailureCause(
        "Catastrophic Lost Circulation",
        "Complete loss of drilling fluid to the formation.",
        _RISK_CONSEQUENCE,
        _RISK_TIPS,
    ),
    RiskType.PIT_DEPLETION: FailureCause(
        "Mud System Failure",
        "Critical depletion of drilling fluid reserves.",
        _RISK_CONSEQUENCE,
        _RISK_TIPS,
    ),
    RiskType.WELLBORE_INSTABILITY: FailureCause(
        "Wellbore Collapse",
        "The wellbore has collapsed due to instability and lack of support.",
        _RISK_CONSEQUENCE,
        _RISK_TIPS,
    ),
}


# =============================================================================
# Rules
# =============================================================================


@dataclass
class TerminalContext:
    """What the terminal rules look at beyond the tick context."""

    tick: TickContext
    risk: RiskAssessment
    actions: list[ActionRecord] = field(default_factory=list)


TerminalRule = Callable[[TerminalContext], "FailureCause | None"]


def pit_depletion(tc: TerminalContext) -> FailureCause | None:
    if tc.tick.state.pit_level == 0:
        return MUD_PIT_DEPLETION
    return None


def blowout(tc: TerminalContext) -> FailureCause | None:
    state = tc.tick.state
    if (
        state.bit_depth > MIN_INFLUX_DEPTH
        and state.gas_level > BLOWOUT_GAS_LEVEL
        and tc.tick.controls.bop_status == BopStatus.OPEN
    ):
        return BLOWOUT
    return None


def formation_breakdown(tc: TerminalContext) -> FailureCause | None:
    state = tc.tick.state
    frac = tc.tick.props.fracture_pressure
    overpressured = state.standpipe_pressure > frac * 200 or state.mud_weight > frac * 1.2
    if overpressured and state.gas_level > INFLUX_GAS_LEVEL and state.pit_level < 30:
        return FORMATION_BREAKDOWN
    return None


def ignored_gas_influx(tc: TerminalContext) -> FailureCause | None:
    """Gas above 5% for a minute with no BOP, mud weight or choke change.

    Side effects: maintains the gas-influx warning timer and records a missed
    warning when the operator failed to respond.
    """
    ctx = tc.tick
    warnings = ctx.warnings
    if not (ctx.depth > MIN_INFLUX_DEPTH and ctx.state.gas_level > INFLUX_GAS_LEVEL):
        warnings.clear(WarningKind.GAS_INFLUX)
        return None

    warnings.activate(WarningKind.GAS_INFLUX, ctx.tick, len(tc.actions))
    active = warnings.get(WarningKind.GAS_INFLUX)
    if ctx.tick - active.since_tick <= INFLUX_RESPONSE_SECONDS * ctx.speed:
        return None

    responded = any(
        action.control in MITIGATING_CONTROLS for action in tc.actions[active.since_action:]
    )
    if responded:
        warnings.restart(WarningKind.GAS_INFLUX, ctx.tick, len(tc.actions))
        return None

    ctx.missed_warnings.append(
        MissedWarning(
            warning="Gas Influx Detected",
            tick=active.since_tick,
            required_action="Close BOP and adjust mud weight",
            time_allowed=f"{INFLUX_RESPONSE_SECONDS} seconds",
        )
    )
    if ctx.props.lithology == Lithology.SHALE or ctx.scenario == "blowout":
        return H2S_EXPOSURE
    return UNCONTROLLED_GAS_INFLUX


def equipment_failure(tc: TerminalContext) -> FailureCause | None:
    equipment = tc.tick.equipment
    if equipment.pumps.health <= 0:
        return PUMP_FAILURE
    if equipment.drill_string.health <= 0:
        return DRILL_STRING_FAILURE
    if equipment.bop.health <= 0:
        return BOP_FAILURE
    return None


def wellbore_collapse(tc: TerminalContext) -> FailureCause | None:
    ctx = tc.tick
    if (
        ctx.uncased_depth > COLLAPSE_UNCASED_DEPTH
        and ctx.tick - ctx.last_casing_tick > COLLAPSE_TICKS_SINCE_CASING
        and ctx.unstable_formation
    ):
        return WELLBORE_COLLAPSE
    return None


def saturated_risk(tc: TerminalContext) -> FailureCause | None:
    """Composite risk at 100.

    Equipment saturation is left to ``equipment_failure`` so a unit fails by
    name once its health actually reaches zero.
    """
    for kind in tc.risk.saturated():
        if kind in RISK_FAILURES:
            return RISK_FAILURES[kind]
    return None


TERMINAL_RULES: tuple[TerminalRule, ...] = (
    pit_depletion,
    blowout,
    formation_breakdown,
    ignored_gas_influx,
    equipment_failure,
    wellbore_collapse,
    saturated_risk,
)


def evaluate_terminal(
    tc: TerminalContext, rules: tuple[TerminalRule, ...] = TERMINAL_RULES
) -> FailureCause | None:
    """Return the cause from the first matching rule, if any."""
    for rule in rules:
        cause = rule(tc)
        if cause is not None:
            return cause
    return None
