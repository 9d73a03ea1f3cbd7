"""Composite risk score.

The composite is the maximum of five independent sub-scores (each 0-100).
Ties go to the sub-score listed first in ``RiskType``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from drilling_simulator.engine.context import TickContext
from drilling_simulator.engine.events import EVENT_RISK_DECREASED, EVENT_RISK_INCREASED, Severity

MIN_KICK_DEPTH = 500.0
PIT_RISK_THRESHOLD = 30.0
UNCASED_RISK_THRESHOLD = 1000.0
EQUIPMENT_RISK_WEIGHT = 1.2


class RiskType(str, Enum):
    """Sub-score tags, in tie-break order."""

    KICK = "kick"
    LOST_CIRCULATION = "lostCirculation"
    PIT_DEPLETION = "pitDepletion"
    EQUIPMENT_FAILURE = "equipmentFailure"
    WELLBORE_INSTABILITY = "wellboreInstability"


@dataclass(frozen=True)
class RiskAssessment:
    """Result of one risk evaluation.

    Attributes:
        level: Composite score (0-100)
        type: Dominant sub-score, or None when everything is zero
        decaying: True when the score dropped since the previous tick
        components: Every sub-score keyed by type
    """

    level: float = 0.0
    type: RiskType | None = None
    decaying: bool = False
    components: dict[RiskType, float] = field(default_factory=dict)

    def saturated(self) -> list[RiskType]:
        """Sub-scores at the 100 ceiling, in tie-break order."""
        return [kind for kind in RiskType if self.components.get(kind, 0.0) >= 100.0]


# =============================================================================
# Sub-scores
# =============================================================================


def kick_score(ctx: TickContext) -> float:
    hydrostatic = ctx.hydrostatic_psi
    pore = ctx.pore_psi
    if ctx.depth <= MIN_KICK_DEPTH or pore <= hydrostatic * 0.95:
        return 0.0
    if hydrostatic <= 0:
        raw = 100.0
    else:
        raw = min(100.0, (pore - hydrostatic * 0.95) / (hydrostatic * 0.05) * 100)
    return raw * (0.7 + ctx.kick_risk * 0.3)


def lost_circulation_score(ctx: TickContext) -> float:
    state = ctx.state
    frac = ctx.props.fracture_pressure
    if not (state.mud_weight > frac * 0.9 or state.standpipe_pressure > frac * 130):
        return 0.0
    return min(
        100.0,
        max(
            (state.mud_weight - frac * 0.9) / (frac * 0.1) * 100,
            (state.standpipe_pressure - frac * 130) / (frac * 20) * 100,
        ),
    )


def pit_depletion_score(ctx: TickContext) -> float:
    pit = ctx.state.pit_level
    if pit >= PIT_RISK_THRESHOLD:
        return 0.0
    return min(100.0, (PIT_RISK_THRESHOLD - pit) / PIT_RISK_THRESHOLD * 100)


def equipment_score(ctx: TickContext) -> float:
    worst = max(100 - health for health in ctx.equipment.healths().values())
    return min(100.0, max(0.0, worst * EQUIPMENT_RISK_WEIGHT))


def wellbore_instability_score(ctx: TickContext) -> float:
    uncased = ctx.uncased_depth
    if uncased <= UNCASED_RISK_THRESHOLD or not ctx.unstable_formation:
        return 0.0
    return min(100.0, (uncased - UNCASED_RISK_THRESHOLD) / 10)


SUB_SCORES = {
    RiskType.KICK: kick_score,
    RiskType.LOST_CIRCULATION: lost_circulation_score,
    RiskType.PIT_DEPLETION: pit_depletion_score,
    RiskType.EQUIPMENT_FAILURE: equipment_score,
    RiskType.WELLBORE_INSTABILITY: wellbore_instability_score,
}


# =============================================================================
# Aggregator
# =============================================================================


class RiskAggregator:
    """Tracks the composite score across ticks and reports big swings."""

    def __init__(self) -> None:
        self._last = RiskAssessment()

    @property
    def last(self) -> RiskAssessment:
        return self._last

    def reset(self) -> None:
        self._last = RiskAssessment()

    def assess(self, ctx: TickContext) -> RiskAssessment:
        components = {kind: score(ctx) for kind, score in SUB_SCORES.items()}

        level = 0.0
        dominant: RiskType | None = None
        for kind, score in components.items():
            if score > level:
                level, dominant = score, kind

        previous = self._last.level
        decaying = level < previous
        label = dominant.value if dominant else "multiple issues"

        if decaying and previous - level > 20:
            ctx.timeline(
                EVENT_RISK_DECREASED,
                Severity.SUCCESS,
                f"Risk level decreased from {round(previous)}% to {round(level)}%",
                previous_risk=round(previous),
                current_risk=round(level),
                risk_type=dominant.value if dominant else None,
            )
        elif level > previous + 10:
            ctx.timeline(
                EVENT_RISK_INCREASED,
                Severity.CRITICAL if level > 70 else Severity.WARNING,
                f"Risk level increased to {round(level)}% - {label}",
                previous_risk=round(previous),
                current_risk=round(level),
                risk_type=dominant.value if dominant else None,
            )

        self._last = RiskAssessment(
            level=level, type=dominant, decaying=decaying, components=components
        )
        return self._last
