"""Training scenarios that reshape the attached formation."""

from __future__ import annotations

from enum import Enum

from drilling_simulator.formation import FormationLayer, FormationModel


class Scenario(str, Enum):
    NORMAL = "normal"
    KICK = "kick"
    LOST_CIRCULATION = "lost-circulation"
    STUCK_PIPE = "stuck-pipe"
    BLOWOUT = "blowout"


def _first(layers: list[FormationLayer], predicate) -> FormationLayer | None:
    return next((layer for layer in layers if predicate(layer)), None)


def apply_scenario(formation: FormationModel | None, scenario: Scenario | str) -> Scenario:
    """Modify the layer a scenario targets.

    Missing formations or missing target layers leave everything unchanged.

    Raises:
        ValueError: If the scenario name is unknown
    """
    scenario = Scenario(scenario)
    if formation is None or len(formation) == 0:
        return scenario

    layers = formation.get_layers()
    updates: dict[str, float] = {}
    target: FormationLayer | None = None

    if scenario == Scenario.KICK:
        target = _first(layers, lambda layer: layer.top_depth > 1500)
        updates = {"pore_pressure": 14.0, "kick_risk": 0.6}
    elif scenario == Scenario.LOST_CIRCULATION:
        target = _first(layers, lambda layer: 800 < layer.top_depth < 1500)
        updates = {"fracture_pressure": 11.0}
    elif scenario == Scenario.STUCK_PIPE:
        target = _first(layers, lambda layer: layer.top_depth > 1000)
        updates = {"permeability": 0.001, "pore_pressure": 8.0}
    elif scenario == Scenario.BLOWOUT:
        target = max(layers, key=lambda layer: layer.top_depth)
        updates = {"pore_pressure": 16.0, "permeability": 0.5, "kick_risk": 0.8}

    if target is not None:
        formation.update_layer({**target.model_dump(), **updates})
    return scenario
