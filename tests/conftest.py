"""
Pytest configuration and shared fixtures.

Provides:
- Formation builders (default section and single-layer sections)
- A seeded engine
- A factory for hand-built tick contexts used by the stage tests
"""

import random
from typing import Callable

import pytest

from drilling_simulator.config import EngineSettings
from drilling_simulator.engine import SimulationEngine
from drilling_simulator.engine.context import TickContext
from drilling_simulator.engine.events import WarningTracker
from drilling_simulator.engine.recorder import SimulationRecorder
from drilling_simulator.engine.state import (
    ControlState,
    EquipmentStatus,
    SimulationState,
    TrippingStatus,
)
from drilling_simulator.formation import (
    FormationLayer,
    FormationModel,
    FormationProperties,
    Lithology,
)


def single_layer(
    pore_pressure: float = 9.0,
    fracture_pressure: float = 14.0,
    permeability: float = 0.1,
    lithology: Lithology = Lithology.SANDSTONE,
    kick_risk: float | None = 0.2,
    thickness: float = 20000.0,
) -> FormationModel:
    """One thick layer from surface, so properties barely change with depth."""
    return FormationModel(
        [
            FormationLayer(
                name="Test Layer",
                top_depth=0,
                thickness=thickness,
                pore_pressure=pore_pressure,
                fracture_pressure=fracture_pressure,
                permeability=permeability,
                lithology=lithology,
                kick_risk=kick_risk,
            )
        ]
    )


@pytest.fixture
def default_formation() -> FormationModel:
    return FormationModel.default()


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings(rng_seed=42)


@pytest.fixture
def engine(default_formation, settings) -> SimulationEngine:
    """Seeded engine on the default four-layer section."""
    return SimulationEngine(default_formation, settings)


@pytest.fixture
def make_context() -> Callable[..., TickContext]:
    """Build a TickContext around fresh state records.

    Usage:
        def test_something(make_context):
            ctx = make_context(depth=1000, mud_weight=8.0, props=props)
    """

    def _make(
        depth: float = 1000.0,
        mud_weight: float = 10.0,
        props: FormationProperties | None = None,
        controls: ControlState | None = None,
        tick: int = 1,
        speed: float = 1.0,
        seed: int = 0,
        casing_depth: float = 0.0,
        last_casing_tick: int = 0,
        scenario: str = "normal",
        **state_fields,
    ) -> TickContext:
        state = SimulationState(bit_depth=depth, mud_weight=mud_weight, **state_fields)
        return TickContext(
            tick=tick,
            speed=speed,
            state=state,
            controls=controls or ControlState(mud_weight=mud_weight),
            equipment=EquipmentStatus(),
            tripping=TrippingStatus(),
            props=props
            or FormationProperties(
                pore_pressure=9.0,
                fracture_pressure=14.0,
                permeability=0.1,
                lithology=Lithology.SANDSTONE,
            ),
            layer_index=1,
            warnings=WarningTracker(),
            recorder=SimulationRecorder(),
            rng=random.Random(seed),
            casing_depth=casing_depth,
            last_casing_tick=last_casing_tick,
            scenario=scenario,
        )

    return _make
