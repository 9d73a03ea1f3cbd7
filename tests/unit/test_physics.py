"""Tests for the analytic drilling formulas."""

import pytest

from drilling_simulator.engine.physics import (
    calculate_annular_pressure,
    calculate_hookload,
    calculate_pump_pressure,
    calculate_standpipe_pressure,
    calculate_torque,
    calculate_vibration,
    hydrostatic_pressure,
    next_bit_depth,
    update_hydraulics,
    update_mechanics,
)
from drilling_simulator.engine.state import (
    BopStatus,
    ControlState,
    Drawworks,
    SimulationState,
    TrippingStatus,
    TripDirection,
    WellType,
)
from drilling_simulator.formation import DEFAULT_PROPERTIES, FormationProperties, Lithology


def test_hydrostatic_pressure():
    assert hydrostatic_pressure(10.0, 1000.0) == pytest.approx(520.0)


def test_torque_hard_rock_factor():
    assert calculate_torque(60, Lithology.SANDSTONE) == pytest.approx(30.0)
    assert calculate_torque(60, Lithology.LIMESTONE) == pytest.approx(45.0)
    assert calculate_torque(60, Lithology.DOLOMITE) == pytest.approx(45.0)


@pytest.mark.parametrize(
    "well_type,expected",
    [(WellType.VERTICAL, 150.0), (WellType.DEVIATED, 180.0), (WellType.HORIZONTAL, 225.0)],
)
def test_hookload_by_well_type(well_type, expected):
    assert calculate_hookload(1000.0, well_type) == pytest.approx(expected)


def test_vibration_capped_at_100():
    assert calculate_vibration(60, 50, Lithology.SANDSTONE, 0) == pytest.approx(30.0)
    assert calculate_vibration(300, 200, Lithology.LIMESTONE, 5000) == 100.0


class TestBitDepth:
    def test_drilling_ahead_at_rop(self):
        controls = ControlState(rop=360)
        depth = next_bit_depth(100.0, controls, TrippingStatus(), speed=1, ticks_per_hour=3600)
        assert depth == pytest.approx(100.1)

    def test_speed_scales_penetration_per_tick(self):
        controls = ControlState(rop=360)
        depth = next_bit_depth(100.0, controls, TrippingStatus(), speed=10, ticks_per_hour=3600)
        assert depth == pytest.approx(101.0)

    def test_unlocked_drawworks_follow_hook(self):
        controls = ControlState(drawworks=Drawworks.UNLOCKED, hook_position=5)
        depth = next_bit_depth(300.0, controls, TrippingStatus(), speed=1, ticks_per_hour=3600)
        assert depth == pytest.approx(320.0)

    def test_unlocked_drawworks_never_above_surface(self):
        controls = ControlState(drawworks=Drawworks.UNLOCKED, hook_position=-10)
        depth = next_bit_depth(50.0, controls, TrippingStatus(), speed=1, ticks_per_hour=3600)
        assert depth == 0.0

    def test_tripping_moves_at_trip_speed(self):
        controls = ControlState()
        trip_in = TrippingStatus(is_tripping=True, direction=TripDirection.IN, speed=120)
        trip_out = TrippingStatus(is_tripping=True, direction=TripDirection.OUT, speed=120)
        assert next_bit_depth(1000.0, controls, trip_in, 1, 3600) == pytest.approx(1002.0)
        assert next_bit_depth(1000.0, controls, trip_out, 1, 3600) == pytest.approx(998.0)
        assert next_bit_depth(1.0, controls, trip_out, 1, 3600) == 0.0


class TestHydraulics:
    def test_pressure_chain(self):
        pump = calculate_pump_pressure(100, 10000)
        assert pump == pytest.approx(450.0)
        standpipe = calculate_standpipe_pressure(pump, 50)
        assert standpipe == pytest.approx(562.5)
        assert calculate_annular_pressure(standpipe, 10000) == pytest.approx(281.25)
        assert calculate_annular_pressure(standpipe, 15000) == pytest.approx(281.25)

    def test_update_hydraulics_follows_controls(self):
        state = SimulationState(bit_depth=2000.0)
        controls = ControlState(mud_weight=12.5, choke_position=20, pump_rate=200)
        update_hydraulics(state, controls, DEFAULT_PROPERTIES)

        assert state.mud_weight == 12.5
        assert state.mud_temperature == pytest.approx(140.0)
        assert state.formation_pressure == DEFAULT_PROPERTIES.pore_pressure
        assert state.choke_position == 20
        assert state.pump_pressure == pytest.approx(200 * 3 * 1.1)

    def test_closed_bop_bleeds_gas(self):
        state = SimulationState(bit_depth=1000.0, gas_level=10.0)
        controls = ControlState(bop_status=BopStatus.CLOSED, choke_position=100)
        update_hydraulics(state, controls, DEFAULT_PROPERTIES)
        assert state.gas_level == pytest.approx(10.0 - 0.2 - 0.5)
        assert state.bop_status == BopStatus.CLOSED

    def test_open_bop_keeps_gas(self):
        state = SimulationState(bit_depth=1000.0, gas_level=10.0)
        update_hydraulics(state, ControlState(), DEFAULT_PROPERTIES)
        assert state.gas_level == 10.0

    def test_pit_clamped(self):
        state = SimulationState(pit_level=-5.0)
        update_hydraulics(state, ControlState(), DEFAULT_PROPERTIES)
        assert state.pit_level == 0.0


def test_update_mechanics():
    state = SimulationState(bit_depth=1000.0)
    props = FormationProperties(9.0, 14.0, 0.1, Lithology.LIMESTONE)
    update_mechanics(state, ControlState(rop=80, rotary_speed=100), props, WellType.DEVIATED)

    assert state.rop == 80
    assert state.rpm == 100
    assert state.torque == pytest.approx(75.0)
    assert state.hookload == pytest.approx(180.0)
