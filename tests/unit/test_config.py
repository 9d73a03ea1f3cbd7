"""Tests for session configuration loading and validation."""

import pytest

from drilling_simulator.config import (
    ControlSettings,
    EngineSettings,
    SessionConfig,
    ValidationError,
)
from drilling_simulator.engine import BopStatus, Scenario, WellType
from drilling_simulator.formation import FormationError

SESSION_YAML = """
engine:
  speed: 2.0
  rng_seed: 42
  well_type: deviated

formation:
  - name: Surface Sand
    top_depth: 0
    thickness: 800
    pore_pressure: 8.6
    fracture_pressure: 12.5
    permeability: 0.2
    lithology: sand
  - name: Gas Cap
    top_depth: 800
    thickness: 1200
    pore_pressure: 12.5
    fracture_pressure: 15.0
    permeability: 0.4
    lithology: sandstone
    kick_risk: 0.5

controls:
  mud_weight: 11.0
  bop_status: closed

target_depth: 1500
"""


@pytest.fixture
def session_file(tmp_path):
    path = tmp_path / "session.yaml"
    path.write_text(SESSION_YAML)
    return path


class TestFromYaml:
    def test_load_valid_file(self, session_file):
        config = SessionConfig.from_yaml(session_file)
        assert config.engine.speed == 2.0
        assert config.engine.rng_seed == 42
        assert [layer.name for layer in config.formation] == ["Surface Sand", "Gas Cap"]
        assert config.controls.changes() == {"mud_weight": 11.0, "bop_status": "closed"}
        assert config.scenario == "normal"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SessionConfig.from_yaml(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="is empty"):
            SessionConfig.from_yaml(path)

    def test_invalid_content_wrapped(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("engine:\n  speed: 0\n")
        with pytest.raises(ValueError, match="Invalid session file"):
            SessionConfig.from_yaml(path)

    def test_comment_only_file_is_empty(self, tmp_path):
        path = tmp_path / "comments.yaml"
        path.write_text("# nothing configured yet\n")
        with pytest.raises(ValueError, match="is empty"):
            SessionConfig.from_yaml(path)

    def test_top_level_list_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- speed: 2.0\n")
        with pytest.raises(ValueError, match="must contain a mapping"):
            SessionConfig.from_yaml(path)

    def test_directory_is_not_a_session_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SessionConfig.from_yaml(tmp_path)


class TestSchemas:
    def test_defaults(self):
        config = SessionConfig()
        assert config.engine.speed == 1.0
        assert config.engine.log_interval == 5
        assert config.engine.checkpoint_limit == 10
        assert config.formation is None
        assert config.controls.changes() == {}

    def test_speed_must_be_positive(self):
        with pytest.raises(ValidationError):
            EngineSettings(speed=0)

    def test_unknown_well_type(self):
        with pytest.raises(ValidationError):
            EngineSettings(well_type="spiral")

    def test_unknown_control_rejected(self):
        with pytest.raises(ValidationError):
            ControlSettings.model_validate({"throttle": 10})

    def test_unknown_scenario_rejected(self):
        with pytest.raises(ValidationError):
            SessionConfig.from_dict({"scenario": "earthquake"})

    def test_duplicate_layer_names(self):
        layer = {
            "name": "Shale",
            "top_depth": 0,
            "thickness": 100,
            "pore_pressure": 9.0,
            "fracture_pressure": 14.0,
            "permeability": 0.001,
            "lithology": "shale",
        }
        with pytest.raises(ValidationError, match="Duplicate layer names"):
            SessionConfig.from_dict({"formation": [layer, {**layer, "top_depth": 100}]})

    def test_unknown_layer_field_rejected(self):
        with pytest.raises(ValidationError):
            SessionConfig.from_dict(
                {
                    "formation": [
                        {
                            "name": "Shale",
                            "top_depth": 0,
                            "thickness": 100,
                            "pore_pressure": 9.0,
                            "fracture_pressure": 14.0,
                            "permeability": 0.001,
                            "lithology": "shale",
                            "porosity": 0.2,
                        }
                    ]
                }
            )


class TestBuild:
    def test_no_formation_section_uses_default(self):
        model = SessionConfig().build_formation()
        assert [layer.name for layer in model.get_layers()] == [
            "Topsoil",
            "Shale",
            "Reservoir",
            "Overpressured Zone",
        ]

    def test_empty_formation_means_none(self):
        assert SessionConfig.from_dict({"formation": []}).build_formation() is None

    def test_overlapping_layers(self):
        base = {
            "top_depth": 0,
            "thickness": 1000,
            "pore_pressure": 9.0,
            "fracture_pressure": 14.0,
            "permeability": 0.1,
            "lithology": "sandstone",
        }
        config = SessionConfig.from_dict(
            {"formation": [{**base, "name": "A"}, {**base, "name": "B", "top_depth": 500}]}
        )
        with pytest.raises(FormationError):
            config.build_formation()

    def test_build_engine(self, session_file):
        engine = SessionConfig.from_yaml(session_file).build_engine()

        assert engine.speed == 2.0
        assert engine.well_type == WellType.DEVIATED
        assert engine.get_controls().mud_weight == 11.0
        assert engine.get_controls().bop_status == BopStatus.CLOSED
        assert engine.get_bop_activations() == 1
        assert engine.get_target_depth() == 1500
        layers = {layer.name: layer for layer in engine.formation.get_layers()}
        assert layers["Gas Cap"].kick_risk == 0.5
        assert layers["Surface Sand"].kick_risk == pytest.approx(0.12)

    def test_build_engine_loads_scenario(self):
        engine = SessionConfig.from_dict({"scenario": "blowout"}).build_engine()
        assert engine.scenario == Scenario.BLOWOUT
        assert engine.formation.get_layer_at_depth(2500).pore_pressure == 16.0
