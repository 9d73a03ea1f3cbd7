"""Pydantic schemas for configuration validation."""
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from drilling_simulator.formation import FormationLayer, FormationModel

if TYPE_CHECKING:
    from drilling_simulator.engine import SimulationEngine

WellTypeName = Literal["vertical", "deviated", "horizontal"]
ScenarioName = Literal["normal", "kick", "lost-circulation", "stuck-pipe", "blowout"]

# ============================================================================
# Engine Settings
# ============================================================================


class EngineSettings(BaseModel):
    """Clock, retention and checkpoint settings for one engine."""

    speed: float = Field(1.0, description="Clock speed multiplier (ticks per wall-clock second)", gt=0)
    training_mode: bool = Field(True, description="Training mode flag exposed to hosts")
    well_type: WellTypeName = Field("vertical", description="Well trajectory")
    rng_seed: int | None = Field(None, description="Seed for kick sampling (None = nondeterministic)")
    ticks_per_hour: int = Field(3600, description="Ticks per simulated hour", gt=0)
    log_interval: int = Field(5, description="Ticks between log samples", gt=0)
    log_retention: int = Field(1000, description="Maximum log samples kept", gt=0)
    event_retention: int = Field(1000, description="Maximum event log entries kept", gt=0)
    timeline_retention: int = Field(100, description="Maximum timeline entries kept", gt=0)
    checkpoint_limit: int = Field(10, description="Maximum checkpoints kept", gt=0)
    checkpoint_interval: float = Field(
        500.0, description="New depth in ft between automatic checkpoints", gt=0
    )


# ============================================================================
# Formation & Controls
# ============================================================================


class FormationLayerConfig(FormationLayer):
    """A formation layer as written in a session file."""

    model_config = ConfigDict(extra="forbid")


class ControlSettings(BaseModel):
    """Initial operator controls. Unset fields keep the engine defaults."""

    model_config = ConfigDict(extra="forbid")

    rop: float | None = Field(None, description="Target rate of penetration (ft/hr)")
    pump_rate: float | None = Field(None, description="Pump rate (gpm)")
    rotary_speed: float | None = Field(None, description="Rotary speed (rpm)")
    mud_weight: float | None = Field(None, description="Mud weight (ppg)")
    choke_position: float | None = Field(None, description="Choke opening (%)")
    bop_status: Literal["open", "closed"] | None = None
    hook_position: float | None = None
    drawworks: Literal["locked", "unlocked"] | None = None

    def changes(self) -> dict[str, Any]:
        """Only the fields that were set."""
        return self.model_dump(exclude_none=True)


# ============================================================================
# Session
# ============================================================================


class SessionConfig(BaseModel):
    """Complete training session configuration."""

    engine: EngineSettings = Field(default_factory=EngineSettings)  # type: ignore[arg-type]
    formation: list[FormationLayerConfig] | None = Field(
        None,
        description="Formation layers. None uses the default four-layer section; "
        "an empty list runs without a formation.",
    )
    controls: ControlSettings = Field(default_factory=ControlSettings)  # type: ignore[arg-type]
    scenario: ScenarioName = Field("normal", description="Training scenario to load")
    target_depth: float | None = Field(None, description="Target depth in ft", gt=0)

    @field_validator("formation")
    @classmethod
    def validate_unique_layer_names(
        cls, v: list[FormationLayerConfig] | None
    ) -> list[FormationLayerConfig] | None:
        """Validate that all layer names are unique."""
        if v is None:
            return v
        names = [layer.name for layer in v]
        if len(names) != len(set(names)):
            duplicates = sorted({name for name in names if names.count(name) > 1})
            raise ValueError(f"Duplicate layer names found: {duplicates}")
        return v

    @classmethod
    def from_dict(cls, config_dict: dict) -> SessionConfig:
        """Create config from dictionary."""
        return cls.model_validate(config_dict)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SessionConfig:
        """Read a session file.

        A file holding only comments or whitespace is rejected rather than
        treated as an all-defaults session.

        Raises:
            FileNotFoundError: If the session file is missing
            ValueError: If the file is empty, not a mapping, or fails validation
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Session file not found: {path}")

        data = yaml.safe_load(path.read_text())
        if data is None:
            raise ValueError(f"Session file {path} is empty")
        if not isinstance(data, dict):
            raise ValueError(
                f"Session file {path} must contain a mapping, got {type(data).__name__}"
            )

        try:
            return cls.from_dict(data)
        except ValidationError as e:
            raise ValueError(f"Invalid session file {path}: {e}") from e

    def build_formation(self) -> FormationModel | None:
        """Raises FormationError if layers overlap."""
        if self.formation is None:
            return FormationModel.default()
        if not self.formation:
            return None
        return FormationModel(
            FormationLayer.model_validate(layer.model_dump()) for layer in self.formation
        )

    def build_engine(self) -> SimulationEngine:
        """Construct an engine wired with this session's formation and controls."""
        from drilling_simulator.engine import SimulationEngine

        engine = SimulationEngine(formation=self.build_formation(), settings=self.engine)
        if self.scenario != "normal":
            engine.load_scenario(self.scenario)
        changes = self.controls.changes()
        if changes:
            engine.set_controls(changes)
        if self.target_depth is not None:
            engine.set_target_depth(self.target_depth)
        return engine
