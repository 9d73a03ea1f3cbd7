"""Subsurface formation model.

Holds an ordered list of formation layers and answers questions about rock
properties at a given depth. Layers are validated with pydantic on the way in
and are always handed out as copies, so callers can never mutate the model
behind its back.

Example:
    >>> model = FormationModel.default()
    >>> props = model.get_properties_at_depth(1000.0)
    >>> props.lithology
    <Lithology.SHALE: 'shale'>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

# Gradients applied across the thickness of a layer (ppg per full layer)
PORE_PRESSURE_GRADIENT = 0.1
FRACTURE_PRESSURE_GRADIENT = 0.15


class FormationError(ValueError):
    """Raised when a layer would leave the formation model inconsistent."""


# ============================================================================
# Enums
# ============================================================================


class Lithology(str, Enum):
    """Rock types known to the simulator."""

    SAND = "sand"
    SANDSTONE = "sandstone"
    SHALE = "shale"
    LIMESTONE = "limestone"
    DOLOMITE = "dolomite"
    SALT = "salt"

    @property
    def is_hard(self) -> bool:
        """Hard rock increases torque and vibration."""
        return self in (Lithology.LIMESTONE, Lithology.DOLOMITE)


# ============================================================================
# Layer Schema
# ============================================================================


class FormationLayer(BaseModel):
    """A single subsurface layer.

    Pressures are expressed as equivalent mud weights (ppg).
    """

    model_config = ConfigDict(validate_assignment=True)

    name: str = Field(..., description="Unique layer name", min_length=1)
    top_depth: float = Field(..., description="Depth of the layer top in ft", ge=0)
    thickness: float = Field(..., description="Layer thickness in ft", gt=0)
    pore_pressure: float = Field(..., description="Pore pressure (ppg equivalent)", gt=0)
    fracture_pressure: float = Field(..., description="Fracture pressure (ppg equivalent)", gt=0)
    permeability: float = Field(..., description="Permeability in darcy", ge=0)
    lithology: Lithology = Field(..., description="Dominant rock type")
    kick_risk: float | None = Field(
        None, description="Likelihood of influx (0-1); derived when missing", ge=0, le=1
    )
    description: str = Field("", description="Free-text notes for trainees")

    @property
    def bottom_depth(self) -> float:
        """Depth of the layer base in ft."""
        return self.top_depth + self.thickness

    def contains(self, depth: float) -> bool:
        """Check whether depth falls within [top, bottom)."""
        return self.top_depth <= depth < self.bottom_depth

    def overlaps(self, other: FormationLayer) -> bool:
        """Check whether two layers share any depth interval."""
        return self.top_depth < other.bottom_depth and other.top_depth < self.bottom_depth


@dataclass(frozen=True)
class FormationProperties:
    """Rock properties at a single depth."""

    pore_pressure: float
    fracture_pressure: float
    permeability: float
    lithology: Lithology
    kick_risk: float | None = None


# Properties used whenever no layer covers the requested depth
DEFAULT_PROPERTIES = FormationProperties(
    pore_pressure=9.0,
    fracture_pressure=14.0,
    permeability=0.1,
    lithology=Lithology.SANDSTONE,
)


@dataclass(frozen=True)
class RecommendedParameters:
    """Suggested drilling parameters for a lithology."""

    min_rop: float
    max_rop: float
    recommended_mud_weight: float
    recommended_rpm: float
    description: str


_RECOMMENDATIONS: dict[Lithology | None, RecommendedParameters] = {
    Lithology.SAND: RecommendedParameters(
        50, 100, 9.0, 80, "Unconsolidated sand formation. Use moderate ROP to prevent collapse."
    ),
    Lithology.SANDSTONE: RecommendedParameters(
        40, 80, 9.5, 70, "Consolidated sandstone. Moderate drilling parameters recommended."
    ),
    Lithology.SHALE: RecommendedParameters(
        30, 60, 10.0, 60, "Shale formation. Drill slowly to prevent swelling and instability."
    ),
    Lithology.LIMESTONE: RecommendedParameters(
        25, 50, 10.5, 50, "Hard limestone formation. Use lower ROP to prevent bit damage."
    ),
    Lithology.DOLOMITE: RecommendedParameters(
        20, 40, 11.0, 45, "Very hard dolomite. Drill slowly with higher mud weight."
    ),
    None: RecommendedParameters(
        30, 70, 10.0, 60, "Unknown formation. Use moderate drilling parameters."
    ),
}


# ============================================================================
# Formation Model
# ============================================================================


class FormationModel:
    """Ordered collection of formation layers.

    Invariants:
    - Layers are sorted by top depth
    - Layer names are unique
    - Depth ranges never overlap (rejected with FormationError)
    - The deepest layer extends downward without limit for lookups
    """

    def __init__(self, layers: Iterable[FormationLayer | dict] | None = None) -> None:
        """Initialize formation model.

        Args:
            layers: Initial layers (models or dicts). Empty when omitted.

        Raises:
            FormationError: If the layers overlap or repeat a name
        """
        self._layers: list[FormationLayer] = []
        for layer in layers or []:
            self.add_layer(layer)

    @classmethod
    def default(cls) -> FormationModel:
        """Four-layer training section used when nothing else is configured."""
        return cls(
            [
                FormationLayer(
                    name="Topsoil", top_depth=0, thickness=500, pore_pressure=8.5,
                    fracture_pressure=12.0, permeability=0.01, lithology=Lithology.SAND,
                ),
                FormationLayer(
                    name="Shale", top_depth=500, thickness=1000, pore_pressure=9.2,
                    fracture_pressure=14.5, permeability=0.001, lithology=Lithology.SHALE,
                ),
                FormationLayer(
                    name="Reservoir", top_depth=1500, thickness=800, pore_pressure=11.0,
                    fracture_pressure=15.0, permeability=0.5, lithology=Lithology.SANDSTONE,
                ),
                FormationLayer(
                    name="Overpressured Zone", top_depth=2300, thickness=500, pore_pressure=14.0,
                    fracture_pressure=16.5, permeability=0.05, lithology=Lithology.LIMESTONE,
                ),
            ]
        )

    @classmethod
    def reference(cls) -> FormationModel:
        """Six-layer reference section with descriptions and kick risks."""
        return cls(
            [
                FormationLayer(
                    name="Surface Formation", top_depth=0, thickness=500, pore_pressure=8.5,
                    fracture_pressure=12.0, permeability=0.01, lithology=Lithology.SAND,
                    kick_risk=0.05,
                    description="Unconsolidated surface formation with low pressure.",
                ),
                FormationLayer(
                    name="Upper Shale", top_depth=500, thickness=1000, pore_pressure=9.2,
                    fracture_pressure=14.5, permeability=0.001, lithology=Lithology.SHALE,
                    kick_risk=0.1,
                    description="Stable shale formation with moderate pressure.",
                ),
                FormationLayer(
                    name="Sandstone Reservoir", top_depth=1500, thickness=800, pore_pressure=11.0,
                    fracture_pressure=15.0, permeability=0.5, lithology=Lithology.SANDSTONE,
                    kick_risk=0.25,
                    description="Permeable sandstone with potential for fluid influx.",
                ),
                FormationLayer(
                    name="Pressured Zone", top_depth=2300, thickness=500, pore_pressure=14.0,
                    fracture_pressure=16.5, permeability=0.05, lithology=Lithology.LIMESTONE,
                    kick_risk=0.4,
                    description="High-pressure limestone formation requiring careful drilling.",
                ),
                FormationLayer(
                    name="Salt Dome", top_depth=2800, thickness=400, pore_pressure=10.0,
                    fracture_pressure=13.0, permeability=0.001, lithology=Lithology.SALT,
                    kick_risk=0.15,
                    description="Salt formation with risk of washouts and closure.",
                ),
                FormationLayer(
                    name="Deep Reservoir", top_depth=3200, thickness=600, pore_pressure=15.5,
                    fracture_pressure=17.0, permeability=0.3, lithology=Lithology.SANDSTONE,
                    kick_risk=0.45,
                    description="Deep high-pressure reservoir with significant kick potential.",
                ),
            ]
        )

    # =========================================================================
    # Layer CRUD
    # =========================================================================

    def get_layers(self) -> list[FormationLayer]:
        """Return copies of all layers, shallowest first."""
        return [layer.model_copy() for layer in self._layers]

    def add_layer(self, layer: FormationLayer | dict) -> None:
        """Insert a layer and keep the list sorted.

        Raises:
            FormationError: If the name already exists or the range overlaps
            pydantic.ValidationError: If a dict fails field validation
        """
        layer = _coerce_layer(layer)
        if any(existing.name == layer.name for existing in self._layers):
            raise FormationError(f"Layer already exists: {layer.name}")
        self._check_overlap(layer, ignore=None)
        self._layers.append(layer)
        self._sort()

    def update_layer(self, layer: FormationLayer | dict) -> bool:
        """Replace the layer with the same name.

        Returns:
            True if a layer was replaced, False if the name is unknown

        Raises:
            FormationError: If the new range overlaps another layer
        """
        layer = _coerce_layer(layer)
        for index, existing in enumerate(self._layers):
            if existing.name == layer.name:
                self._check_overlap(layer, ignore=existing.name)
                self._layers[index] = layer
                self._sort()
                return True
        return False

    def remove_layer(self, name: str) -> bool:
        """Delete a layer by name. Returns False if it did not exist."""
        remaining = [layer for layer in self._layers if layer.name != name]
        removed = len(remaining) != len(self._layers)
        self._layers = remaining
        return removed

    # =========================================================================
    # Depth Queries
    # =========================================================================

    def get_layer_at_depth(self, depth: float) -> FormationLayer | None:
        """Find the layer covering a depth.

        Depths below the deepest layer resolve to that layer; depths above the
        first layer (or inside a gap) resolve to None.
        """
        index = self._index_at_depth(depth)
        if index is None:
            return None
        return self._layers[index].model_copy()

    def get_layer_index_at_depth(self, depth: float) -> int:
        """One-based index of the layer covering a depth (1 when unknown)."""
        index = self._index_at_depth(depth)
        return 1 if index is None else index + 1

    def get_properties_at_depth(self, depth: float) -> FormationProperties:
        """Rock properties at a depth.

        Pore and fracture pressure rise linearly through the layer, starting
        from the layer's nominal values at its top.
        """
        index = self._index_at_depth(depth)
        if index is None:
            return DEFAULT_PROPERTIES

        layer = self._layers[index]
        depth_factor = (depth - layer.top_depth) / layer.thickness
        return FormationProperties(
            pore_pressure=layer.pore_pressure + depth_factor * PORE_PRESSURE_GRADIENT,
            fracture_pressure=layer.fracture_pressure + depth_factor * FRACTURE_PRESSURE_GRADIENT,
            permeability=layer.permeability,
            lithology=layer.lithology,
            kick_risk=layer.kick_risk,
        )

    # =========================================================================
    # Recommendations
    # =========================================================================

    @staticmethod
    def get_recommended_parameters(lithology: Lithology | str | None) -> RecommendedParameters:
        """Recommended drilling window for a rock type."""
        if isinstance(lithology, str) and not isinstance(lithology, Lithology):
            try:
                lithology = Lithology(lithology.lower())
            except ValueError:
                lithology = None
        return _RECOMMENDATIONS.get(lithology, _RECOMMENDATIONS[None])

    def get_recommendations_at_depth(self, depth: float) -> RecommendedParameters:
        """Recommended drilling window for the layer at a depth."""
        layer = self.get_layer_at_depth(depth)
        return self.get_recommended_parameters(layer.lithology if layer else None)

    # =========================================================================
    # Internals
    # =========================================================================

    def __len__(self) -> int:
        return len(self._layers)

    def _index_at_depth(self, depth: float) -> int | None:
        for index, layer in enumerate(self._layers):
            if layer.contains(depth):
                return index
        if self._layers and depth >= self._layers[-1].top_depth:
            return len(self._layers) - 1
        return None

    def _check_overlap(self, layer: FormationLayer, ignore: str | None) -> None:
        for existing in self._layers:
            if existing.name == ignore:
                continue
            if existing.overlaps(layer):
                logger.warning(f"Rejected layer {layer.name!r}: overlaps {existing.name!r}")
                raise FormationError(
                    f"Layer {layer.name!r} ({layer.top_depth}-{layer.bottom_depth} ft) "
                    f"overlaps {existing.name!r} ({existing.top_depth}-{existing.bottom_depth} ft)"
                )

    def _sort(self) -> None:
        self._layers.sort(key=lambda layer: layer.top_depth)


def _coerce_layer(layer: FormationLayer | dict) -> FormationLayer:
    if isinstance(layer, FormationLayer):
        return layer.model_copy()
    return FormationLayer.model_validate(layer)
