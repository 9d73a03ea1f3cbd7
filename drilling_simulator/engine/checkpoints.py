"""In-memory checkpoint history."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from drilling_simulator.engine.events import _new_id, _now_iso
from drilling_simulator.engine.state import EngineSnapshot

DEFAULT_CHECKPOINT_LIMIT = 10


@dataclass(frozen=True)
class Checkpoint:
    """A named, restorable engine snapshot.

    Attributes:
        id: Unique checkpoint ID ("cp_...")
        name: Display name
        tick: Tick at which the snapshot was taken
        depth: Bit depth in ft
        automatic: True for depth-interval saves
        state: Deep copy of every mutable engine record
        timestamp: Wall-clock ISO timestamp
    """

    id: str
    name: str
    tick: int
    depth: float
    automatic: bool
    state: EngineSnapshot
    timestamp: str = field(default_factory=_now_iso)

    @classmethod
    def create(cls, snapshot: EngineSnapshot, automatic: bool) -> Checkpoint:
        depth = snapshot.current.bit_depth
        prefix = "Auto-save" if automatic else "Checkpoint"
        return cls(
            id=_new_id("cp"),
            name=f"{prefix} at {depth:.0f}ft",
            tick=snapshot.tick,
            depth=depth,
            automatic=automatic,
            state=snapshot,
        )


class CheckpointStore:
    """Keeps the most recent checkpoints, evicting the oldest first."""

    def __init__(self, limit: int = DEFAULT_CHECKPOINT_LIMIT) -> None:
        self._checkpoints: deque[Checkpoint] = deque(maxlen=limit)

    def add(self, checkpoint: Checkpoint) -> None:
        self._checkpoints.append(checkpoint)

    def get(self, checkpoint_id: str) -> Checkpoint | None:
        for checkpoint in self._checkpoints:
            if checkpoint.id == checkpoint_id:
                return checkpoint
        return None

    def list(self) -> list[Checkpoint]:
        return list(self._checkpoints)

    def clear(self) -> None:
        self._checkpoints.clear()

    def __len__(self) -> int:
        return len(self._checkpoints)
