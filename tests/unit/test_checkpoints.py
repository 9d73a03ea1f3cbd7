"""Tests for checkpoint snapshots and the bounded store."""

from drilling_simulator.engine.checkpoints import Checkpoint, CheckpointStore
from drilling_simulator.engine.state import (
    ControlState,
    EngineSnapshot,
    EquipmentStatus,
    SimulationState,
)


def _snapshot(depth: float = 1234.0, tick: int = 10) -> EngineSnapshot:
    return EngineSnapshot.capture(
        SimulationState(bit_depth=depth),
        ControlState(),
        EquipmentStatus(),
        casing_depth=0.0,
        last_casing_tick=0,
        tick=tick,
    )


class TestCheckpoint:
    def test_names(self):
        assert Checkpoint.create(_snapshot(), automatic=True).name == "Auto-save at 1234ft"
        assert Checkpoint.create(_snapshot(), automatic=False).name == "Checkpoint at 1234ft"

    def test_ids_are_unique(self):
        a = Checkpoint.create(_snapshot(), automatic=False)
        b = Checkpoint.create(_snapshot(), automatic=False)
        assert a.id.startswith("cp_")
        assert a.id != b.id

    def test_capture_does_not_alias(self):
        state = SimulationState(bit_depth=100.0)
        snapshot = EngineSnapshot.capture(state, ControlState(), EquipmentStatus(), 0.0, 0, 1)
        state.bit_depth = 999.0
        assert snapshot.current.bit_depth == 100.0

    def test_restore_returns_fresh_copies(self):
        snapshot = _snapshot()
        current, controls, equipment = snapshot.restore()
        current.bit_depth = 0.0
        equipment.pumps.health = 1.0
        assert snapshot.current.bit_depth == 1234.0
        assert snapshot.equipment.pumps.health == 100.0


class TestCheckpointStore:
    def test_store_is_bounded_fifo(self):
        store = CheckpointStore(limit=10)
        created = [Checkpoint.create(_snapshot(tick=i), automatic=True) for i in range(11)]
        for checkpoint in created:
            store.add(checkpoint)

        assert len(store) == 10
        assert store.get(created[0].id) is None
        assert [cp.id for cp in store.list()] == [cp.id for cp in created[1:]]

    def test_get_unknown_id(self):
        assert CheckpointStore().get("cp_missing") is None

    def test_clear(self):
        store = CheckpointStore()
        store.add(Checkpoint.create(_snapshot(), automatic=False))
        store.clear()
        assert store.list() == []
