"""Tests for the session recorder."""

from drilling_simulator.engine.events import (
    ActionRecord,
    EventRecord,
    FormationTransition,
    Severity,
    WarningKind,
    WarningTracker,
)
from drilling_simulator.engine.recorder import SimulationRecorder
from drilling_simulator.engine.state import SimulationState


def _event(tick: int, depth: float, event_type: str = "kick") -> EventRecord:
    return EventRecord(
        type=event_type, tick=tick, depth=depth, severity=Severity.WARNING, description="test"
    )


class TestRetention:
    def test_samples_capped(self):
        recorder = SimulationRecorder(log_retention=3)
        for tick in range(5):
            recorder.record_sample(tick, SimulationState(bit_depth=float(tick)))
        assert [s.tick for s in recorder.samples] == [2, 3, 4]

    def test_events_capped_oldest_first(self):
        recorder = SimulationRecorder(event_retention=2)
        for tick in range(3):
            recorder.record_event(_event(tick, 0.0))
        assert [e.tick for e in recorder.events] == [1, 2]

    def test_timeline_capped(self):
        recorder = SimulationRecorder(timeline_retention=100)
        for tick in range(120):
            recorder.add_timeline_event("checkpoint", tick, "saved", Severity.INFO, {"depth": 1.0})
        timeline = recorder.timeline
        assert len(timeline) == 100
        assert timeline[0].tick == 20


def test_timeline_depth_from_parameters():
    recorder = SimulationRecorder()
    entry = recorder.add_timeline_event("casingRun", 3, "cased", Severity.INFO, {"depth": 750.0})
    assert entry.depth == 750.0
    assert entry.parameters == {"depth": 750.0}


def test_readers_return_copies():
    recorder = SimulationRecorder()
    recorder.record_event(_event(1, 10.0))
    recorder.events.clear()
    assert len(recorder.events) == 1


class TestMergedViews:
    def _recorder(self) -> SimulationRecorder:
        recorder = SimulationRecorder()
        recorder.record_event(_event(tick=5, depth=300.0))
        recorder.add_timeline_event("kickDetected", 2, "kick", Severity.CRITICAL, {"depth": 900.0})
        recorder.log_action(ActionRecord(action="change_rop", value=40, tick=9, depth=100.0))
        recorder.record_transition(
            FormationTransition(tick=7, depth=500.0, from_formation="Topsoil", to_formation="Shale")
        )
        return recorder

    def test_depth_logs_sorted_by_depth(self):
        logs = self._recorder().depth_logs()
        assert [entry.depth for entry in logs] == [100.0, 300.0, 500.0, 900.0]
        assert [entry.event_type for entry in logs] == [
            "action_change_rop",
            "kick",
            "formationTransition",
            "kickDetected",
        ]

    def test_time_logs_sorted_by_tick(self):
        logs = self._recorder().time_logs()
        assert [entry.tick for entry in logs] == [2, 5, 7, 9]

    def test_transition_parameters(self):
        logs = self._recorder().depth_logs()
        transition = next(e for e in logs if e.event_type == "formationTransition")
        assert transition.parameters["from_formation"] == "Topsoil"
        assert transition.parameters["to_formation"] == "Shale"

    def test_clear(self):
        recorder = self._recorder()
        recorder.clear()
        assert recorder.depth_logs() == []
        assert recorder.action_count == 0


def test_actions_since():
    recorder = SimulationRecorder()
    for tick in range(4):
        recorder.log_action(ActionRecord(action="change_rop", value=tick, tick=tick, depth=0.0))
    assert [a.value for a in recorder.actions_since(2)] == [2, 3]


class TestWarningTracker:
    def test_first_activation_only(self):
        tracker = WarningTracker()
        assert tracker.activate(WarningKind.KICK, tick=3) is True
        assert tracker.activate(WarningKind.KICK, tick=4) is False
        assert tracker.get(WarningKind.KICK).since_tick == 3

    def test_clear_and_reactivate(self):
        tracker = WarningTracker()
        tracker.activate(WarningKind.SURGE_LOSS, tick=1)
        tracker.clear(WarningKind.SURGE_LOSS, WarningKind.SWAB_KICK)
        assert not tracker.is_active(WarningKind.SURGE_LOSS)
        assert tracker.activate(WarningKind.SURGE_LOSS, tick=9) is True

    def test_restart_moves_timer(self):
        tracker = WarningTracker()
        tracker.activate(WarningKind.GAS_INFLUX, tick=1, action_count=0)
        tracker.restart(WarningKind.GAS_INFLUX, tick=70, action_count=2)
        active = tracker.get(WarningKind.GAS_INFLUX)
        assert (active.since_tick, active.since_action) == (70, 2)
