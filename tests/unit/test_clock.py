"""Tests for the wall-clock tick driver."""

import threading

from drilling_simulator.engine.clock import SimulationClock


def test_clock_fires_until_stopped():
    fired = threading.Event()
    count = 0

    def on_tick():
        nonlocal count
        count += 1
        if count >= 3:
            fired.set()

    clock = SimulationClock(on_tick)
    clock.start(0.01)
    assert clock.running
    assert fired.wait(timeout=5.0)

    clock.stop()
    assert not clock.running
    stopped_at = count
    threading.Event().wait(0.05)
    assert count == stopped_at


def test_start_is_idempotent():
    clock = SimulationClock(lambda: None)
    clock.start(0.5)
    first = clock._thread
    clock.start(0.01)
    assert clock._thread is first
    assert clock.period == 0.5
    clock.stop()


def test_stop_from_callback_does_not_deadlock():
    done = threading.Event()
    clock: SimulationClock

    def on_tick():
        clock.stop()
        done.set()

    clock = SimulationClock(on_tick)
    clock.start(0.01)
    assert done.wait(timeout=5.0)
    assert not clock.running


def test_stop_when_not_started():
    SimulationClock(lambda: None).stop()


def test_owning_thread_is_recognised():
    seen = []
    done = threading.Event()
    clock: SimulationClock

    def on_tick():
        seen.append(clock.is_clock_thread())
        clock.stop(wait=False)
        done.set()

    clock = SimulationClock(on_tick)
    clock.start(0.01)
    assert clock.is_clock_thread() is False
    assert done.wait(timeout=5.0)
    assert seen == [True]
