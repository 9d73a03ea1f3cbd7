"""Wall-clock driver that fires engine ticks on a background thread."""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class SimulationClock:
    """Calls ``on_tick`` every ``period`` seconds until stopped.

    The callback runs on a daemon thread. ``stop()`` is safe to call from the
    callback itself; it only joins when called from another thread. Callers
    holding a lock the callback also takes must stop with ``wait=False``.
    """

    def __init__(self, on_tick: Callable[[], None]) -> None:
        self._on_tick = on_tick
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._period = 1.0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def period(self) -> float:
        return self._period

    def is_clock_thread(self) -> bool:
        """True when called from the thread this clock currently owns."""
        return self._thread is threading.current_thread()

    def start(self, period: float) -> None:
        if self.running:
            return
        self._period = period
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name="simulation-clock", daemon=True
        )
        self._thread.start()
        logger.debug(f"Clock started with period {period:.3f}s")

    def stop(self, wait: bool = True) -> None:
        """Signal the thread to exit, joining it unless ``wait`` is False."""
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        self._thread = None
        if wait and thread is not threading.current_thread():
            thread.join(timeout=max(1.0, self._period * 2))
        logger.debug("Clock stopped")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._period):
            try:
                self._on_tick()
            except Exception:
                logger.exception("Tick failed, stopping clock")
                stop_event.set()
