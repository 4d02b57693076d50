# ============================================================
# File: polling_service.py - periodic poll cycle
# ============================================================
# States:
#   IDLE     - waiting for the next tick
#   SWEEPING - reading channels 0..N-1
# A sweep starts only when more than "Update interval" ms have passed
# since the previous sweep start. Between ticks the loop pauses for
# a fixed short time so the process is not monopolized.
# ============================================================

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

from app.services.error_sink import ErrorSink, POLL_ERROR
from app.services.sampler import Sampler, SweepResult

logger = logging.getLogger(__name__)

TICK_PAUSE = 0.5  # seconds


class PollState(str, Enum):
    IDLE = "idle"
    SWEEPING = "sweeping"


class PollCycle:
    """Poll cycle driver"""

    def __init__(self, sampler: Sampler, error_sink: ErrorSink, interval_ms: int,
                 tick_pause: float = TICK_PAUSE, verbose: bool = False,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Optional[Callable[[float], Any]] = None):
        """
        Args:
            sampler: sampler sweeping the channels
            error_sink: failure funnel
            interval_ms: minimum time between sweep starts (ms)
            tick_pause: pause between ticks (s)
            verbose: log every sweep instead of every 10th
            clock: monotonic clock in seconds
            sleep: pause function, defaults to an interruptible wait
        """
        self.sampler = sampler
        self.error_sink = error_sink
        self.interval_ms = interval_ms
        self.tick_pause = tick_pause
        self.verbose = verbose
        self._clock = clock
        self._stop_event = threading.Event()
        self._sleep = sleep or self._stop_event.wait
        self._thread: Optional[threading.Thread] = None

        self.state = PollState.IDLE
        self._last_sweep_start: Optional[float] = None
        self._last_result: Optional[SweepResult] = None
        self._stats = {
            "total_ticks": 0,
            "total_sweeps": 0,
            "read_errors": 0,
            "poll_errors": 0,
            "last_sweep_time": None,
            "last_sweep_duration": None,
        }

    # ------------------------------------------------------------
    # tick() - one clock check, sweep if the interval has passed
    # ------------------------------------------------------------
    def due(self) -> bool:
        if self._last_sweep_start is None:
            return True
        elapsed_ms = (self._clock() - self._last_sweep_start) * 1000.0
        return elapsed_ms > self.interval_ms

    def tick(self) -> bool:
        """Run a sweep if one is due

        Returns:
            bool: True if a sweep ran
        """
        self._stats["total_ticks"] += 1
        if not self.due():
            return False

        self.state = PollState.SWEEPING
        start = self._clock()
        self._last_sweep_start = start
        try:
            result = self.sampler.sweep()
            self.sampler.store.sync()
        finally:
            self.state = PollState.IDLE

        self._last_result = result
        self._stats["total_sweeps"] += 1
        self._stats["read_errors"] += result.error_count
        self._stats["last_sweep_time"] = time.time()
        self._stats["last_sweep_duration"] = self._clock() - start

        sweeps = self._stats["total_sweeps"]
        if self.verbose or sweeps % 10 == 0:
            logger.info(f"[sweep #{sweeps}] updated: {len(result.updated)} | "
                        f"skipped: {len(result.skipped)} | failed: {len(result.failed)}")
        return True

    # ------------------------------------------------------------
    # run_forever() - loop until stop()
    # ------------------------------------------------------------
    def run_forever(self) -> None:
        logger.info(f"Poll cycle started (interval: {self.interval_ms} ms, "
                    f"tick pause: {self.tick_pause} s)")
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception as e:
                self._stats["poll_errors"] += 1
                self.error_sink.report(POLL_ERROR, f"Poll cycle error: {e}", source="poll_cycle")
            self._sleep(self.tick_pause)
        logger.info("Poll cycle stopped")

    def start(self) -> None:
        """Run the cycle in a background thread"""
        if self.is_running:
            logger.warning("Poll cycle already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run_forever, name="poll-cycle", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Poll cycle did not stop in time (blocked in a channel read?)")
            self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def last_result(self) -> Optional[SweepResult]:
        return self._last_result

    def stats(self) -> Dict[str, Any]:
        last = self.last_result
        return {
            **self._stats,
            "last_failed_channels": list(last.failed) if last else [],
            "state": self.state.value,
            "running": self.is_running,
            "interval_ms": self.interval_ms,
            "tick_pause": self.tick_pause,
        }
