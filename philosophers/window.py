import logging
import threading
import time

import config

logger = logging.getLogger(__name__)


class MeasurementWindow:
    """Warmup followed by a measurement period, on the ``time.perf_counter`` clock."""

    def __init__(self, warmup, measure, start=None):
        if warmup < 0 or measure < 0:
            raise ValueError(f"durations must be non-negative, got warmup={warmup}, measure={measure}")
        self.warmup = warmup
        self.measure = measure
        self.run_start = time.perf_counter() if start is None else start
        self.measure_start = self.run_start + warmup
        self.measure_end = self.measure_start + measure

    def in_window(self, timestamp):
        # Acquisitions after measure_end still count: late meals are tolerated.
        return timestamp >= self.measure_start

    def __repr__(self):
        return f"MeasurementWindow(warmup={self.warmup}, measure={self.measure})"


class WindowTimer(threading.Thread):
    """Sets the shared cancel event once the measurement window has ended."""

    def __init__(self, window, cancel, poll_interval=None):
        super().__init__(name="WindowTimer", daemon=True)
        self.window = window
        self.cancel = cancel
        self.poll_interval = config.TIMER_POLL if poll_interval is None else poll_interval
        self._stopped = threading.Event()

    def run(self):
        while time.perf_counter() < self.window.measure_end:
            if self._stopped.wait(self.poll_interval):
                return
        logger.info("Measurement window closed, cancelling workers.")
        self.cancel.set()

    def stop(self):
        """Ends the timer without cancelling the workers."""
        self._stopped.set()
