import threading
import time

import pytest

from philosophers.window import MeasurementWindow, WindowTimer


def test_window_boundaries():
    window = MeasurementWindow(2.0, 10.0, start=100.0)
    assert window.measure_start == 102.0
    assert window.measure_end == 112.0
    assert not window.in_window(101.999)
    assert window.in_window(102.0)
    # Late acquisitions stay countable.
    assert window.in_window(112.5)


def test_negative_durations_rejected():
    with pytest.raises(ValueError):
        MeasurementWindow(-1.0, 1.0)


def test_timer_sets_cancel_at_window_end():
    cancel = threading.Event()
    window = MeasurementWindow(0.02, 0.05)
    timer = WindowTimer(window, cancel, poll_interval=0.005)
    timer.start()
    assert cancel.wait(2.0)
    assert time.perf_counter() >= window.measure_end
    timer.join(1.0)
    assert not timer.is_alive()


def test_stopped_timer_does_not_cancel():
    cancel = threading.Event()
    timer = WindowTimer(MeasurementWindow(0.0, 5.0), cancel, poll_interval=0.005)
    timer.start()
    timer.stop()
    timer.join(1.0)
    assert not timer.is_alive()
    assert not cancel.is_set()
