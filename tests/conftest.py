import os
import threading

import pytest

os.environ.setdefault("MPLBACKEND", "Agg")

# Short windows keep the threaded tests fast.
WARMUP = 0.05
MEASURE = 0.6


@pytest.fixture
def cancel():
    return threading.Event()


@pytest.fixture
def short_window():
    return {"warmup": WARMUP, "measure": MEASURE, "join_timeout": 3.0}


@pytest.fixture
def cancel_later():
    """Sets an event from a background timer after ``delay`` seconds."""
    timers = []

    def schedule(event, delay):
        timer = threading.Timer(delay, event.set)
        timer.daemon = True
        timer.start()
        timers.append(timer)
        return timer

    yield schedule
    for timer in timers:
        timer.cancel()
