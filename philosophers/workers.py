import enum
import logging
import random
import threading
import time

import config
from philosophers.resources import ring_pair

logger = logging.getLogger(__name__)


class WorkerState(enum.Enum):
    THINKING = "thinking"
    ATTEMPTING = "attempting"
    EATING = "eating"
    RELEASING = "releasing"
    STOPPED = "stopped"


class Philosopher(threading.Thread):
    """Runs the think, acquire, eat, release cycle until the cancel event is set."""

    def __init__(self, worker_id, strategy, stats, window, cancel, show_simulation=False,
                 think_range=None, eat_range=None, seed=None):
        super().__init__(name=f"Philosopher-{worker_id}", daemon=True)
        self.id = worker_id
        self.strategy = strategy
        self.stats = stats
        self.window = window
        self.cancel = cancel
        self.show_simulation = show_simulation
        self.think_range = think_range or config.THINK_RANGE
        self.eat_range = eat_range or config.EAT_RANGE
        # One generator per worker, never shared between threads.
        self.rng = random.Random(seed)
        self.left, self.right = ring_pair(worker_id, strategy.n)

        self.state = WorkerState.THINKING
        self.acquisitions = 0
        self.releases = 0
        self.holding = False
        self.error = None

    def run(self):
        try:
            self._loop()
        except Exception as exc:
            self.error = exc
            logger.exception(f"{self.name} failed: {exc}")
        finally:
            if self.holding:
                self._release()
            self.state = WorkerState.STOPPED
            self._narrate("stopped")

    def _loop(self):
        strategy_name = self.strategy.name
        while not self.cancel.is_set():
            self.state = WorkerState.THINKING
            self._narrate(f"{strategy_name} | thinks")
            if self.cancel.wait(self.rng.uniform(*self.think_range)):
                break

            self.state = WorkerState.ATTEMPTING
            self._narrate(f"{strategy_name} | TRIES ({self.left},{self.right})")
            wait_start = time.perf_counter()
            if not self.strategy.acquire(self.id, self.cancel):
                break
            acquired_at = time.perf_counter()
            self.holding = True
            self.acquisitions += 1
            self._narrate(f"{strategy_name} | PICKED UP ({self.left},{self.right})")

            self.state = WorkerState.EATING
            if self.window.in_window(acquired_at):
                self.stats.record(self.id, acquired_at - wait_start)
            self._narrate(f"{strategy_name} | EATS")
            self.cancel.wait(self.rng.uniform(*self.eat_range))

            self.state = WorkerState.RELEASING
            self._release()
            self._narrate(f"{strategy_name} | PUT DOWN ({self.left},{self.right})")

    def _release(self):
        self.holding = False
        self.strategy.release(self.id)
        self.releases += 1

    def _narrate(self, message):
        if self.show_simulation:
            logger.debug(message)

    def __repr__(self):
        return f"Philosopher(id={self.id}, state={self.state.value}, meals={self.acquisitions})"
