import math
import threading
from dataclasses import dataclass, field
from typing import Any, List


class Stats:
    """Per-worker wait totals and meal counts for one run.

    Each slot is written only by its own worker; the collector reads after
    every worker has been joined.
    """

    def __init__(self, n):
        self.n = n
        self.wait_seconds = [0.0] * n
        self.meals = [0] * n
        self.longest_wait = [0.0] * n
        self._lock = threading.Lock()

    def record(self, worker_id, wait):
        with self._lock:
            self.wait_seconds[worker_id] += wait
            self.meals[worker_id] += 1
            self.longest_wait[worker_id] = max(self.longest_wait[worker_id], wait)

    def average_wait_ms(self, worker_id):
        """Average wait in milliseconds, ``math.inf`` for a starved worker."""
        with self._lock:
            meals = self.meals[worker_id]
            total = self.wait_seconds[worker_id]
        if meals == 0:
            return math.inf
        return total * 1000.0 / meals

    def snapshot(self):
        with self._lock:
            return list(self.wait_seconds), list(self.meals)

    def __repr__(self):
        return f"Stats(n={self.n}, meals={self.meals})"


def summarize(stats):
    return [stats.average_wait_ms(i) for i in range(stats.n)]


def combine_repeats(per_repeat):
    """Per-worker mean of the averages of several repeats; a starved repeat stays infinite."""
    if not per_repeat:
        raise ValueError("no repeats to combine")
    n = len(per_repeat[0])
    return [sum(averages[i] for averages in per_repeat) / len(per_repeat) for i in range(n)]


def finite_mean(values):
    finite = [v for v in values if math.isfinite(v)]
    if not finite:
        return math.inf
    return sum(finite) / len(finite)


@dataclass
class CaseResult:
    """Outcome of one strategy at one ring size, averaged over its repeats."""

    strategy: str
    n: int
    averages: List[float]
    overall: float
    runs: List[Stats] = field(default_factory=list)
    failures: int = 0
    wait_graph: Any = None
    wait_cycles: List[list] = field(default_factory=list)

    @property
    def starved(self):
        return [i for i, avg in enumerate(self.averages) if not math.isfinite(avg)]
