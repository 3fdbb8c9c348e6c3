"""
Instrumented strategy wrapper used to check the arbitration guarantees.

``AuditedStrategy`` delegates to any ``ForksStrategy`` and raises as soon as
two workers hold the same fork, or a worker releases forks it does not hold.
It also records the order in which every acquisition takes its forks, so the
lock-order graph can be checked for cycles.
"""

import threading

import networkx as nx

from philosophers.resources import ring_pair


class MutualExclusionViolation(AssertionError):
    pass


class ReleaseSymmetryViolation(AssertionError):
    pass


class AuditedStrategy:
    def __init__(self, inner):
        self.inner = inner
        self.name = inner.name
        self.n = inner.n
        self._lock = threading.Lock()
        self._owner = [None] * inner.n
        self._holding = set()
        self.acquires = [0] * inner.n
        self.releases = [0] * inner.n
        self.max_concurrent = 0
        self.lock_order_graph = nx.DiGraph()

    def acquire(self, worker_id, cancel):
        ok = self.inner.acquire(worker_id, cancel)
        if not ok:
            return False

        left, right = ring_pair(worker_id, self.n)
        with self._lock:
            if worker_id in self._holding:
                raise ReleaseSymmetryViolation(f"P{worker_id} acquired again before releasing")
            for fork_id in (left, right):
                owner = self._owner[fork_id]
                if owner is not None:
                    raise MutualExclusionViolation(f"Fork-{fork_id} handed to P{worker_id} while held by P{owner}")
            self._owner[left] = self._owner[right] = worker_id
            self._holding.add(worker_id)
            self.acquires[worker_id] += 1
            self.max_concurrent = max(self.max_concurrent, len(self._holding))
            steps = self.inner.acquisition_order(worker_id)
            for held, taken in zip(steps, steps[1:]):
                self.lock_order_graph.add_edges_from((a, b) for a in held for b in taken)
        return True

    def release(self, worker_id):
        left, right = ring_pair(worker_id, self.n)
        with self._lock:
            if worker_id not in self._holding:
                raise ReleaseSymmetryViolation(f"P{worker_id} released forks it does not hold")
            for fork_id in (left, right):
                if self._owner[fork_id] != worker_id:
                    raise MutualExclusionViolation(f"P{worker_id} released Fork-{fork_id} held by P{self._owner[fork_id]}")
                self._owner[fork_id] = None
            self._holding.discard(worker_id)
            self.releases[worker_id] += 1
        self.inner.release(worker_id)

    def lock_order_is_acyclic(self):
        with self._lock:
            return nx.is_directed_acyclic_graph(self.lock_order_graph)

    def holders(self):
        return self.inner.holders()

    def waiting(self):
        return self.inner.waiting()

    def close(self):
        self.inner.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
