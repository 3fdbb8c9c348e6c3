import threading


def validate_ring(n):
    """A ring needs at least two forks, otherwise a worker's pair is one fork twice."""
    if n < 2:
        raise ValueError(f"ring needs at least 2 workers, got {n}")


def ring_pair(worker_id, n):
    """Returns the (left, right) forks worker ``worker_id`` needs."""
    return worker_id, (worker_id + 1) % n


def ordered_pair(worker_id, n):
    """Returns the worker's forks as (first, second) in ascending index order."""
    left, right = ring_pair(worker_id, n)
    return min(left, right), max(left, right)


class Fork:
    """Represents one shared resource in the ring that a worker can lock."""

    def __init__(self, fork_id):
        self.id = fork_id
        self.lock = threading.Lock()
        self.held_by = None

    def __str__(self):
        return f"Fork-{self.id}"

    def __repr__(self):
        return f"Fork(id={self.id}, held_by={self.held_by})"
