"""
Arbitration strategies for handing out pairs of adjacent forks.

Both strategies guarantee that a successful ``acquire(worker_id, cancel)``
leaves the worker holding fork ``worker_id`` and fork ``(worker_id + 1) % n``
exclusively until the matching ``release(worker_id)``.
"""

import abc
import logging
import threading

import config
from philosophers.resources import Fork, ordered_pair, ring_pair, validate_ring

logger = logging.getLogger(__name__)


class ForksStrategy(abc.ABC):
    """Common interface of the arbitration strategies."""

    name = None

    def __init__(self, n):
        validate_ring(n)
        self.n = n

    @abc.abstractmethod
    def acquire(self, worker_id, cancel):
        """Blocks until both forks are held; returns False if ``cancel`` stopped the attempt."""

    @abc.abstractmethod
    def release(self, worker_id):
        """Puts both forks of ``worker_id`` back."""

    @abc.abstractmethod
    def acquisition_order(self, worker_id):
        """Returns the groups of forks in the order an acquire takes them."""

    @abc.abstractmethod
    def holders(self):
        """Returns a ``{fork_id: worker_id}`` snapshot of the held forks."""

    @abc.abstractmethod
    def waiting(self):
        """Returns a ``{worker_id: (fork_id, ...)}`` snapshot of pending attempts."""

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __str__(self):
        return f"{self.name}(n={self.n})"


class BusyWaitBothStrategy(ForksStrategy):
    """Takes both forks in one step under a single lock, polling until they are free.

    A worker never holds exactly one fork, so no circular wait can form. The
    price is CPU spent re-checking the flags every ``poll_interval`` seconds.
    """

    name = "AtomicBoth"

    def __init__(self, n, poll_interval=None):
        super().__init__(n)
        self.poll_interval = config.BUSY_WAIT_POLL if poll_interval is None else poll_interval
        self._lock = threading.Lock()
        self._in_use = [False] * n
        self._owner = [None] * n
        self._waiting = {}

    def acquire(self, worker_id, cancel):
        left, right = ring_pair(worker_id, self.n)

        while not cancel.is_set():
            with self._lock:
                if not self._in_use[left] and not self._in_use[right]:
                    self._in_use[left] = True
                    self._in_use[right] = True
                    self._owner[left] = self._owner[right] = worker_id
                    self._waiting.pop(worker_id, None)
                    return True
                self._waiting[worker_id] = (left, right)
            cancel.wait(self.poll_interval)

        with self._lock:
            self._waiting.pop(worker_id, None)
        return False

    def release(self, worker_id):
        left, right = ring_pair(worker_id, self.n)

        with self._lock:
            self._in_use[left] = False
            self._in_use[right] = False
            self._owner[left] = self._owner[right] = None

    def acquisition_order(self, worker_id):
        return (ring_pair(worker_id, self.n),)

    def holders(self):
        with self._lock:
            return {fork_id: owner for fork_id, owner in enumerate(self._owner) if owner is not None}

    def waiting(self):
        with self._lock:
            return dict(self._waiting)


class OrderedLockingStrategy(ForksStrategy):
    """Blocks on one lock per fork, always taking the lower-indexed fork first.

    Every worker climbs the fork indices in the same direction, so a cycle of
    waiters cannot close. Cancellation is observed before the first lock and
    right after it; once the wait for the second lock has begun it runs to
    completion, which lets a worker finish one more meal after the window.
    """

    name = "OrderedLocking"

    def __init__(self, n):
        super().__init__(n)
        self.forks = [Fork(i) for i in range(n)]
        self._state_lock = threading.Lock()
        self._waiting = {}

    def acquire(self, worker_id, cancel):
        first, second = ordered_pair(worker_id, self.n)

        if cancel.is_set():
            return False

        self._wait_for(worker_id, first)
        self.forks[first].lock.acquire()
        try:
            self._took(worker_id, first)
            cancelled = cancel.is_set()
            if not cancelled:
                self._wait_for(worker_id, second)
                self.forks[second].lock.acquire()
                try:
                    self._took(worker_id, second)
                except BaseException:
                    self._put_back(second)
                    raise
        except BaseException:
            self._put_back(first)
            self._stop_waiting(worker_id)
            raise

        if cancelled:
            self._put_back(first)
            return False
        return True

    def release(self, worker_id):
        first, second = ordered_pair(worker_id, self.n)

        self._put_back(second)
        self._put_back(first)

    def acquisition_order(self, worker_id):
        first, second = ordered_pair(worker_id, self.n)
        return (first,), (second,)

    def _wait_for(self, worker_id, fork_id):
        with self._state_lock:
            self._waiting[worker_id] = (fork_id,)

    def _stop_waiting(self, worker_id):
        with self._state_lock:
            self._waiting.pop(worker_id, None)

    def _took(self, worker_id, fork_id):
        with self._state_lock:
            self._waiting.pop(worker_id, None)
            self.forks[fork_id].held_by = worker_id

    def _put_back(self, fork_id):
        fork = self.forks[fork_id]
        with self._state_lock:
            fork.held_by = None
        fork.lock.release()

    def holders(self):
        with self._state_lock:
            return {fork.id: fork.held_by for fork in self.forks if fork.held_by is not None}

    def waiting(self):
        with self._state_lock:
            return dict(self._waiting)


STRATEGIES = {
    BusyWaitBothStrategy.name: BusyWaitBothStrategy,
    OrderedLockingStrategy.name: OrderedLockingStrategy,
}


def make_strategy(name, n):
    try:
        strategy_cls = STRATEGIES[name]
    except KeyError:
        raise ValueError(f"unknown strategy {name!r}, expected one of {sorted(STRATEGIES)}") from None
    logger.debug(f"Creating strategy {name} for N={n}")
    return strategy_cls(n)
