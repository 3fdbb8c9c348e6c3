import threading
import time

import pytest

from philosophers.strategies import (
    STRATEGIES,
    BusyWaitBothStrategy,
    OrderedLockingStrategy,
    make_strategy,
)


class SequencedCancel:
    """Answers ``is_set`` from a fixed script, then stays set."""

    def __init__(self, *answers):
        self.answers = list(answers)

    def is_set(self):
        return self.answers.pop(0) if self.answers else True

    def wait(self, timeout=None):
        return self.is_set()


def acquire_in_thread(strategy, worker_id, cancel):
    result = {}

    def target():
        result["ok"] = strategy.acquire(worker_id, cancel)

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread, result


@pytest.mark.parametrize("name", list(STRATEGIES))
def test_acquire_holds_both_forks(name, cancel):
    strategy = make_strategy(name, 6)
    assert strategy.acquire(2, cancel)
    assert strategy.holders() == {2: 2, 3: 2}
    strategy.release(2)
    assert strategy.holders() == {}


@pytest.mark.parametrize("name", list(STRATEGIES))
def test_non_adjacent_workers_eat_together(name, cancel):
    strategy = make_strategy(name, 6)
    assert strategy.acquire(0, cancel)
    assert strategy.acquire(3, cancel)
    assert strategy.holders() == {0: 0, 1: 0, 3: 3, 4: 3}


@pytest.mark.parametrize("name", list(STRATEGIES))
def test_cancelled_before_attempt_takes_nothing(name, cancel):
    strategy = make_strategy(name, 4)
    cancel.set()
    assert strategy.acquire(1, cancel) is False
    assert strategy.holders() == {}
    assert strategy.waiting() == {}


@pytest.mark.parametrize("name", list(STRATEGIES))
def test_blocked_neighbour_proceeds_after_release(name, cancel):
    strategy = make_strategy(name, 6)
    assert strategy.acquire(0, cancel)

    thread, result = acquire_in_thread(strategy, 1, cancel)
    time.sleep(0.05)
    assert thread.is_alive()
    assert 1 in strategy.waiting()

    strategy.release(0)
    thread.join(1.0)
    assert result == {"ok": True}
    assert strategy.holders() == {1: 1, 2: 1}


@pytest.mark.parametrize("n", [0, 1])
@pytest.mark.parametrize("name", list(STRATEGIES))
def test_ring_of_fewer_than_two_is_rejected(name, n):
    with pytest.raises(ValueError):
        make_strategy(name, n)


def test_unknown_strategy_name():
    with pytest.raises(ValueError, match="unknown strategy"):
        make_strategy("Waiter", 5)


def test_strategy_is_a_context_manager():
    with make_strategy("OrderedLocking", 3) as strategy:
        assert str(strategy) == "OrderedLocking(n=3)"


def test_busy_wait_gives_up_when_cancelled(cancel, cancel_later):
    strategy = BusyWaitBothStrategy(5, poll_interval=0.001)
    assert strategy.acquire(0, cancel)

    cancel_later(cancel, 0.05)
    started = time.perf_counter()
    assert strategy.acquire(4, cancel) is False
    assert time.perf_counter() - started < 1.0
    assert strategy.holders() == {0: 0, 1: 0}
    assert strategy.waiting() == {}


def test_busy_wait_never_holds_a_single_fork(cancel):
    strategy = BusyWaitBothStrategy(3)
    assert strategy.acquire(0, cancel)
    # Worker 1 needs forks 1 and 2; fork 2 is free but must not be taken alone.
    thread, result = acquire_in_thread(strategy, 1, cancel)
    time.sleep(0.03)
    assert strategy.holders() == {0: 0, 1: 0}
    cancel.set()
    thread.join(1.0)
    assert result == {"ok": False}


def test_busy_wait_release_is_unconditional(cancel):
    strategy = BusyWaitBothStrategy(4)
    strategy.release(2)
    assert strategy.holders() == {}
    assert strategy.acquire(2, cancel)


def test_ordered_locking_takes_lower_index_first(cancel):
    strategy = OrderedLockingStrategy(6)
    assert strategy.acquisition_order(5) == ((0,), (5,))
    assert strategy.acquisition_order(2) == ((2,), (3,))
    assert strategy.acquire(5, cancel)
    assert strategy.forks[0].lock.locked()
    assert strategy.forks[5].lock.locked()
    strategy.release(5)
    assert not strategy.forks[0].lock.locked()
    assert not strategy.forks[5].lock.locked()


def test_ordered_locking_puts_first_fork_back_when_cancelled_after_it():
    strategy = OrderedLockingStrategy(4)
    assert strategy.acquire(1, SequencedCancel(False, True)) is False
    assert not strategy.forks[1].lock.locked()
    assert not strategy.forks[2].lock.locked()
    assert strategy.holders() == {}


def test_ordered_locking_second_wait_is_not_interruptible(cancel):
    strategy = OrderedLockingStrategy(6)
    assert strategy.acquire(1, cancel)

    # Worker 0 gets fork 0, then blocks on fork 1 held by worker 1.
    thread, result = acquire_in_thread(strategy, 0, cancel)
    time.sleep(0.05)
    assert strategy.holders()[0] == 0
    assert strategy.waiting() == {0: (1,)}

    cancel.set()
    time.sleep(0.05)
    assert thread.is_alive()

    strategy.release(1)
    thread.join(1.0)
    assert result == {"ok": True}
    assert strategy.holders() == {0: 0, 1: 0}


def test_busy_wait_acquires_in_one_step():
    strategy = BusyWaitBothStrategy(6)
    assert strategy.acquisition_order(5) == ((5, 0),)


class FailsAroundSecondFork(OrderedLockingStrategy):
    """Raises from the bookkeeping around the second fork of one worker."""

    def __init__(self, n, failing_worker, hook):
        super().__init__(n)
        self.failing_worker = failing_worker
        self.hook = hook

    def _fail_on_second(self, worker_id, fork_id):
        if worker_id == self.failing_worker and fork_id == self.ordered_second(worker_id):
            raise RuntimeError(f"{self.hook} failed for Fork-{fork_id}")

    def ordered_second(self, worker_id):
        return self.acquisition_order(worker_id)[1][0]

    def _wait_for(self, worker_id, fork_id):
        if self.hook == "wait_for":
            self._fail_on_second(worker_id, fork_id)
        super()._wait_for(worker_id, fork_id)

    def _took(self, worker_id, fork_id):
        if self.hook == "took":
            self._fail_on_second(worker_id, fork_id)
        super()._took(worker_id, fork_id)


@pytest.mark.parametrize("hook", ["wait_for", "took"])
def test_ordered_locking_failure_mid_acquire_puts_forks_back(hook, cancel):
    strategy = FailsAroundSecondFork(4, failing_worker=1, hook=hook)
    with pytest.raises(RuntimeError):
        strategy.acquire(1, cancel)
    assert not any(fork.lock.locked() for fork in strategy.forks)
    assert strategy.holders() == {}
    assert strategy.waiting() == {}

    # The neighbours still get their forks.
    assert strategy.acquire(0, cancel)
    strategy.release(0)
    assert strategy.acquire(2, cancel)
