import logging
import threading
from dataclasses import dataclass, field
from typing import List

import config
from philosophers.monitor import Snapshotter
from philosophers.resources import validate_ring
from philosophers.stats import CaseResult, Stats, combine_repeats, finite_mean, summarize
from philosophers.strategies import STRATEGIES, make_strategy
from philosophers.window import MeasurementWindow, WindowTimer
from philosophers.workers import Philosopher, WorkerState

logger = logging.getLogger(__name__)


@dataclass
class SingleRun:
    """Stats of one run plus the workers that produced them."""

    stats: Stats
    window: MeasurementWindow
    workers: List[Philosopher]
    failed: List[int] = field(default_factory=list)
    stuck: List[int] = field(default_factory=list)
    snapshotter: Snapshotter = None

    @property
    def all_stopped(self):
        return all(worker.state is WorkerState.STOPPED for worker in self.workers)


def run_single(n, strategy, warmup=None, measure=None, show_simulation=None,
               snapshot_interval=None, join_timeout=None, seed=None):
    """Runs N philosophers against ``strategy`` for one warmup plus measurement window."""
    validate_ring(n)
    if strategy.n != n:
        raise ValueError(f"strategy built for N={strategy.n}, run asked for N={n}")
    warmup = config.WARMUP if warmup is None else warmup
    measure = config.MEASURE if measure is None else measure
    show_simulation = config.SHOW_SIMULATION if show_simulation is None else show_simulation
    join_timeout = config.JOIN_TIMEOUT if join_timeout is None else join_timeout

    stats = Stats(n)
    cancel = threading.Event()
    window = MeasurementWindow(warmup, measure)
    timer = WindowTimer(window, cancel)

    if show_simulation:
        logger.info(f"--- START simulation: {strategy.name}, N={n} ---")

    workers = [
        Philosopher(i, strategy, stats, window, cancel, show_simulation=show_simulation,
                    seed=None if seed is None else seed + i)
        for i in range(n)
    ]

    snapshotter = None
    if snapshot_interval:
        snapshotter = Snapshotter(strategy, snapshot_interval, cancel)

    timer.start()
    try:
        if snapshotter:
            snapshotter.start()
        for worker in workers:
            worker.start()
    except BaseException:
        # Started workers stop on the event; the timer only stops when told.
        cancel.set()
        timer.stop()
        raise

    # Every worker is joined even if some of them failed.
    stuck = []
    timer.join()
    for worker in workers:
        worker.join(join_timeout)
        if worker.is_alive():
            stuck.append(worker.id)
    if snapshotter:
        snapshotter.join()

    failed = [worker.id for worker in workers if worker.error is not None]
    for worker_id in failed:
        logger.warning(f"Philosopher-{worker_id} ended with an error: {workers[worker_id].error!r}")
    for worker_id in stuck:
        logger.error(f"Philosopher-{worker_id} did not stop within {join_timeout}s "
                     f"(state={workers[worker_id].state.value})")

    if show_simulation:
        logger.info(f"--- STOP simulation: {strategy.name}, N={n} ---")

    return SingleRun(stats=stats, window=window, workers=workers, failed=failed,
                     stuck=stuck, snapshotter=snapshotter)


def run_case(n, make, repeats=None, **run_kwargs):
    """Runs one strategy ``repeats`` times and averages the per-worker waits.

    A strategy whose run left workers stuck may still have forks locked by
    them, so the next repeat gets a fresh one from ``make``.
    """
    repeats = config.REPEATS if repeats is None else repeats
    if repeats < 1:
        raise ValueError(f"repeats must be at least 1, got {repeats}")

    strategy = make()
    try:
        logger.info(f"Start: N={n}, Strategy={strategy.name}")
        per_repeat = []
        runs = []
        failures = 0
        wait_graph = None
        wait_cycles = []
        for r in range(repeats):
            logger.info(f"  Repeat {r + 1}/{repeats}")
            run = run_single(n, strategy, **run_kwargs)
            runs.append(run.stats)
            failures += len(run.failed) + len(run.stuck)
            per_repeat.append(summarize(run.stats))
            # Keep the first snapshot with a cycle, else the latest one.
            if run.snapshotter and not wait_cycles:
                snapshotter = run.snapshotter
                wait_graph = snapshotter.cycle_graph if snapshotter.cycle_graph is not None else snapshotter.last_graph
                wait_cycles.extend(run.snapshotter.cycles)

            if run.stuck and r + 1 < repeats:
                logger.warning(f"Replacing {strategy.name} after stuck philosophers {run.stuck}")
                strategy.close()
                strategy = make()

        averages = combine_repeats(per_repeat)
        result = CaseResult(
            strategy=strategy.name,
            n=n,
            averages=averages,
            overall=finite_mean(averages),
            runs=runs,
            failures=failures,
            wait_graph=wait_graph,
            wait_cycles=wait_cycles,
        )
        if result.starved:
            logger.warning(f"Starved philosophers in {strategy.name}, N={n}: {result.starved}")
        logger.info(f"Done: N={n}, Strategy={strategy.name}")
    finally:
        strategy.close()
    return result


def run_benchmark(ns=None, strategy_names=None, on_case=None, **case_kwargs):
    """Runs every strategy for every ring size, in the order given.

    ``on_case`` is called with each CaseResult as soon as it is available.
    """
    ns = config.NS if ns is None else ns
    strategy_names = list(STRATEGIES) if strategy_names is None else strategy_names

    results = []
    for n in ns:
        for name in strategy_names:
            case = run_case(n, lambda name=name, n=n: make_strategy(name, n), **case_kwargs)
            if on_case:
                on_case(case)
            results.append(case)
        logger.info("-" * 60)
    return results
