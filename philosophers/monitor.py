import logging
import threading

import networkx as nx

logger = logging.getLogger(__name__)


def build_wait_for_graph(holders, waiting):
    """Builds the worker wait-for graph from a strategy snapshot.

    An edge ``a -> b`` means worker ``a`` is waiting on a fork held by ``b``.
    """
    graph = nx.DiGraph()
    graph.add_nodes_from(holders.values())
    graph.add_nodes_from(waiting)
    for worker_id, fork_ids in waiting.items():
        for fork_id in fork_ids:
            owner = holders.get(fork_id)
            if owner is not None and owner != worker_id:
                graph.add_edge(worker_id, owner, fork=fork_id)
    return graph


def find_cycle(graph):
    for cycle in nx.simple_cycles(graph):
        return cycle
    return None


class Snapshotter(threading.Thread):
    """Periodically snapshots who holds and who waits for which fork, and looks for cycles."""

    def __init__(self, strategy, interval, cancel):
        super().__init__(name="Snapshotter", daemon=True)
        self.strategy = strategy
        self.interval = interval
        self.cancel = cancel
        self.snapshots = 0
        self.cycles = []
        self.last_graph = None
        self.cycle_graph = None

    def run(self):
        logger.info(f"Monitoring started. Will take snapshots every {self.interval} seconds.")
        while not self.cancel.wait(self.interval):
            self.take_snapshot()

    def take_snapshot(self):
        # Two separate reads; a worker may move between them, so edges are approximate.
        holders = self.strategy.holders()
        waiting = self.strategy.waiting()
        graph = build_wait_for_graph(holders, waiting)
        self.snapshots += 1
        self.last_graph = graph

        if graph.number_of_edges():
            logger.debug(f"Wait-for graph: {sorted(graph.edges())}")

        cycle = find_cycle(graph)
        if cycle:
            logger.error(f"!!! Wait cycle in {self.strategy.name}: {' -> '.join(f'P{i}' for i in cycle)} !!!")
            self.cycles.append(cycle)
            if self.cycle_graph is None:
                self.cycle_graph = graph
        return graph
