import logging
import math
from pathlib import Path

import matplotlib.pyplot as plt
import networkx as nx

logger = logging.getLogger(__name__)

HEADER = "strategy\tN\tphilosopher\tavg_wait_ms"


def format_value(value):
    return f"{value:.3f}" if math.isfinite(value) else "INF"


def result_rows(case):
    """One row per philosopher plus the ``ALL`` row for a case."""
    rows = [f"{case.strategy}\t{case.n}\t{i}\t{format_value(avg)}" for i, avg in enumerate(case.averages)]
    rows.append(f"{case.strategy}\t{case.n}\tALL\t{format_value(case.overall)}")
    return rows


class ResultWriter:
    """Writes the result table to ``path``; use as a context manager so the file is always closed."""

    def __init__(self, path):
        self.path = path
        self.file_handle = None

    def open(self):
        self.file_handle = open(self.path, "w", encoding="utf-8")
        self.write_line(HEADER)
        return self

    def write_line(self, line):
        self.file_handle.write(line + "\n")
        self.file_handle.flush()

    def write_case(self, case):
        for row in result_rows(case):
            self.write_line(row)

    def close(self):
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def plot_results(cases, path=None):
    """
    Plots the average wait per philosopher as grouped bars, one group per case.

    Args:
        cases (list): CaseResult objects to compare.
        path (str): Optional file to save the figure to; shown interactively otherwise.
    """
    fig, ax = plt.subplots(figsize=(12, 6))
    width = 0.8 / max(len(cases), 1)

    for k, case in enumerate(cases):
        xs = [i + k * width for i in range(case.n)]
        heights = [avg if math.isfinite(avg) else 0.0 for avg in case.averages]
        bars = ax.bar(xs, heights, width, label=f"{case.strategy} (N={case.n}, ALL={format_value(case.overall)} ms)")
        # Starved philosophers have no finite average; mark them instead of drawing a bar.
        for bar, avg in zip(bars, case.averages):
            if not math.isfinite(avg):
                ax.annotate("INF", (bar.get_x() + bar.get_width() / 2, 0), ha="center", va="bottom", color="red")

    ax.set_xlabel("Philosopher")
    ax.set_ylabel("Average wait [ms]")
    ax.set_title("Average wait for both forks", fontsize=16)
    ax.legend(loc="upper left")
    fig.tight_layout()

    if path:
        fig.savefig(path)
        plt.close(fig)
        logger.info(f"Plot saved to {path}")
    else:
        plt.show()
    return fig


def wait_graph_path(plot_path, case):
    """Derives ``results-OrderedLocking-N6-wait-for.png`` from ``results.png``."""
    plot_path = Path(plot_path)
    return plot_path.with_name(f"{plot_path.stem}-{case.strategy}-N{case.n}-wait-for{plot_path.suffix or '.png'}")


def plot_wait_for_graph(graph, cycle=None, path=None, title=None):
    """
    Draws a wait-for snapshot with philosophers placed around the table.

    Args:
        graph (networkx.DiGraph): Edges point from a waiting philosopher to the holder,
            with the contested fork in the ``fork`` edge attribute.
        cycle (list): Optional list of philosophers forming a wait cycle.
        path (str): Optional file to save the figure to; shown interactively otherwise.
        title (str): Optional figure title.
    """
    fig, ax = plt.subplots(figsize=(8, 8))
    nodes = sorted(graph.nodes)
    pos = nx.circular_layout(nodes)

    cycle_edges = set()
    if cycle:
        cycle_edges = {(cycle[i], cycle[(i + 1) % len(cycle)]) for i in range(len(cycle))}
    edge_colors = ["red" if edge in cycle_edges else "gray" for edge in graph.edges]

    nx.draw_networkx_nodes(graph, pos, nodelist=nodes, ax=ax, node_size=1800,
                           node_color=["orange" if node in (cycle or ()) else "lightblue" for node in nodes])
    nx.draw_networkx_labels(graph, pos, labels={node: f"P{node}" for node in nodes}, ax=ax, font_weight="bold")
    nx.draw_networkx_edges(graph, pos, ax=ax, edge_color=edge_colors, width=2, arrowsize=20, node_size=1800)
    nx.draw_networkx_edge_labels(
        graph, pos, ax=ax,
        edge_labels={(a, b): f"Fork-{data['fork']}" for a, b, data in graph.edges(data=True) if "fork" in data},
    )

    if cycle:
        ax.set_title(title or "Wait Cycle Detected", fontsize=16, color="red")
    else:
        ax.set_title(title or "Wait-For Graph", fontsize=16)
    ax.set_axis_off()

    if path:
        fig.savefig(path)
        plt.close(fig)
        logger.info(f"Wait-for graph saved to {path}")
    else:
        plt.show()
    return fig
