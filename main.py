import argparse
import logging

import config
from philosophers.report import ResultWriter, plot_results, plot_wait_for_graph, wait_graph_path
from philosophers.simulation import run_benchmark
from philosophers.strategies import STRATEGIES
from philosophers.utils import setup_logging


def build_parser():
    parser = argparse.ArgumentParser(description="Dining philosophers: AtomicBoth vs OrderedLocking wait times")
    parser.add_argument("--n", type=int, nargs="+", default=list(config.NS), help="ring sizes to benchmark")
    parser.add_argument("--strategy", nargs="+", choices=list(STRATEGIES), default=list(STRATEGIES))
    parser.add_argument("--repeats", type=int, default=config.REPEATS)
    parser.add_argument("--warmup", type=float, default=config.WARMUP, help="warmup seconds")
    parser.add_argument("--measure", type=float, default=config.MEASURE, help="measurement seconds")
    parser.add_argument("--show-simulation", action="store_true", default=config.SHOW_SIMULATION)
    parser.add_argument("--snapshot-interval", type=float, default=config.SNAPSHOT_INTERVAL)
    parser.add_argument("--results", default=config.RESULTS_FILE, help="result table path")
    parser.add_argument("--plot", default=config.PLOT_FILE, help="save a bar chart to this path")
    return parser


def main(argv=None):
    """Runs the benchmark and writes the result table."""
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.show_simulation else logging.INFO)
    logger = logging.getLogger(__name__)

    logger.info(f"Warmup={args.warmup}s, Measure={args.measure}s, Repeats={args.repeats}")
    logger.info(f"show_simulation={args.show_simulation}")
    logger.info(f"Writing results to {args.results}")

    with ResultWriter(args.results) as writer:
        cases = run_benchmark(
            args.n,
            args.strategy,
            on_case=writer.write_case,
            repeats=args.repeats,
            warmup=args.warmup,
            measure=args.measure,
            show_simulation=args.show_simulation,
            snapshot_interval=args.snapshot_interval,
        )

    if args.plot:
        plot_results(cases, args.plot)
        for case in cases:
            if case.wait_graph is None or not case.wait_graph.number_of_nodes():
                continue
            cycle = case.wait_cycles[0] if case.wait_cycles else None
            plot_wait_for_graph(case.wait_graph, cycle=cycle, path=wait_graph_path(args.plot, case),
                                title=f"{case.strategy}, N={case.n}: last wait-for snapshot")

    logger.info(f"Finished. Results saved to {args.results}")
    return cases


if __name__ == "__main__":
    main()
