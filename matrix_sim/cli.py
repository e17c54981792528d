"""Command line interface for matrix_sim."""

import argparse
import logging
import sys
from typing import List, Optional

from matrix_sim.config import SimulationConfig, load_config
from matrix_sim.errors import MatrixSimError
from matrix_sim.log_config import get_logger, set_global_log_level
from matrix_sim.runner import plot_results, run_experiment, save_results

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build a topology from an adjacency matrix and drive random UDP flows over it"
    )
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--adjacency", help="Adjacency matrix file")
    parser.add_argument("--coordinates", help="Node coordinates file")
    parser.add_argument("--computers", type=int, help="Number of endpoint nodes")
    parser.add_argument("--routers", type=int, help="Number of relay nodes")
    parser.add_argument("--duration", type=float, help="Simulated time in seconds")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--error-rate", type=float, help="Receive error rate of every link")
    parser.add_argument("--queue-length", type=int, help="Egress queue capacity in packets")
    parser.add_argument("--output-dir", help="Directory for sample and metric files")
    parser.add_argument("--plot", action="store_true", help="Save PNG plots of the run")
    parser.add_argument(
        "--received-probe",
        action="store_true",
        help="Also sample the received-packet rate of the relays",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at DEBUG level")
    return parser


def config_from_args(args: argparse.Namespace) -> SimulationConfig:
    """Load the configuration file, if any, and apply command line overrides."""
    config = load_config(args.config) if args.config else SimulationConfig()

    overrides = {
        "adjacency_file": args.adjacency,
        "coordinates_file": args.coordinates,
        "computer_count": args.computers,
        "router_count": args.routers,
        "duration": args.duration,
        "seed": args.seed,
        "error_rate": args.error_rate,
        "max_queue_length": args.queue_length,
        "output_dir": args.output_dir,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)
    if args.received_probe:
        config.monitor.received_probe = True
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Run one experiment from the command line.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)
    set_global_log_level(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = config_from_args(args)
        result = run_experiment(config)
    except (MatrixSimError, ValueError, OSError) as e:
        logger.error("%s", e)
        return 1

    for path in save_results(result, config.output_dir):
        logger.info("Wrote %s", path)
    if args.plot:
        plot_results(result, config.output_dir)

    logger.info(
        "Links: %d, flows: %d, queue samples: %d, drop samples: %d",
        result.topology.link_count,
        len(result.flows),
        len(result.queue_samples),
        len(result.drop_samples),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
