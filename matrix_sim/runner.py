"""End-to-end experiment: read inputs, build, schedule, sample, run."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from matrix_sim.config import SimulationConfig
from matrix_sim.core.simulator import NetworkSimulator
from matrix_sim.core.substrate import Substrate
from matrix_sim.log_config import get_logger
from matrix_sim.monitor.probes import DropSample, Monitor, QueueSample, ReceivedSample
from matrix_sim.topology.builder import BuildParameters, TopologyBuilder
from matrix_sim.topology.model import Topology
from matrix_sim.topology.reader import (
    check_dimensions,
    describe_coordinates,
    describe_matrix,
    read_adjacency_matrix,
    read_coordinates,
)
from matrix_sim.traffic.scheduler import Flow, FlowScheduler
from matrix_sim.utils.metrics import (
    save_metrics_to_json,
    save_samples_to_csv,
    summarize_samples,
)
from matrix_sim.utils.rng import spawn_generators

logger = get_logger(__name__)


@dataclass
class ExperimentResult:
    """Everything a run produced.

    Attributes:
        topology: The built topology.
        flows: The scheduled flows, in time order.
        queue_samples: Queue-length time series.
        drop_samples: Drop-ratio time series.
        received_samples: Received-packet rate time series, if enabled.
        metrics: Substrate metrics plus sample summaries.
    """

    topology: Topology
    flows: List[Flow]
    queue_samples: List[QueueSample]
    drop_samples: List[DropSample]
    received_samples: List[ReceivedSample] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)


def run_experiment(
    config: SimulationConfig, substrate: Optional[Substrate] = None
) -> ExperimentResult:
    """Run one experiment described by ``config``.

    Args:
        config: Run configuration.
        substrate: Substrate to build on; a seeded NetworkSimulator if None.

    Returns:
        The topology, flows, sampled series and metrics of the run.

    Raises:
        MalformedInput: If an input file is missing or malformed.
        DimensionMismatch: If the coordinate count differs from the matrix size.
        ValueError: If the configuration is invalid.
    """
    config.validate()

    logger.info("Read Adjacency Matrix %s", config.adjacency_file)
    matrix = read_adjacency_matrix(config.adjacency_file)
    describe_matrix("Adjacency Matrix", matrix)

    logger.info("Read Node Coordinates %s", config.coordinates_file)
    coordinates = read_coordinates(config.coordinates_file)
    describe_coordinates("Node Coordinates", coordinates)

    check_dimensions(matrix, coordinates)

    traffic_rng, substrate_rng = spawn_generators(config.seed, 2)
    if substrate is None:
        substrate = NetworkSimulator(rng=substrate_rng)

    monitor = Monitor.from_config(
        substrate, config.monitor, len(matrix), config.computer_count
    )
    builder = TopologyBuilder(
        substrate, BuildParameters.from_config(config), drop_callback=monitor.on_phy_rx_drop
    )
    topology = builder.build(matrix, coordinates)

    scheduler = FlowScheduler.from_config(config, traffic_rng)
    flows = list(scheduler.plan())
    scheduler.install(substrate, topology, flows, port=config.traffic.port)

    monitor.install(config.duration)

    logger.info("Run Simulation.")
    metrics = dict(substrate.run(config.duration) or {})
    metrics["link_count"] = topology.link_count
    metrics["node_count"] = topology.node_count
    metrics["flow_count"] = len(flows)
    metrics["queue_length"] = summarize_samples(monitor.queue_samples, "max_queue_length")
    metrics["drop_ratio"] = summarize_samples(monitor.drop_samples, "ratio")

    return ExperimentResult(
        topology=topology,
        flows=flows,
        queue_samples=list(monitor.queue_samples),
        drop_samples=list(monitor.drop_samples),
        received_samples=list(monitor.received_samples),
        metrics=metrics,
    )


def save_results(result: ExperimentResult, output_dir: str) -> List[str]:
    """Write the sampled series and metrics of a run.

    Returns:
        The paths written.
    """
    os.makedirs(output_dir, exist_ok=True)
    written = []
    series = [
        ("queue_samples.csv", result.queue_samples),
        ("drop_samples.csv", result.drop_samples),
        ("received_samples.csv", result.received_samples),
    ]
    for name, samples in series:
        path = os.path.join(output_dir, name)
        if save_samples_to_csv(samples, path):
            written.append(path)

    path = os.path.join(output_dir, "metrics.json")
    save_metrics_to_json(result.metrics, path)
    written.append(path)
    return written


def plot_results(result: ExperimentResult, output_dir: str) -> None:
    """Save the topology drawing and the sampled series as PNG files."""
    from matrix_sim.utils.visualization import plot_time_series, save_topology_visualization

    save_topology_visualization(result.topology, os.path.join(output_dir, "topology.png"))
    plot_time_series(
        result.queue_samples,
        "max_queue_length",
        os.path.join(output_dir, "queue_length.png"),
        title="Largest per-node egress backlog",
        ylabel="Packets",
    )
    if result.drop_samples:
        plot_time_series(
            result.drop_samples,
            "ratio",
            os.path.join(output_dir, "drop_ratio.png"),
            title="Drops per packet uid",
            ylabel="Ratio",
        )
