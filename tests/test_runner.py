"""End-to-end tests for the experiment runner and the command line."""

import csv
import json
import os

import pytest

from matrix_sim import cli
from matrix_sim.config import MonitorConfig, SimulationConfig
from matrix_sim.errors import DimensionMismatch, MalformedInput
from matrix_sim.runner import plot_results, run_experiment, save_results
from matrix_sim.topology.model import LinkClass


@pytest.fixture
def config(small_inputs, tmp_path):
    matrix, coordinates = small_inputs
    return SimulationConfig(
        adjacency_file=matrix,
        coordinates_file=coordinates,
        computer_count=2,
        router_count=2,
        duration=1.0,
        seed=7,
        output_dir=str(tmp_path / "results"),
    )


def test_run_experiment(config):
    result = run_experiment(config)

    assert result.topology.link_count == 3
    assert result.topology.link_classes() == [
        LinkClass.ENDPOINT_RELAY,
        LinkClass.ENDPOINT_RELAY,
        LinkClass.RELAY_RELAY,
    ]
    assert result.topology.nodes[2].position == (10, -5)
    assert len(result.flows) == 10
    assert all({flow.source, flow.destination} == {0, 1} for flow in result.flows)
    assert [s.time for s in result.queue_samples] == pytest.approx([0.0, 0.2, 0.4, 0.6, 0.8])
    assert result.drop_samples == []
    assert result.metrics["flow_count"] == 10
    assert result.metrics["packets_sent"] > 0
    assert result.metrics["packets_received"] > 0
    assert result.metrics["queue_length"]["count"] == 5


def test_run_experiment_is_reproducible(config):
    first = run_experiment(config)
    second = run_experiment(config)

    assert first.flows == second.flows
    assert first.queue_samples == second.queue_samples


def test_run_experiment_on_fake_substrate(config, fake_substrate):
    result = run_experiment(config, substrate=fake_substrate)

    assert fake_substrate.node_count == 4
    assert len(fake_substrate.clients) == len(result.flows)
    assert [s.max_queue_length for s in result.queue_samples] == [0] * 5


def test_received_probe(config):
    config.monitor = MonitorConfig(received_probe=True)

    result = run_experiment(config)

    # the sample at time zero is skipped
    assert len(result.received_samples) == 4


def test_dimension_mismatch(config, write_file):
    config.coordinates_file = write_file("short.txt", "0 0\n1 1\n")

    with pytest.raises(DimensionMismatch):
        run_experiment(config)


def test_missing_matrix(config, tmp_path):
    config.adjacency_file = str(tmp_path / "nope.txt")

    with pytest.raises(MalformedInput):
        run_experiment(config)


def test_invalid_config(config):
    config.computer_count = 1

    with pytest.raises(ValueError):
        run_experiment(config)


def test_save_results(config):
    result = run_experiment(config)

    written = save_results(result, config.output_dir)

    names = sorted(os.path.basename(path) for path in written)
    assert names == ["metrics.json", "queue_samples.csv"]
    with open(os.path.join(config.output_dir, "queue_samples.csv")) as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["time", "max_queue_length"]
    assert len(rows) == 6
    with open(os.path.join(config.output_dir, "metrics.json")) as f:
        metrics = json.load(f)
    assert metrics["link_count"] == 3


def test_plot_results(config):
    result = run_experiment(config)

    plot_results(result, config.output_dir)

    assert os.path.exists(os.path.join(config.output_dir, "topology.png"))
    assert os.path.exists(os.path.join(config.output_dir, "queue_length.png"))


@pytest.fixture
def quiet_cli(monkeypatch):
    levels = []
    monkeypatch.setattr(cli, "set_global_log_level", levels.append)
    return levels


def test_cli_runs_experiment(small_inputs, tmp_path, quiet_cli):
    matrix, coordinates = small_inputs
    output_dir = tmp_path / "out"

    code = cli.main(
        [
            "--adjacency",
            matrix,
            "--coordinates",
            coordinates,
            "--computers",
            "2",
            "--routers",
            "2",
            "--duration",
            "0.5",
            "--seed",
            "1",
            "--output-dir",
            str(output_dir),
            "--verbose",
        ]
    )

    assert code == 0
    assert (output_dir / "queue_samples.csv").exists()
    assert (output_dir / "metrics.json").exists()
    assert quiet_cli == [10]


def test_cli_reports_bad_input(tmp_path, quiet_cli):
    code = cli.main(["--adjacency", str(tmp_path / "missing.txt")])

    assert code == 1


def test_cli_config_file_with_overrides(small_inputs, tmp_path):
    matrix, coordinates = small_inputs
    path = tmp_path / "run.json"
    path.write_text(
        json.dumps(
            {
                "adjacency_file": matrix,
                "coordinates_file": coordinates,
                "computer_count": 2,
                "router_count": 2,
                "duration": 3.0,
            }
        )
    )
    args = cli.build_parser().parse_args(
        ["--config", str(path), "--duration", "0.5", "--received-probe"]
    )

    config = cli.config_from_args(args)

    assert config.duration == 0.5
    assert config.computer_count == 2
    assert config.monitor.received_probe
