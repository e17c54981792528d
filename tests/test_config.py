"""Tests for run configuration and unit parsing."""

import json

import pytest

from matrix_sim.config import (
    LinkProfile,
    MonitorConfig,
    SimulationConfig,
    TrafficConfig,
    config_from_dict,
    load_config,
)
from matrix_sim.utils.units import format_data_rate, parse_data_rate, parse_time


def test_defaults_match_reference_experiment():
    config = SimulationConfig()

    assert config.endpoint_relay.bps == 10e6
    assert config.relay_relay.bps == 0.5e6
    assert config.endpoint_relay.seconds == pytest.approx(0.002)
    assert config.duration == 120.0
    assert config.traffic.packet_size == 210
    assert config.traffic.decision_interval == 0.1
    assert config.monitor.queue_interval == 0.2
    assert config.monitor.drop_report_every == 100
    config.validate()


def test_config_from_dict_nested_sections():
    config = config_from_dict(
        {
            "computer_count": 3,
            "relay_relay": {"data_rate": "1Mbps"},
            "traffic": {"packet_size": 512},
            "monitor": {"monitored": [1, 3], "received_probe": True},
        }
    )

    assert config.computer_count == 3
    assert config.relay_relay == LinkProfile(data_rate="1Mbps", delay="2ms")
    assert config.traffic == TrafficConfig(packet_size=512)
    assert config.monitor.monitored == (1, 3)
    assert config.monitor.received_probe


def test_config_from_dict_rejects_unknown_keys():
    with pytest.raises(ValueError, match="Unknown SimulationConfig keys"):
        config_from_dict({"computers": 3})
    with pytest.raises(ValueError, match="Unknown TrafficConfig keys"):
        config_from_dict({"traffic": {"rate": 1}})


def test_load_config(tmp_path):
    path = tmp_path / "run.json"
    path.write_text(json.dumps({"duration": 5.0, "seed": 9, "error_rate": 0.001}))

    config = load_config(str(path))

    assert config.duration == 5.0
    assert config.seed == 9
    assert config.error_rate == 0.001


def test_to_dict_round_trip():
    config = SimulationConfig(seed=4, monitor=MonitorConfig(monitored=(0, 2)))

    assert config_from_dict(config.to_dict()) == config


@pytest.mark.parametrize(
    "changes",
    [
        {"computer_count": 1},
        {"router_count": -1},
        {"duration": 0},
        {"max_queue_length": 0},
        {"error_rate": 1.5},
        {"endpoint_relay": LinkProfile(data_rate="0Mbps")},
        {"traffic": TrafficConfig(packet_interval=0)},
        {"monitor": MonitorConfig(queue_interval=0)},
        {"monitor": MonitorConfig(drop_report_every=0)},
    ],
)
def test_validate_rejects(changes):
    config = SimulationConfig(**changes)

    with pytest.raises(ValueError):
        config.validate()


@pytest.mark.parametrize(
    "value, expected",
    [
        ("10Mbps", 10e6),
        ("0.5Mbps", 500000),
        ("64kbps", 64000),
        ("1Gbps", 1e9),
        ("1KBps", 8000),
        ("2500", 2500),
        (1e6, 1e6),
    ],
)
def test_parse_data_rate(value, expected):
    assert parse_data_rate(value) == pytest.approx(expected)


@pytest.mark.parametrize(
    "value, expected",
    [("2ms", 0.002), ("1.5s", 1.5), ("10us", 1e-5), ("3", 3.0), ("1min", 60.0), (0.1, 0.1)],
)
def test_parse_time(value, expected):
    assert parse_time(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", ["fast", "10 furlongs", "", "-1ms"])
def test_parse_rejects(value):
    with pytest.raises(ValueError):
        parse_time(value)


def test_format_data_rate():
    assert format_data_rate(500000) == "0.5Mbps"
