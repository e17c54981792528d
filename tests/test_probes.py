"""Tests for the queue, drop and received-packet probes."""

from types import SimpleNamespace

import pytest

from matrix_sim.config import MonitorConfig
from matrix_sim.monitor.probes import (
    DropRateProbe,
    DropSample,
    Monitor,
    QueueLengthProbe,
    QueueSample,
    ReceivedPacketProbe,
    sample_times,
)


@pytest.fixture
def three_nodes(fake_substrate):
    """Nodes with 2, 1 and 3 link devices besides the loopback."""
    fake_substrate.create_nodes(3)
    fake_substrate.devices = [3, 2, 4]
    return fake_substrate


def test_sample_times():
    assert sample_times(1.0, 0.2) == pytest.approx([0.0, 0.2, 0.4, 0.6, 0.8])
    assert sample_times(0.5, 0.2) == pytest.approx([0.0, 0.2, 0.4])
    assert sample_times(0.0, 0.2) == []


def test_empty_queues_sample_zero(three_nodes):
    probe = QueueLengthProbe(three_nodes, range(3))

    sample = probe.sample()

    assert sample == QueueSample(0.0, 0)
    assert probe.samples == [sample]


def test_queue_sample_is_max_of_per_node_sums(three_nodes):
    three_nodes.queues = {
        (0, 1): 3,
        (0, 2): 4,
        (1, 1): 5,
        (2, 1): 1,
        (2, 3): 2,
    }
    three_nodes.time = 1.4

    sample = QueueLengthProbe(three_nodes, range(3)).sample()

    assert sample.time == 1.4
    assert sample.max_queue_length == 7


def test_queue_probe_skips_device_zero(three_nodes):
    three_nodes.queues = {(0, 0): 99, (1, 1): 2}

    assert QueueLengthProbe(three_nodes, range(3)).sample().max_queue_length == 2


def test_queue_probe_only_reads_monitored_nodes(three_nodes):
    three_nodes.queues = {(0, 1): 10, (2, 2): 4}

    assert QueueLengthProbe(three_nodes, range(1, 3)).sample().max_queue_length == 4


def test_queue_probe_does_not_mutate(three_nodes):
    three_nodes.queues = {(0, 1): 3}
    probe = QueueLengthProbe(three_nodes, range(3))

    probe.sample()
    probe.sample()

    assert three_nodes.queues == {(0, 1): 3}
    assert [s.max_queue_length for s in probe.samples] == [3, 3]


def test_queue_probe_schedule(three_nodes):
    probe = QueueLengthProbe(three_nodes, range(3), interval=0.2)

    assert probe.schedule(1.0) == 5
    three_nodes.run(1.0)

    assert [s.time for s in probe.samples] == pytest.approx([0.0, 0.2, 0.4, 0.6, 0.8])


def _packet(uid):
    return SimpleNamespace(uid=uid)


def test_drop_probe_reports_every_hundredth_call():
    probe = DropRateProbe()

    for uid in range(1, 100):
        assert probe.on_drop(_packet(uid), 0.5) is None
    sample = probe.on_drop(_packet(400), 0.6)

    assert sample == DropSample(0.6, 100 / 400)
    assert probe.invocations == 0
    assert probe.drops == 100


def test_drop_count_is_cumulative():
    probe = DropRateProbe(report_every=3)

    for uid in range(1, 7):
        probe.on_drop(_packet(uid * 10), float(uid))

    assert probe.samples == [DropSample(3.0, 3 / 30), DropSample(6.0, 6 / 60)]
    assert probe.drops == 6


def test_drop_probe_reset():
    probe = DropRateProbe(report_every=1)
    probe.on_drop(_packet(1), 0.0)

    probe.reset()

    assert probe.drops == probe.invocations == 0
    assert probe.samples == []


def test_drop_probe_rejects_zero_period():
    with pytest.raises(ValueError):
        DropRateProbe(report_every=0)


def test_received_probe_skips_time_zero(three_nodes):
    assert ReceivedPacketProbe(three_nodes, range(3)).sample() is None


def test_received_probe_rate(three_nodes):
    three_nodes.enqueued = {(0, 0): 50, (0, 1): 6, (2, 1): 4, (2, 3): 4}
    three_nodes.time = 2.0
    probe = ReceivedPacketProbe(three_nodes, range(3))

    sample = probe.sample()

    assert sample.rate == pytest.approx(8 / 2.0)
    assert probe.samples == [sample]


def test_monitor_from_config_defaults(three_nodes):
    monitor = Monitor.from_config(three_nodes, MonitorConfig(), node_count=3, computer_count=1)

    assert list(monitor.queue_probe.monitored) == [0, 1, 2]
    assert monitor.received_probe is None
    assert monitor.received_samples == []


def test_monitor_from_config_ranges(three_nodes):
    config = MonitorConfig(monitored=(1, 3), received_probe=True)

    monitor = Monitor.from_config(three_nodes, config, node_count=3, computer_count=1)

    assert list(monitor.queue_probe.monitored) == [1, 2]
    assert list(monitor.received_probe.monitored) == [1, 2]


def test_monitor_rejects_out_of_range(three_nodes):
    with pytest.raises(ValueError, match="does not fit"):
        Monitor.from_config(three_nodes, MonitorConfig(monitored=(0, 5)), 3, 1)


def test_monitor_install_and_drop_callback(three_nodes):
    monitor = Monitor(three_nodes, range(3), drop_report_every=2)
    monitor.install(0.6)

    three_nodes.run(0.6)
    monitor.on_phy_rx_drop(_packet(4))
    monitor.on_phy_rx_drop(_packet(8))

    assert len(monitor.queue_samples) == 3
    assert monitor.drop_samples == [DropSample(0.6, 2 / 8)]
