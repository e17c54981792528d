"""Queue, drop and received-packet probes.

Probes only read substrate state. The queue-length and received-packet
probes are registered as periodic callbacks on the substrate's event kernel;
the drop-rate probe is invoked by the substrate for every packet a link
device drops on receive.
"""

import math
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from matrix_sim.config import MonitorConfig
from matrix_sim.core.substrate import Substrate
from matrix_sim.log_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class QueueSample:
    time: float
    max_queue_length: int


@dataclass(frozen=True)
class DropSample:
    time: float
    ratio: float


@dataclass(frozen=True)
class ReceivedSample:
    time: float
    rate: float


def sample_times(duration: float, interval: float) -> List[float]:
    """Instants ``0, interval, 2 * interval, ...`` strictly before ``duration``."""
    count = int(math.ceil(round(duration / interval, 9)))
    return [k * interval for k in range(count)]


def _data_devices(substrate: Substrate, node: int) -> range:
    # device 0 is the loopback
    return range(1, substrate.device_count(node))


class QueueLengthProbe:
    """Samples the largest per-node egress backlog.

    For every monitored node, the packets waiting in the egress queues of its
    link devices are summed; the sample is the maximum of these sums.

    Attributes:
        substrate: Substrate to read queues from.
        monitored: Node indices to inspect.
        interval: Time between two samples.
        samples: Samples taken so far.
    """

    def __init__(
        self, substrate: Substrate, monitored: Sequence[int], interval: float = 0.2
    ) -> None:
        self.substrate = substrate
        self.monitored = monitored
        self.interval = interval
        self.samples: List[QueueSample] = []

    def sample(self) -> QueueSample:
        largest = 0
        for node in self.monitored:
            queued = sum(
                self.substrate.queued_packets(node, device)
                for device in _data_devices(self.substrate, node)
            )
            largest = max(largest, queued)

        sample = QueueSample(self.substrate.now, largest)
        self.samples.append(sample)
        logger.info("%g\t%d", sample.time, sample.max_queue_length)
        return sample

    def schedule(self, duration: float) -> int:
        """Register a sample at every interval before ``duration``.

        Returns:
            The number of samples registered.
        """
        times = sample_times(duration, self.interval)
        for time in times:
            self.substrate.schedule(time, self.sample)
        return len(times)


class DropRateProbe:
    """Counts physical-layer receive drops.

    Every ``report_every`` invocations a sample is taken of the cumulative
    drop count divided by the uid of the packet just dropped. Packet uids grow
    with the number of packets created, so the ratio is a diagnostic of how
    drops evolve over the run rather than a true drop rate.

    Attributes:
        report_every: Invocations between two samples.
        drops: Drops counted since the start of the run.
        invocations: Invocations since the last sample.
        samples: Samples taken so far.
    """

    def __init__(self, report_every: int = 100) -> None:
        if report_every < 1:
            raise ValueError(f"report_every must be at least 1, got {report_every}")
        self.report_every = report_every
        self.reset()

    def reset(self) -> None:
        """Clear the counters and samples for a new run."""
        self.drops = 0
        self.invocations = 0
        self.samples: List[DropSample] = []

    def on_drop(self, packet: Any, now: float) -> Optional[DropSample]:
        self.drops += 1
        self.invocations += 1
        if self.invocations < self.report_every:
            return None

        self.invocations = 0
        sample = DropSample(now, self.drops / packet.uid)
        self.samples.append(sample)
        logger.info("%g\t%g", sample.time, sample.ratio)
        return sample


class ReceivedPacketProbe:
    """Samples the largest per-node count of packets ever enqueued, per second.

    Attributes:
        substrate: Substrate to read queues from.
        monitored: Node indices to inspect.
        interval: Time between two samples.
        samples: Samples taken so far.
    """

    def __init__(
        self, substrate: Substrate, monitored: Sequence[int], interval: float = 0.2
    ) -> None:
        self.substrate = substrate
        self.monitored = monitored
        self.interval = interval
        self.samples: List[ReceivedSample] = []

    def sample(self) -> Optional[ReceivedSample]:
        now = self.substrate.now
        if now <= 0:
            return None

        largest = 0
        for node in self.monitored:
            received = sum(
                self.substrate.total_enqueued(node, device)
                for device in _data_devices(self.substrate, node)
            )
            largest = max(largest, received)

        sample = ReceivedSample(now, largest / now)
        self.samples.append(sample)
        logger.info("%g\t%g", sample.time, sample.rate)
        return sample

    def schedule(self, duration: float) -> int:
        times = sample_times(duration, self.interval)
        for time in times:
            self.substrate.schedule(time, self.sample)
        return len(times)


class Monitor:
    """Owns the probes of one run.

    Attributes:
        substrate: Substrate the probes read from.
        queue_probe: Queue-length probe.
        drop_probe: Drop-rate probe.
        received_probe: Received-packet probe, or None when disabled.
    """

    def __init__(
        self,
        substrate: Substrate,
        monitored: Sequence[int],
        queue_interval: float = 0.2,
        drop_report_every: int = 100,
        received_monitored: Optional[Sequence[int]] = None,
    ) -> None:
        self.substrate = substrate
        self.queue_probe = QueueLengthProbe(substrate, monitored, queue_interval)
        self.drop_probe = DropRateProbe(drop_report_every)
        self.received_probe = (
            ReceivedPacketProbe(substrate, received_monitored, queue_interval)
            if received_monitored is not None
            else None
        )

    @classmethod
    def from_config(
        cls,
        substrate: Substrate,
        config: MonitorConfig,
        node_count: int,
        computer_count: int,
    ) -> "Monitor":
        """Create the probes described by ``config`` for a topology.

        The queue probe watches ``config.monitored`` or every node; the
        received-packet probe watches the relays.
        """
        if config.monitored is None:
            monitored = range(node_count)
        else:
            first, last = config.monitored
            if not 0 <= first <= last <= node_count:
                raise ValueError(
                    f"Monitored range {config.monitored} does not fit {node_count} nodes"
                )
            monitored = range(first, last)
        received = range(computer_count, node_count) if config.received_probe else None
        return cls(
            substrate,
            monitored,
            queue_interval=config.queue_interval,
            drop_report_every=config.drop_report_every,
            received_monitored=received,
        )

    def on_phy_rx_drop(self, packet: Any) -> None:
        self.drop_probe.on_drop(packet, self.substrate.now)

    def install(self, duration: float) -> None:
        """Register the periodic probes for ``[0, duration)``."""
        self.drop_probe.reset()
        registered = self.queue_probe.schedule(duration)
        if self.received_probe is not None:
            self.received_probe.schedule(duration)
        logger.debug("Registered %d queue samples", registered)

    @property
    def queue_samples(self) -> List[QueueSample]:
        return self.queue_probe.samples

    @property
    def drop_samples(self) -> List[DropSample]:
        return self.drop_probe.samples

    @property
    def received_samples(self) -> List[ReceivedSample]:
        if self.received_probe is None:
            return []
        return self.received_probe.samples
