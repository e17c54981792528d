"""Randomized, time-windowed endpoint flows.

The run is cut into decision intervals of fixed width. In every interval the
endpoint indices are shuffled, a random number of pairs is drawn, and each
pair of consecutive shuffled indices becomes one constant bit rate flow that
lives exactly as long as the interval. Because pairs are taken from disjoint
positions of one permutation, no endpoint appears twice in an interval.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple

import numpy as np

from matrix_sim.config import SimulationConfig
from matrix_sim.core.substrate import Substrate
from matrix_sim.log_config import get_logger
from matrix_sim.topology.model import Topology

logger = get_logger(__name__)


@dataclass(frozen=True)
class Flow:
    """One UDP flow confined to a decision interval.

    Attributes:
        source: Endpoint index the traffic is sent from.
        destination: Endpoint index the traffic is sent to.
        start: First instant of the window.
        stop: End of the window, exclusive.
        packet_size: Payload size in bytes.
        packet_interval: Time between two packets.
        max_packets: Packet budget; the window usually ends first.
        interval: Index of the decision interval the flow belongs to.
    """

    source: int
    destination: int
    start: float
    stop: float
    packet_size: int
    packet_interval: float
    max_packets: int
    interval: int = 0


class FlowScheduler:
    """Generates the random flow plan of a run.

    Attributes:
        computer_count: Number of endpoints, indices ``[0, computer_count)``.
        duration: Total simulated time covered by the plan.
        rng: Random generator used for shuffles and pair counts.
        decision_interval: Width of one decision interval.
        packet_size: Payload size of every flow.
        packet_interval: Inter-packet time of every flow.
        max_packets: Packet budget of every flow.
    """

    def __init__(
        self,
        computer_count: int,
        duration: float,
        rng: np.random.Generator,
        decision_interval: float = 0.1,
        packet_size: int = 210,
        packet_interval: float = 0.00375,
        max_packets: int = 1000,
    ) -> None:
        if computer_count < 2:
            raise ValueError(
                f"At least two endpoints are needed to pair flows, got {computer_count}"
            )
        if decision_interval <= 0:
            raise ValueError(f"decision_interval must be positive, got {decision_interval}")
        self.computer_count = computer_count
        self.duration = duration
        self.rng = rng
        self.decision_interval = decision_interval
        self.packet_size = packet_size
        self.packet_interval = packet_interval
        self.max_packets = max_packets

    @classmethod
    def from_config(
        cls, config: SimulationConfig, rng: np.random.Generator
    ) -> "FlowScheduler":
        traffic = config.traffic
        return cls(
            config.computer_count,
            config.duration,
            rng,
            decision_interval=traffic.decision_interval,
            packet_size=traffic.packet_size,
            packet_interval=traffic.packet_interval,
            max_packets=traffic.max_packets,
        )

    @property
    def interval_count(self) -> int:
        # a trailing partial interval still gets a window
        return int(math.ceil(round(self.duration / self.decision_interval, 9)))

    def pairings(self) -> List[Tuple[int, int]]:
        """Draw one interval's pairs ``(a, b)``; traffic flows from b to a."""
        shuffled = self.rng.permutation(self.computer_count)
        pair_count = int(self.rng.integers(1, self.computer_count // 2, endpoint=True))
        return [
            (int(shuffled[2 * k]), int(shuffled[2 * k + 1])) for k in range(pair_count)
        ]

    def plan(self) -> Iterator[Flow]:
        """Yield the flows of every decision interval in time order."""
        for t in range(self.interval_count):
            start = self.decision_interval * t
            for a, b in self.pairings():
                yield Flow(
                    source=b,
                    destination=a,
                    start=start,
                    stop=start + self.decision_interval,
                    packet_size=self.packet_size,
                    packet_interval=self.packet_interval,
                    max_packets=self.max_packets,
                    interval=t,
                )

    def install(
        self,
        substrate: Substrate,
        topology: Topology,
        flows: Iterable[Flow],
        port: int = 9,
    ) -> int:
        """Install UDP sinks on every endpoint and one UDP source per flow.

        Args:
            substrate: Substrate the applications run on.
            topology: Built topology, used to resolve destination addresses.
            flows: Flows to install.
            port: UDP port shared by sinks and sources.

        Returns:
            The number of flows installed.

        Raises:
            ValueError: If a destination endpoint has no interface address.
        """
        logger.info("Setup Packet Sinks with application Udpserver")
        for i in range(self.computer_count):
            substrate.install_udp_server(i, port, 0.0, self.duration)

        logger.info("Setup Packet Sources with application Udpclient.")
        installed = 0
        for flow in flows:
            address = topology.node_address(flow.destination)
            if address is None:
                raise ValueError(
                    f"Endpoint {flow.destination} has no link and cannot receive traffic"
                )
            substrate.install_udp_client(
                flow.source,
                address,
                port,
                flow.max_packets,
                flow.packet_interval,
                flow.packet_size,
                flow.start,
                flow.stop,
            )
            installed += 1

        logger.info("Installed %d flows over %d decision intervals", installed, self.interval_count)
        return installed
