"""Abstract simulation substrate.

The topology builder, flow scheduler and probes only decide what to build and
when to sample. Everything that moves packets lives behind this interface:
node and link creation, address bookkeeping, queues and error models, route
computation and the event kernel. Devices are addressed as
``(node index, device index)``; device 0 of every node is a loopback that
carries no link traffic.
"""

import ipaddress
from abc import ABC, abstractmethod
from typing import Any, Callable, Tuple


class Substrate(ABC):
    """Interface consumed by the topology and traffic generation engine."""

    @property
    @abstractmethod
    def now(self) -> float:
        """Current simulated time in seconds."""

    @property
    @abstractmethod
    def node_count(self) -> int:
        """Number of nodes created so far."""

    @abstractmethod
    def create_nodes(self, count: int) -> None:
        """Create ``count`` nodes with consecutive indices."""

    @abstractmethod
    def install_link(
        self, a: int, b: int, data_rate: float, delay: float
    ) -> Tuple[int, int]:
        """Connect two nodes with a point-to-point link.

        Args:
            a: First node index.
            b: Second node index.
            data_rate: Device data rate in bits per second.
            delay: Channel propagation delay in seconds.

        Returns:
            The new device index on ``a`` and on ``b``.
        """

    @abstractmethod
    def set_device_name(self, node: int, device: int, name: str) -> None:
        """Attach a display name to a device."""

    @abstractmethod
    def assign_address(
        self, node: int, device: int, interface: ipaddress.IPv4Interface
    ) -> None:
        """Configure an IPv4 interface on a device."""

    @abstractmethod
    def set_receive_error_model(self, node: int, device: int, error_rate: float) -> None:
        """Install an independent random receive error model on a device."""

    @abstractmethod
    def set_queue_capacity(self, node: int, device: int, capacity: int) -> None:
        """Bound a device's egress queue to ``capacity`` packets."""

    @abstractmethod
    def register_drop_callback(
        self, node: int, device: int, callback: Callable[[Any], None]
    ) -> None:
        """Call ``callback(packet)`` whenever the device drops a packet on receive."""

    @abstractmethod
    def set_position(self, node: int, x: float, y: float) -> None:
        """Give a node a fixed position."""

    @abstractmethod
    def populate_routing_tables(self) -> None:
        """Compute static routes between every pair of assigned addresses."""

    @abstractmethod
    def schedule(self, time: float, callback: Callable[[], None]) -> None:
        """Call ``callback()`` at absolute simulated ``time``.

        Callbacks registered for the same instant run in registration order.
        """

    @abstractmethod
    def device_count(self, node: int) -> int:
        """Number of devices on a node, loopback included."""

    @abstractmethod
    def queued_packets(self, node: int, device: int) -> int:
        """Packets currently waiting in a device's egress queue."""

    @abstractmethod
    def total_enqueued(self, node: int, device: int) -> int:
        """Packets ever accepted into a device's egress queue."""

    @abstractmethod
    def install_udp_server(self, node: int, port: int, start: float, stop: float) -> None:
        """Install a UDP sink on ``node`` listening on ``port``."""

    @abstractmethod
    def install_udp_client(
        self,
        node: int,
        destination: ipaddress.IPv4Address,
        port: int,
        max_packets: int,
        interval: float,
        packet_size: int,
        start: float,
        stop: float,
    ) -> None:
        """Install a constant bit rate UDP source sending during ``[start, stop)``."""

    @abstractmethod
    def run(self, duration: float) -> Any:
        """Advance simulated time to ``duration``."""
