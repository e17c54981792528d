"""Point-to-point devices and channels for the SimPy substrate.

This module defines the drop-tail egress queue, the point-to-point device
that serializes packets onto its channel, the channel that carries them to the
peer device after the propagation delay, and the loopback device every node
owns at index 0.
"""

import ipaddress
from collections import deque
from typing import TYPE_CHECKING, Callable, Deque, List, Optional

import simpy

from matrix_sim.core.enums import DropReason
from matrix_sim.core.error_model import RateErrorModel
from matrix_sim.core.packet import Packet
from matrix_sim.utils.units import format_data_rate

if TYPE_CHECKING:
    from matrix_sim.core.node import Node


class DropTailQueue:
    """FIFO packet queue that drops arrivals once full.

    Attributes:
        max_packets: Capacity in packets.
        packets: Waiting packets, oldest first.
        total_received: Packets ever accepted.
        total_dropped: Packets rejected because the queue was full.
    """

    def __init__(self, max_packets: int = 100) -> None:
        self.max_packets = max_packets
        self.packets: Deque[Packet] = deque()
        self.total_received = 0
        self.total_dropped = 0

    @property
    def n_packets(self) -> int:
        return len(self.packets)

    def enqueue(self, packet: Packet) -> bool:
        if len(self.packets) >= self.max_packets:
            self.total_dropped += 1
            return False
        self.packets.append(packet)
        self.total_received += 1
        return True

    def dequeue(self) -> Optional[Packet]:
        if not self.packets:
            return None
        return self.packets.popleft()


class PointToPointChannel:
    """Full-duplex wire between exactly two devices."""

    def __init__(self, env: simpy.Environment, delay: float) -> None:
        self.env = env
        self.delay = delay
        self.devices: List["PointToPointDevice"] = []

    def attach(self, device: "PointToPointDevice") -> None:
        if len(self.devices) == 2:
            raise ValueError("A point-to-point channel connects exactly two devices")
        self.devices.append(device)
        device.channel = self

    def peer_of(self, device: "PointToPointDevice") -> "PointToPointDevice":
        first, second = self.devices
        return second if device is first else first

    def deliver(self, sender: "PointToPointDevice", packet: Packet):
        """Propagate a packet to the peer of ``sender``."""
        yield self.env.timeout(self.delay)
        self.peer_of(sender).receive(packet)


class PointToPointDevice:
    """Network device attached to one end of a point-to-point channel.

    Attributes:
        env: SimPy environment.
        node: Owning node.
        index: Device index on the owning node.
        data_rate: Transmission rate in bits per second.
        name: Display name, e.g. ``endpoint1--relay1``.
        queue: Egress drop-tail queue.
        channel: Attached channel.
        interface: Configured IPv4 interface, if any.
        receive_error_model: Error model applied on receive, if any.
        busy: Whether a packet is being serialized.
        packets_sent: Packets put on the wire.
        bytes_sent: Bytes put on the wire.
    """

    def __init__(
        self, env: simpy.Environment, node: "Node", index: int, data_rate: float
    ) -> None:
        self.env = env
        self.node = node
        self.index = index
        self.data_rate = data_rate
        self.name = ""
        self.queue = DropTailQueue()
        self.channel: Optional[PointToPointChannel] = None
        self.interface: Optional[ipaddress.IPv4Interface] = None
        self.receive_error_model: Optional[RateErrorModel] = None
        self.rx_drop_callbacks: List[Callable[[Packet], None]] = []
        self.busy = False
        self.packets_sent = 0
        self.bytes_sent = 0

    @property
    def peer(self) -> "PointToPointDevice":
        if self.channel is None:
            raise ValueError(f"Device {self!r} is not attached to a channel")
        return self.channel.peer_of(self)

    def calculate_transmission_delay(self, packet_size: int) -> float:
        """Calculate transmission delay based on packet size and data rate.

        Args:
            packet_size: Size of the packet in bytes.

        Returns:
            Transmission delay in seconds.
        """
        return (packet_size * 8) / self.data_rate

    def send(self, packet: Packet) -> bool:
        """Queue a packet for transmission.

        Returns:
            False if the egress queue was full and the packet was dropped.
        """
        if not self.queue.enqueue(packet):
            self.node.packet_dropped(packet, DropReason.QUEUE_OVERFLOW)
            return False
        if not self.busy:
            self._start_transmission(self.queue.dequeue())
        return True

    def _start_transmission(self, packet: Packet) -> None:
        self.busy = True
        self.env.process(self._transmit(packet))

    def _transmit(self, packet: Packet):
        yield self.env.timeout(self.calculate_transmission_delay(packet.size))
        self.packets_sent += 1
        self.bytes_sent += packet.size
        self.env.process(self.channel.deliver(self, packet))

        next_packet = self.queue.dequeue()
        if next_packet is None:
            self.busy = False
        else:
            self._start_transmission(next_packet)

    def receive(self, packet: Packet) -> None:
        """Handle a packet coming off the channel."""
        if self.receive_error_model is not None and self.receive_error_model.is_corrupt(
            packet
        ):
            for callback in self.rx_drop_callbacks:
                callback(packet)
            self.node.packet_dropped(packet, DropReason.PHY_RX_ERROR)
            return
        self.node.receive(packet, self)

    def __repr__(self) -> str:
        return f"PointToPointDevice({self.name or self.node.id}:{self.index}, {format_data_rate(self.data_rate)})"


class LoopbackDevice:
    """Device 0 of every node; hands packets straight back to its node."""

    def __init__(self, node: "Node") -> None:
        self.node = node
        self.index = 0
        self.name = "lo"
        self.queue = DropTailQueue(max_packets=0)
        self.interface = ipaddress.IPv4Interface("127.0.0.1/8")

    def send(self, packet: Packet) -> bool:
        self.node.receive(packet, self)
        return True

    def __repr__(self) -> str:
        return f"LoopbackDevice({self.node.id})"
