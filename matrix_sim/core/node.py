"""Node class for the SimPy substrate.

This module defines the Node class, which represents an IPv4 host or router
with a loopback device and one point-to-point device per attached link.
"""

import ipaddress
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Union

import simpy

from matrix_sim.core.enums import DropReason
from matrix_sim.core.link import LoopbackDevice, PointToPointDevice
from matrix_sim.core.packet import Packet

if TYPE_CHECKING:
    from matrix_sim.core.applications import UdpServer
    from matrix_sim.core.simulator import NetworkSimulator

Device = Union[LoopbackDevice, PointToPointDevice]


class Node:
    """Represents a network node.

    Attributes:
        env: SimPy environment.
        id: Node index.
        simulator: Owning simulator, notified of arrivals and drops.
        devices: Devices keyed by position; index 0 is the loopback.
        routing_table: Egress device for each known destination address.
        applications: UDP servers keyed by port.
        position: Fixed ``(x, y)`` position, if set.
        packets_arrived: Number of packets delivered to this node.
        packets_dropped: Number of packets dropped at this node.
        packets_forwarded: Number of packets relayed by this node.
    """

    def __init__(
        self, env: simpy.Environment, node_id: int, simulator: "NetworkSimulator"
    ) -> None:
        self.env = env
        self.id = node_id
        self.simulator = simulator
        self.devices: List[Device] = [LoopbackDevice(self)]
        self.routing_table: Dict[ipaddress.IPv4Address, Device] = {}
        self.applications: Dict[int, "UdpServer"] = {}
        self.position: Optional[Tuple[float, float]] = None
        self.packets_arrived = 0
        self.packets_dropped = 0
        self.packets_forwarded = 0

    def add_device(self, device: PointToPointDevice) -> int:
        """Append a device and return its index."""
        self.devices.append(device)
        return len(self.devices) - 1

    @property
    def addresses(self) -> List[ipaddress.IPv4Interface]:
        """Interface addresses of the non-loopback devices, in device order."""
        return [
            device.interface
            for device in self.devices[1:]
            if device.interface is not None
        ]

    def owns(self, address: ipaddress.IPv4Address) -> bool:
        return any(interface.ip == address for interface in self.addresses)

    def set_routing_table(self, routing_table: Dict[ipaddress.IPv4Address, Device]) -> None:
        """Set the routing table for this node.

        Args:
            routing_table: Dictionary mapping destination addresses to egress devices.
        """
        self.routing_table = routing_table

    def send(self, packet: Packet) -> None:
        """Originate a packet from a local application."""
        if self.owns(packet.destination):
            self.devices[0].send(packet)
            return
        self._forward(packet)

    def receive(self, packet: Packet, device: Device) -> None:
        """Handle a packet handed up by one of this node's devices."""
        if self.owns(packet.destination):
            self._deliver(packet)
            return
        self.packets_forwarded += 1
        self._forward(packet)

    def _forward(self, packet: Packet) -> None:
        device = self.routing_table.get(packet.destination)
        if device is None:
            self.packet_dropped(packet, DropReason.NO_ROUTE)
            return
        device.send(packet)

    def _deliver(self, packet: Packet) -> None:
        application = self.applications.get(packet.port)
        if application is None or not application.is_running:
            self.packet_dropped(packet, DropReason.NO_LISTENER)
            return
        self.packets_arrived += 1
        application.receive(packet)
        self.simulator.packet_arrived(packet)

    def packet_dropped(self, packet: Packet, reason: DropReason) -> None:
        """Handle packet drop at the node.

        Args:
            packet: The packet that was dropped.
            reason: Why it was dropped.
        """
        self.packets_dropped += 1
        self.simulator.packet_dropped(packet, reason, self)

    def __repr__(self) -> str:
        return f"Node({self.id})"
