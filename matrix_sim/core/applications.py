"""UDP applications for the SimPy substrate.

A UdpServer counts datagrams delivered to its port while it is running. A
UdpClient sends fixed size datagrams at a constant interval to one address
until it reaches its packet budget or its stop time, whichever comes first.
"""

import ipaddress
from typing import TYPE_CHECKING

import simpy

from matrix_sim.core.packet import Packet

if TYPE_CHECKING:
    from matrix_sim.core.node import Node
    from matrix_sim.core.simulator import NetworkSimulator


class UdpServer:
    """Packet sink bound to one port of a node.

    Attributes:
        env: SimPy environment.
        port: UDP port it listens on.
        start: Time the server starts accepting datagrams.
        stop: Time the server stops accepting datagrams.
        received: Datagrams accepted.
        bytes_received: Payload bytes accepted.
    """

    def __init__(self, env: simpy.Environment, port: int, start: float, stop: float) -> None:
        self.env = env
        self.port = port
        self.start = start
        self.stop = stop
        self.received = 0
        self.bytes_received = 0

    @property
    def is_running(self) -> bool:
        return self.start <= self.env.now < self.stop

    def receive(self, packet: Packet) -> None:
        self.received += 1
        self.bytes_received += packet.payload_size


class UdpClient:
    """Constant bit rate UDP source.

    Attributes:
        env: SimPy environment.
        node: Node the client runs on.
        destination: Destination address.
        port: Destination port.
        max_packets: Upper bound on datagrams sent.
        interval: Time between two datagrams.
        packet_size: Payload size in bytes.
        start: Time of the first datagram.
        stop: No datagram is sent at or after this time.
        sent: Datagrams sent so far.
    """

    def __init__(
        self,
        env: simpy.Environment,
        simulator: "NetworkSimulator",
        node: "Node",
        destination: ipaddress.IPv4Address,
        port: int,
        max_packets: int,
        interval: float,
        packet_size: int,
        start: float,
        stop: float,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if stop < start:
            raise ValueError(f"stop time {stop} is before start time {start}")
        self.env = env
        self.simulator = simulator
        self.node = node
        self.destination = destination
        self.port = port
        self.max_packets = max_packets
        self.interval = interval
        self.packet_size = packet_size
        self.start = start
        self.stop = stop
        self.sent = 0
        self.process = env.process(self._run())

    def _run(self):
        if self.start > self.env.now:
            yield self.env.timeout(self.start - self.env.now)

        while self.sent < self.max_packets and self.env.now < self.stop:
            packet = self.simulator.create_packet(
                self.node, self.destination, self.port, self.packet_size
            )
            self.sent += 1
            self.node.send(packet)
            yield self.env.timeout(self.interval)
