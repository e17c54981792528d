"""Network simulator class for the SimPy substrate.

This module defines the NetworkSimulator class, which implements the
Substrate interface on top of a SimPy environment: nodes with point-to-point
devices, drop-tail queues, receive error models, UDP applications and static
hop-count routing computed with networkx.
"""

import ipaddress
import itertools
from collections import Counter
from typing import Any, Callable, Dict, List, Optional, Tuple

import networkx as nx
import numpy as np
import simpy

from matrix_sim.core.applications import UdpClient, UdpServer
from matrix_sim.core.enums import DropReason
from matrix_sim.core.error_model import RateErrorModel
from matrix_sim.core.link import PointToPointChannel, PointToPointDevice
from matrix_sim.core.node import Node
from matrix_sim.core.packet import Packet
from matrix_sim.core.substrate import Substrate
from matrix_sim.log_config import get_logger

logger = get_logger(__name__)


class NetworkSimulator(Substrate):
    """Network simulation environment.

    Attributes:
        env: SimPy environment.
        rng: Random generator shared by the receive error models.
        graph: NetworkX multigraph with one edge per installed link.
        nodes: Node objects indexed by node ID.
        channels: Installed channels in creation order.
        clients: Installed UDP clients.
        packets_created: Number of packets created so far.
        packets_received: Number of packets delivered to a listening server.
        bytes_received: Payload bytes delivered.
        total_delay: Sum of the end-to-end delays of delivered packets.
        drop_counts: Number of dropped packets per reason.
        metrics: Performance metrics for the simulation.
    """

    def __init__(
        self,
        env: Optional[simpy.Environment] = None,
        seed: Optional[int] = 42,
        rng: Optional[np.random.Generator] = None,
    ):
        """Initialize the network simulator.

        Args:
            env: SimPy environment, a new one if None.
            seed: Random seed for the error models, ignored if rng is given.
            rng: Random generator for the error models.
        """
        self.env = env if env is not None else simpy.Environment()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.graph = nx.MultiGraph()
        self.nodes: List[Node] = []
        self.channels: List[PointToPointChannel] = []
        self.clients: List[UdpClient] = []
        self.packets_created = 0
        self.packets_received = 0
        self.bytes_received = 0
        self.total_delay = 0.0
        self.drop_counts: Counter = Counter()
        self._uids = itertools.count(1)

        self.metrics: Dict[str, Any] = {}

    @property
    def now(self) -> float:
        return self.env.now

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    def create_nodes(self, count: int) -> None:
        for _ in range(count):
            node = Node(self.env, len(self.nodes), self)
            self.nodes.append(node)
            self.graph.add_node(node.id)

    def _node(self, node: int) -> Node:
        if not 0 <= node < len(self.nodes):
            raise ValueError(f"Node {node} does not exist")
        return self.nodes[node]

    def _device(self, node: int, device: int) -> PointToPointDevice:
        devices = self._node(node).devices
        if not 1 <= device < len(devices):
            raise ValueError(f"Node {node} has no point-to-point device {device}")
        return devices[device]

    def install_link(
        self, a: int, b: int, data_rate: float, delay: float
    ) -> Tuple[int, int]:
        """Add a BIDIRECTIONAL point-to-point link between nodes.

        Args:
            a: First node ID.
            b: Second node ID.
            data_rate: Device data rate in bits per second.
            delay: Propagation delay in seconds.

        Returns:
            Device index of the link on ``a`` and on ``b``.
        """
        if data_rate <= 0:
            raise ValueError(f"data_rate must be positive, got {data_rate}")
        node_a, node_b = self._node(a), self._node(b)

        channel = PointToPointChannel(self.env, delay)
        device_a = PointToPointDevice(self.env, node_a, len(node_a.devices), data_rate)
        node_a.add_device(device_a)
        device_b = PointToPointDevice(self.env, node_b, len(node_b.devices), data_rate)
        node_b.add_device(device_b)
        channel.attach(device_a)
        channel.attach(device_b)
        self.channels.append(channel)

        self.graph.add_edge(
            a,
            b,
            key=len(self.channels) - 1,
            capacity=data_rate,
            delay=delay,
            devices=(device_a.index, device_b.index),
        )
        return device_a.index, device_b.index

    def set_device_name(self, node: int, device: int, name: str) -> None:
        self._device(node, device).name = name

    def assign_address(
        self, node: int, device: int, interface: ipaddress.IPv4Interface
    ) -> None:
        self._device(node, device).interface = interface

    def set_receive_error_model(self, node: int, device: int, error_rate: float) -> None:
        self._device(node, device).receive_error_model = RateErrorModel(error_rate, self.rng)

    def set_queue_capacity(self, node: int, device: int, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"Queue capacity must be at least 1, got {capacity}")
        self._device(node, device).queue.max_packets = capacity

    def register_drop_callback(
        self, node: int, device: int, callback: Callable[[Packet], None]
    ) -> None:
        self._device(node, device).rx_drop_callbacks.append(callback)

    def set_position(self, node: int, x: float, y: float) -> None:
        self._node(node).position = (x, y)

    def populate_routing_tables(self) -> None:
        """Compute hop-count shortest paths and set routing tables for all nodes.

        Every interface address of a destination node is routed through the
        first device that leads to the next hop on the shortest path.
        """
        shortest_paths = nx.all_pairs_shortest_path(self.graph)

        for source, paths in shortest_paths:
            node = self.nodes[source]
            egress: Dict[int, PointToPointDevice] = {}
            for device in node.devices[1:]:
                egress.setdefault(device.peer.node.id, device)

            routing_table = {}
            for destination, path in paths.items():
                if source == destination or len(path) < 2:
                    continue
                device = egress[path[1]]
                for interface in self.nodes[destination].addresses:
                    routing_table[interface.ip] = device
            node.set_routing_table(routing_table)

        logger.debug("Routing tables populated for %d nodes", len(self.nodes))

    def schedule(self, time: float, callback: Callable[[], None]) -> None:
        if time < self.env.now:
            raise ValueError(f"Cannot schedule at {time}, simulation time is {self.env.now}")
        event = self.env.timeout(time - self.env.now)
        event.callbacks.append(lambda _: callback())

    def device_count(self, node: int) -> int:
        return len(self._node(node).devices)

    def queued_packets(self, node: int, device: int) -> int:
        return self._node(node).devices[device].queue.n_packets

    def total_enqueued(self, node: int, device: int) -> int:
        return self._node(node).devices[device].queue.total_received

    def install_udp_server(self, node: int, port: int, start: float, stop: float) -> None:
        self._node(node).applications[port] = UdpServer(self.env, port, start, stop)

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
        client = UdpClient(
            self.env,
            self,
            self._node(node),
            destination,
            port,
            max_packets,
            interval,
            packet_size,
            start,
            stop,
        )
        self.clients.append(client)

    def create_packet(
        self,
        node: Node,
        destination: ipaddress.IPv4Address,
        port: int,
        payload_size: int,
    ) -> Packet:
        """Create a new packet originating at ``node``.

        Args:
            node: Sending node; its first interface address is the source.
            destination: Destination address.
            port: Destination port.
            payload_size: Size of the payload in bytes.

        Returns:
            The created Packet object.
        """
        addresses = node.addresses
        source = addresses[0].ip if addresses else ipaddress.IPv4Address("127.0.0.1")
        packet = Packet(next(self._uids), source, destination, port, payload_size, self.env.now)
        self.packets_created += 1
        return packet

    def packet_arrived(self, packet: Packet) -> None:
        """Account for a packet delivered to a listening server."""
        packet.arrival_time = self.env.now
        self.packets_received += 1
        self.bytes_received += packet.payload_size
        self.total_delay += packet.get_total_delay()

    def packet_dropped(self, packet: Packet, reason: DropReason, node: Node) -> None:
        """Handle packet drop.

        Args:
            packet: The packet that was dropped.
            reason: Reason for dropping the packet.
            node: Node where the packet was dropped.
        """
        packet.dropped = True
        self.drop_counts[reason] += 1
        logger.debug("Packet %d dropped at node %d: %s", packet.uid, node.id, reason.value)

    def calculate_metrics(self) -> Dict[str, Any]:
        """Calculate performance metrics over the elapsed simulation time.

        Returns:
            Dictionary of calculated metrics.
        """
        simulation_time = self.env.now
        if simulation_time <= 0:
            return self.metrics

        packets_dropped = sum(self.drop_counts.values())
        average_delay = (
            self.total_delay / self.packets_received if self.packets_received else 0
        )

        total_packets = self.packets_received + packets_dropped
        packet_loss_rate = packets_dropped / total_packets if total_packets > 0 else 0

        link_utilization: Dict[str, float] = {}
        for channel in self.channels:
            for device in channel.devices:
                max_bits = device.data_rate * simulation_time
                name = device.name or f"{device.node.id}:{device.index}"
                link_utilization[name] = device.bytes_sent * 8 / max_bits

        self.metrics["packets_sent"] = self.packets_created
        self.metrics["packets_received"] = self.packets_received
        self.metrics["packets_dropped"] = packets_dropped
        self.metrics["throughput"] = self.bytes_received / simulation_time
        self.metrics["average_delay"] = average_delay
        self.metrics["packet_loss_rate"] = packet_loss_rate
        self.metrics["packet_drops"] = {
            reason.value: count for reason, count in self.drop_counts.items()
        }
        self.metrics["link_utilization"] = link_utilization

        return self.metrics

    def run(self, duration: float) -> Dict[str, Any]:
        """Run the simulation until ``duration``.

        Args:
            duration: Simulation end time in seconds.

        Returns:
            Dictionary of calculated metrics.
        """
        self.env.run(until=duration)
        return self.calculate_metrics()
