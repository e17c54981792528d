"""Topology records produced by the builder.

These are plain data: the builder creates them once and nothing mutates them
afterwards. Substrate objects (devices, queues) are referenced by index only.
"""

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import networkx as nx


class NodeRole(Enum):
    """Role of a node in the topology.

    Attributes:
        ENDPOINT: Originates and terminates traffic.
        RELAY: Only forwards traffic.
    """

    ENDPOINT = "Endpoint"
    RELAY = "Relay"


class LinkClass(Enum):
    """Rate/delay profile of a link, chosen by the role of its first node."""

    ENDPOINT_RELAY = "Endpoint-Relay"
    RELAY_RELAY = "Relay-Relay"


def node_role(index: int, computer_count: int) -> NodeRole:
    return NodeRole.ENDPOINT if index < computer_count else NodeRole.RELAY


def node_name(index: int, computer_count: int) -> str:
    """Display name of a node: ``endpoint{i+1}`` or ``relay{i-computers+1}``."""
    if index < computer_count:
        return f"endpoint{index + 1}"
    return f"relay{index - computer_count + 1}"


@dataclass(frozen=True)
class TopologyNode:
    """A node of the built topology.

    Attributes:
        index: Position in the adjacency matrix.
        role: Endpoint or relay.
        name: Display name.
        position: ``(x, -y)`` of the input coordinate.
    """

    index: int
    role: NodeRole
    name: str
    position: Optional[Tuple[float, float]] = None


@dataclass(frozen=True)
class TopologyLink:
    """A point-to-point link between matrix nodes ``a`` and ``b``.

    Attributes:
        index: Creation order of the link.
        a: Row index of the matrix entry.
        b: Column index of the matrix entry.
        link_class: Endpoint-relay or relay-relay.
        data_rate: Device data rate in bits per second.
        delay: Propagation delay in seconds.
        subnet: The /24 owned by this link.
        address_a: Interface address of ``a``'s device.
        address_b: Interface address of ``b``'s device.
        queue_capacity: Egress queue capacity of both devices in packets.
        error_rate: Receive error rate on ``b``'s device.
        device_a: Device index of the link on node ``a``.
        device_b: Device index of the link on node ``b``.
        name_ab: Name of ``a``'s device, ``"{a}--{b}"``.
        name_ba: Name of ``b``'s device, ``"{b}--{a}"``.
    """

    index: int
    a: int
    b: int
    link_class: LinkClass
    data_rate: float
    delay: float
    subnet: ipaddress.IPv4Network
    address_a: ipaddress.IPv4Interface
    address_b: ipaddress.IPv4Interface
    queue_capacity: int
    error_rate: float
    device_a: int
    device_b: int
    name_ab: str
    name_ba: str


@dataclass
class Topology:
    """Nodes, links and addresses of a built topology."""

    nodes: List[TopologyNode]
    links: List[TopologyLink]
    computer_count: int
    router_count: int
    addresses: Dict[int, List[ipaddress.IPv4Interface]] = field(default_factory=dict)

    @property
    def link_count(self) -> int:
        return len(self.links)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def endpoints(self) -> List[TopologyNode]:
        return [node for node in self.nodes if node.role is NodeRole.ENDPOINT]

    def node_address(self, index: int) -> Optional[ipaddress.IPv4Address]:
        """Return the address of a node's first interface, or None if it has none."""
        interfaces = self.addresses.get(index)
        if not interfaces:
            return None
        return interfaces[0].ip

    def link_classes(self) -> List[LinkClass]:
        return [link.link_class for link in self.links]

    def to_graph(self) -> nx.MultiGraph:
        """Export the topology as a networkx MultiGraph keyed by node index."""
        graph = nx.MultiGraph()
        for node in self.nodes:
            graph.add_node(node.index, name=node.name, role=node.role.value, pos=node.position)
        for link in self.links:
            graph.add_edge(
                link.a,
                link.b,
                key=link.index,
                link_class=link.link_class.value,
                capacity=link.data_rate,
                delay=link.delay,
                subnet=str(link.subnet),
            )
        return graph
