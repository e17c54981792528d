"""Topology builder.

Turns a validated adjacency matrix and coordinate list into nodes, links and
addresses on a substrate. Every set matrix entry ``[i][j]`` becomes one link,
scanning the whole matrix row by row, so a symmetric matrix yields two
parallel links per connected pair.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from matrix_sim.config import LinkProfile, SimulationConfig
from matrix_sim.core.substrate import Substrate
from matrix_sim.log_config import get_logger
from matrix_sim.topology.addressing import SubnetAllocator
from matrix_sim.topology.model import (
    LinkClass,
    Topology,
    TopologyLink,
    TopologyNode,
    node_name,
    node_role,
)
from matrix_sim.topology.reader import (
    AdjacencyMatrix,
    CoordinateList,
    check_dimensions,
    is_upper_triangular,
)

logger = get_logger(__name__)


@dataclass
class BuildParameters:
    """Link classes and node counts used by the builder.

    Attributes:
        computer_count: Number of endpoints; they take the lowest indices.
        router_count: Number of relays.
        endpoint_relay: Profile of links whose first node is an endpoint.
        relay_relay: Profile of links whose first node is a relay.
        queue_capacity: Egress queue capacity of every link device.
        error_rate: Receive error rate on the second device of every link.
    """

    computer_count: int
    router_count: int
    endpoint_relay: LinkProfile = field(default_factory=LinkProfile)
    relay_relay: LinkProfile = field(
        default_factory=lambda: LinkProfile(data_rate="0.5Mbps", delay="2ms")
    )
    queue_capacity: int = 100000
    error_rate: float = 0.0

    @classmethod
    def from_config(cls, config: SimulationConfig) -> "BuildParameters":
        return cls(
            computer_count=config.computer_count,
            router_count=config.router_count,
            endpoint_relay=config.endpoint_relay,
            relay_relay=config.relay_relay,
            queue_capacity=config.max_queue_length,
            error_rate=config.error_rate,
        )

    def profile(self, link_class: LinkClass) -> LinkProfile:
        if link_class is LinkClass.ENDPOINT_RELAY:
            return self.endpoint_relay
        return self.relay_relay


class TopologyBuilder:
    """Builds a topology on a substrate.

    Attributes:
        substrate: Substrate the nodes and links are created on.
        params: Link classes and node counts.
        drop_callback: Called with every packet dropped by a link's receive
            error model, or None.
    """

    def __init__(
        self,
        substrate: Substrate,
        params: BuildParameters,
        drop_callback: Optional[Callable[[Any], None]] = None,
    ) -> None:
        self.substrate = substrate
        self.params = params
        self.drop_callback = drop_callback

    def build(self, matrix: AdjacencyMatrix, coordinates: CoordinateList) -> Topology:
        """Create nodes, links, addresses and positions.

        Args:
            matrix: Square adjacency matrix.
            coordinates: One ``(x, y)`` per matrix row.

        Returns:
            The built topology.

        Raises:
            DimensionMismatch: If the coordinate count differs from the
                matrix dimension.
            ValueError: If there are more endpoints than nodes.
        """
        check_dimensions(matrix, coordinates)

        n_nodes = len(matrix)
        computer_count = self.params.computer_count
        if not 0 <= computer_count <= n_nodes:
            raise ValueError(
                f"computer_count {computer_count} does not fit a matrix of {n_nodes} nodes"
            )
        if computer_count + self.params.router_count != n_nodes:
            logger.warning(
                "%d endpoints and %d relays do not add up to %d nodes",
                computer_count,
                self.params.router_count,
                n_nodes,
            )
        if not is_upper_triangular(matrix):
            logger.warning(
                "Adjacency matrix is not upper-triangular, symmetric entries become parallel links"
            )

        logger.info("Create Nodes.")
        self.substrate.create_nodes(n_nodes)
        nodes = [
            TopologyNode(
                index=i,
                role=node_role(i, computer_count),
                name=node_name(i, computer_count),
            )
            for i in range(n_nodes)
        ]

        logger.info("Create Links Between Nodes.")
        allocator = SubnetAllocator()
        links: List[TopologyLink] = []
        addresses: Dict[int, list] = {i: [] for i in range(n_nodes)}

        for i, row in enumerate(matrix):
            for j, connected in enumerate(row):
                if not connected:
                    logger.debug("matrix element [%d][%d] is 0", i, j)
                    continue

                link = self._install_link(len(links), i, j, nodes, allocator)
                links.append(link)
                addresses[i].append(link.address_a)
                addresses[j].append(link.address_b)
                allocator.new_network()
                logger.debug("matrix element [%d][%d] is 1", i, j)

        logger.info("Number of links in the adjacency matrix is: %d", len(links))
        logger.info("Number of all nodes is: %d", self.substrate.node_count)

        logger.info("Initialize Global Routing.")
        self.substrate.populate_routing_tables()

        logger.info("Allocate Positions to Nodes.")
        placed = []
        for node, (x, y) in zip(nodes, coordinates):
            # y is negated so that the origin sits on the bottom left corner
            self.substrate.set_position(node.index, x, -y)
            placed.append(
                TopologyNode(node.index, node.role, node.name, position=(x, -y))
            )

        return Topology(
            nodes=placed,
            links=links,
            computer_count=computer_count,
            router_count=self.params.router_count,
            addresses=addresses,
        )

    def _install_link(
        self,
        index: int,
        i: int,
        j: int,
        nodes: List[TopologyNode],
        allocator: SubnetAllocator,
    ) -> TopologyLink:
        link_class = (
            LinkClass.ENDPOINT_RELAY
            if i < self.params.computer_count
            else LinkClass.RELAY_RELAY
        )
        profile = self.params.profile(link_class)
        data_rate, delay = profile.bps, profile.seconds
        device_a, device_b = self.substrate.install_link(i, j, data_rate, delay)

        name_ab = f"{nodes[i].name}--{nodes[j].name}"
        name_ba = f"{nodes[j].name}--{nodes[i].name}"
        self.substrate.set_device_name(i, device_a, name_ab)
        self.substrate.set_device_name(j, device_b, name_ba)

        address_a, address_b = allocator.assign()
        self.substrate.assign_address(i, device_a, address_a)
        self.substrate.assign_address(j, device_b, address_b)

        capacity = self.params.queue_capacity
        self.substrate.set_queue_capacity(i, device_a, capacity)
        self.substrate.set_queue_capacity(j, device_b, capacity)

        self.substrate.set_receive_error_model(j, device_b, self.params.error_rate)
        if self.drop_callback is not None:
            self.substrate.register_drop_callback(j, device_b, self.drop_callback)

        return TopologyLink(
            index=index,
            a=i,
            b=j,
            link_class=link_class,
            data_rate=data_rate,
            delay=delay,
            subnet=allocator.current,
            address_a=address_a,
            address_b=address_b,
            queue_capacity=capacity,
            error_rate=self.params.error_rate,
            device_a=device_a,
            device_b=device_b,
            name_ab=name_ab,
            name_ba=name_ba,
        )
