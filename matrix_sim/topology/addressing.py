"""Per-link subnet allocation.

Every point-to-point link gets its own /24 carved sequentially out of a base
network, starting at 10.0.0.0/24. The first host goes to the link's first
device and the second host to the peer.
"""

import ipaddress
from typing import Tuple


class SubnetAllocator:
    """Hands out consecutive subnets of a fixed prefix length.

    Attributes:
        prefix: Prefix length of every allocated subnet.
        current: Subnet that the next assign() call draws from.
    """

    def __init__(self, base: str = "10.0.0.0", prefix: int = 24) -> None:
        """Initialize the allocator.

        Args:
            base: First network address.
            prefix: Prefix length of each subnet.
        """
        self.prefix = prefix
        self.current = ipaddress.IPv4Network((base, prefix))

    def assign(self) -> Tuple[ipaddress.IPv4Interface, ipaddress.IPv4Interface]:
        """Return the first two host interfaces of the current subnet."""
        hosts = self.current.hosts()
        first, second = next(hosts), next(hosts)
        return (
            ipaddress.IPv4Interface((first, self.prefix)),
            ipaddress.IPv4Interface((second, self.prefix)),
        )

    def new_network(self) -> ipaddress.IPv4Network:
        """Advance to the next subnet and return it.

        Raises:
            ValueError: If the IPv4 address space is exhausted.
        """
        next_address = int(self.current.network_address) + self.current.num_addresses
        if next_address > int(ipaddress.IPv4Address("255.255.255.255")):
            raise ValueError(f"No subnet left after {self.current}")
        self.current = ipaddress.IPv4Network((next_address, self.prefix))
        return self.current
