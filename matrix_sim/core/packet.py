"""Packet class for the SimPy substrate.

This module defines the Packet class, which represents a UDP datagram
traveling through the simulated point-to-point network.
"""

import ipaddress
from dataclasses import dataclass, field
from typing import Optional

# UDP (8) + IPv4 (20) + PPP (2) bytes added to every payload on the wire.
HEADER_SIZE = 30


@dataclass
class Packet:
    """Represents a network packet.

    Attributes:
        uid: Unique identifier, increasing in creation order from 1.
        source: Source interface address.
        destination: Destination interface address.
        port: Destination UDP port.
        payload_size: Size of the UDP payload in bytes.
        creation_time: Time when packet was created.
        arrival_time: Time when packet arrived at destination.
        dropped: Whether the packet was dropped.
        flow_id: Identifier for the flow (source-destination pair).
    """

    uid: int
    source: ipaddress.IPv4Address
    destination: ipaddress.IPv4Address
    port: int
    payload_size: int
    creation_time: float = 0
    arrival_time: Optional[float] = None
    dropped: bool = False
    flow_id: str = field(init=False)

    def __post_init__(self):
        """Initialize derived attributes after initialization."""
        self.flow_id = f"{self.source}-{self.destination}"

    @property
    def size(self) -> int:
        """Size on the wire in bytes."""
        return self.payload_size + HEADER_SIZE

    def get_total_delay(self) -> Optional[float]:
        """Calculate total delay if packet has arrived.

        Returns:
            Total delay in seconds or None if packet hasn't arrived.
        """
        if self.arrival_time is None:
            return None
        return self.arrival_time - self.creation_time
