"""Enumerations for the SimPy substrate."""

from enum import Enum


class ErrorUnit(Enum):
    """Unit the error rate of a RateErrorModel applies to.

    Attributes:
        BIT: Each bit is corrupted independently.
        BYTE: Each byte is corrupted independently.
        PACKET: The whole packet is corrupted at once.
    """

    BIT = 1
    BYTE = 2
    PACKET = 3


class DropReason(Enum):
    """Why the substrate discarded a packet."""

    QUEUE_OVERFLOW = "Queue overflow"
    PHY_RX_ERROR = "Receive error"
    NO_ROUTE = "No route to destination"
    NO_LISTENER = "Port unreachable"
