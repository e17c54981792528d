"""Receive error models for point-to-point devices."""

import numpy as np

from matrix_sim.core.enums import ErrorUnit
from matrix_sim.core.packet import Packet


class RateErrorModel:
    """Corrupts packets at a fixed rate per unit.

    Attributes:
        error_rate: Probability that one unit is corrupted.
        unit: Bit, byte or packet.
        enabled: Whether the model drops anything at all.
    """

    def __init__(
        self,
        error_rate: float,
        rng: np.random.Generator,
        unit: ErrorUnit = ErrorUnit.BYTE,
    ) -> None:
        if not 0.0 <= error_rate <= 1.0:
            raise ValueError(f"error_rate must be within [0, 1], got {error_rate}")
        self.error_rate = error_rate
        self.rng = rng
        self.unit = unit
        self.enabled = True

    def packet_error_probability(self, packet: Packet) -> float:
        """Probability that at least one unit of ``packet`` is corrupted."""
        if self.unit is ErrorUnit.PACKET:
            return self.error_rate
        units = packet.size * 8 if self.unit is ErrorUnit.BIT else packet.size
        return 1.0 - (1.0 - self.error_rate) ** units

    def is_corrupt(self, packet: Packet) -> bool:
        if not self.enabled or self.error_rate <= 0.0:
            return False
        return bool(self.rng.random() < self.packet_error_probability(packet))
