"""Run configuration for matrix_sim.

The defaults reproduce the reference experiment: 10Mbps endpoint links,
0.5Mbps relay backbone, 2ms propagation delay, 120s of traffic in 0.1s
decision windows and queue sampling every 0.2s.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

from matrix_sim.utils.units import parse_data_rate, parse_time


@dataclass
class LinkProfile:
    """Rate and delay of one link class.

    Attributes:
        data_rate: Device data rate, e.g. ``"10Mbps"``.
        delay: Channel propagation delay, e.g. ``"2ms"``.
    """

    data_rate: str = "10Mbps"
    delay: str = "2ms"

    @property
    def bps(self) -> float:
        return parse_data_rate(self.data_rate)

    @property
    def seconds(self) -> float:
        return parse_time(self.delay)


@dataclass
class TrafficConfig:
    """UDP flow parameters shared by every scheduled flow."""

    packet_size: int = 210
    packet_interval: float = 0.00375
    max_packets: int = 1000
    decision_interval: float = 0.1
    port: int = 9


@dataclass
class MonitorConfig:
    """Probe parameters.

    Attributes:
        queue_interval: Time between queue-length samples.
        drop_report_every: Drop callbacks between two drop-ratio samples.
        monitored: Half-open ``(first, last)`` node index range to sample,
            or None for every node.
        received_probe: Whether to also sample the received-packet rate.
    """

    queue_interval: float = 0.2
    drop_report_every: int = 100
    monitored: Optional[Tuple[int, int]] = None
    received_probe: bool = False


@dataclass
class SimulationConfig:
    """Everything needed to build the topology and run one experiment."""

    adjacency_file: str = "data/adjacency_matrix.txt"
    coordinates_file: str = "data/node_coordinates.txt"
    computer_count: int = 4
    router_count: int = 4
    duration: float = 120.0
    max_queue_length: int = 100000
    endpoint_relay: LinkProfile = field(default_factory=LinkProfile)
    relay_relay: LinkProfile = field(
        default_factory=lambda: LinkProfile(data_rate="0.5Mbps", delay="2ms")
    )
    error_rate: float = 0.0
    seed: Optional[int] = None
    traffic: TrafficConfig = field(default_factory=TrafficConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    output_dir: str = "results"

    def validate(self) -> None:
        """Check the parameters that do not depend on the input files.

        Raises:
            ValueError: If any parameter is out of range.
        """
        if self.computer_count < 2:
            raise ValueError(
                f"At least two endpoints are needed to pair flows, got {self.computer_count}"
            )
        if self.router_count < 0:
            raise ValueError(f"router_count must be non-negative, got {self.router_count}")
        if self.duration <= 0:
            raise ValueError(f"duration must be positive, got {self.duration}")
        if self.max_queue_length < 1:
            raise ValueError(
                f"max_queue_length must be at least 1, got {self.max_queue_length}"
            )
        if not 0.0 <= self.error_rate <= 1.0:
            raise ValueError(f"error_rate must be within [0, 1], got {self.error_rate}")
        for profile in (self.endpoint_relay, self.relay_relay):
            if profile.bps <= 0:
                raise ValueError(f"Link data rate must be positive: {profile.data_rate}")
            if profile.seconds < 0:
                raise ValueError(f"Link delay must be non-negative: {profile.delay}")
        if self.traffic.packet_size <= 0 or self.traffic.packet_interval <= 0:
            raise ValueError("packet_size and packet_interval must be positive")
        if self.traffic.decision_interval <= 0 or self.monitor.queue_interval <= 0:
            raise ValueError("decision_interval and queue_interval must be positive")
        if self.monitor.drop_report_every < 1:
            raise ValueError("drop_report_every must be at least 1")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _merge(cls, values: Dict[str, Any]):
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} keys: {sorted(unknown)}")
    return cls(**values)


def config_from_dict(values: Dict[str, Any]) -> SimulationConfig:
    """Build a SimulationConfig from a nested dictionary.

    Args:
        values: Mapping with the SimulationConfig field names; nested
            sections may be given as dictionaries.

    Returns:
        The configuration object.

    Raises:
        ValueError: If a key does not name a configuration field.
    """
    values = dict(values)
    for key in ("endpoint_relay", "relay_relay"):
        if key in values:
            values[key] = _merge(LinkProfile, values[key])
    if "traffic" in values:
        values["traffic"] = _merge(TrafficConfig, values["traffic"])
    if "monitor" in values:
        monitor = dict(values["monitor"])
        if monitor.get("monitored") is not None:
            monitor["monitored"] = tuple(monitor["monitored"])
        values["monitor"] = _merge(MonitorConfig, monitor)
    return _merge(SimulationConfig, values)


def load_config(filename: str) -> SimulationConfig:
    """Load a SimulationConfig from a JSON file.

    Args:
        filename: Path to the JSON document.

    Returns:
        The configuration object.
    """
    with open(filename) as f:
        return config_from_dict(json.load(f))
