"""Pytest configuration and shared fixtures for matrix_sim tests."""

import ipaddress
from typing import Any, Callable, Dict, List, Tuple

import pytest

from matrix_sim.core.substrate import Substrate


class FakeSubstrate(Substrate):
    """In-memory substrate that records every call made by the engine.

    Queue occupancy is set directly through ``queues`` and ``enqueued``;
    scheduled callbacks are kept in ``scheduled`` and fired by ``run``.
    """

    def __init__(self) -> None:
        self.time = 0.0
        self.devices: List[int] = []
        self.links: List[Tuple[int, int, float, float]] = []
        self.names: Dict[Tuple[int, int], str] = {}
        self.addresses: Dict[Tuple[int, int], ipaddress.IPv4Interface] = {}
        self.error_rates: Dict[Tuple[int, int], float] = {}
        self.capacities: Dict[Tuple[int, int], int] = {}
        self.drop_callbacks: Dict[Tuple[int, int], List[Callable[[Any], None]]] = {}
        self.positions: Dict[int, Tuple[float, float]] = {}
        self.routing_populated = False
        self.scheduled: List[Tuple[float, Callable[[], None]]] = []
        self.queues: Dict[Tuple[int, int], int] = {}
        self.enqueued: Dict[Tuple[int, int], int] = {}
        self.servers: List[Tuple[int, int, float, float]] = []
        self.clients: List[Dict[str, Any]] = []

    @property
    def now(self) -> float:
        return self.time

    @property
    def node_count(self) -> int:
        return len(self.devices)

    def create_nodes(self, count: int) -> None:
        self.devices.extend([1] * count)

    def install_link(self, a, b, data_rate, delay):
        device_a = self.devices[a]
        self.devices[a] += 1
        device_b = self.devices[b]
        self.devices[b] += 1
        self.links.append((a, b, data_rate, delay))
        return device_a, device_b

    def set_device_name(self, node, device, name):
        self.names[(node, device)] = name

    def assign_address(self, node, device, interface):
        self.addresses[(node, device)] = interface

    def set_receive_error_model(self, node, device, error_rate):
        self.error_rates[(node, device)] = error_rate

    def set_queue_capacity(self, node, device, capacity):
        self.capacities[(node, device)] = capacity

    def register_drop_callback(self, node, device, callback):
        self.drop_callbacks.setdefault((node, device), []).append(callback)

    def set_position(self, node, x, y):
        self.positions[node] = (x, y)

    def populate_routing_tables(self):
        self.routing_populated = True

    def schedule(self, time, callback):
        self.scheduled.append((time, callback))

    def device_count(self, node):
        return self.devices[node]

    def queued_packets(self, node, device):
        return self.queues.get((node, device), 0)

    def total_enqueued(self, node, device):
        return self.enqueued.get((node, device), 0)

    def install_udp_server(self, node, port, start, stop):
        self.servers.append((node, port, start, stop))

    def install_udp_client(
        self, node, destination, port, max_packets, interval, packet_size, start, stop
    ):
        self.clients.append(
            {
                "node": node,
                "destination": destination,
                "port": port,
                "max_packets": max_packets,
                "interval": interval,
                "packet_size": packet_size,
                "start": start,
                "stop": stop,
            }
        )

    def run(self, duration):
        # stable sort keeps registration order for equal times
        for time, callback in sorted(self.scheduled, key=lambda item: item[0]):
            if time >= duration:
                break
            self.time = time
            callback()
        self.time = duration
        return {}


@pytest.fixture
def fake_substrate():
    """A fresh recording substrate."""
    return FakeSubstrate()


@pytest.fixture
def write_file(tmp_path):
    """Write text to a file under tmp_path and return its path as a string."""

    def _write(name: str, content: str) -> str:
        path = tmp_path / name
        path.write_text(content)
        return str(path)

    return _write


@pytest.fixture
def small_inputs(write_file):
    """A 4-node ring of 2 endpoints and 2 relays, upper-triangular."""
    matrix = write_file(
        "adjacency.txt",
        "0 0 1 0\n"
        "0 0 0 1\n"
        "0 0 0 1\n"
        "0 0 0 0\n",
    )
    coordinates = write_file(
        "coordinates.txt",
        "0 0\n"
        "30 0\n"
        "10 5\n"
        "20 5\n",
    )
    return matrix, coordinates


@pytest.fixture
def substrate_factory():
    """Callable that returns a new recording substrate on every call."""
    return FakeSubstrate
