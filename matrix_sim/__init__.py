"""Matrix-driven topology and traffic generation.

This package reads an adjacency matrix and node coordinates, builds a
point-to-point topology on a simulation substrate, schedules randomized
endpoint-to-endpoint flows and samples egress queue occupancy over time.
"""

__version__ = "0.1.0"
