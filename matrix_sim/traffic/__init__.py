"""Traffic generation for matrix_sim.

This module provides the randomized, time-windowed flow scheduler that pairs
endpoints and installs UDP sources and sinks on the substrate.
"""
