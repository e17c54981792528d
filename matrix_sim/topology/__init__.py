"""Topology construction for matrix_sim.

This module reads adjacency matrices and coordinate files, and builds the
node set, link set and address plan on a simulation substrate.
"""
