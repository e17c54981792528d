"""Simulation substrate for matrix_sim.

This module contains the abstract Substrate interface and the SimPy based
NetworkSimulator that implements it, including Packet, PointToPointDevice,
Node and the UDP applications.
"""
