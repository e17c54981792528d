"""Monitoring probes for matrix_sim.

This module provides the periodic queue-length sampler and the drop-event
counters that turn substrate state into time series.
"""
