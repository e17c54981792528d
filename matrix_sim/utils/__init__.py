"""Utilities for matrix_sim: unit parsing, result persistence and plots."""
