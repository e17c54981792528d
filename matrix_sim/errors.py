"""Exceptions raised while reading inputs and building topologies."""


class MatrixSimError(Exception):
    """Base class for matrix_sim input errors."""


class MalformedInput(MatrixSimError, ValueError):
    """An input file is missing, holds a bad token, or is not rectangular."""


class DimensionMismatch(MatrixSimError, ValueError):
    """The coordinate list and the adjacency matrix disagree on node count."""
