"""Logging for matrix_sim.

Every module logs through a child of the ``matrix_sim`` logger. Stage
progress ("Create Nodes.", "Run Simulation.") and the sampled series go out
at INFO, per matrix element decisions and parsed inputs at DEBUG.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return the logger of a matrix_sim module, usually ``get_logger(__name__)``."""
    return logging.getLogger(name)


def set_global_log_level(level: int) -> None:
    """Send matrix_sim records to stderr at ``level``.

    The CLI calls this once per run; ``--verbose`` selects DEBUG, which also
    dumps the adjacency matrix and coordinates as they were parsed.

    Args:
        level: Logging level, e.g. ``logging.INFO``.
    """
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    logging.getLogger("matrix_sim").setLevel(level)
