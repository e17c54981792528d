"""Unit parsing for link and timing attributes.

Link profiles are written the way network simulators usually take them, as
strings such as ``"10Mbps"`` or ``"2ms"``. These helpers turn them into bits
per second and seconds.
"""

import re
from typing import Dict, Union

_NUMBER_WITH_UNIT = re.compile(r"^\s*([0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?)\s*([A-Za-z]*)\s*$")

DATA_RATE_UNITS: Dict[str, float] = {
    "bps": 1.0,
    "kbps": 1e3,
    "Kbps": 1e3,
    "Mbps": 1e6,
    "Gbps": 1e9,
    "Bps": 8.0,
    "KBps": 8e3,
    "MBps": 8e6,
    "GBps": 8e9,
}

TIME_UNITS: Dict[str, float] = {
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "ns": 1e-9,
    "min": 60.0,
}


def _parse(value: Union[str, float, int], units: Dict[str, float], default: str) -> float:
    if isinstance(value, (int, float)):
        return float(value)

    match = _NUMBER_WITH_UNIT.match(value)
    if match is None:
        raise ValueError(f"Cannot parse quantity {value!r}")

    number, unit = match.groups()
    unit = unit or default
    if unit not in units:
        raise ValueError(f"Unknown unit {unit!r} in {value!r}")
    return float(number) * units[unit]


def parse_data_rate(value: Union[str, float, int]) -> float:
    """Parse a data rate into bits per second.

    Args:
        value: A string like ``"0.5Mbps"`` or a number already in bit/s.

    Returns:
        The rate in bits per second.

    Raises:
        ValueError: If the string is malformed or the unit is unknown.
    """
    return _parse(value, DATA_RATE_UNITS, "bps")


def parse_time(value: Union[str, float, int]) -> float:
    """Parse a duration into seconds.

    Args:
        value: A string like ``"2ms"`` or a number already in seconds.

    Returns:
        The duration in seconds.

    Raises:
        ValueError: If the string is malformed or the unit is unknown.
    """
    return _parse(value, TIME_UNITS, "s")


def format_data_rate(bps: float) -> str:
    """Format a rate the way Link reprs show it, e.g. ``10.0Mbps``."""
    return f"{bps / 1e6:.1f}Mbps"
