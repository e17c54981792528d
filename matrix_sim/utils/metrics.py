"""Result persistence for matrix_sim runs.

This module writes the sampled time series as CSV files and the run summary
as JSON into a results directory.
"""

import csv
import json
import os
from dataclasses import astuple, fields, is_dataclass
from typing import Any, Dict, Sequence


def save_metrics_to_json(
    metrics: Dict[str, Any], filename: str = "results/metrics.json"
) -> None:
    """Save metrics to a JSON file.

    Args:
        metrics: Dictionary of metrics to save.
        filename: Output filename.
    """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    # Convert non-serializable types
    serializable_metrics = {}
    for key, value in metrics.items():
        if isinstance(value, dict):
            serializable_metrics[key] = {str(k): v for k, v in value.items()}
        elif isinstance(value, tuple):
            serializable_metrics[key] = list(value)
        else:
            serializable_metrics[key] = value

    with open(filename, "w") as f:
        json.dump(serializable_metrics, f, indent=2, default=str)


def save_samples_to_csv(samples: Sequence[Any], filename: str) -> int:
    """Save a time series of sample dataclasses to a CSV file.

    The header is taken from the dataclass fields of the first sample; an
    empty series writes no file.

    Args:
        samples: Samples of one dataclass type, in time order.
        filename: Output filename.

    Returns:
        The number of rows written.
    """
    if not samples:
        return 0
    if not is_dataclass(samples[0]):
        raise TypeError(f"Expected dataclass samples, got {type(samples[0]).__name__}")

    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filename, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow([field.name for field in fields(samples[0])])
        for sample in samples:
            writer.writerow(astuple(sample))

    return len(samples)


def summarize_samples(samples: Sequence[Any], attribute: str) -> Dict[str, float]:
    """Return count, mean and peak of one sample attribute."""
    values = [getattr(sample, attribute) for sample in samples]
    if not values:
        return {"count": 0, "mean": 0.0, "max": 0.0}
    return {
        "count": len(values),
        "mean": sum(values) / len(values),
        "max": max(values),
    }
