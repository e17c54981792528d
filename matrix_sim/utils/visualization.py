"""Plots of matrix_sim runs.

This module draws the built topology at its node positions and plots the
sampled queue and drop time series.
"""

import os
from typing import Any, Sequence, Tuple

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import networkx as nx

from matrix_sim.topology.model import NodeRole, Topology


def save_topology_visualization(
    topology: Topology,
    filename: str,
    figsize: Tuple[int, int] = (10, 8),
) -> None:
    """Save the topology drawn at the node positions.

    Args:
        topology: Built topology.
        filename: Output filename.
        figsize: Figure size as (width, height) in inches.
    """
    fig = plt.figure(figsize=figsize)

    graph = topology.to_graph()
    pos = {node.index: node.position for node in topology.nodes}
    colors = [
        "lightblue" if node.role is NodeRole.ENDPOINT else "lightgray"
        for node in topology.nodes
    ]

    nx.draw_networkx_nodes(graph, pos, node_size=300, node_color=colors)
    nx.draw_networkx_edges(graph, pos, edge_color="gray")
    nx.draw_networkx_labels(
        graph, pos, labels={node.index: node.name for node in topology.nodes}, font_size=8
    )

    plt.axis("off")
    plt.tight_layout()

    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig.savefig(filename)
    plt.close(fig)


def plot_time_series(
    samples: Sequence[Any],
    attribute: str,
    filename: str,
    title: str = "",
    ylabel: str = "",
) -> None:
    """Plot one attribute of a sample series against time.

    Args:
        samples: Samples with a ``time`` attribute.
        attribute: Name of the plotted attribute.
        filename: Output filename.
        title: Plot title.
        ylabel: Label of the vertical axis.
    """
    fig, ax = plt.subplots(figsize=(12, 5))

    times = [sample.time for sample in samples]
    values = [getattr(sample, attribute) for sample in samples]
    ax.plot(times, values, linewidth=1)
    ax.set_xlabel("Time (s)")
    ax.set_ylabel(ylabel or attribute)
    if title:
        ax.set_title(title)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig.savefig(filename)
    plt.close(fig)
