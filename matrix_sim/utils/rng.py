"""Random generators for one run.

A run is seeded once; the flow scheduler and the substrate's error models
draw from independent child streams of that seed so that changing one does
not shift the other.
"""

from typing import List, Optional

import numpy as np


def spawn_generators(seed: Optional[int], count: int) -> List[np.random.Generator]:
    """Create ``count`` independent generators from one seed.

    Args:
        seed: Run seed, or None for fresh OS entropy.
        count: Number of generators.

    Returns:
        Generators whose streams do not overlap.
    """
    return [np.random.default_rng(child) for child in np.random.SeedSequence(seed).spawn(count)]
