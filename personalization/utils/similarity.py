"""
Similarity utilities: cosine similarity for the content-similarity recommender.
"""

from typing import Sequence

import numpy as np


def cosine_similarity(v1: Sequence[float], v2: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors.

    Vectors of different length are incomparable and score 0, as do empty or
    zero-magnitude vectors.
    """
    if len(v1) == 0 or len(v2) == 0 or len(v1) != len(v2):
        return 0.0
    v1 = np.asarray(v1, dtype=float)
    v2 = np.asarray(v2, dtype=float)
    norm_product = np.linalg.norm(v1) * np.linalg.norm(v2)
    if not norm_product > 0:
        return 0.0
    sim = float(np.dot(v1, v2) / norm_product)
    # Floating point can overshoot 1.0 by an ulp for identical vectors.
    return min(1.0, max(-1.0, sim))
