"""Built-in distance metrics.

Any binary function of two points returning a non-negative float can be used
as a metric; the ones below are registered by name and also carry a vectorised
equivalent for distance-matrix construction.
"""

import numpy as np

from capclust.registry import register_metric


@register_metric("sq_euclidean", pairwise="sqeuclidean")
def sq_euclidean(x1: np.ndarray, x2: np.ndarray) -> float:
    """Squared Euclidean distance (the default metric)."""
    diff = np.asarray(x1, dtype=float) - np.asarray(x2, dtype=float)
    return float(np.dot(diff, diff))


@register_metric("euclidean", pairwise="euclidean")
def euclidean(x1: np.ndarray, x2: np.ndarray) -> float:
    diff = np.asarray(x1, dtype=float) - np.asarray(x2, dtype=float)
    return float(np.sqrt(np.dot(diff, diff)))


DEFAULT_METRIC = sq_euclidean
