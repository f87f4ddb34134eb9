"""
Center initialisation strategies.

Each strategy returns ``(centers, center_ids)``: a ``k x 2`` coordinate array
whose first ``m`` rows are the fixed centers, and the index of the input point
each center sits on (``-1`` for a fixed center that is not an input point).
All randomness comes from the restart's own generator.
"""

from collections.abc import Callable

import numpy as np

from capclust.interfaces import Metric
from capclust.preprocess.distance import cross_distances
from capclust.preprocess.normalization import NormalizedProblem


def fixed_center_ids(problem: NormalizedProblem) -> np.ndarray:
    """Map each fixed center to the input point at the same location, if any."""
    if problem.fixed_centers is None:
        return np.empty(0, dtype=int)
    coords = problem.points.coords
    ids = np.full(problem.fixed_centers.shape[0], -1, dtype=int)
    for c, center in enumerate(problem.fixed_centers):
        matches = np.flatnonzero(np.all(np.isclose(coords, center), axis=1))
        if matches.size:
            ids[c] = matches[0]
    return ids


def _with_fixed(problem: NormalizedProblem, chosen: list[int]) -> tuple[np.ndarray, np.ndarray]:
    coords = problem.points.coords
    ids = np.concatenate([fixed_center_ids(problem), np.asarray(chosen, dtype=int)])
    parts = [coords[np.asarray(chosen, dtype=int)]]
    if problem.fixed_centers is not None:
        parts.insert(0, np.asarray(problem.fixed_centers, dtype=float))
    return np.vstack(parts).reshape(-1, 2), ids


def random_init(
    problem: NormalizedProblem,
    k: int,
    metric: Metric,
    rng: np.random.Generator,
) -> tuple[np.ndarray, np.ndarray]:
    """Pick the free centers uniformly at random among the unoccupied input points."""
    fixed_ids = fixed_center_ids(problem)
    candidates = np.setdiff1d(np.arange(problem.n), fixed_ids[fixed_ids >= 0])
    n_free = k - fixed_ids.size
    chosen = rng.choice(candidates, size=n_free, replace=False).tolist()
    return _with_fixed(problem, chosen)


def kmpp_init(
    problem: NormalizedProblem,
    k: int,
    metric: Metric,
    rng: np.random.Generator,
) -> tuple[np.ndarray, np.ndarray]:
    """k-means++ seeding under ``metric``, weighted by point demand.

    The next center is drawn with probability proportional to
    ``weight * distance to the nearest chosen center``.  Fixed centers count
    as already chosen.
    """
    coords = problem.points.coords
    weights = problem.points.weights
    n = problem.n
    n_fixed = 0 if problem.fixed_centers is None else problem.fixed_centers.shape[0]

    chosen: list[int] = []
    if n_fixed:
        nearest = cross_distances(coords, problem.fixed_centers, metric).min(axis=1)
    else:
        first = int(rng.integers(n))
        chosen.append(first)
        nearest = cross_distances(coords, coords[[first]], metric)[:, 0]

    while len(chosen) < k - n_fixed:
        scores = weights * nearest
        scores[chosen] = 0.0
        total = scores.sum()
        if total > 0:
            candidate = int(rng.choice(n, p=scores / total))
        else:
            # Every remaining point coincides with a center
            remaining = np.setdiff1d(np.arange(n), chosen)
            candidate = int(rng.choice(remaining))
        chosen.append(candidate)
        nearest = np.minimum(nearest, cross_distances(coords, coords[[candidate]], metric)[:, 0])

    return _with_fixed(problem, chosen)


INITIALIZERS: dict[str, Callable[..., tuple[np.ndarray, np.ndarray]]] = {
    "random": random_init,
    "kmpp": kmpp_init,
}
