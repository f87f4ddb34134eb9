"""
normalization.py

Rescales the three numeric families of a problem onto a common magnitude:

* distances by the global maximum of the distance matrix,
* capacity weights **and** the capacity range by the maximum capacity weight,
  so that a point's share of a cluster's capacity is unchanged,
* demand weights by their maximum.

Scaling is relative to the maxima of the current inputs only; no reference
scale is persisted between runs.  New arrays are always returned.
"""

from dataclasses import dataclass

import numpy as np

from capclust.core_types import CapacityRange, PointSet


@dataclass(frozen=True)
class NormalizedProblem:
    """Read-only problem data shared by all restarts.

    The ``*_scale`` attributes are the divisors that were applied (1.0 when
    normalisation is disabled), so ``raw = normalised * scale``.
    """

    points: PointSet
    capacity_range: CapacityRange
    dist_mat: np.ndarray | None
    multiplicity: np.ndarray
    fixed_centers: np.ndarray | None = None
    distance_scale: float = 1.0
    capacity_scale: float = 1.0
    weight_scale: float = 1.0

    @property
    def n(self) -> int:
        return self.points.n

    @property
    def k(self) -> int:
        return self.capacity_range.k


def _scale_of(values: np.ndarray) -> float:
    peak = float(np.max(values)) if values.size else 0.0
    # An all-zero family is left unscaled
    return peak if peak > 0 else 1.0


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


def normalize(
    points: PointSet,
    capacity_range: CapacityRange,
    dist_mat: np.ndarray | None,
    multiplicity: np.ndarray,
    fixed_centers: np.ndarray | None = None,
    enabled: bool = True,
) -> NormalizedProblem:
    """Return a `NormalizedProblem`; inputs are never modified."""
    distance_scale = capacity_scale = weight_scale = 1.0
    if enabled:
        if dist_mat is not None:
            distance_scale = _scale_of(dist_mat)
        capacity_scale = _scale_of(points.capacity_weights)
        weight_scale = _scale_of(points.weights)

    scaled_points = PointSet(
        coords=_frozen(np.array(points.coords, dtype=float)),
        weights=_frozen(points.weights / weight_scale),
        capacity_weights=_frozen(points.capacity_weights / capacity_scale),
    )
    scaled_dist = None
    if dist_mat is not None:
        scaled_dist = _frozen(dist_mat / distance_scale)

    return NormalizedProblem(
        points=scaled_points,
        capacity_range=capacity_range.scaled(capacity_scale),
        dist_mat=scaled_dist,
        multiplicity=_frozen(np.array(multiplicity, dtype=int)),
        fixed_centers=None if fixed_centers is None else _frozen(np.array(fixed_centers, dtype=float)),
        distance_scale=distance_scale,
        capacity_scale=capacity_scale,
        weight_scale=weight_scale,
    )
