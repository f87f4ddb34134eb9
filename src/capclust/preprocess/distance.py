"""Point-to-point and point-to-center distance computation."""

import time
from typing import Any

import numpy as np
from sklearn.metrics import pairwise_distances

from capclust.config.params import RunConfig
from capclust.interfaces import Metric
from capclust.utils.logging import CapclustLogger, log_detail

logger = CapclustLogger.get_logger(__name__)


def cross_distances(points: np.ndarray, others: np.ndarray, metric: Metric) -> np.ndarray:
    """Distances from every row of ``points`` to every row of ``others``.

    Registered metrics use their vectorised sklearn equivalent; any other
    callable is evaluated pairwise by sklearn.
    """
    points = np.ascontiguousarray(points, dtype=np.float64)
    others = np.ascontiguousarray(others, dtype=np.float64)
    pairwise_name = getattr(metric, "pairwise_name", None)
    if pairwise_name is not None:
        return pairwise_distances(points, others, metric=pairwise_name)
    return pairwise_distances(points, others, metric=metric)


def build_distance_matrix(coords: np.ndarray, metric: Metric) -> np.ndarray:
    """Return the n x n matrix of ``metric(point_i, point_j)``."""
    n = coords.shape[0]
    logger.info(f"Creating {n}x{n} distance matrix...")
    start = time.perf_counter()
    dist_mat = cross_distances(coords, coords, metric)
    log_detail(f"Matrix created! ({time.perf_counter() - start:.2f}s)")
    return dist_mat


def prepare_distance_matrix(
    coords: np.ndarray,
    config: RunConfig,
    dist_mat: Any = None,
) -> np.ndarray | None:
    """Decide whether a distance matrix is needed and produce it.

    * ``place_to_point`` is False: no matrix (centers are free, distances are
      computed against candidate center coordinates by the solver).
    * a matrix was supplied: it is copied and reused as-is.
    * otherwise the matrix is built from ``coords`` with ``config.metric``.
    """
    if not config.place_to_point:
        if dist_mat is not None:
            logger.debug("Ignoring supplied distance matrix: place_to_point is False")
        return None

    if dist_mat is not None:
        logger.debug("Using supplied distance matrix")
        return np.array(dist_mat, dtype=float, copy=True)

    return build_distance_matrix(coords, config.metric)
