import hypothesis.strategies as st
import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis.extra.numpy import arrays

from capclust.core_types import CapacityRange, PointSet
from capclust.metrics import sq_euclidean
from capclust.preprocess.distance import build_distance_matrix
from capclust.preprocess.normalization import normalize


def _problem(coords, weights, capacity_weights=None, k=3, bounds=(10.0, 80.0)):
    points = PointSet(
        coords=coords,
        weights=weights,
        capacity_weights=weights.copy() if capacity_weights is None else capacity_weights,
    )
    return points, CapacityRange.from_value(bounds, k)


def test_maxima_are_one(toy_points):
    coords, weights = toy_points
    points, capacity_range = _problem(coords, weights)
    dist = build_distance_matrix(coords, sq_euclidean)

    problem = normalize(points, capacity_range, dist, np.ones(20, dtype=int))

    assert problem.dist_mat.max() == pytest.approx(1.0)
    assert problem.points.weights.max() == pytest.approx(1.0)
    assert problem.points.capacity_weights.max() == pytest.approx(1.0)
    assert problem.distance_scale == pytest.approx(dist.max())


def test_range_scaled_with_capacity_weights(toy_points):
    """A point's share of a cluster's capacity is unchanged by normalisation."""
    coords, weights = toy_points
    capacity_weights = weights * 3.0
    points, capacity_range = _problem(coords, weights, capacity_weights, bounds=(30.0, 240.0))

    problem = normalize(points, capacity_range, None, np.ones(20, dtype=int))

    scale = capacity_weights.max()
    np.testing.assert_allclose(problem.capacity_range.bounds, capacity_range.bounds / scale)
    np.testing.assert_allclose(
        problem.points.capacity_weights / problem.capacity_range.high(0),
        capacity_weights / 240.0,
    )


def test_inputs_are_not_modified(toy_points):
    coords, weights = toy_points
    points, capacity_range = _problem(coords, weights)
    dist = build_distance_matrix(coords, sq_euclidean)
    dist_before = dist.copy()
    weights_before = points.weights.copy()
    bounds_before = capacity_range.bounds.copy()

    problem = normalize(points, capacity_range, dist, np.ones(20, dtype=int))

    np.testing.assert_array_equal(dist, dist_before)
    np.testing.assert_array_equal(points.weights, weights_before)
    np.testing.assert_array_equal(capacity_range.bounds, bounds_before)
    assert problem.dist_mat is not dist


def test_outputs_are_read_only(toy_points):
    coords, weights = toy_points
    points, capacity_range = _problem(coords, weights)
    dist = build_distance_matrix(coords, sq_euclidean)

    problem = normalize(points, capacity_range, dist, np.ones(20, dtype=int))

    with pytest.raises(ValueError):
        problem.dist_mat[0, 0] = 5.0
    with pytest.raises(ValueError):
        problem.points.weights[0] = 5.0


def test_disabled_keeps_raw_values(toy_points):
    coords, weights = toy_points
    points, capacity_range = _problem(coords, weights)
    dist = build_distance_matrix(coords, sq_euclidean)

    problem = normalize(points, capacity_range, dist, np.ones(20, dtype=int), enabled=False)

    np.testing.assert_array_equal(problem.dist_mat, dist)
    np.testing.assert_array_equal(problem.points.weights, weights)
    np.testing.assert_array_equal(problem.capacity_range.bounds, capacity_range.bounds)
    assert problem.distance_scale == problem.capacity_scale == problem.weight_scale == 1.0


def test_all_zero_weights_left_unscaled():
    coords = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
    weights = np.zeros(3)
    points, capacity_range = _problem(coords, weights, k=1, bounds=(0.0, 0.0))

    problem = normalize(points, capacity_range, None, np.ones(3, dtype=int))

    assert problem.weight_scale == 1.0
    np.testing.assert_array_equal(problem.points.weights, weights)
    assert np.all(np.isfinite(problem.capacity_range.bounds))


def test_no_matrix_when_absent(toy_points):
    coords, weights = toy_points
    points, capacity_range = _problem(coords, weights)

    problem = normalize(points, capacity_range, None, np.ones(20, dtype=int))

    assert problem.dist_mat is None
    assert problem.distance_scale == 1.0
    assert problem.n == 20 and problem.k == 3


@settings(max_examples=30, deadline=None)
@given(
    weights=arrays(
        np.float64,
        st.integers(min_value=2, max_value=15),
        elements=st.floats(min_value=0.01, max_value=1e4, allow_nan=False),
    ),
    factor=st.floats(min_value=0.5, max_value=50.0),
)
def test_normalized_weights_bounded_and_proportional(weights, factor):
    """Normalised weights lie in (0, 1] and keep their ratios."""
    n = weights.shape[0]
    coords = np.column_stack([np.arange(n, dtype=float), np.zeros(n)])
    capacity_weights = weights * factor
    points, capacity_range = _problem(
        coords, weights, capacity_weights, k=1, bounds=(0.0, float(capacity_weights.sum()))
    )

    problem = normalize(points, capacity_range, None, np.ones(n, dtype=int))

    assert np.all(problem.points.weights <= 1.0 + 1e-12)
    assert np.all(problem.points.weights > 0.0)
    np.testing.assert_allclose(problem.points.weights * problem.weight_scale, weights)
    np.testing.assert_allclose(
        problem.points.capacity_weights.sum(), problem.capacity_range.high(0)
    )
