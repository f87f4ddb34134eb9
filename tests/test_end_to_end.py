"""End-to-end runs of the multi-restart driver with the real CBC backend."""

import numpy as np
import pandas as pd
import pytest

import capclust
from capclust.exceptions import AllRestartsFailedError

pytestmark = pytest.mark.slow

CBC = {"backend": "cbc"}


@pytest.fixture
def balanced(toy_points):
    coords, weights = toy_points
    quarter = weights.sum() / 4
    return coords, weights, (quarter - 50, quarter + 50)


def test_four_clusters_within_range(balanced):
    coords, weights, bounds = balanced

    result = capclust.run(
        coords, weights, k=4, N=5, range=bounds, random_state=0,
        solver_params=CBC, print_mode="none",
    )

    loads = result.cluster_weights(weights)
    assert loads.shape == (4,)
    assert np.all(loads >= bounds[0] - 1e-6)
    assert np.all(loads <= bounds[1] + 1e-6)
    assert np.isfinite(result.objective) and result.objective >= 0
    assert np.all(result.assignment >= 0)


def test_dataframe_coordinates(balanced):
    coords, weights, bounds = balanced
    df = pd.DataFrame(coords, columns=["lon", "lat"])

    result = capclust.run(
        df, weights, k=4, N=2, range=bounds, random_state=0,
        solver_params=CBC, print_mode="none",
    )

    assert result.assignment.shape == (20,)


def test_more_restarts_never_worse(balanced):
    coords, weights, bounds = balanced
    kwargs = dict(range=bounds, random_state=4, solver_params=CBC, print_mode="none")

    one = capclust.run(coords, weights, k=4, N=1, **kwargs)
    five = capclust.run(coords, weights, k=4, N=5, **kwargs)

    # restart 1 receives the same seed in both runs
    assert five.objective <= one.objective + 1e-12


def test_parallel_matches_sequential(balanced):
    coords, weights, bounds = balanced
    kwargs = dict(range=bounds, random_state=11, solver_params=CBC, print_mode="none")

    sequential = capclust.run(coords, weights, k=4, N=4, n_jobs=1, **kwargs)
    parallel = capclust.run(coords, weights, k=4, N=4, n_jobs=2, **kwargs)

    assert parallel.objective == pytest.approx(sequential.objective)
    np.testing.assert_array_equal(parallel.assignment, sequential.assignment)
    np.testing.assert_array_equal(parallel.centers, sequential.centers)


def test_free_centers_with_euclidean_metric(balanced):
    coords, weights, bounds = balanced

    result = capclust.run(
        coords, weights, k=4, N=3, range=bounds, metric="euclidean",
        place_to_point=False, center_init="kmpp", random_state=2,
        solver_params=CBC, print_mode="none",
    )

    assert result.center_ids is None
    assert np.all(result.cluster_weights(weights) <= bounds[1] + 1e-6)


def test_without_normalization(balanced):
    coords, weights, bounds = balanced

    result = capclust.run(
        coords, weights, k=4, N=2, range=bounds, normalization=False,
        random_state=0, solver_params=CBC, print_mode="none",
    )

    assert np.all(result.cluster_weights(weights) >= bounds[0] - 1e-6)


def test_infeasible_everywhere(balanced):
    coords, weights, _ = balanced
    total = weights.sum()

    with pytest.raises(AllRestartsFailedError, match="All 2 restarts failed"):
        capclust.run(
            coords, weights, k=2, N=2, range=(total, total),
            solver_params=CBC, print_mode="none",
        )


def test_step_printing(balanced, capfd):
    coords, weights, bounds = balanced

    capclust.run(
        coords, weights, k=4, N=2, range=bounds, random_state=0,
        solver_params=CBC, print_mode="steps",
    )

    out, err = capfd.readouterr()
    assert "Iteration 1/2" in out + err
    assert "Iteration 2/2" in out + err
