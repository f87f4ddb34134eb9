import logging
import os

import numpy as np
import pandas as pd
import pytest

from capclust.core_types import ClusteringResult
from capclust.utils.logging import CapclustLogger, LogLevel, SimpleFormatter


@pytest.fixture(autouse=True)
def _reset_logging_state():
    """Keep the shared log level, root handlers and solver override from leaking between tests."""
    saved = {key: os.environ.get(key) for key in ("CAPCLUST_EFFECTIVE_LOG_LEVEL", "CAPCLUST_SOLVER")}
    root = logging.getLogger()
    root_level = root.level
    os.environ.pop("CAPCLUST_EFFECTIVE_LOG_LEVEL", None)
    CapclustLogger.set_level(LogLevel.NORMAL)
    yield
    for key, value in saved.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value
    # drop the console handler installed by setup_logging()
    for handler in list(root.handlers):
        if isinstance(handler.formatter, SimpleFormatter):
            root.removeHandler(handler)
    root.setLevel(root_level)
    CapclustLogger.set_level(LogLevel.NORMAL)


@pytest.fixture
def toy_points():
    """20 seeded random points on [0, 100]^2 with integer weights in [5, 20]."""
    rng = np.random.default_rng(0)
    coords = rng.uniform(0, 100, size=(20, 2))
    weights = rng.integers(5, 21, size=20).astype(float)
    return coords, weights


@pytest.fixture
def toy_points_df(toy_points):
    coords, weights = toy_points
    return pd.DataFrame({"x": coords[:, 0], "y": coords[:, 1], "weight": weights})


def scripted_solver(problem, k, config, solver_params, rng):
    """Deterministic stand-in solver: picks k random input points as centers.

    The objective is the first draw of the restart's generator, so it depends
    only on the seed handed to the restart.
    """
    objective = float(rng.random())
    ids = rng.choice(problem.n, size=k, replace=False)
    assignment = np.arange(problem.n) % k
    return ClusteringResult(
        assignment=assignment,
        centers=np.array(problem.points.coords[ids]),
        objective=objective,
        center_ids=ids,
    )


@pytest.fixture
def fake_solver():
    return scripted_solver
