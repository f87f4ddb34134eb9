"""
validation.py

Fail-fast checks on every run input.  All checks are O(n) at most and run
before the distance matrix is built, so a bad call never pays for O(n²) work.
Nothing is converted or mutated here; a successful call simply returns.
"""

import numbers
from typing import Any

import numpy as np
import pandas as pd

from capclust.config.params import CENTER_INIT_METHODS, RunConfig
from capclust.exceptions import ConfigurationError, ValidationError


def _is_bool(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_))


def _is_number(value: Any) -> bool:
    """A single real number (booleans excluded)."""
    return isinstance(value, numbers.Real) and not _is_bool(value)


def _is_integer(value: Any) -> bool:
    if isinstance(value, numbers.Integral) and not _is_bool(value):
        return True
    return _is_number(value) and float(value).is_integer()


def _numeric_array(value: Any) -> np.ndarray | None:
    """Return ``value`` as an array if it is numeric (not boolean), else None."""
    if isinstance(value, (str, bytes)) or value is None:
        return None
    try:
        arr = np.asarray(value)
    except (TypeError, ValueError):
        return None
    if not np.issubdtype(arr.dtype, np.number) or np.issubdtype(arr.dtype, np.bool_):
        return None
    return arr


def _require(condition: bool, message: str, error: type[ValidationError] = ValidationError) -> None:
    if not condition:
        raise error(message)


def validate_coords(coords: Any) -> int:
    """Check coordinates are a 2-column numeric table and return the row count."""
    if isinstance(coords, pd.DataFrame):
        _require(coords.shape[1] == 2, "coords must have exactly 2 columns!")
        _require(
            all(pd.api.types.is_numeric_dtype(dtype) and not pd.api.types.is_bool_dtype(dtype)
                for dtype in coords.dtypes),
            "coords must be numeric!",
        )
        values = coords.to_numpy(dtype=float)
    else:
        _require(isinstance(coords, np.ndarray), "coords must be a numpy array or a pandas DataFrame!")
        _require(coords.ndim == 2 and coords.shape[1] == 2, "coords must be an (n, 2) array!")
        _require(_numeric_array(coords) is not None, "coords must be numeric!")
        values = coords
    _require(bool(np.all(np.isfinite(values))), "coords must be finite!")
    return int(values.shape[0])


def _validate_vector(value: Any, name: str, n: int) -> np.ndarray:
    arr = _numeric_array(value)
    _require(arr is not None and arr.ndim == 1, f"{name} must be a numeric vector!")
    _require(arr.shape[0] == n, f"coords and {name} must have the same number of rows!")
    _require(bool(np.all(np.isfinite(arr))), f"{name} must be finite!")
    _require(bool(np.all(arr >= 0)), f"{name} must be non-negative!")
    return arr


def _validate_range(value: Any, k: int) -> None:
    arr = _numeric_array(value)
    _require(arr is not None, "range must be numeric!")
    if arr.ndim == 1:
        _require(arr.shape[0] == 2, "range must be a (low, high) pair or a k x 2 matrix!")
        rows = arr.reshape(1, 2)
    else:
        _require(
            arr.ndim == 2 and arr.shape[1] == 2,
            f"range matrix must have 2 columns, got shape {arr.shape}!",
            ConfigurationError,
        )
        _require(
            arr.shape[0] == k,
            f"range matrix must have k = {k} rows, got {arr.shape[0]}!",
            ConfigurationError,
        )
        rows = arr
    _require(bool(np.all(np.isfinite(rows))), "range must be finite!")
    bad = np.flatnonzero(rows[:, 0] > rows[:, 1])
    _require(bad.size == 0, f"range low must not exceed high (rows {bad.tolist()})!")


def validate_inputs(
    coords: Any,
    weights: Any,
    config: RunConfig,
    dist_mat: Any = None,
) -> None:
    """Validate every run input against the resolved configuration.

    Raises:
        ValidationError: On the first violated constraint.
        ConfigurationError: When options are inconsistent with each other
            (range matrix shape, lambda combined with multiplicities > 1).
    """
    n = validate_coords(coords)

    _require(_is_number(config.k), "k must be a numeric scalar!")
    _require(_is_integer(config.k) and config.k >= 1, "k must be a positive integer!")
    k = int(config.k)
    _require(n >= k, "must have at least k coords points!")

    _validate_vector(weights, "weights", n)
    _validate_vector(config.capacity_weights, "capacity weights", n)

    _require(_is_integer(config.N) and config.N >= 1, "N must be a positive integer!")

    _require(config.range is not None, "range must be numeric!")
    _validate_range(config.range, k)

    if config.lambda_ is not None:
        _require(_is_number(config.lambda_), "lambda must be a single number!")
        _require(config.lambda_ >= 0, "lambda must be non-negative!")
    if config.lambda_fixed is not None:
        _require(_is_number(config.lambda_fixed), "lambda_fixed must be a single number!")
        _require(config.lambda_fixed >= 0, "lambda_fixed must be non-negative!")

    _require(_is_bool(config.normalization), "normalization must be True or False!")
    _require(_is_bool(config.frac_memb), "frac_memb must be True or False!")
    _require(_is_bool(config.place_to_point), "place_to_point must be True or False!")

    _require(
        config.center_init in CENTER_INIT_METHODS,
        f"center_init must be one of {list(CENTER_INIT_METHODS)}!",
    )
    _require(callable(config.metric), "metric must be callable!")
    _require(_is_integer(config.max_iter) and config.max_iter >= 1, "max_iter must be a positive integer!")
    _require(_is_integer(config.n_jobs) and config.n_jobs != 0, "n_jobs must be a non-zero integer!")

    multiplicity = _numeric_array(config.multiplicity)
    _require(
        multiplicity is not None and multiplicity.ndim == 1 and multiplicity.shape[0] == n,
        "multiplicity must be a numeric vector with one entry per point!",
    )
    _require(
        bool(np.all(multiplicity >= 1)) and bool(np.all(np.mod(multiplicity, 1) == 0)),
        "multiplicity must contain positive integers!",
    )
    _require(
        bool(np.all(multiplicity <= k)),
        "a point cannot belong to more than k clusters!",
        ConfigurationError,
    )
    _require(
        not (config.uses_outgroup and bool(np.any(multiplicity > 1))),
        "the outgroup (lambda) cannot be combined with multiplicity > 1!",
        ConfigurationError,
    )

    if config.fixed_centers is not None:
        fixed = _numeric_array(config.fixed_centers)
        _require(
            fixed is not None and fixed.ndim == 2 and fixed.shape[1] == 2,
            "fixed_centers must be an (m, 2) numeric array!",
        )
        _require(fixed.shape[0] <= k, "cannot fix more than k centers!")
        _require(bool(np.all(np.isfinite(fixed))), "fixed_centers must be finite!")

    if dist_mat is not None:
        mat = _numeric_array(dist_mat)
        _require(
            mat is not None and mat.shape == (n, n),
            f"dist_mat must be an {n} x {n} numeric matrix!",
        )
        _require(bool(np.all(mat >= 0)), "dist_mat must be non-negative!")
