from __future__ import annotations

"""Parameter containers for capclust runs.

Options go through two phases.  `RunOptions` is what a caller (Python, YAML or
CLI) hands in: every field is optional and ``None`` means "use the default".
`resolve_options` turns it into a fully specified, immutable `RunConfig`,
filling the defaults that depend on the data (capacity range, capacity
weights, multiplicities).  Validation always runs on the resolved config.
"""

import dataclasses
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

from capclust.exceptions import ConfigurationError
from capclust.metrics import DEFAULT_METRIC
from capclust.registry import get_metric

__all__ = [
    "PrintMode",
    "RunOptions",
    "RunConfig",
    "SolverParams",
    "resolve_options",
]


CENTER_INIT_METHODS = ("random", "kmpp")


class PrintMode(Enum):
    """How restart progress is reported."""

    NONE = "none"
    PROGRESS = "progress"
    STEPS = "steps"

    @classmethod
    def parse(cls, value: Any) -> PrintMode:
        if isinstance(value, PrintMode):
            return value
        if value is None or value is False:
            return cls.NONE
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        raise ConfigurationError(
            f"print_mode must be one of {[m.value for m in cls]}, got {value!r}"
        )


# ---------------------------------------------------------------------------
# Raw caller options
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RunOptions:
    """Caller-supplied options; ``None`` fields are resolved to defaults."""

    k: Any = None
    N: Any = None
    range: Any = None
    capacity_weights: Any = None
    metric: str | Callable | None = None
    center_init: Any = None
    lambda_: Any = None
    lambda_fixed: Any = None
    frac_memb: Any = None
    place_to_point: Any = None
    fixed_centers: Any = None
    multiplicity: Any = None
    print_mode: Any = None
    normalization: Any = None
    n_jobs: Any = None
    random_state: Any = None
    max_iter: Any = None

    def merged(self, **overrides: Any) -> RunOptions:
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return dataclasses.replace(self, **changes)


# ---------------------------------------------------------------------------
# Resolved configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Fully specified run configuration.

    Values are resolved but not yet validated; see
    :func:`capclust.preprocess.validation.validate_inputs`.
    """

    k: Any
    N: Any = 10
    range: Any = None
    capacity_weights: Any = None
    metric: Callable = DEFAULT_METRIC
    center_init: Any = "random"
    lambda_: Any = None
    lambda_fixed: Any = None
    frac_memb: Any = False
    place_to_point: Any = True
    fixed_centers: Any = None
    multiplicity: Any = None
    print_mode: PrintMode = PrintMode.PROGRESS
    normalization: Any = True
    n_jobs: int = 1
    random_state: Any = None
    max_iter: int = 100

    @property
    def n_fixed(self) -> int:
        if self.fixed_centers is None:
            return 0
        return int(np.shape(self.fixed_centers)[0])

    @property
    def uses_outgroup(self) -> bool:
        return self.lambda_ is not None or self.lambda_fixed is not None


def _is_numeric_vector(value: Any) -> bool:
    try:
        arr = np.asarray(value)
    except (TypeError, ValueError):
        return False
    return (
        arr.ndim == 1
        and arr.size > 0
        and np.issubdtype(arr.dtype, np.number)
        and not np.issubdtype(arr.dtype, np.bool_)
    )


def _default_n_jobs() -> int:
    # Obey CAPCLUST_N_JOBS if set, otherwise run restarts sequentially
    n_jobs_env = os.getenv("CAPCLUST_N_JOBS")
    try:
        return int(n_jobs_env) if n_jobs_env is not None else 1
    except ValueError:
        return 1


def resolve_options(options: RunOptions, coords: Any, weights: Any) -> RunConfig:
    """Fill data-dependent defaults and return the resolved `RunConfig`.

    The default capacity range ``(min(weights) / 2, sum(weights))`` is only
    derived when the weights are numeric; otherwise it is left unresolved so
    that validation reports the offending weights.
    """
    n = int(np.shape(coords)[0]) if np.ndim(coords) >= 1 else 0

    capacity_weights = options.capacity_weights
    if capacity_weights is None:
        capacity_weights = weights

    range_ = options.range
    if range_ is None and _is_numeric_vector(weights):
        w = np.asarray(weights, dtype=float)
        range_ = (float(w.min()) / 2.0, float(w.sum()))

    multiplicity = options.multiplicity
    if multiplicity is None:
        multiplicity = np.ones(n, dtype=int)

    metric = options.metric if options.metric is not None else DEFAULT_METRIC
    try:
        metric = get_metric(metric)
    except KeyError as exc:
        raise ConfigurationError(str(exc.args[0])) from exc

    def pick(value: Any, default: Any) -> Any:
        return default if value is None else value

    return RunConfig(
        k=options.k,
        N=pick(options.N, 10),
        range=range_,
        capacity_weights=capacity_weights,
        metric=metric,
        center_init=pick(options.center_init, "random"),
        lambda_=options.lambda_,
        lambda_fixed=options.lambda_fixed,
        frac_memb=pick(options.frac_memb, False),
        place_to_point=pick(options.place_to_point, True),
        fixed_centers=options.fixed_centers,
        multiplicity=multiplicity,
        print_mode=PrintMode.parse(pick(options.print_mode, "progress")),
        normalization=pick(options.normalization, True),
        n_jobs=pick(options.n_jobs, _default_n_jobs()),
        random_state=options.random_state,
        max_iter=pick(options.max_iter, 100),
    )


# ---------------------------------------------------------------------------
# Solver tuning parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SolverParams:
    """Tuning of the PuLP backend used inside each single-pass solve."""

    backend: str = "auto"  # One of: auto, cbc, gurobi
    time_limit: float | None = None
    gap_rel: float | None = None
    verbose: bool = False
    threads: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):  # type: ignore[override]
        if self.backend.lower() not in {"auto", "cbc", "gurobi"}:
            raise ValueError("SolverParams.backend must be 'auto', 'cbc' or 'gurobi'.")
        if self.time_limit is not None and self.time_limit < 0:
            raise ValueError("SolverParams.time_limit must be non-negative.")
        if self.gap_rel is not None and not 0.0 <= self.gap_rel <= 1.0:
            raise ValueError("SolverParams.gap_rel must lie in [0, 1].")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | SolverParams | None) -> SolverParams:
        """Accept an existing instance, ``None`` or a plain mapping."""
        if data is None:
            return cls()
        if isinstance(data, SolverParams):
            return data
        known = {f.name for f in dataclasses.fields(cls)} - {"extra"}
        kwargs = {key: value for key, value in data.items() if key in known}
        extra = {key: value for key, value in data.items() if key not in known}
        return cls(**kwargs, extra=extra)
