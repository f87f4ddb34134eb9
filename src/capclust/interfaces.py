"""Protocol definitions for pluggable components in capclust."""

from typing import TYPE_CHECKING, Protocol

import numpy as np
import pulp

if TYPE_CHECKING:
    from capclust.config.params import RunConfig, SolverParams
    from capclust.core_types import ClusteringResult, RestartOutcome
    from capclust.preprocess.normalization import NormalizedProblem


class Metric(Protocol):
    """Pairwise distance between two points; must be non-negative."""

    def __call__(self, x1: np.ndarray, x2: np.ndarray) -> float: ...


class SinglePassSolver(Protocol):
    """One capacitated location-allocation run from a random initialisation.

    Implementations raise :class:`capclust.exceptions.SolverFailure` when no
    feasible clustering can be found for the sampled start.
    """

    def __call__(
        self,
        problem: "NormalizedProblem",
        k: int,
        config: "RunConfig",
        solver_params: "SolverParams",
        rng: np.random.Generator,
    ) -> "ClusteringResult": ...


class ProgressReporter(Protocol):
    """Side channel reporting restart progress. Never influences selection."""

    def start(self, total: int) -> None: ...

    def report(self, restart_index: int, total: int, outcome: "RestartOutcome") -> None: ...

    def close(self, elapsed: float) -> None: ...


class SolverAdapter(Protocol):
    """Thin wrapper around PuLP solvers to provide a consistent interface."""

    def get_pulp_solver(self, params: "SolverParams") -> pulp.LpSolver:
        """Return the underlying PuLP solver instance configured and ready to use."""
        ...

    @property
    def name(self) -> str:
        """Solver name for logging."""
        ...

    @property
    def available(self) -> bool:
        """Check if this solver is available in the environment."""
        ...
