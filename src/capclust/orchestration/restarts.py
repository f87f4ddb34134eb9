"""
restarts.py

Multi-start driver for capacitated clustering.

A run resolves and validates its options, builds (only when centers must sit
on input points) and normalises the distance matrix once, then executes ``N``
independent restarts of a single-pass solver and keeps the lowest objective.

Reproducibility
---------------
Restart ``i`` always receives the ``i``-th child of
``numpy.random.SeedSequence(random_state)``, and outcomes are folded in
restart-index order.  The selected result is therefore the same whether the
restarts ran sequentially or on any number of workers.

Failure policy
--------------
A :class:`~capclust.exceptions.SolverFailure` raised by one restart (e.g. an
infeasible allocation for the sampled start) discards that restart and is
logged as a warning.  Any other exception aborts the run.  If every restart
fails, :class:`~capclust.exceptions.AllRestartsFailedError` is raised.
"""

import time
from collections.abc import Iterator
from dataclasses import replace
from typing import Any

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from capclust.config.params import RunConfig, RunOptions, SolverParams, resolve_options
from capclust.core_types import CapacityRange, ClusteringResult, PointSet, RestartOutcome, RunSummary
from capclust.exceptions import AllRestartsFailedError, SolverFailure
from capclust.interfaces import ProgressReporter, SinglePassSolver
from capclust.preprocess.distance import prepare_distance_matrix
from capclust.preprocess.normalization import NormalizedProblem, normalize
from capclust.preprocess.validation import validate_inputs
from capclust.solver.location_allocation import capacitated_location_allocation
from capclust.utils.logging import CapclustLogger, log_detail, log_success

from .progress import make_reporter
from .selection import ObjectiveSelector

logger = CapclustLogger.get_logger(__name__)


def prepare_problem(
    coords: Any,
    weights: Any,
    options: RunOptions,
    dist_mat: Any = None,
) -> tuple[RunConfig, NormalizedProblem]:
    """Resolve, validate and normalise the inputs of one run.

    Validation happens before any distance computation.  Caller inputs are
    copied, never modified.
    """
    config = resolve_options(options, coords, weights)
    validate_inputs(coords, weights, config, dist_mat)
    config = replace(
        config, k=int(config.k), N=int(config.N), n_jobs=int(config.n_jobs), max_iter=int(config.max_iter)
    )

    if isinstance(coords, pd.DataFrame):
        coords = coords.to_numpy(dtype=float)
    points = PointSet(
        coords=np.array(coords, dtype=float),
        weights=np.array(weights, dtype=float),
        capacity_weights=np.array(config.capacity_weights, dtype=float),
    )
    capacity_range = CapacityRange.from_value(config.range, int(config.k))

    matrix = prepare_distance_matrix(points.coords, config, dist_mat)
    problem = normalize(
        points,
        capacity_range,
        matrix,
        multiplicity=np.asarray(config.multiplicity),
        fixed_centers=config.fixed_centers,
        enabled=bool(config.normalization),
    )
    if config.normalization:
        log_detail(
            f"Normalised by distance={problem.distance_scale:.6g}, "
            f"capacity={problem.capacity_scale:.6g}, weight={problem.weight_scale:.6g}"
        )
    _warn_if_infeasible(problem, config)
    return config, problem


def _warn_if_infeasible(problem: NormalizedProblem, config: RunConfig) -> None:
    """Warn when total capacity weight cannot meet the cluster bounds."""
    demand = float(problem.points.capacity_weights @ problem.multiplicity)
    lows = problem.capacity_range.bounds[:, 0].sum()
    highs = problem.capacity_range.bounds[:, 1].sum()
    if demand < lows - 1e-9:
        logger.warning(
            f"Total capacity weight {demand:.6g} is below the sum of lower bounds {lows:.6g}; "
            "every restart will be infeasible"
        )
    elif demand > highs + 1e-9 and not config.uses_outgroup:
        logger.warning(
            f"Total capacity weight {demand:.6g} exceeds the sum of upper bounds {highs:.6g}; "
            "every restart will be infeasible"
        )


def _run_restart(
    index: int,
    problem: NormalizedProblem,
    k: int,
    config: RunConfig,
    solver_params: SolverParams,
    solver: SinglePassSolver,
    seed: np.random.SeedSequence,
) -> RestartOutcome:
    """Execute one restart; solver failures are returned, not raised."""
    rng = np.random.default_rng(seed)
    start = time.perf_counter()
    try:
        result = solver(problem, k, config, solver_params, rng)
    except SolverFailure as exc:
        exc.restart_index = index
        return RestartOutcome(index=index, error=exc, elapsed=time.perf_counter() - start)
    return RestartOutcome(index=index, result=result, elapsed=time.perf_counter() - start)


class RestartOrchestrator:
    """Runs ``N`` restarts of a single-pass solver and keeps the best result."""

    def __init__(
        self,
        config: RunConfig,
        solver_params: SolverParams | None = None,
        solver: SinglePassSolver | None = None,
        reporter: ProgressReporter | None = None,
    ):
        self.config = config
        self.solver_params = SolverParams.from_mapping(solver_params)
        self.solver = solver or capacitated_location_allocation
        self.reporter = reporter or make_reporter(config.print_mode)
        self.summary: RunSummary | None = None

    def _outcomes(
        self, problem: NormalizedProblem, seeds: list[np.random.SeedSequence]
    ) -> Iterator[RestartOutcome]:
        k = int(self.config.k)
        jobs = (
            (index, problem, k, self.config, self.solver_params, self.solver, seed)
            for index, seed in enumerate(seeds, start=1)
        )
        if self.config.n_jobs == 1:
            for args in jobs:
                yield _run_restart(*args)
            return

        # Process-based fan-out; results come back in submission order
        yield from Parallel(
            n_jobs=self.config.n_jobs, backend="loky", return_as="generator"
        )(delayed(_run_restart)(*args) for args in jobs)

    def execute(self, problem: NormalizedProblem) -> ClusteringResult:
        """Run all restarts on ``problem`` and return the best clustering.

        Raises:
            AllRestartsFailedError: If no restart produced a clustering.
        """
        n_restarts = int(self.config.N)
        seeds = np.random.SeedSequence(self.config.random_state).spawn(n_restarts)
        selector = ObjectiveSelector()
        objectives: list[float] = []
        failures: list[SolverFailure] = []

        logger.info(
            f"Running {n_restarts} restarts (k={self.config.k}, n={problem.n}, "
            f"n_jobs={self.config.n_jobs})"
        )
        self.reporter.start(n_restarts)
        start = time.perf_counter()
        try:
            for outcome in self._outcomes(problem, seeds):
                if outcome.ok:
                    objectives.append(outcome.objective)
                else:
                    failures.append(outcome.error)
                    logger.warning(f"Restart {outcome.index} discarded: {outcome.error}")
                if selector.offer(outcome):
                    logger.debug(
                        f"Restart {outcome.index} is the new best (objective {outcome.objective:.6g})"
                    )
                self.reporter.report(outcome.index, n_restarts, outcome)
        finally:
            elapsed = time.perf_counter() - start
            self.reporter.close(elapsed)

        self.summary = RunSummary(
            n_restarts=n_restarts,
            best_index=selector.best_index or 0,
            objectives=objectives,
            failed=[f.restart_index for f in failures],
            total_time=elapsed,
        )

        if selector.best is None:
            raise AllRestartsFailedError(failures)

        log_success(
            f"Best objective {selector.best_objective:.6g} from restart "
            f"{selector.best_index}/{n_restarts} ({elapsed:.1f}s)"
        )
        return selector.best


def run(
    coords: Any,
    weights: Any,
    k: int,
    N: int = 10,
    range: Any = None,
    capacity_weights: Any = None,
    metric: Any = None,
    center_init: str = "random",
    lambda_: float | None = None,
    frac_memb: bool = False,
    place_to_point: bool = True,
    fixed_centers: Any = None,
    solver_params: SolverParams | dict | None = None,
    multiplicity: Any = None,
    dist_mat: Any = None,
    print_mode: str | None = "progress",
    normalization: bool = True,
    lambda_fixed: float | None = None,
    *,
    n_jobs: int | None = None,
    random_state: int | None = None,
    max_iter: int | None = None,
    solver: SinglePassSolver | None = None,
    reporter: ProgressReporter | None = None,
) -> ClusteringResult:
    """Cluster weighted points into ``k`` capacitated groups, best of ``N`` restarts.

    Args:
        coords: ``(n, 2)`` numpy array or two-column DataFrame of coordinates.
        weights: Demand weight per point; scales the assignment cost.
        k: Number of clusters.
        N: Number of restarts.
        range: ``(low, high)`` bounds on every cluster's total capacity weight,
            or a ``k x 2`` matrix of per-cluster bounds. Defaults to
            ``(min(weights) / 2, sum(weights))``. Expressed in raw capacity
            weight units; it is rescaled together with the capacity weights.
        capacity_weights: Weight used for capacity accounting (default: ``weights``).
        metric: Distance metric name or binary callable (default: squared Euclidean).
        center_init: ``"random"`` or ``"kmpp"``.
        lambda_: Outgroup penalty per unit weight; None disables the outgroup.
        frac_memb: Allow points to be split between clusters.
        place_to_point: Restrict centers to input points.
        fixed_centers: ``(m, 2)`` centers kept in place by every restart.
        solver_params: PuLP backend settings (`SolverParams` or mapping).
        multiplicity: Number of clusters each point belongs to (default: all 1).
        dist_mat: Precomputed ``n x n`` distance matrix, used when ``place_to_point``.
        print_mode: ``"progress"``, ``"steps"`` or ``"none"``.
        normalization: Rescale distances, weights and capacities to a max of 1.
        lambda_fixed: Flat outgroup penalty per point; overrides ``lambda_``.
        n_jobs: Worker processes for restarts (1 = sequential, -1 = all cores).
        random_state: Seed making the restart initialisations reproducible.
        max_iter: Maximum location-allocation iterations per restart.
        solver: Single-pass solver replacing the default location-allocation.
        reporter: Progress reporter overriding ``print_mode``.

    Returns:
        ClusteringResult: The lowest-objective clustering (earliest restart on ties).

    Raises:
        ValidationError: If any input is malformed; raised before any distance work.
        AllRestartsFailedError: If no restart found a feasible clustering.

    Example:
        >>> result = run(coords, weights, k=4, N=5, range=(100, 200), random_state=1)
        >>> result.objective
    """
    options = RunOptions(
        k=k,
        N=N,
        range=range,
        capacity_weights=capacity_weights,
        metric=metric,
        center_init=center_init,
        lambda_=lambda_,
        lambda_fixed=lambda_fixed,
        frac_memb=frac_memb,
        place_to_point=place_to_point,
        fixed_centers=fixed_centers,
        multiplicity=multiplicity,
        print_mode=print_mode if print_mode is not None else "none",
        normalization=normalization,
        n_jobs=n_jobs,
        random_state=random_state,
        max_iter=max_iter,
    )
    config, problem = prepare_problem(coords, weights, options, dist_mat)
    orchestrator = RestartOrchestrator(config, solver_params, solver, reporter)
    return orchestrator.execute(problem)
