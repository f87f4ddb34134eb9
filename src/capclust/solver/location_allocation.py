"""
location_allocation.py

Default single-pass capacitated solver: a capacity-aware Lloyd iteration.

Starting from an initial set of centers the solver alternates

1. **Allocation** – a PuLP model assigning points to the current centers.

   minimise  Σ_i Σ_j w_i · d(i, c_j) · x_ij  +  Σ_i p_i · o_i

   subject to
   * Σ_j x_ij + o_i = m_i               (every point placed m_i times, or sent to the outgroup)
   * low_j ≤ Σ_i cw_i · x_ij ≤ high_j   (capacity range of cluster j)
   * x_ij ∈ {0, 1}, or x_ij ∈ [0, 1] with fractional membership

   ``o_i`` only exists when an outgroup penalty is configured; its cost
   ``p_i`` is ``lambda · w_i``, or the flat ``lambda_fixed`` when given.

2. **Relocation** – every non-fixed center moves to the location minimising
   its clusters' weighted cost: the best input point when centers are placed
   on points, otherwise the weighted mean (squared Euclidean), the Weiszfeld
   point (Euclidean) or a Nelder–Mead minimum (any other metric).

until the allocation stops changing or ``max_iter`` iterations have run.
"""

from dataclasses import dataclass

import numpy as np
import pulp
from scipy.optimize import minimize

from capclust.config.params import RunConfig, SolverParams
from capclust.core_types import ClusteringResult
from capclust.exceptions import InfeasibleRestartError
from capclust.interfaces import Metric
from capclust.preprocess.distance import cross_distances
from capclust.preprocess.normalization import NormalizedProblem
from capclust.utils.logging import CapclustLogger
from capclust.utils.solver import pick_solver

from .initialization import INITIALIZERS

logger = CapclustLogger.get_logger(__name__)

_WEISZFELD_ITERATIONS = 100
_TOLERANCE = 1e-9


@dataclass
class Allocation:
    """Solution of one allocation model."""

    x: np.ndarray  # (n, k) membership
    outgroup: np.ndarray | None  # (n,) outgroup share
    objective: float


def center_distances(
    problem: NormalizedProblem,
    centers: np.ndarray,
    center_ids: np.ndarray,
    metric: Metric,
) -> np.ndarray:
    """``n x k`` distances from every point to every center, in normalised units."""
    n, k = problem.n, centers.shape[0]
    dist = np.empty((n, k))
    on_point = (center_ids >= 0) if problem.dist_mat is not None else np.zeros(k, dtype=bool)
    if on_point.any():
        dist[:, on_point] = problem.dist_mat[:, center_ids[on_point]]
    free = ~on_point
    if free.any():
        dist[:, free] = (
            cross_distances(problem.points.coords, centers[free], metric)
            / problem.distance_scale
        )
    return dist


def outgroup_penalties(problem: NormalizedProblem, config: RunConfig) -> np.ndarray | None:
    """Per-point cost of leaving a point unassigned, or None without an outgroup."""
    if config.lambda_fixed is not None:
        return np.full(problem.n, float(config.lambda_fixed))
    if config.lambda_ is not None:
        return float(config.lambda_) * problem.points.weights
    return None


def solve_allocation(
    problem: NormalizedProblem,
    dist: np.ndarray,
    penalties: np.ndarray | None,
    frac_memb: bool,
    pulp_solver: pulp.LpSolver,
) -> Allocation:
    """Build and solve the capacitated allocation model for fixed centers.

    Raises:
        InfeasibleRestartError: If the model is not solved to optimality.
    """
    n, k = dist.shape
    weights = problem.points.weights
    capacity_weights = problem.points.capacity_weights
    cost = weights[:, None] * dist
    cat = pulp.LpContinuous if frac_memb else pulp.LpBinary

    model = pulp.LpProblem("Capacitated_Allocation", pulp.LpMinimize)
    x = {
        (i, j): pulp.LpVariable(f"x_{i}_{j}", lowBound=0, upBound=1, cat=cat)
        for i in range(n)
        for j in range(k)
    }
    o = {}
    if penalties is not None:
        o = {i: pulp.LpVariable(f"o_{i}", lowBound=0, upBound=1, cat=cat) for i in range(n)}

    model += (
        pulp.lpSum(cost[i, j] * x[i, j] for i in range(n) for j in range(k))
        + pulp.lpSum(penalties[i] * o[i] for i in o),
        "Total_Cost",
    )

    for i in range(n):
        model += (
            pulp.lpSum(x[i, j] for j in range(k)) + (o[i] if i in o else 0)
            == int(problem.multiplicity[i]),
            f"Membership_{i}",
        )

    for j in range(k):
        load = pulp.lpSum(capacity_weights[i] * x[i, j] for i in range(n))
        model += load >= problem.capacity_range.low(j), f"Capacity_Low_{j}"
        model += load <= problem.capacity_range.high(j), f"Capacity_High_{j}"

    model.solve(pulp_solver)
    status = pulp.LpStatus[model.status]
    if status != "Optimal":
        raise InfeasibleRestartError(status)

    values = np.array([[x[i, j].varValue or 0.0 for j in range(k)] for i in range(n)])
    out = None
    if o:
        out = np.array([o[i].varValue or 0.0 for i in range(n)])
    if not frac_memb:
        values = np.rint(values)
        out = None if out is None else np.rint(out)
    values = np.clip(values, 0.0, 1.0)

    objective = float((cost * values).sum())
    if out is not None:
        objective += float(penalties @ out)
    return Allocation(x=values, outgroup=out, objective=objective)


def _weiszfeld(points: np.ndarray, shares: np.ndarray, start: np.ndarray) -> np.ndarray:
    center = start
    for _ in range(_WEISZFELD_ITERATIONS):
        gaps = np.linalg.norm(points - center, axis=1)
        # A center sitting on a point is left there
        if np.any(gaps < _TOLERANCE):
            return center
        factors = shares / gaps
        moved = factors @ points / factors.sum()
        if np.linalg.norm(moved - center) < _TOLERANCE:
            return moved
        center = moved
    return center


def _free_location(points: np.ndarray, shares: np.ndarray, metric: Metric) -> np.ndarray:
    mean = shares @ points / shares.sum()
    pairwise_name = getattr(metric, "pairwise_name", None)
    if pairwise_name == "sqeuclidean":
        return mean
    members = shares > 0
    points, shares = points[members], shares[members]
    if pairwise_name == "euclidean":
        return _weiszfeld(points, shares, mean)

    def total_cost(center: np.ndarray) -> float:
        return float(sum(s * metric(p, center) for p, s in zip(points, shares)))

    return np.asarray(minimize(total_cost, mean, method="Nelder-Mead").x, dtype=float)


def relocate_centers(
    problem: NormalizedProblem,
    x: np.ndarray,
    centers: np.ndarray,
    center_ids: np.ndarray,
    metric: Metric,
    place_to_point: bool,
    n_fixed: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Move every non-fixed center to its cluster's cost-minimising location."""
    centers = centers.copy()
    center_ids = center_ids.copy()
    coords = problem.points.coords
    weights = problem.points.weights
    for j in range(n_fixed, centers.shape[0]):
        shares = weights * x[:, j]
        if shares.sum() <= 0:
            # Empty cluster keeps its center
            continue
        if place_to_point:
            best = int(np.argmin(shares @ problem.dist_mat))
            centers[j] = coords[best]
            center_ids[j] = best
        else:
            centers[j] = _free_location(coords, shares, metric)
    return centers, center_ids


def _to_result(
    allocation: Allocation,
    centers: np.ndarray,
    center_ids: np.ndarray,
    problem: NormalizedProblem,
    config: RunConfig,
    iterations: int,
) -> ClusteringResult:
    x = allocation.x
    assigned = x.sum(axis=1) > _TOLERANCE
    assignment = np.where(assigned, np.argmax(x, axis=1), -1)
    fractional = None
    if config.frac_memb or np.any(problem.multiplicity > 1):
        fractional = x
    outgroup = None
    if allocation.outgroup is not None:
        outgroup = allocation.outgroup > 0.5
    return ClusteringResult(
        assignment=assignment.astype(int),
        centers=centers,
        objective=allocation.objective,
        fractional=fractional,
        center_ids=center_ids if config.place_to_point else None,
        outgroup=outgroup,
        iterations=iterations,
    )


def capacitated_location_allocation(
    problem: NormalizedProblem,
    k: int,
    config: RunConfig,
    solver_params: SolverParams,
    rng: np.random.Generator,
) -> ClusteringResult:
    """Run one capacitated location-allocation pass from a random start.

    Args:
        problem: Normalised, read-only problem data shared by all restarts.
        k: Number of clusters.
        config: Resolved run configuration (metric, placement, outgroup, ...).
        solver_params: PuLP backend settings.
        rng: Generator owned by this restart; the only source of randomness.

    Returns:
        ClusteringResult for the last allocation and the centers it was
        computed against.

    Raises:
        InfeasibleRestartError: If an allocation model has no feasible solution.
    """
    metric = config.metric
    n_fixed = config.n_fixed
    centers, center_ids = INITIALIZERS[config.center_init](problem, k, metric, rng)
    penalties = outgroup_penalties(problem, config)
    pulp_solver = pick_solver(solver_params)

    previous_x = None
    state = None
    iteration = 0
    for iteration in range(1, config.max_iter + 1):
        dist = center_distances(problem, centers, center_ids, metric)
        allocation = solve_allocation(problem, dist, penalties, bool(config.frac_memb), pulp_solver)
        state = (allocation, centers, center_ids)
        if previous_x is not None and np.allclose(allocation.x, previous_x, atol=1e-7):
            break
        previous_x = allocation.x
        centers, center_ids = relocate_centers(
            problem, allocation.x, centers, center_ids, metric,
            bool(config.place_to_point), n_fixed,
        )
    else:
        logger.debug(f"Location-allocation stopped after max_iter={config.max_iter} iterations")

    allocation, centers, center_ids = state
    return _to_result(allocation, centers, center_ids, problem, config, iteration)
