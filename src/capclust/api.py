"""
API facade for capclust - file and DataFrame entry point for programmatic usage.
"""

from pathlib import Path
from typing import Any

import pandas as pd

from capclust.config import load_run_config
from capclust.config.params import RunOptions, SolverParams
from capclust.core_types import ClusteringResult, PointSet, RunSummary
from capclust.orchestration.restarts import RestartOrchestrator, prepare_problem
from capclust.utils.logging import CapclustLogger, log_warning
from capclust.utils.save_results import save_clustering_results

logger = CapclustLogger.get_logger("capclust.api")


def load_points(points: str | Path | pd.DataFrame) -> pd.DataFrame:
    """Load a points table with columns x, y, weight and optional capacity_weight, multiplicity."""
    if isinstance(points, pd.DataFrame):
        logger.info("Using provided DataFrame for point data")
        return points.copy()

    points_path = Path(points)
    if not points_path.exists():
        raise FileNotFoundError(
            f"Points file not found: {points_path}\n"
            f"Please check the file path and ensure it exists."
        )
    try:
        df = pd.read_csv(points_path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise ValueError(
            f"Error loading points from {points_path}:\n{e!s}\n"
            f"Please check the file format."
        ) from e
    logger.info(f"Loaded {len(df)} points from {points_path}")
    return df


def _load_config(
    config: str | Path | tuple[RunOptions, SolverParams] | RunOptions | None,
) -> tuple[RunOptions, SolverParams]:
    if config is None:
        return RunOptions(), SolverParams()
    if isinstance(config, RunOptions):
        return config, SolverParams()
    if isinstance(config, tuple):
        options, solver_params = config
        return options, SolverParams.from_mapping(solver_params)

    config_path = Path(config)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            f"Please check the file path and ensure it exists."
        )
    return load_run_config(config_path)


def solve_points(
    points_df: pd.DataFrame,
    options: RunOptions,
    solver_params: SolverParams | None = None,
) -> tuple[ClusteringResult, RunSummary]:
    """Run the multi-start clustering on a points table and return result and run summary."""
    point_set = PointSet.from_dataframe(points_df)
    if options.multiplicity is None and "multiplicity" in points_df.columns:
        options = options.merged(multiplicity=points_df["multiplicity"].to_numpy())
    if options.capacity_weights is None:
        options = options.merged(capacity_weights=point_set.capacity_weights)

    config, problem = prepare_problem(point_set.coords, point_set.weights, options)
    orchestrator = RestartOrchestrator(config, solver_params)
    result = orchestrator.execute(problem)
    return result, orchestrator.summary


def cluster(
    points: str | Path | pd.DataFrame,
    k: int | None = None,
    config: str | Path | tuple[RunOptions, SolverParams] | RunOptions | None = None,
    output_dir: str | Path | None = None,
    format: str = "json",
    **overrides: Any,
) -> ClusteringResult:
    """
    Cluster points from a CSV file or DataFrame.

    Args:
        points: Path to a CSV file or a DataFrame with columns ``x``, ``y``,
            ``weight`` and optionally ``capacity_weight`` and ``multiplicity``.
        k: Number of clusters; overrides the configuration's ``k``.
        config: YAML path, `RunOptions`, ``(RunOptions, SolverParams)`` or None.
        output_dir: Directory to save results to (nothing is saved when None).
        format: Output format - "json" or "csv" (default: "json").
        **overrides: Any `RunOptions` field, e.g. ``N=20`` or ``random_state=1``.

    Returns:
        ClusteringResult: Best clustering over all restarts.

    Raises:
        FileNotFoundError: If the points or config file doesn't exist
        ValidationError: If the points or options are invalid

    Example:
        >>> result = cluster("points.csv", k=4, N=20, random_state=7)
        >>> print(f"Objective: {result.objective:.3f}")
    """
    points_df = load_points(points)
    if points_df.empty:
        raise ValueError("Point data is empty. Please provide at least k points.")

    options, solver_params = _load_config(config)
    options = options.merged(k=k, **overrides)
    if options.k is None:
        raise ValueError("Number of clusters k must be given either in the config or as an argument.")

    result, summary = solve_points(points_df, options, solver_params)

    if output_dir is not None:
        try:
            save_clustering_results(
                result, points_df, output_dir, format=format, summary=summary
            )
        except OSError as e:
            log_warning(f"Failed to save results: {e!s}")

    return result
