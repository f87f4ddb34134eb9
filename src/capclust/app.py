"""
Command-line interface for capclust using Typer.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from capclust import __version__
from capclust.api import _load_config, load_points, solve_points
from capclust.exceptions import SolverFailure, ValidationError
from capclust.utils.logging import (
    LogLevel,
    log_error,
    log_success,
    setup_logging,
)
from capclust.utils.save_results import cluster_summary, save_clustering_results

app = typer.Typer(
    help="capclust: multi-restart capacitated clustering",
    add_completion=False,
)
console = Console()


@app.command()
def run(
    points: Path = typer.Option(
        ..., "--points", "-p", help="CSV with columns x, y, weight [, capacity_weight, multiplicity]"
    ),
    k: int | None = typer.Option(None, "--k", "-k", help="Number of clusters"),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to configuration YAML file"
    ),
    restarts: int | None = typer.Option(None, "--restarts", "-N", help="Number of restarts"),
    n_jobs: int | None = typer.Option(None, "--n-jobs", "-j", help="Parallel workers (-1 = all cores)"),
    seed: int | None = typer.Option(None, "--seed", help="Random seed for the restarts"),
    print_mode: str | None = typer.Option(
        None, "--print-mode", help="Restart reporting: progress, steps or none"
    ),
    output: Path = typer.Option("results", "--output", "-o", help="Output directory"),
    format: str = typer.Option("json", "--format", "-f", help="Output format (json, csv)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Minimal output (errors only)"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug output"),
) -> None:
    """
    Cluster weighted points into k capacitated groups.

    Runs the location-allocation heuristic from several random starts and
    keeps the clustering with the lowest total weighted assignment cost.
    """
    _setup_logging_from_flags(verbose, quiet, debug)

    if not points.exists():
        log_error(f"Points file not found: {points}")
        raise typer.Exit(1)

    if config and not config.exists():
        log_error(f"Config file not found: {config}")
        raise typer.Exit(1)

    if format not in ["json", "csv"]:
        log_error("Invalid format. Choose 'json' or 'csv'")
        raise typer.Exit(1)

    try:
        options, solver_params = _load_config(config)
        options = options.merged(
            k=k, N=restarts, n_jobs=n_jobs, random_state=seed, print_mode=print_mode
        )
        if options.k is None:
            log_error("Number of clusters missing: pass --k or set run.k in the config")
            raise typer.Exit(1)

        points_df = load_points(points)
        result, summary = solve_points(points_df, options, solver_params)
        saved = save_clustering_results(
            result, points_df, output, format=format, summary=summary
        )
    except (FileNotFoundError, ValidationError, ValueError) as e:
        log_error(str(e))
        raise typer.Exit(1)
    except SolverFailure as e:
        log_error(f"Clustering failed: {e}")
        raise typer.Exit(1)

    if not quiet:
        table = Table(title="Clustering Results", show_header=True)
        table.add_column("Cluster", style="cyan")
        table.add_column("Center", style="green")
        table.add_column("Points", style="green")
        table.add_column("Capacity Weight", style="green")
        for row in cluster_summary(result, points_df).itertuples(index=False):
            table.add_row(
                str(row.Cluster),
                f"({row.Center_X:.4g}, {row.Center_Y:.4g})",
                str(row.Points),
                f"{row.Total_Capacity_Weight:,.2f}",
            )
        console.print(table)
        console.print(
            f"Objective: [bold]{result.objective:.6g}[/bold] "
            f"(restart {summary.best_index}/{summary.n_restarts}, "
            f"{len(summary.failed)} failed, {summary.total_time:.1f}s)"
        )
    log_success(f"Results saved to {saved}")


@app.command()
def version() -> None:
    """
    Show the capclust version.
    """
    console.print(f"capclust version {__version__}")


def _setup_logging_from_flags(
    verbose: bool = False, quiet: bool = False, debug: bool = False
):
    """Setup logging based on CLI flags or environment variable."""
    level_from_flags: LogLevel | None = None
    if debug:
        level_from_flags = LogLevel.DEBUG
    elif verbose:
        level_from_flags = LogLevel.VERBOSE
    elif quiet:
        level_from_flags = LogLevel.QUIET

    if level_from_flags is not None:
        setup_logging(level_from_flags)
    else:
        # No flags set, let setup_logging handle it (will check env var)
        setup_logging()


if __name__ == "__main__":
    app()
