"""
Demo of the capclust public API.

This example shows how to:
1. Run the multi-restart clustering on arrays
2. Drive the stages (prepare, restarts, selection) individually
3. Run from a points table and save the results
"""

import numpy as np
import pandas as pd

import capclust
from capclust import RestartOrchestrator, RunOptions, SolverParams
from capclust.orchestration import prepare_problem


def main():
    """Cluster 60 random demand points into 4 balanced groups."""
    rng = np.random.default_rng(2024)
    coords = np.vstack(
        [rng.normal(loc, 5.0, size=(15, 2)) for loc in ([0, 0], [40, 0], [0, 40], [40, 40])]
    )
    weights = rng.integers(1, 10, size=60).astype(float)
    quarter = weights.sum() / 4

    # Example 1: one call
    print("=== Example 1: run() ===")
    result = capclust.run(
        coords,
        weights,
        k=4,
        N=10,
        range=(quarter * 0.8, quarter * 1.2),
        random_state=7,
        solver_params={"backend": "cbc"},
    )
    print(f"Objective (normalised): {result.objective:.4f}")
    print(f"Cluster weights: {np.round(result.cluster_weights(weights), 1)}")
    print(f"Centers:\n{result.centers}")

    # Example 2: individual stages
    print("\n=== Example 2: stages ===")
    options = RunOptions(
        k=4, N=5, range=(quarter * 0.8, quarter * 1.2), center_init="kmpp",
        random_state=7, print_mode="steps",
    )
    config, problem = prepare_problem(coords, weights, options)
    print(f"Distance scale: {problem.distance_scale:.1f}, capacity scale: {problem.capacity_scale:.1f}")
    orchestrator = RestartOrchestrator(config, SolverParams(backend="cbc"))
    best = orchestrator.execute(problem)
    summary = orchestrator.summary
    print(f"Best restart {summary.best_index}/{summary.n_restarts}: {best.objective:.4f}")

    # Example 3: points table with an outgroup
    print("\n=== Example 3: cluster() with an outgroup ===")
    points = pd.DataFrame({"x": coords[:, 0], "y": coords[:, 1], "weight": weights})
    result = capclust.cluster(
        points,
        k=4,
        config=(RunOptions(range=(0, quarter * 0.7), lambda_=0.5), {"backend": "cbc"}),
        N=5,
        random_state=1,
        print_mode="none",
    )
    print(f"Points left in the outgroup: {int(result.outgroup.sum())}")


if __name__ == "__main__":
    main()
