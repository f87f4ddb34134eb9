"""Custom metric plugin example for capclust.

Demonstrates how to register a user-defined distance through the
`capclust.registry` decorator, then cluster with free (off-point) centers
placed under that distance.

Run with:
    python examples/custom_metric.py
"""

import numpy as np

import capclust
from capclust import register_metric


# "cityblock" lets distance matrices use sklearn's vectorised implementation
@register_metric("manhattan", pairwise="cityblock")
def manhattan(x1: np.ndarray, x2: np.ndarray) -> float:
    return float(np.abs(np.asarray(x1) - np.asarray(x2)).sum())


def main():
    """Main execution function."""
    rng = np.random.default_rng(0)
    coords = rng.uniform(0, 100, size=(30, 2))
    weights = np.ones(30)

    result = capclust.run(
        coords,
        weights,
        k=3,
        N=5,
        range=(8, 12),
        metric="manhattan",
        place_to_point=False,
        random_state=3,
        solver_params={"backend": "cbc"},
        print_mode="none",
    )

    for j, center in enumerate(result.centers):
        members = np.flatnonzero(result.assignment == j)
        print(f"Cluster {j}: center ({center[0]:.1f}, {center[1]:.1f}), {members.size} points")
    print("Objective:", result.objective)


if __name__ == "__main__":
    main()
