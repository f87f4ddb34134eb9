from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from capclust.exceptions import ConfigurationError, SolverFailure


@dataclass
class PointSet:
    """Weighted points in the plane."""

    coords: np.ndarray  # (n, 2)
    weights: np.ndarray  # demand, drives the assignment cost
    capacity_weights: np.ndarray  # drives capacity accounting only

    @property
    def n(self) -> int:
        return int(self.coords.shape[0])

    @staticmethod
    def from_dataframe(df: pd.DataFrame) -> "PointSet":
        """Build a PointSet from columns x, y, weight and optional capacity_weight."""
        missing = [col for col in ("x", "y", "weight") if col not in df.columns]
        if missing:
            raise ValueError(
                f"Missing required columns: {missing}\n"
                f"Available columns are: {list(df.columns)}"
            )
        weights = df["weight"].to_numpy(dtype=float)
        if "capacity_weight" in df.columns:
            capacity_weights = df["capacity_weight"].to_numpy(dtype=float)
        else:
            capacity_weights = weights.copy()
        return PointSet(
            coords=df[["x", "y"]].to_numpy(dtype=float),
            weights=weights,
            capacity_weights=capacity_weights,
        )

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "x": self.coords[:, 0],
                "y": self.coords[:, 1],
                "weight": self.weights,
                "capacity_weight": self.capacity_weights,
            }
        )


@dataclass
class CapacityRange:
    """Per-cluster ``(low, high)`` bounds on total capacity weight."""

    bounds: np.ndarray  # (k, 2)

    @staticmethod
    def from_value(value: Any, k: int) -> "CapacityRange":
        """Broadcast a ``(low, high)`` pair to ``k`` rows, or take a ``k x 2`` matrix."""
        arr = np.array(value, dtype=float)
        if arr.ndim == 1:
            if arr.shape[0] != 2:
                raise ConfigurationError(
                    f"Capacity range must be a (low, high) pair, got {arr.shape[0]} values"
                )
            return CapacityRange(bounds=np.tile(arr, (k, 1)))
        if arr.ndim != 2 or arr.shape[1] != 2:
            raise ConfigurationError(
                f"Capacity range matrix must have 2 columns, got shape {arr.shape}"
            )
        if arr.shape[0] != k:
            raise ConfigurationError(
                f"Capacity range matrix has {arr.shape[0]} rows but k = {k}"
            )
        return CapacityRange(bounds=arr.copy())

    @property
    def k(self) -> int:
        return int(self.bounds.shape[0])

    @property
    def is_uniform(self) -> bool:
        return bool(np.all(self.bounds == self.bounds[0]))

    def low(self, j: int) -> float:
        return float(self.bounds[j, 0])

    def high(self, j: int) -> float:
        return float(self.bounds[j, 1])

    def scaled(self, factor: float) -> "CapacityRange":
        """Return a new range with both bounds divided by ``factor``."""
        return CapacityRange(bounds=self.bounds / factor)


@dataclass(frozen=True)
class ClusteringResult:
    """Outcome of one single-pass solve.

    ``assignment`` holds a cluster index per point (-1 for outgroup points).
    For fractional or multi-membership solutions it is the cluster with the
    largest share and the full ``n x k`` matrix is kept in ``fractional``.
    """

    assignment: np.ndarray
    centers: np.ndarray
    objective: float
    fractional: np.ndarray | None = None
    center_ids: np.ndarray | None = None
    outgroup: np.ndarray | None = None
    iterations: int = 0

    @property
    def k(self) -> int:
        return int(self.centers.shape[0])

    def membership(self) -> np.ndarray:
        """Return the ``n x k`` membership matrix (one-hot for hard assignments)."""
        if self.fractional is not None:
            return self.fractional
        n = self.assignment.shape[0]
        matrix = np.zeros((n, self.k))
        assigned = self.assignment >= 0
        matrix[np.flatnonzero(assigned), self.assignment[assigned]] = 1.0
        return matrix

    def cluster_weights(self, capacity_weights: np.ndarray) -> np.ndarray:
        """Total capacity weight carried by each cluster."""
        return np.asarray(capacity_weights, dtype=float) @ self.membership()

    def to_dataframe(self) -> pd.DataFrame:
        """Per-point assignment table."""
        data: dict[str, Any] = {
            "point": np.arange(self.assignment.shape[0]),
            "cluster": self.assignment,
        }
        if self.outgroup is not None:
            data["outgroup"] = self.outgroup
        if self.fractional is not None:
            for j in range(self.k):
                data[f"share_{j}"] = self.fractional[:, j]
        return pd.DataFrame(data)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "objective": float(self.objective),
            "iterations": int(self.iterations),
            "centers": self.centers.tolist(),
            "assignment": self.assignment.tolist(),
        }
        if self.center_ids is not None:
            data["center_ids"] = self.center_ids.tolist()
        if self.outgroup is not None:
            data["outgroup"] = np.flatnonzero(self.outgroup).tolist()
        if self.fractional is not None:
            data["fractional"] = self.fractional.tolist()
        return data


@dataclass
class RestartOutcome:
    """Result (or failure) of one restart."""

    index: int  # 1-based restart index
    result: ClusteringResult | None = None
    error: SolverFailure | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.result is not None

    @property
    def objective(self) -> float:
        return self.result.objective if self.result is not None else float("inf")


@dataclass
class RunSummary:
    """Bookkeeping of a multi-restart run."""

    n_restarts: int
    best_index: int
    objectives: list[float] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)
    total_time: float = 0.0
