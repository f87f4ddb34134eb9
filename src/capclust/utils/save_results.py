"""
save_results.py – persistence of clustering results

Writes a `ClusteringResult` to the results directory, either as a JSON
summary (objective, centers, per-cluster totals, assignment) or as a CSV of
per-point assignments joined with the input points.  File names are
timestamped so repeated runs never overwrite each other.
"""

import json
from datetime import datetime
from pathlib import Path

import numpy as np
import pandas as pd

from capclust.core_types import ClusteringResult, RunSummary
from capclust.utils.logging import CapclustLogger

logger = CapclustLogger.get_logger(__name__)


def cluster_summary(result: ClusteringResult, points_df: pd.DataFrame) -> pd.DataFrame:
    """One row per cluster with its center, point count and total weights."""
    membership = result.membership()
    weights = points_df["weight"].to_numpy(dtype=float)
    if "capacity_weight" in points_df.columns:
        capacity_weights = points_df["capacity_weight"].to_numpy(dtype=float)
    else:
        capacity_weights = weights
    return pd.DataFrame(
        {
            "Cluster": np.arange(result.k),
            "Center_X": result.centers[:, 0],
            "Center_Y": result.centers[:, 1],
            "Points": (membership > 0).sum(axis=0),
            "Total_Weight": weights @ membership,
            "Total_Capacity_Weight": capacity_weights @ membership,
        }
    )


def save_clustering_results(
    result: ClusteringResult,
    points_df: pd.DataFrame,
    results_dir: str | Path,
    filename: str | None = None,
    format: str = "json",
    summary: RunSummary | None = None,
) -> Path:
    """Save a clustering result to ``results_dir`` and return the written path."""
    if format not in {"json", "csv"}:
        raise ValueError(f"Unsupported format '{format}'; use 'json' or 'csv'.")

    results_dir = Path(results_dir)
    results_dir.mkdir(parents=True, exist_ok=True)
    if filename is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"clustering_results_{timestamp}.{format}"
    output_path = results_dir / filename

    if format == "csv":
        table = points_df.reset_index(drop=True).join(
            result.to_dataframe().drop(columns=["point"])
        )
        table.to_csv(output_path, index=False)
    else:
        data = result.to_dict()
        data["clusters"] = cluster_summary(result, points_df).to_dict(orient="records")
        if summary is not None:
            data["run"] = {
                "restarts": summary.n_restarts,
                "best_restart": summary.best_index,
                "objectives": summary.objectives,
                "failed_restarts": summary.failed,
                "total_time_sec": summary.total_time,
            }
        with open(output_path, "w") as f:
            json.dump(data, f, indent=2, default=_json_default)

    logger.info(f"Results saved to {output_path}")
    return output_path


def _json_default(value):
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
