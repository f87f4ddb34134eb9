"""Test the API module."""

from unittest.mock import MagicMock, patch

import numpy as np
import pandas as pd
import pytest

from capclust.api import _load_config, cluster, load_points, solve_points
from capclust.config.params import RunOptions, SolverParams
from capclust.core_types import ClusteringResult, RunSummary


def _result(n=20, k=2):
    return ClusteringResult(
        assignment=np.arange(n) % k,
        centers=np.zeros((k, 2)),
        objective=1.0,
    )


def test_load_points_from_dataframe(toy_points_df):
    df = load_points(toy_points_df)

    assert df is not toy_points_df
    pd.testing.assert_frame_equal(df, toy_points_df)


def test_load_points_from_csv(tmp_path, toy_points_df):
    path = tmp_path / "points.csv"
    toy_points_df.to_csv(path, index=False)

    df = load_points(path)

    assert list(df.columns) == ["x", "y", "weight"]
    assert len(df) == 20


def test_load_points_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="Points file not found"):
        load_points(tmp_path / "missing.csv")


def test_load_config_variants(tmp_path):
    assert _load_config(None) == (RunOptions(), SolverParams())

    options = RunOptions(k=3)
    assert _load_config(options) == (options, SolverParams())

    loaded = _load_config((options, {"backend": "cbc"}))
    assert loaded == (options, SolverParams(backend="cbc"))

    with pytest.raises(FileNotFoundError, match="Configuration file not found"):
        _load_config(tmp_path / "nope.yaml")


def test_solve_points_uses_optional_columns(toy_points_df):
    df = toy_points_df.assign(
        capacity_weight=np.full(20, 2.0),
        multiplicity=np.ones(20, dtype=int),
    )
    captured = {}

    def fake_execute(self, problem):
        captured["problem"] = problem
        captured["config"] = self.config
        self.summary = RunSummary(n_restarts=1, best_index=1)
        return _result()

    with patch("capclust.api.RestartOrchestrator.execute", fake_execute):
        result, summary = solve_points(df, RunOptions(k=2, N=1, print_mode="none"))

    np.testing.assert_array_equal(captured["config"].capacity_weights, np.full(20, 2.0))
    np.testing.assert_array_equal(captured["problem"].multiplicity, np.ones(20))
    assert summary.best_index == 1
    assert result.objective == 1.0


def test_cluster_requires_k(toy_points_df):
    with pytest.raises(ValueError, match="Number of clusters"):
        cluster(toy_points_df)


def test_cluster_rejects_empty_points():
    with pytest.raises(ValueError, match="empty"):
        cluster(pd.DataFrame(columns=["x", "y", "weight"]), k=2)


@patch("capclust.api.save_clustering_results")
@patch("capclust.api.solve_points")
def test_cluster_overrides_and_saves(mock_solve, mock_save, toy_points_df, tmp_path):
    summary = RunSummary(n_restarts=5, best_index=2)
    mock_solve.return_value = (_result(), summary)

    result = cluster(
        toy_points_df,
        k=2,
        config=RunOptions(k=7, N=3),
        output_dir=tmp_path,
        format="csv",
        N=5,
        random_state=1,
    )

    options = mock_solve.call_args.args[1]
    assert options.k == 2
    assert options.N == 5
    assert options.random_state == 1
    mock_save.assert_called_once()
    assert mock_save.call_args.kwargs["format"] == "csv"
    assert mock_save.call_args.kwargs["summary"] is summary
    assert result.objective == 1.0


@patch("capclust.api.log_warning")
@patch("capclust.api.save_clustering_results", side_effect=OSError("read-only"))
@patch("capclust.api.solve_points")
def test_cluster_save_failure_is_reported(mock_solve, mock_save, mock_warning, toy_points_df, tmp_path):
    mock_solve.return_value = (_result(), MagicMock())

    result = cluster(toy_points_df, k=2, output_dir=tmp_path)

    assert isinstance(result, ClusteringResult)
    assert "read-only" in mock_warning.call_args.args[0]


@patch("capclust.api.solve_points")
def test_cluster_does_not_save_without_output_dir(mock_solve, toy_points_df):
    mock_solve.return_value = (_result(), MagicMock())

    with patch("capclust.api.save_clustering_results") as mock_save:
        cluster(toy_points_df, k=2)

    mock_save.assert_not_called()
