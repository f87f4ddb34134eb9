"""Test the capclust command-line interface."""

import json
from unittest.mock import patch

import numpy as np
import pytest
from typer.testing import CliRunner

from capclust import __version__
from capclust.app import app
from capclust.core_types import ClusteringResult, RunSummary
from capclust.exceptions import AllRestartsFailedError, InfeasibleRestartError

runner = CliRunner()


@pytest.fixture
def points_csv(tmp_path, toy_points_df):
    path = tmp_path / "points.csv"
    toy_points_df.to_csv(path, index=False)
    return path


def _fake_solve(points_df, options, solver_params=None):
    n = len(points_df)
    result = ClusteringResult(
        assignment=np.arange(n) % options.k,
        centers=np.zeros((options.k, 2)),
        objective=0.5,
    )
    return result, RunSummary(n_restarts=options.N or 10, best_index=1, objectives=[0.5])


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_help():
    result = runner.invoke(app, ["run", "--help"])

    assert result.exit_code == 0
    assert "--points" in result.stdout


def test_missing_points_file(tmp_path):
    result = runner.invoke(app, ["run", "--points", str(tmp_path / "none.csv"), "--k", "2"])

    assert result.exit_code == 1


def test_missing_config_file(points_csv, tmp_path):
    result = runner.invoke(
        app, ["run", "-p", str(points_csv), "--k", "2", "-c", str(tmp_path / "none.yaml")]
    )

    assert result.exit_code == 1


def test_invalid_format(points_csv):
    result = runner.invoke(app, ["run", "-p", str(points_csv), "--k", "2", "-f", "xlsx"])

    assert result.exit_code == 1


def test_k_required(points_csv):
    result = runner.invoke(app, ["run", "-p", str(points_csv)])

    assert result.exit_code == 1


@patch("capclust.app.solve_points", side_effect=_fake_solve)
def test_run_writes_results(mock_solve, points_csv, tmp_path):
    out = tmp_path / "out"

    result = runner.invoke(
        app,
        ["run", "-p", str(points_csv), "--k", "3", "-N", "4", "--seed", "7", "-o", str(out)],
    )

    assert result.exit_code == 0, result.stdout
    options = mock_solve.call_args.args[1]
    assert options.k == 3
    assert options.N == 4
    assert options.random_state == 7
    written = list(out.glob("clustering_results_*.json"))
    assert len(written) == 1
    data = json.loads(written[0].read_text())
    assert data["objective"] == 0.5
    assert data["run"]["restarts"] == 4
    assert "Clustering Results" in result.stdout


@patch("capclust.app.solve_points", side_effect=_fake_solve)
def test_run_with_config_file(mock_solve, points_csv, tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("run:\n  k: 2\n  N: 6\nsolver:\n  backend: cbc\n")

    result = runner.invoke(
        app, ["run", "-p", str(points_csv), "-c", str(config), "-o", str(tmp_path), "-f", "csv"]
    )

    assert result.exit_code == 0, result.stdout
    options, solver_params = mock_solve.call_args.args[1], mock_solve.call_args.args[2]
    assert options.k == 2
    assert options.N == 6
    assert solver_params.backend == "cbc"
    assert len(list(tmp_path.glob("clustering_results_*.csv"))) == 1


@patch("capclust.app.solve_points")
def test_all_restarts_failed(mock_solve, points_csv, tmp_path):
    mock_solve.side_effect = AllRestartsFailedError([InfeasibleRestartError("Infeasible", 1)])

    result = runner.invoke(app, ["run", "-p", str(points_csv), "--k", "2", "-o", str(tmp_path)])

    assert result.exit_code == 1


def test_invalid_options_reported(points_csv, tmp_path):
    result = runner.invoke(
        app, ["run", "-p", str(points_csv), "--k", "2", "-N", "0", "-o", str(tmp_path)]
    )

    assert result.exit_code == 1
    assert not list(tmp_path.glob("clustering_results_*"))


@pytest.mark.slow
def test_run_end_to_end_with_cbc(points_csv, tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("run:\n  print_mode: none\nsolver:\n  backend: cbc\n")

    result = runner.invoke(
        app,
        ["run", "-p", str(points_csv), "--k", "3", "-N", "2", "-c", str(config),
         "-o", str(tmp_path), "--quiet"],
    )

    assert result.exit_code == 0, result.stdout
    written = list(tmp_path.glob("clustering_results_*.json"))
    assert len(written) == 1
    data = json.loads(written[0].read_text())
    assert len(data["assignment"]) == 20
