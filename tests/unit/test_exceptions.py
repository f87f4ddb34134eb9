"""Tests for the exception hierarchy."""

import pickle

import pytest

from capclust.exceptions import (
    AllRestartsFailedError,
    ConfigurationError,
    InfeasibleRestartError,
    SolverFailure,
    ValidationError,
)


def test_hierarchy():
    assert issubclass(ConfigurationError, ValidationError)
    assert issubclass(ValidationError, ValueError)
    assert issubclass(InfeasibleRestartError, SolverFailure)
    assert issubclass(AllRestartsFailedError, SolverFailure)


@pytest.mark.parametrize(
    "error",
    [
        SolverFailure("no centers left", restart_index=4),
        InfeasibleRestartError("Infeasible", restart_index=2),
    ],
)
def test_restart_errors_survive_pickling(error):
    restored = pickle.loads(pickle.dumps(error))

    assert type(restored) is type(error)
    assert str(restored) == str(error)
    assert restored.restart_index == error.restart_index


def test_all_restarts_failed_survives_pickling():
    failures = [InfeasibleRestartError("Infeasible", restart_index=i) for i in (1, 2)]
    error = AllRestartsFailedError(failures)

    restored = pickle.loads(pickle.dumps(error))

    assert isinstance(restored, AllRestartsFailedError)
    assert str(restored) == str(error)
    assert "All 2 restarts failed" in str(restored)
    assert [f.restart_index for f in restored.failures] == [1, 2]
    assert restored.failures[0].status == "Infeasible"
