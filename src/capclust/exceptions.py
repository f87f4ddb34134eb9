"""Exception hierarchy for capclust."""


class ValidationError(ValueError):
    """Raised when run inputs violate a structural or type constraint."""


class ConfigurationError(ValidationError):
    """Raised when options are individually valid but inconsistent with each other."""


class SolverFailure(RuntimeError):
    """Raised when the single-pass solver cannot produce a clustering."""

    def __init__(self, message: str, restart_index: int | None = None):
        super().__init__(message)
        self.restart_index = restart_index

    # Outcomes travel back from worker processes, so keep the extra fields
    def __reduce__(self):
        return (self.__class__, (str(self), self.restart_index))


class InfeasibleRestartError(SolverFailure):
    """The assignment model has no feasible solution for the sampled centers."""

    def __init__(self, status: str, restart_index: int | None = None):
        super().__init__(
            f"Assignment model not solved to optimality (status: {status})",
            restart_index,
        )
        self.status = status

    def __reduce__(self):
        return (self.__class__, (self.status, self.restart_index))


class AllRestartsFailedError(SolverFailure):
    """Raised when no restart produced a usable clustering."""

    def __init__(self, failures: list[SolverFailure]):
        reasons = "; ".join(
            f"restart {f.restart_index}: {f}" for f in failures[:5]
        )
        super().__init__(f"All {len(failures)} restarts failed ({reasons})")
        self.failures = failures

    def __reduce__(self):
        return (self.__class__, (self.failures,))
