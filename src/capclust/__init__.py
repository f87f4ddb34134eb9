"""capclust: multi-restart capacitated clustering."""

__version__ = "0.1.0"

# Main API
from .api import cluster

# Core types
from .config.params import PrintMode, RunOptions, SolverParams
from .core_types import CapacityRange, ClusteringResult, PointSet, RestartOutcome
from .exceptions import (
    AllRestartsFailedError,
    ConfigurationError,
    InfeasibleRestartError,
    SolverFailure,
    ValidationError,
)
from .interfaces import Metric, ProgressReporter, SinglePassSolver
from .metrics import euclidean, sq_euclidean
from .orchestration import ObjectiveSelector, RestartOrchestrator, run
from .preprocess import build_distance_matrix, normalize

# Extension system
from .registry import register_metric, register_solver_adapter
from .solver import capacitated_location_allocation

__all__ = [
    # Version
    "__version__",
    # Main API
    "run",
    "cluster",
    # Stage functions
    "build_distance_matrix",
    "normalize",
    "capacitated_location_allocation",
    "RestartOrchestrator",
    "ObjectiveSelector",
    # Types
    "CapacityRange",
    "ClusteringResult",
    "PointSet",
    "PrintMode",
    "RestartOutcome",
    "RunOptions",
    "SolverParams",
    # Errors
    "AllRestartsFailedError",
    "ConfigurationError",
    "InfeasibleRestartError",
    "SolverFailure",
    "ValidationError",
    # Metrics
    "euclidean",
    "sq_euclidean",
    # Extensions
    "register_metric",
    "register_solver_adapter",
    "Metric",
    "ProgressReporter",
    "SinglePassSolver",
]
