"""Registry for pluggable components in capclust."""

from collections.abc import Callable

from capclust.utils.logging import CapclustLogger

from .interfaces import Metric, SolverAdapter

logger = CapclustLogger.get_logger(__name__)

# Registries for each component type
METRIC_REGISTRY: dict[str, Metric] = {}
SOLVER_ADAPTER_REGISTRY: dict[str, type[SolverAdapter]] = {}

__all__ = [
    "register_metric",
    "register_solver_adapter",
    "get_metric",
    # Expose registries for advanced users who need direct access
    "METRIC_REGISTRY",
    "SOLVER_ADAPTER_REGISTRY",
]


def register_metric(name: str, pairwise: str | None = None):
    """Decorator to register a distance metric.

    ``pairwise`` names the equivalent ``sklearn.metrics.pairwise_distances``
    metric, which lets whole matrices be computed in a single vectorised call.
    """

    def decorator(func: Callable[..., float]):
        if name in METRIC_REGISTRY:
            raise ValueError(f"Metric '{name}' is already registered")
        func.pairwise_name = pairwise  # type: ignore[attr-defined]
        METRIC_REGISTRY[name] = func
        return func

    return decorator


def register_solver_adapter(name: str):
    """Decorator to register a PuLP solver adapter implementation."""

    def decorator(cls: type[SolverAdapter]):
        if name in SOLVER_ADAPTER_REGISTRY:
            raise ValueError(f"Solver adapter '{name}' is already registered")
        SOLVER_ADAPTER_REGISTRY[name] = cls
        return cls

    return decorator


def get_metric(metric: str | Metric) -> Metric:
    """Resolve a metric name to its registered function; callables pass through."""
    if callable(metric):
        return metric
    try:
        return METRIC_REGISTRY[metric]
    except KeyError:
        raise KeyError(
            f"Unknown metric '{metric}'. Available: {sorted(METRIC_REGISTRY)}"
        ) from None
