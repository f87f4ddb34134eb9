"""PuLP solver selection for the assignment model."""

import os
from typing import Any

import pulp

from capclust.config.params import SolverParams
from capclust.registry import SOLVER_ADAPTER_REGISTRY, register_solver_adapter


@register_solver_adapter("gurobi")
class GurobiAdapter:
    """Adapter for Gurobi solver."""

    def get_pulp_solver(
        self,
        params: SolverParams,
    ) -> pulp.LpSolver:
        """Return a configured Gurobi solver instance.

        Args:
            params: Solver parameters containing verbose, gap_rel, time_limit
                and threads settings.
        """
        msg = 1 if params.verbose else 0
        kwargs: dict[str, Any] = {"msg": msg}
        # Only pass gapRel when an explicit tolerance is requested – omitting
        # it forces the solver to strive for optimality with gap = 0.
        if params.gap_rel is not None:
            kwargs["gapRel"] = params.gap_rel

        options: list[tuple[str, int | float]] = []
        if params.time_limit is not None and params.time_limit > 0:  # 0 means no limit
            options.append(("TimeLimit", params.time_limit))
        if params.threads is not None:
            options.append(("Threads", params.threads))
        options.extend(params.extra.items())

        if options:
            kwargs["options"] = options

        return pulp.GUROBI_CMD(**kwargs)

    @property
    def name(self) -> str:
        """Solver name for logging."""
        return "Gurobi"

    @property
    def available(self) -> bool:
        """Check if Gurobi is available."""
        # GUROBI_CMD shells out to gurobi_cl, so the binary must be on PATH
        return bool(pulp.GUROBI_CMD(msg=0).available())


@register_solver_adapter("cbc")
class CbcAdapter:
    """Adapter for CBC solver."""

    def get_pulp_solver(
        self,
        params: SolverParams,
    ) -> pulp.LpSolver:
        """Return a configured CBC solver instance."""
        msg = 1 if params.verbose else 0
        kwargs: dict[str, Any] = {"msg": msg}
        if params.gap_rel is not None:
            kwargs["gapRel"] = params.gap_rel

        # CBC uses timeLimit for time limit
        if params.time_limit is not None and params.time_limit > 0:
            kwargs["timeLimit"] = params.time_limit
        if params.threads is not None:
            kwargs["threads"] = params.threads

        return pulp.PULP_CBC_CMD(**kwargs)

    @property
    def name(self) -> str:
        """Solver name for logging."""
        return "CBC"

    @property
    def available(self) -> bool:
        """Check if CBC is available."""
        # CBC is always available as it's bundled with PuLP
        return True


def pick_solver(params: SolverParams) -> pulp.LpSolver:
    """
    Return a PuLP solver instance based on SolverParams.

    Priority:
    1. CAPCLUST_SOLVER env-var: 'gurobi' | 'cbc' | 'auto' (overrides params.backend)
    2. params.backend: 'gurobi' | 'cbc' | 'auto'
    3. If 'auto': try GUROBI_CMD, fall back to PULP_CBC_CMD.
    """
    env_choice = os.getenv("CAPCLUST_SOLVER")
    choice = (env_choice or params.backend).lower()

    if choice in ("gurobi", "cbc"):
        adapter = SOLVER_ADAPTER_REGISTRY[choice]()
        return adapter.get_pulp_solver(params)

    # auto: try Gurobi, fallback to CBC on instantiation errors
    gurobi_adapter = SOLVER_ADAPTER_REGISTRY["gurobi"]()
    if gurobi_adapter.available:
        try:
            return gurobi_adapter.get_pulp_solver(params)
        except (pulp.PulpError, OSError):
            # Fall back to CBC if Gurobi fails
            pass

    cbc_adapter = SOLVER_ADAPTER_REGISTRY["cbc"]()
    return cbc_adapter.get_pulp_solver(params)
