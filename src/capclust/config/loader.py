from __future__ import annotations

"""Loading capclust run configuration from YAML.

Expected layout::

    run:
      k: 4
      N: 10
      range: [100, 250]
      metric: sq_euclidean
      center_init: random
      place_to_point: true
      normalization: true
      print_mode: progress
      n_jobs: 1
      random_state: 42
    solver:
      backend: cbc
      time_limit: 60
"""

import dataclasses
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from capclust.utils.logging import CapclustLogger

from .params import RunOptions, SolverParams

logger = CapclustLogger.get_logger(__name__)

# YAML spells the outgroup parameter without the trailing underscore
_YAML_ALIASES = {"lambda": "lambda_"}


def _parse_run_section(raw: Dict[str, Any]) -> RunOptions:
    known = {f.name for f in dataclasses.fields(RunOptions)}
    kwargs: Dict[str, Any] = {}
    unknown = []
    for key, value in raw.items():
        name = _YAML_ALIASES.get(key, key)
        if name in known:
            kwargs[name] = value
        else:
            unknown.append(key)
    if unknown:
        raise ValueError(
            f"Unknown keys in 'run' section: {', '.join(sorted(unknown))}"
        )
    return RunOptions(**kwargs)


def load_yaml(path: str | Path) -> Tuple[RunOptions, SolverParams]:
    """Load a YAML configuration file into `RunOptions` and `SolverParams`."""

    cfg_path = Path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(cfg_path)

    try:
        with cfg_path.open() as f:
            data: Dict[str, Any] = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(
            f"Error parsing YAML configuration {cfg_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"YAML configuration {cfg_path} must be a mapping.")

    run_raw = data.pop("run", {}) or {}
    solver_raw = data.pop("solver", {}) or {}

    # Any remaining unknown keys will raise an error to avoid silent mistakes.
    if data:
        unknown_keys = ", ".join(sorted(data.keys()))
        raise ValueError(
            f"Unknown top-level configuration keys in YAML: {unknown_keys}"
        )

    options = _parse_run_section(run_raw)
    solver_params = SolverParams.from_mapping(solver_raw)

    logger.debug(
        "Loaded configuration – run: %s solver: %s", options, solver_params
    )

    return options, solver_params
