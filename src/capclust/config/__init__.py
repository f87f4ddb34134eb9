"""Configuration module for capclust parameters."""

from .loader import load_yaml as load_run_config
from .params import (
    PrintMode,
    RunConfig,
    RunOptions,
    SolverParams,
    resolve_options,
)

__all__ = [
    "PrintMode",
    "RunConfig",
    "RunOptions",
    "SolverParams",
    "resolve_options",
    "load_run_config",
]
