"""
Restart orchestration: progress reporting, best-of-N selection and the run driver.
"""

from .progress import (
    ProgressBarReporter,
    SilentReporter,
    StepReporter,
    make_reporter,
)
from .restarts import RestartOrchestrator, prepare_problem, run
from .selection import ObjectiveSelector, select_best

__all__ = [
    "ObjectiveSelector",
    "ProgressBarReporter",
    "RestartOrchestrator",
    "SilentReporter",
    "StepReporter",
    "make_reporter",
    "prepare_problem",
    "run",
    "select_best",
]
