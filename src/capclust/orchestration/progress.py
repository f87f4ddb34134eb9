"""Restart progress reporting strategies.

Reporters are a pure side channel: they are told about every finished restart
but never see or influence which result is selected.  In parallel runs all
reports are issued from the parent process, in restart-index order.
"""

from capclust.config.params import PrintMode
from capclust.core_types import RestartOutcome
from capclust.interfaces import ProgressReporter
from capclust.utils.logging import ProgressTracker, Symbols, write_step

# Width of the restart progress bar, in cells
PROGRESS_BAR_WIDTH = 30


class SilentReporter:
    """Reports nothing."""

    def start(self, total: int) -> None:
        pass

    def report(self, restart_index: int, total: int, outcome: RestartOutcome) -> None:
        pass

    def close(self, elapsed: float) -> None:
        pass


class ProgressBarReporter:
    """Coarse progress bar advancing once per finished restart."""

    def __init__(self):
        self.tracker: ProgressTracker | None = None

    def start(self, total: int) -> None:
        self.tracker = ProgressTracker(
            total, desc=f"Progress (N = {total})", width=PROGRESS_BAR_WIDTH
        )

    def report(self, restart_index: int, total: int, outcome: RestartOutcome) -> None:
        if self.tracker is None:
            return
        if outcome.ok:
            self.tracker.advance()
        else:
            self.tracker.advance(f"Restart {restart_index} failed: {outcome.error}", status="warning")

    def close(self, elapsed: float) -> None:
        if self.tracker is not None:
            self.tracker.close(f"Total iteration time: {elapsed:.1f}s")
            self.tracker = None


class StepReporter:
    """One console block per restart with its timing and objective."""

    def start(self, total: int) -> None:
        write_step(f"Running {total} restarts")

    def report(self, restart_index: int, total: int, outcome: RestartOutcome) -> None:
        write_step(f"Iteration {restart_index}/{total}")
        if outcome.ok:
            write_step(
                f"  Iteration time: {outcome.elapsed:.2f}s, objective: {outcome.objective:.6g}"
            )
        else:
            write_step(
                f"  {Symbols.CROSS} Iteration time: {outcome.elapsed:.2f}s, failed: {outcome.error}"
            )

    def close(self, elapsed: float) -> None:
        write_step(f"Total iteration time: {elapsed:.1f}s")


_REPORTERS: dict[PrintMode, type] = {
    PrintMode.NONE: SilentReporter,
    PrintMode.PROGRESS: ProgressBarReporter,
    PrintMode.STEPS: StepReporter,
}


def make_reporter(mode: PrintMode | str | None) -> ProgressReporter:
    """Return a fresh reporter for ``mode``."""
    return _REPORTERS[PrintMode.parse(mode)]()
