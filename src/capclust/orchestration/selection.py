"""Best-of-N reduction over restart outcomes."""

from collections.abc import Iterable

from capclust.core_types import ClusteringResult, RestartOutcome


class ObjectiveSelector:
    """Keeps the lowest-objective result seen so far.

    The first successful outcome seeds the running best; a later one replaces
    it only if its objective is strictly lower, so ties go to the earlier
    restart.  Outcomes must be offered in increasing restart index, which
    makes the selection independent of how restarts were scheduled.
    """

    def __init__(self):
        self._best: RestartOutcome | None = None
        self._last_index = 0

    def offer(self, outcome: RestartOutcome) -> bool:
        """Fold ``outcome`` in; return True if it became the new best."""
        if outcome.index <= self._last_index:
            raise ValueError(
                f"Restart {outcome.index} offered after restart {self._last_index}; "
                "outcomes must be folded in restart-index order"
            )
        self._last_index = outcome.index
        if not outcome.ok:
            return False
        if self._best is None or outcome.objective < self._best.objective:
            self._best = outcome
            return True
        return False

    @property
    def best(self) -> ClusteringResult | None:
        return None if self._best is None else self._best.result

    @property
    def best_index(self) -> int | None:
        return None if self._best is None else self._best.index

    @property
    def best_objective(self) -> float:
        return float("inf") if self._best is None else self._best.objective


def select_best(outcomes: Iterable[RestartOutcome]) -> RestartOutcome | None:
    """Fold ``outcomes`` (sorted by restart index) and return the winning one."""
    selector = ObjectiveSelector()
    winner = None
    for outcome in sorted(outcomes, key=lambda o: o.index):
        if selector.offer(outcome):
            winner = outcome
    return winner
