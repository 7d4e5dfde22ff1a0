"""Percent-complete reporting for a running batch."""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)


def percent_complete(submitted: int, active: int) -> float:
    """Share of submitted work that is no longer active, in percent."""
    if submitted <= 0:
        return 100.0
    return (submitted - active) / submitted * 100.0


class ProgressReporter:
    """Emits progress after drain passes; has no effect on scheduling.

    The percentage is taken over the planned *total* so that targets not
    yet submitted count as outstanding and the figure never goes down
    while submission is still in progress.
    """

    def __init__(
            self,
            total: int,
            enabled: bool = True,
            emit: Callable[[int, int, float], None] | None = None,
    ) -> None:
        self.total = total
        self.enabled = enabled
        self.emit = emit or self._log
        self.last_percent: float | None = None

    def update(self, submitted: int, active: int) -> float:
        outstanding = active + max(self.total - submitted, 0)
        percent = percent_complete(max(self.total, submitted), outstanding)
        changed = self.last_percent is None or int(percent) != int(self.last_percent)
        self.last_percent = percent
        if self.enabled and changed:
            done = max(self.total, submitted) - outstanding
            self.emit(done, max(self.total, submitted), percent)
        return percent

    @staticmethod
    def _log(done: int, total: int, percent: float) -> None:
        logger.info("Progress: %d/%d targets finalized (%d%%)", done, total, int(percent))
