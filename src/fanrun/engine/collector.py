"""Drain finished and overdue slots out of the active set."""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, CancelledError, wait
from enum import Enum
from typing import Callable, Mapping

from fanrun.engine.types import (
    ActiveSlotSet,
    SlotState,
    Target,
    TaskFailure,
    TaskResult,
    TaskSlot,
    TaskSuccess,
)

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.25


class DrainMode(Enum):
    NON_BLOCKING = "non_blocking"
    BLOCK_UNTIL_EMPTY = "block_until_empty"


class ResultCollector:
    """Finalizes slots and accumulates their results.

    Results are appended in the order completions are observed. Slots past
    the timeout are abandoned: the handle is disposed, a warning is logged,
    and no result is recorded for the target.
    """

    def __init__(
            self,
            slots: ActiveSlotSet,
            timeout: float,
            poll_interval: float = DEFAULT_POLL_INTERVAL,
            on_pass: Callable[[], None] | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive, got %r" % (timeout,))
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive, got %r" % (poll_interval,))
        self.slots = slots
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.on_pass = on_pass
        self.results: list[TaskResult] = []
        self.timed_out: list[Target] = []
        self.passes = 0

    def drain(self, mode: DrainMode = DrainMode.NON_BLOCKING) -> int:
        """Finalize what can be finalized; returns the number of slots removed.

        ``NON_BLOCKING`` makes a single pass. ``BLOCK_UNTIL_EMPTY`` repeats
        passes until no slot is active, waiting between passes for the next
        completion but never longer than the poll interval or the nearest
        deadline.
        """
        finalized = self._pass()
        if mode is DrainMode.NON_BLOCKING:
            return finalized

        while True:
            active = self.slots.snapshot()
            if not active:
                return finalized
            wait(
                [s.future for s in active],
                timeout=self._wait_budget(active),
                return_when=FIRST_COMPLETED,
            )
            finalized += self._pass()

    def drain_once(self) -> int:
        """One non-blocking pass over the active set."""
        return self.drain(DrainMode.NON_BLOCKING)

    def _pass(self) -> int:
        finalized = 0
        now = time.monotonic()
        for slot in self.slots.snapshot():
            future = slot.future
            if slot.state is SlotState.PENDING and (future.running() or future.done()):
                slot.advance(SlotState.RUNNING)

            if future.done():
                self._complete(slot)
            elif slot.elapsed(now) >= self.timeout:
                self._abandon(slot, now)
            else:
                continue
            finalized += 1

        self.passes += 1
        if self.on_pass is not None:
            self.on_pass()
        return finalized

    def _wait_budget(self, active: list[TaskSlot]) -> float:
        now = time.monotonic()
        nearest = min(s.dispatch_time + self.timeout for s in active) - now
        return max(0.0, min(self.poll_interval, nearest))

    def _complete(self, slot: TaskSlot) -> None:
        elapsed = slot.elapsed(time.monotonic())
        try:
            payload = slot.future.result()
        except (Exception, CancelledError) as e:
            result: TaskResult = TaskFailure(
                target=slot.target,
                slot_id=slot.id,
                error=str(e) or e.__class__.__name__,
                error_type=e.__class__.__name__,
                elapsed=elapsed,
            )
            logger.warning("  %s FAILED (%.1fs): %s", slot.target, elapsed, result.error)
        else:
            if isinstance(payload, Mapping):
                result = TaskSuccess(
                    target=slot.target, slot_id=slot.id, payload=dict(payload), elapsed=elapsed,
                )
                logger.debug("  <- slot %d: %s OK (%.1fs)", slot.id, slot.target, elapsed)
            else:
                result = TaskFailure(
                    target=slot.target,
                    slot_id=slot.id,
                    error="operation returned %s, expected a mapping" % type(payload).__name__,
                    error_type="TypeError",
                    elapsed=elapsed,
                )
                logger.warning("  %s FAILED: %s", slot.target, result.error)

        slot.advance(SlotState.COMPLETED)
        self.slots.remove(slot)
        self.results.append(result)

    def _abandon(self, slot: TaskSlot, now: float) -> None:
        cancelled = slot.dispose()
        slot.advance(SlotState.TIMED_OUT)
        self.slots.remove(slot)
        self.timed_out.append(slot.target)
        logger.warning(
            "  %s TIMEOUT after %.0fs, dropped%s",
            slot.target,
            slot.elapsed(now),
            " before it started" if cancelled else "",
        )
