"""Bounded worker pool that admits target operations.

Work runs on a :class:`~concurrent.futures.ThreadPoolExecutor` sized to the
configured capacity. Submissions never block: excess work waits in the
executor's FIFO queue until a worker frees up.
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures.thread import BrokenThreadPool
from typing import Any, Callable

from fanrun.engine.types import ActiveSlotSet, SharedContext, Target, TaskSlot

logger = logging.getLogger(__name__)

Operation = Callable[[Target, SharedContext], Any]

# per-worker copy of the shared context, installed by the executor initializer
_worker_state = threading.local()


class PoolError(Exception):
    """Raised when the pool cannot be opened or no longer accepts work."""

    pass


def _init_worker(context: SharedContext) -> None:
    _worker_state.context = context


def current_context() -> SharedContext | None:
    """Return the context of the worker thread calling this, if any."""
    return getattr(_worker_state, "context", None)


def _invoke(operation: Operation, target: Target) -> Any:
    return operation(target, _worker_state.context)


class WorkerPool:
    """Fixed-capacity execution pool feeding an :class:`ActiveSlotSet`."""

    def __init__(
            self,
            executor: ThreadPoolExecutor,
            capacity: int,
            context: SharedContext,
            slots: ActiveSlotSet,
    ) -> None:
        self._executor = executor
        self.capacity = capacity
        self.context = context
        self.slots = slots
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._closed = False
        self.submitted = 0

    @classmethod
    def open(
            cls,
            capacity: int,
            context: SharedContext,
            slots: ActiveSlotSet | None = None,
    ) -> WorkerPool:
        """Create a pool with exactly *capacity* workers.

        Raises:
            PoolError: If the capacity is invalid or the executor cannot
                be created.
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise PoolError("Pool capacity must be a positive integer, got %r" % (capacity,))
        try:
            executor = ThreadPoolExecutor(
                max_workers=capacity,
                thread_name_prefix="fanrun",
                initializer=_init_worker,
                initargs=(context,),
            )
        except (ValueError, RuntimeError) as e:
            raise PoolError("Could not open worker pool: %s" % e) from e

        logger.debug("Opened worker pool with capacity %d", capacity)
        return cls(executor, capacity, context, slots if slots is not None else ActiveSlotSet())

    def submit(self, target: Target, operation: Operation) -> TaskSlot:
        """Queue *operation* for *target* and return its slot immediately.

        Raises:
            PoolError: If the pool is closed or its workers failed to start.
        """
        with self._lock:
            if self._closed:
                raise PoolError("Worker pool is closed")
            slot_id = next(self._ids)
            dispatch_time = time.monotonic()
            try:
                future = self._executor.submit(_invoke, operation, target)
            except BrokenThreadPool as e:
                raise PoolError("Worker pool is broken: %s" % e) from e
            except RuntimeError as e:
                raise PoolError("Worker pool rejected submission: %s" % e) from e

            slot = TaskSlot(id=slot_id, target=target, dispatch_time=dispatch_time, future=future)
            self.slots.add(slot)
            self.submitted += 1

        logger.debug("  -> slot %d: %s", slot_id, target)
        return slot

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop accepting work and release the executor.

        Queued operations are cancelled; operations already running are
        abandoned rather than waited on.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.debug("Closed worker pool (%d submitted)", self.submitted)

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
