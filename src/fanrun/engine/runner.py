"""Batch orchestration: submit every target, drain as we go, then drain out.

The orchestrator is single-threaded. It never waits on a remote call
directly; it only hands work to the :class:`WorkerPool` and lets the
:class:`ResultCollector` finalize slots between submissions and, at the
end, until the active set is empty.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from fanrun.engine.collector import DEFAULT_POLL_INTERVAL, DrainMode, ResultCollector
from fanrun.engine.pool import Operation, WorkerPool
from fanrun.engine.progress import ProgressReporter
from fanrun.engine.resolver import LocalHostResolver
from fanrun.engine.types import (
    ActiveSlotSet,
    Credential,
    SharedContext,
    Target,
    TaskFailure,
    TaskResult,
    TaskSuccess,
)

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 32
DEFAULT_TIMEOUT = 120


@dataclass(frozen=True)
class EngineSettings:
    """Concurrency knobs for one batch."""

    capacity: int = DEFAULT_CAPACITY
    timeout: float = DEFAULT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    show_progress: bool = False

    def __post_init__(self):
        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int) or self.capacity < 1:
            raise ValueError("capacity must be a positive integer, got %r" % (self.capacity,))
        if self.timeout <= 0:
            raise ValueError("timeout must be positive, got %r" % (self.timeout,))
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive, got %r" % (self.poll_interval,))


@dataclass
class BatchReport:
    """Everything a batch produced: results in completion order plus drops."""

    results: list[TaskResult] = field(default_factory=list)
    timed_out: list[Target] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def succeeded(self) -> list[TaskSuccess]:
        return [r for r in self.results if isinstance(r, TaskSuccess)]

    @property
    def failed(self) -> list[TaskFailure]:
        return [r for r in self.results if isinstance(r, TaskFailure)]

    @property
    def all_ok(self) -> bool:
        return not self.timed_out and all(r.ok for r in self.results)


class BatchRunner:
    """Runs one operation against many targets with bounded concurrency."""

    def __init__(self, settings: EngineSettings, context: SharedContext) -> None:
        self.settings = settings
        self.context = context
        self.timed_out: list[Target] = []
        self.elapsed = 0.0
        self.progress: ProgressReporter | None = None

    def run(self, targets: Iterable[Target], operation: Operation) -> list[TaskResult]:
        """Fan *operation* out over *targets* and return the collected results.

        Raises:
            PoolError: If the worker pool cannot be opened or stops
                accepting work; no partial results are returned.
        """
        targets = list(targets)
        slots = ActiveSlotSet()
        t0 = time.monotonic()

        logger.info("Running on %d target(s) (capacity=%d, timeout=%ss)",
                    len(targets), self.settings.capacity, self.settings.timeout)

        pool = WorkerPool.open(self.settings.capacity, self.context, slots)
        progress = ProgressReporter(len(targets), enabled=self.settings.show_progress)
        self.progress = progress
        collector = ResultCollector(
            slots,
            timeout=self.settings.timeout,
            poll_interval=self.settings.poll_interval,
            on_pass=lambda: progress.update(pool.submitted, len(slots)),
        )

        with pool:
            for target in targets:
                pool.submit(target, operation)
                collector.drain(DrainMode.NON_BLOCKING)
            collector.drain(DrainMode.BLOCK_UNTIL_EMPTY)

        self.timed_out = list(collector.timed_out)
        self.elapsed = time.monotonic() - t0

        ok = sum(1 for r in collector.results if r.ok)
        logger.info(
            "Batch done: %d/%d OK, %d failed, %d timed out (%.1fs total)",
            ok, len(targets), len(collector.results) - ok, len(self.timed_out), self.elapsed,
        )
        return collector.results


def build_context(
        credential: Credential | None = None,
        resolver: LocalHostResolver | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        verbose: bool = False,
        dry_run: bool = False,
        ssh_options: Iterable[str] = (),
        options: Mapping[str, Any] | None = None,
) -> SharedContext:
    """Snapshot the batch-wide context handed to every operation."""
    if resolver is None:
        resolver = LocalHostResolver.discover()
    return SharedContext(
        credential=credential or Credential(),
        local_hosts=resolver.names,
        timeout=timeout,
        verbose=verbose,
        dry_run=dry_run,
        ssh_options=tuple(ssh_options),
        options=options or {},
    )


def run_batch(
        targets: Iterable[Target],
        operation: Operation,
        settings: EngineSettings | None = None,
        credential: Credential | None = None,
        options: Mapping[str, Any] | None = None,
        resolver: LocalHostResolver | None = None,
        ssh_options: Iterable[str] = (),
        verbose: bool = False,
        dry_run: bool = False,
) -> BatchReport:
    """Run *operation* against every target and return a :class:`BatchReport`.

    Args:
        targets: Targets in submission order; duplicates run twice.
        operation: ``operation(target, context) -> mapping``; raising
            records a failure for that target only.
        settings: Capacity, timeout, poll interval and progress flag.
        credential: Alternate identity for non-local targets.
        options: Task options exposed read-only as ``context.options``.
        resolver: Local host set; discovered from this machine if omitted.
        ssh_options: Extra transport options shared by all targets.
        verbose: Exposed to operations as ``context.verbose``.
        dry_run: Exposed to operations as ``context.dry_run``.
    """
    settings = settings or EngineSettings()
    context = build_context(
        credential=credential,
        resolver=resolver,
        timeout=settings.timeout,
        verbose=verbose,
        dry_run=dry_run,
        ssh_options=ssh_options,
        options=options,
    )
    runner = BatchRunner(settings, context)
    results = runner.run(targets, operation)
    return BatchReport(results=results, timed_out=runner.timed_out, elapsed=runner.elapsed)
