"""Bounded-concurrency fan-out engine.

Typical use::

    from fanrun.engine import EngineSettings, parse_target, run_batch

    def uptime(target, context):
        ...
        return {"seconds": 42}

    report = run_batch([parse_target("web1"), parse_target("web2:2222")],
                       uptime, EngineSettings(capacity=8, timeout=30))
"""

from fanrun.engine.collector import DrainMode, ResultCollector
from fanrun.engine.pool import PoolError, WorkerPool, current_context
from fanrun.engine.progress import ProgressReporter, percent_complete
from fanrun.engine.resolver import LocalHostResolver
from fanrun.engine.runner import BatchReport, BatchRunner, EngineSettings, build_context, run_batch
from fanrun.engine.types import (
    ActiveSlotSet,
    Credential,
    OperationError,
    SharedContext,
    SlotState,
    SlotStateError,
    Target,
    TaskFailure,
    TaskResult,
    TaskSlot,
    TaskSuccess,
    parse_target,
)

__all__ = [
    "ActiveSlotSet",
    "BatchReport",
    "BatchRunner",
    "Credential",
    "DrainMode",
    "EngineSettings",
    "LocalHostResolver",
    "OperationError",
    "PoolError",
    "ProgressReporter",
    "ResultCollector",
    "SharedContext",
    "SlotState",
    "SlotStateError",
    "Target",
    "TaskFailure",
    "TaskResult",
    "TaskSlot",
    "TaskSuccess",
    "WorkerPool",
    "build_context",
    "current_context",
    "parse_target",
    "percent_complete",
    "run_batch",
]
