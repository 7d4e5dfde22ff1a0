"""Base class for fanrun task bodies."""

from __future__ import annotations

import logging
from abc import abstractmethod
from logging import Logger
from typing import Any, Mapping

from scitrera_app_framework import Plugin, Variables

from fanrun.engine.types import OperationError, SharedContext, Target
from fanrun.orchestration.ssh import RemoteResult, run_on_target

logger = logging.getLogger(__name__)

EXT_TASK = "fanrun.task"


class TaskPlugin(Plugin):
    """Abstract base class for per-target operations.

    Each task is an SAF Plugin registered as a multi-extension under the
    'fanrun.task' extension point. One instance serves every target of a
    batch concurrently, so :meth:`run` must not keep per-call state on
    ``self``; everything it needs arrives through *target* and *context*.

    Subclasses must define:
        - task_name: str identifier (e.g. "command", "dirsize")
        - run(): perform the operation against one target
    """

    eager = False

    task_name: str = ""
    description: str = ""
    required_options: tuple[str, ...] = ()
    default_options: dict[str, Any] = {}

    # --- SAF Plugin interface ---

    def name(self) -> str:
        return "fanrun.task.%s" % self.task_name

    def extension_point_name(self, v: Variables) -> str:
        return EXT_TASK

    def is_enabled(self, v: Variables) -> bool:
        # False keeps SAF's single-extension cache from short-circuiting the
        # other plugins registered under the same extension point.
        return False

    def is_multi_extension(self, v: Variables) -> bool:
        return True

    def initialize(self, v: Variables, logger: Logger) -> TaskPlugin:
        return self

    # --- Task interface ---

    def resolve_options(self, options: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Merge *options* over the task defaults and check required keys.

        Raises:
            OperationError: If a required option is missing or empty.
        """
        merged = dict(self.default_options)
        merged.update(options or {})
        missing = [k for k in self.required_options if merged.get(k) in (None, "")]
        if missing:
            raise OperationError(
                "Task '%s' requires option(s): %s" % (self.task_name, ", ".join(missing))
            )
        return merged

    @abstractmethod
    def run(self, target: Target, context: SharedContext) -> dict[str, Any]:
        """Execute against one target and return a structured payload.

        Raises:
            OperationError: If the operation failed on this target.
        """
        ...

    # --- helpers for script-based tasks ---

    @staticmethod
    def execute(target: Target, script: str, context: SharedContext) -> RemoteResult:
        """Run *script* on *target*; raises OperationError on a non-zero exit."""
        result = run_on_target(target, script, context)
        if not result.success:
            detail = result.stderr.strip()[:200] or "exit status %d" % result.returncode
            raise OperationError(detail)
        return result

    def dry_run_payload(self, context: SharedContext) -> dict[str, Any]:
        return {"dry_run": True, "task": self.task_name, "options": dict(context.options)}

    def __repr__(self) -> str:
        return "<%s %s>" % (self.__class__.__name__, self.task_name)
