"""Run an arbitrary shell command on every target."""

from __future__ import annotations

import logging
from typing import Any

from fanrun.engine.types import OperationError, SharedContext, Target
from fanrun.orchestration.ssh import run_on_target
from fanrun.tasks.base import TaskPlugin

logger = logging.getLogger(__name__)


class CommandTask(TaskPlugin):
    """Pipes the ``command`` option to each target's shell."""

    task_name = "command"
    description = "Run a shell command on each target"
    required_options = ("command",)

    def run(self, target: Target, context: SharedContext) -> dict[str, Any]:
        options = self.resolve_options(context.options)
        if context.dry_run:
            return self.dry_run_payload(context)

        result = run_on_target(target, str(options["command"]), context)
        if not result.success:
            raise OperationError(
                "rc=%d: %s" % (result.returncode, result.stderr.strip()[:200] or result.last_line)
            )
        return {
            "returncode": result.returncode,
            "stdout": result.stdout.rstrip("\n"),
            "stderr": result.stderr.rstrip("\n"),
        }
