"""Measure a directory tree (e.g. a log directory) on every target."""

from __future__ import annotations

import logging
import shlex
from typing import Any

from fanrun.engine.types import OperationError, SharedContext, Target
from fanrun.scripts import read_script
from fanrun.tasks.base import TaskPlugin
from fanrun.utils import format_bytes, parse_key_values

logger = logging.getLogger(__name__)


def generate_dirsize_script(path: str) -> str:
    """Render the directory sizing script for *path*."""
    return read_script("dirsize.sh").format(path=shlex.quote(path))


class DirSizeTask(TaskPlugin):
    """Reports total bytes and file count under ``path``."""

    task_name = "dirsize"
    description = "Report size and file count of a directory"
    required_options = ("path",)
    default_options = {"path": "/var/log"}

    def run(self, target: Target, context: SharedContext) -> dict[str, Any]:
        options = self.resolve_options(context.options)
        path = str(options["path"])
        if context.dry_run:
            return self.dry_run_payload(context)

        result = self.execute(target, generate_dirsize_script(path), context)
        info = parse_key_values(result.stdout)
        if info.get("DIR_EXISTS") != "1":
            raise OperationError("Directory not found: %s" % path)

        try:
            size = int(info.get("DIR_BYTES", ""))
            files = int(info.get("DIR_FILES", ""))
        except ValueError:
            raise OperationError("Could not size %s: %r" % (path, result.stdout.strip()[:200]))

        logger.debug("  %s: %s holds %d bytes in %d files", target, path, size, files)
        return {
            "path": info.get("DIR_PATH", path),
            "bytes": size,
            "files": files,
            "human": format_bytes(size),
        }
