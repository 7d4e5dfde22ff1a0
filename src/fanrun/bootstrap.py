"""Bootstrap fanrun's task plugin registry on SAF."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from scitrera_app_framework import Variables, register_plugin, get_extensions
from scitrera_app_framework.util import find_types_in_modules

if TYPE_CHECKING:
    from fanrun.tasks.base import TaskPlugin

logger = logging.getLogger(__name__)

EXT_TASK = "fanrun.task"

# Module-level singleton for the fanrun Variables instance
_variables: Variables | None = None


def init_fanrun(v: Variables | None = None, log_level: str = "WARNING") -> Variables:
    """Initialize fanrun's plugin system.

    Args:
        v: Optional pre-existing Variables instance to reuse.
        log_level: SAF log level (default WARNING to reduce verbosity).

    Returns:
        The initialized Variables instance.
    """
    global _variables

    if _variables is not None and v is None:
        return _variables

    if v is None:
        from scitrera_app_framework import init_framework_desktop
        v = init_framework_desktop("fanrun", log_level=log_level, fault_handler=False,
                                   shutdown_hooks=False, fixed_logger=logger)

    _variables = v

    # Import here to avoid circular imports
    from fanrun.tasks.base import TaskPlugin

    for task_cls in find_types_in_modules("fanrun.tasks", TaskPlugin):
        if not task_cls.task_name:
            continue
        try:
            register_plugin(task_cls, v=v)
            logger.debug("Registered task: %s", task_cls.__name__)
        except (ValueError, TypeError) as e:
            logger.debug("Skipping task %s: %s", task_cls.__name__, e)

    return v


def get_variables() -> Variables:
    """Get the fanrun Variables instance, initializing if needed."""
    global _variables
    if _variables is None:
        init_fanrun()
    return _variables


def _all_tasks(v: Variables | None) -> list[TaskPlugin]:
    if v is None:
        v = get_variables()
    return [t for t in get_extensions(EXT_TASK, v=v).values() if t.task_name]


def get_task(name: str, v: Variables | None = None) -> TaskPlugin:
    """Get a registered task by name.

    Raises:
        ValueError: If no task has that name.
    """
    tasks = _all_tasks(v)
    for task in tasks:
        if task.task_name == name:
            return task

    available = sorted(t.task_name for t in tasks)
    raise ValueError("Unknown task: %r. Available: %s" % (name, available))


def list_tasks(v: Variables | None = None) -> list[TaskPlugin]:
    """List all registered tasks, sorted by name."""
    return sorted(_all_tasks(v), key=lambda t: t.task_name)
