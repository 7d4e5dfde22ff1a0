"""Collect host facts: OS, kernel, resources, installed packages."""

from __future__ import annotations

from typing import Any

from fanrun.engine.types import SharedContext, Target
from fanrun.scripts import read_script
from fanrun.tasks.base import TaskPlugin
from fanrun.utils import parse_key_values

# script key -> (payload key, converter)
_FACT_FIELDS = {
    "HOSTNAME": ("hostname", str),
    "OS_NAME": ("os", str),
    "KERNEL": ("kernel", str),
    "ARCH": ("arch", str),
    "UPTIME_SECONDS": ("uptime_seconds", int),
    "CPU_COUNT": ("cpu_count", int),
    "MEM_TOTAL_KB": ("mem_total_kb", int),
    "PACKAGE_COUNT": ("package_count", int),
    "SERVICES_ENABLED": ("services_enabled", int),
}


def parse_facts(output: str) -> dict[str, Any]:
    """Map the facts script output onto payload fields.

    Facts the host did not report, or reported with an unparseable value,
    come back as ``None``.
    """
    raw = parse_key_values(output)
    facts: dict[str, Any] = {}
    for key, (name, convert) in _FACT_FIELDS.items():
        value = raw.get(key)
        if value in (None, ""):
            facts[name] = None
            continue
        try:
            facts[name] = convert(value)
        except ValueError:
            facts[name] = None
    return facts


class FactsTask(TaskPlugin):
    """Inventory of what each target is running."""

    task_name = "facts"
    description = "Collect OS, kernel, CPU, memory and package facts"

    def run(self, target: Target, context: SharedContext) -> dict[str, Any]:
        if context.dry_run:
            return self.dry_run_payload(context)
        result = self.execute(target, read_script("facts.sh"), context)
        return parse_facts(result.stdout)
