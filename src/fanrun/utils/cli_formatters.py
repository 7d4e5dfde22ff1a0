"""Presentation layer formatting functions for fanrun CLI."""

from __future__ import annotations

import json
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from fanrun.engine.runner import BatchReport
    from fanrun.tasks.base import TaskPlugin

DETAIL_WIDTH = 60


def _summarize_payload(payload: dict[str, Any]) -> str:
    parts = []
    for key, value in payload.items():
        if isinstance(value, str):
            value = value.strip().splitlines()[-1] if value.strip() else ""
        parts.append(f"{key}={value}")
    text = " ".join(parts)
    if len(text) > DETAIL_WIDTH:
        text = text[: DETAIL_WIDTH - 3] + "..."
    return text


def format_results_table(report: BatchReport) -> str:
    """Format a batch report as a text table plus a summary line.

    Rows are sorted by target label so repeated runs diff cleanly;
    timed-out targets are listed after the table since they have no result.
    """
    rows = []
    for r in sorted(report.results, key=lambda r: (r.target.label, r.slot_id)):
        if r.ok:
            rows.append((r.target.label, "OK", f"{r.elapsed:.1f}s", _summarize_payload(r.payload)))
        else:
            rows.append((r.target.label, "FAILED", f"{r.elapsed:.1f}s", r.error[:DETAIL_WIDTH]))

    lines = []
    if rows:
        w_target = max(len("Target"), *(len(row[0]) for row in rows)) + 2
        w_status = max(len("Status"), *(len(row[1]) for row in rows)) + 2
        w_time = max(len("Time"), *(len(row[2]) for row in rows)) + 2
        header = f"{'Target':<{w_target}}{'Status':<{w_status}}{'Time':<{w_time}}Detail"
        lines.append(header)
        lines.append("-" * (w_target + w_status + w_time + DETAIL_WIDTH))
        for target, status, elapsed, detail in rows:
            lines.append(f"{target:<{w_target}}{status:<{w_status}}{elapsed:<{w_time}}{detail}")
    else:
        lines.append("No results.")

    if report.timed_out:
        lines.append("")
        lines.append("Timed out (no result): %s" % ", ".join(t.label for t in report.timed_out))

    ok = len(report.succeeded)
    lines.append("")
    lines.append("%d ok, %d failed, %d timed out (%.1fs)"
                 % (ok, len(report.failed), len(report.timed_out), report.elapsed))
    return "\n".join(lines)


def format_results_json(report: BatchReport) -> str:
    """Format a batch report as JSON (results in completion order)."""
    data = {
        "results": [r.to_dict() for r in report.results],
        "timed_out": [t.label for t in report.timed_out],
        "elapsed": round(report.elapsed, 3),
    }
    return json.dumps(data, indent=2, default=str)


def format_task_table(tasks: list[TaskPlugin]) -> str:
    """Format registered tasks as a text table."""
    if not tasks:
        return "No tasks registered."

    w_name = max(len("Task"), *(len(t.task_name) for t in tasks)) + 2
    opts = [", ".join(t.required_options) or "-" for t in tasks]
    w_opts = max(len("Requires"), *(len(o) for o in opts)) + 2
    lines = [f"{'Task':<{w_name}}{'Requires':<{w_opts}}Description",
             "-" * (w_name + w_opts + 40)]
    for task, opt in zip(tasks, opts):
        lines.append(f"{task.task_name:<{w_name}}{opt:<{w_opts}}{task.description}")
    return "\n".join(lines)
