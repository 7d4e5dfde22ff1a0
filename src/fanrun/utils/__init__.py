"""Small shared helpers."""

from __future__ import annotations

from typing import Any


def coerce_value(value: str) -> Any:
    """Coerce a CLI string to int, float or bool where it looks like one."""
    lowered = value.lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def parse_key_values(output: str) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines emitted by an embedded script.

    Comment lines and lines without ``=`` are ignored.
    """
    result: dict[str, str] = {}
    for line in output.strip().splitlines():
        line = line.strip()
        if "=" in line and not line.startswith("#"):
            key, _, value = line.partition("=")
            result[key.strip()] = value.strip()
    return result


def format_bytes(n: int | float) -> str:
    """Format a byte count as a human-readable string."""
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if abs(n) < 1024:
            return f"{n:.1f} {unit}"
        n /= 1024
    return f"{n:.1f} PB"
