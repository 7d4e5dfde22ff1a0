"""User configuration management for fanrun."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, TYPE_CHECKING

from vpd.next.util import read_yaml

from fanrun.engine.runner import DEFAULT_CAPACITY, DEFAULT_TIMEOUT, EngineSettings
from fanrun.engine.collector import DEFAULT_POLL_INTERVAL

if TYPE_CHECKING:
    from scitrera_app_framework.api.variables import Variables

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "fanrun"


def get_config_root(v: Variables | None = None) -> Path:
    """Config root from SAF stateful root, falling back to DEFAULT_CONFIG_DIR."""
    if v is not None:
        from scitrera_app_framework.core import is_stateful_ready
        stateful_root = is_stateful_ready(v)
        if stateful_root:
            return Path(stateful_root)
    return DEFAULT_CONFIG_DIR


class FanrunConfig:
    """Manages fanrun user configuration.

    Example ``config.yaml``::

        engine:
          capacity: 32
          timeout: 120
          show_progress: true
        targets:
          hosts: [web1, web2]
        ssh:
          user: ops
          key: ~/.ssh/ops_ed25519
        tasks:
          dirsize:
            path: /var/log/nginx
    """

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or (DEFAULT_CONFIG_DIR / "config.yaml")
        self._data: dict[str, Any] = {}
        self._load()

    def _load(self):
        if self.config_path.exists():
            self._data = read_yaml(str(self.config_path)) or {}
            logger.debug("Loaded config from %s", self.config_path)
        else:
            self._data = {}

    @property
    def capacity(self) -> int:
        return int(self.get("engine.capacity", DEFAULT_CAPACITY))

    @property
    def timeout(self) -> float:
        return float(self.get("engine.timeout", DEFAULT_TIMEOUT))

    @property
    def poll_interval(self) -> float:
        return float(self.get("engine.poll_interval", DEFAULT_POLL_INTERVAL))

    @property
    def show_progress(self) -> bool:
        return bool(self.get("engine.show_progress", False))

    @property
    def default_hosts(self) -> list[str]:
        return list(self.get("targets.hosts", []) or [])

    @property
    def ssh_user(self) -> str | None:
        return self.get("ssh.user")

    @property
    def ssh_key(self) -> str | None:
        key = self.get("ssh.key")
        return os.path.expanduser(key) if key else None

    @property
    def ssh_options(self) -> list[str]:
        return list(self.get("ssh.options", []) or [])

    def task_options(self, task_name: str) -> dict[str, Any]:
        """Default options configured for *task_name* (empty if none)."""
        options = self.get("tasks.%s" % task_name, {})
        return dict(options) if isinstance(options, dict) else {}

    def engine_settings(self, **overrides: Any) -> EngineSettings:
        """Build EngineSettings from config, with non-None *overrides* winning.

        Raises:
            ValueError: If a resulting value is out of range.
        """
        values = {
            "capacity": self.capacity,
            "timeout": self.timeout,
            "poll_interval": self.poll_interval,
            "show_progress": self.show_progress,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return EngineSettings(**values)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-separated key path."""
        parts = key.split(".")
        current = self._data
        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current
