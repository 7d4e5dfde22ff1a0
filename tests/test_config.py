"""Tests for fanrun.config module."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml

from fanrun.config import FanrunConfig, get_config_root
from fanrun.engine.runner import DEFAULT_CAPACITY, DEFAULT_TIMEOUT


def _write_config(tmp_path: Path, data: dict) -> Path:
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.safe_dump(data))
    return config_file


def test_config_defaults_no_file(tmp_path: Path):
    """A missing config file yields the built-in defaults."""
    config = FanrunConfig(config_path=tmp_path / "nonexistent" / "config.yaml")

    assert config.capacity == DEFAULT_CAPACITY
    assert config.timeout == DEFAULT_TIMEOUT
    assert config.show_progress is False
    assert config.default_hosts == []
    assert config.ssh_user is None
    assert config.ssh_key is None
    assert config.ssh_options == []
    assert config.task_options("dirsize") == {}


def test_config_loads_yaml(tmp_path: Path):
    """Values are read from the engine, targets, ssh and tasks sections."""
    config_file = _write_config(tmp_path, {
        "engine": {"capacity": 8, "timeout": 30, "poll_interval": 0.5, "show_progress": True},
        "targets": {"hosts": ["web1", "web2"]},
        "ssh": {"user": "ops", "key": "/keys/ops", "options": ["-o", "StrictHostKeyChecking=no"]},
        "tasks": {"dirsize": {"path": "/var/log/nginx"}},
    })
    config = FanrunConfig(config_path=config_file)

    assert config.capacity == 8
    assert config.timeout == 30.0
    assert config.poll_interval == 0.5
    assert config.show_progress is True
    assert config.default_hosts == ["web1", "web2"]
    assert config.ssh_user == "ops"
    assert config.ssh_key == "/keys/ops"
    assert config.ssh_options == ["-o", "StrictHostKeyChecking=no"]
    assert config.task_options("dirsize") == {"path": "/var/log/nginx"}
    assert config.task_options("facts") == {}


def test_config_default_path_uses_config_dir(tmp_path: Path):
    """Without an explicit path the config dir (patched in conftest) is used."""
    import fanrun.config
    config = FanrunConfig()
    assert config.config_path == fanrun.config.DEFAULT_CONFIG_DIR / "config.yaml"


def test_ssh_key_expands_user(tmp_path: Path):
    config = FanrunConfig(config_path=_write_config(tmp_path, {"ssh": {"key": "~/.ssh/id_ops"}}))
    assert config.ssh_key == os.path.expanduser("~/.ssh/id_ops")


def test_get_dotted_key(tmp_path: Path):
    config = FanrunConfig(config_path=_write_config(tmp_path, {"a": {"b": {"c": 3}}}))

    assert config.get("a.b.c") == 3
    assert config.get("a.x", "fallback") == "fallback"
    assert config.get("a.b.c.d") is None


def test_engine_settings_overrides(tmp_path: Path):
    """Non-None overrides win over config; None keeps the config value."""
    config = FanrunConfig(config_path=_write_config(tmp_path, {"engine": {"capacity": 8, "timeout": 30}}))

    settings = config.engine_settings(capacity=2, timeout=None)

    assert settings.capacity == 2
    assert settings.timeout == 30.0


def test_engine_settings_invalid_value(tmp_path: Path):
    config = FanrunConfig(config_path=_write_config(tmp_path, {"engine": {"timeout": 0}}))
    with pytest.raises(ValueError):
        config.engine_settings()


def test_get_config_root_without_variables():
    import fanrun.config
    assert get_config_root() == fanrun.config.DEFAULT_CONFIG_DIR


def test_get_config_root_with_variables(v):
    """With SAF initialized the stateful root (patched in conftest) is used."""
    root = get_config_root(v)
    assert isinstance(root, Path)
