"""Shared pytest fixtures for fanrun tests."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import pytest

from fanrun.bootstrap import init_fanrun
from fanrun.engine import LocalHostResolver, SharedContext


@pytest.fixture(autouse=True)
def isolate_stateful(tmp_path: Path, monkeypatch):
    """Redirect SAF stateful root and the config dir to temp dirs.

    Prevents tests from reading or writing the real ~/.config/fanrun/.
    Also resets the bootstrap singleton between tests.
    """
    monkeypatch.setenv("STATEFUL_ROOT", str(tmp_path / "stateful"))
    monkeypatch.setattr("fanrun.config.DEFAULT_CONFIG_DIR", tmp_path / "config")
    import fanrun.bootstrap
    fanrun.bootstrap._variables = None
    yield
    fanrun.bootstrap._variables = None


@pytest.fixture
def release():
    """Event that blocked operations wait on; always set at teardown.

    Worker threads are joined at interpreter exit, so an operation left
    blocked would hang the test run.
    """
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def resolver() -> LocalHostResolver:
    """Local host set for a machine called ``testbox`` with no DNS."""
    return LocalHostResolver("testbox", ["10.9.8.7"])


@pytest.fixture
def context(resolver: LocalHostResolver) -> SharedContext:
    return SharedContext(local_hosts=resolver.names, timeout=5.0)


@pytest.fixture
def hosts_file(tmp_path: Path) -> Path:
    """Create a temporary hosts file with sample hosts."""
    f = tmp_path / "hosts.txt"
    f.write_text("10.0.0.1\n10.0.0.2\n10.0.0.3\n")
    return f


@pytest.fixture
def v() -> Any:
    """Initialize fanrun and return the Variables instance."""
    import fanrun.bootstrap
    fanrun.bootstrap._variables = None

    return init_fanrun(log_level="WARNING")
