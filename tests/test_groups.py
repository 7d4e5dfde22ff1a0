"""Tests for fanrun.groups module."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from fanrun.groups import GroupError, GroupManager


@pytest.fixture
def mgr(tmp_path: Path) -> GroupManager:
    return GroupManager(tmp_path)


def test_create_and_get(mgr: GroupManager):
    mgr.create("web", ["w1", "w2"], description="Web tier", user="deploy")
    group = mgr.get("web")

    assert group.name == "web"
    assert group.hosts == ["w1", "w2"]
    assert group.description == "Web tier"
    assert group.user == "deploy"


def test_group_file_is_yaml(mgr: GroupManager):
    mgr.create("web", ["w1"])
    data = yaml.safe_load((mgr.groups_dir / "web.yaml").read_text())

    assert data == {"name": "web", "hosts": ["w1"], "description": ""}


def test_create_duplicate_raises(mgr: GroupManager):
    mgr.create("web", ["w1"])
    with pytest.raises(GroupError, match="already exists"):
        mgr.create("web", ["w2"])


@pytest.mark.parametrize("name", ["-web", "web tier", "web/1", "", "_x"])
def test_invalid_names(mgr: GroupManager, name: str):
    with pytest.raises(GroupError, match="Invalid group name"):
        mgr.create(name, ["w1"])


def test_get_missing_raises(mgr: GroupManager):
    with pytest.raises(GroupError, match="not found"):
        mgr.get("ghost")


def test_update_fields(mgr: GroupManager):
    mgr.create("web", ["w1"], user="deploy")

    mgr.update("web", hosts=["w1", "w3"], description="changed")
    group = mgr.get("web")
    assert group.hosts == ["w1", "w3"]
    assert group.description == "changed"
    assert group.user == "deploy"

    mgr.update("web", user=None)
    assert mgr.get("web").user is None


def test_list_groups_sorted_and_skips_bad_files(mgr: GroupManager):
    mgr.create("zeta", ["z1"])
    mgr.create("alpha", ["a1"])
    (mgr.groups_dir / "broken.yaml").write_text("- just\n- a list\n")

    assert [g.name for g in mgr.list_groups()] == ["alpha", "zeta"]


def test_default_group_lifecycle(mgr: GroupManager):
    assert mgr.get_default() is None
    mgr.create("web", ["w1"])

    mgr.set_default("web")
    assert mgr.get_default() == "web"

    mgr.unset_default()
    assert mgr.get_default() is None


def test_set_default_missing_group(mgr: GroupManager):
    with pytest.raises(GroupError):
        mgr.set_default("ghost")


def test_delete_clears_default(mgr: GroupManager):
    mgr.create("web", ["w1"])
    mgr.set_default("web")

    mgr.delete("web")

    assert mgr.get_default() is None
    with pytest.raises(GroupError):
        mgr.get("web")
    with pytest.raises(GroupError):
        mgr.delete("web")


def test_stale_default_is_cleared(mgr: GroupManager):
    """A default pointing at a removed file is dropped on read."""
    mgr.create("web", ["w1"])
    mgr.set_default("web")
    (mgr.groups_dir / "web.yaml").unlink()

    assert mgr.get_default() is None
    assert not mgr.default_file.exists()
