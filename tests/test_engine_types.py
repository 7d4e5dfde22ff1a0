"""Tests for fanrun.engine.types module."""

from __future__ import annotations

import dataclasses
from concurrent.futures import Future

import pytest

from fanrun.engine.types import (
    ActiveSlotSet,
    Credential,
    SharedContext,
    SlotState,
    SlotStateError,
    Target,
    TaskFailure,
    TaskSlot,
    TaskSuccess,
    parse_target,
)


def _slot(slot_id: int = 1, host: str = "host1") -> TaskSlot:
    return TaskSlot(id=slot_id, target=Target(host), dispatch_time=0.0, future=Future())


# ---------------------------------------------------------------------------
# parse_target
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("text, host, port", [
    ("web1", "web1", None),
    ("web1:2222", "web1", 2222),
    ("  10.0.0.1  ", "10.0.0.1", None),
    ("[fe80::1]", "fe80::1", None),
    ("[fe80::1]:22", "fe80::1", 22),
    ("fe80::1", "fe80::1", None),
])
def test_parse_target(text, host, port):
    target = parse_target(text)
    assert target.host == host
    assert target.port == port


@pytest.mark.parametrize("text", ["", "   ", "web1:", "web1:ssh", "web1:70000", ":22", "[fe80::1", "[]:22"])
def test_parse_target_rejects(text):
    with pytest.raises(ValueError):
        parse_target(text)


def test_parse_target_via():
    assert parse_target("web1", via="bastion").via == "bastion"


def test_target_label():
    assert Target("web1").label == "web1"
    assert Target("web1", port=2222).label == "web1:2222"
    assert Target("fe80::1", port=22).label == "[fe80::1]:22"
    assert str(Target("web1")) == "web1"


def test_target_is_hashable_and_immutable():
    target = Target("web1")
    assert {target, Target("web1")} == {target}
    with pytest.raises(dataclasses.FrozenInstanceError):
        target.host = "web2"


# ---------------------------------------------------------------------------
# Credential / SharedContext
# ---------------------------------------------------------------------------

def test_credential_is_empty():
    assert Credential().is_empty
    assert not Credential(user="ops").is_empty
    assert not Credential(key_file="/k").is_empty


def test_shared_context_is_frozen():
    ctx = SharedContext(options={"path": "/var/log"})
    with pytest.raises(dataclasses.FrozenInstanceError):
        ctx.timeout = 1
    with pytest.raises(TypeError):
        ctx.options["path"] = "/tmp"


def test_shared_context_copies_options():
    options = {"path": "/var/log"}
    ctx = SharedContext(options=options)
    options["path"] = "/tmp"
    assert ctx.options["path"] == "/var/log"


def test_shared_context_is_local_case_insensitive():
    ctx = SharedContext(local_hosts=frozenset({"TestBox", "localhost"}))
    assert ctx.is_local("testbox")
    assert ctx.is_local(Target("TESTBOX"))
    assert not ctx.is_local("otherbox")


# ---------------------------------------------------------------------------
# TaskSlot lifecycle
# ---------------------------------------------------------------------------

def test_slot_starts_pending():
    slot = _slot()
    assert slot.state is SlotState.PENDING
    assert not slot.is_terminal


@pytest.mark.parametrize("path", [
    [SlotState.RUNNING, SlotState.COMPLETED],
    [SlotState.RUNNING, SlotState.TIMED_OUT],
    [SlotState.TIMED_OUT],
])
def test_slot_allowed_transitions(path):
    slot = _slot()
    for state in path:
        slot.advance(state)
    assert slot.state is path[-1]
    assert slot.is_terminal


@pytest.mark.parametrize("path", [
    [SlotState.COMPLETED],
    [SlotState.RUNNING, SlotState.PENDING],
    [SlotState.RUNNING, SlotState.COMPLETED, SlotState.TIMED_OUT],
    [SlotState.TIMED_OUT, SlotState.RUNNING],
])
def test_slot_illegal_transitions(path):
    slot = _slot()
    with pytest.raises(SlotStateError):
        for state in path:
            slot.advance(state)


def test_slot_elapsed():
    slot = TaskSlot(id=1, target=Target("a"), dispatch_time=10.0, future=Future())
    assert slot.elapsed(12.5) == 2.5


def test_slot_dispose_cancels_queued_future():
    slot = _slot()
    assert slot.dispose() is True
    assert slot.future.cancelled()


# ---------------------------------------------------------------------------
# ActiveSlotSet
# ---------------------------------------------------------------------------

def test_active_slot_set_snapshot_is_id_ordered():
    slots = ActiveSlotSet()
    for slot_id in (3, 1, 2):
        slots.add(_slot(slot_id))

    assert [s.id for s in slots.snapshot()] == [1, 2, 3]
    assert len(slots) == 3
    assert slots


def test_active_slot_set_rejects_duplicate_id():
    slots = ActiveSlotSet()
    slots.add(_slot(1))
    with pytest.raises(SlotStateError):
        slots.add(_slot(1, host="other"))


def test_active_slot_set_remove():
    slots = ActiveSlotSet()
    slot = _slot(1)
    slots.add(slot)
    slots.remove(slot)
    slots.remove(slot)  # second remove is a no-op
    assert len(slots) == 0
    assert not slots


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

def test_task_success_to_dict():
    result = TaskSuccess(target=Target("a", port=22), slot_id=1, payload={"bytes": 5}, elapsed=0.12345)
    assert result.ok is True
    assert result.to_dict() == {"target": "a:22", "ok": True, "elapsed": 0.123, "payload": {"bytes": 5}}


def test_task_failure_to_dict():
    result = TaskFailure(target=Target("a"), slot_id=2, error="boom", error_type="RuntimeError")
    assert result.ok is False
    data = result.to_dict()
    assert data["error"] == "boom"
    assert data["error_type"] == "RuntimeError"
    assert "payload" not in data
