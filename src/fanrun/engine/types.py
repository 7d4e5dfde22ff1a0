"""Data model for the fan-out engine: targets, context, slots, results."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Union


class OperationError(Exception):
    """Raised by a task body when the operation failed for one target."""

    pass


class SlotStateError(Exception):
    """Raised on an illegal task slot state transition."""

    pass


# ---------------------------------------------------------------------------
# Targets and shared context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Target:
    """One endpoint an operation is executed against.

    ``port`` overrides the transport's default port and ``via`` routes the
    session through an alternate (jump) host.
    """

    host: str
    port: int | None = None
    via: str | None = None

    @property
    def label(self) -> str:
        host = "[%s]" % self.host if ":" in self.host else self.host
        if self.port is None:
            return self.host
        return "%s:%d" % (host, self.port)

    def __str__(self) -> str:
        return self.label


def parse_target(text: str, via: str | None = None) -> Target:
    """Parse ``host``, ``host:port``, ``[v6]`` or ``[v6]:port`` into a Target.

    A bare IPv6 address (more than one colon, no brackets) is taken as a
    host without a port.

    Raises:
        ValueError: If the text is empty or the port is not valid.
    """
    text = text.strip()
    if not text:
        raise ValueError("Empty target")

    port_text = None
    if text.startswith("["):
        host, sep, rest = text[1:].partition("]")
        if not sep or not host:
            raise ValueError("Malformed bracketed target: %r" % text)
        if rest:
            if not rest.startswith(":"):
                raise ValueError("Malformed bracketed target: %r" % text)
            port_text = rest[1:]
    elif text.count(":") == 1:
        host, _, port_text = text.partition(":")
        if not host:
            raise ValueError("Missing host in target: %r" % text)
    else:
        host = text

    port = None
    if port_text is not None:
        if not port_text.isdigit() or not 0 < int(port_text) < 65536:
            raise ValueError("Invalid port in target %r: %r" % (text, port_text))
        port = int(port_text)
    return Target(host=host, port=port, via=via)


@dataclass(frozen=True)
class Credential:
    """Alternate identity injected into remote sessions."""

    user: str | None = None
    key_file: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.user and not self.key_file


@dataclass(frozen=True)
class SharedContext:
    """Read-only configuration snapshot handed to every operation.

    Built once per batch before the worker pool opens and never mutated
    afterwards; workers read it without locking.
    """

    credential: Credential = field(default_factory=Credential)
    local_hosts: frozenset[str] = frozenset()
    timeout: float = 120.0
    verbose: bool = False
    dry_run: bool = False
    ssh_options: tuple[str, ...] = ()
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # freeze the option mapping so tasks cannot mutate shared state
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))
        object.__setattr__(self, "local_hosts", frozenset(h.lower() for h in self.local_hosts))
        object.__setattr__(self, "ssh_options", tuple(self.ssh_options))

    def is_local(self, target: Target | str) -> bool:
        host = target.host if isinstance(target, Target) else target
        return host.lower() in self.local_hosts


# ---------------------------------------------------------------------------
# Slots
# ---------------------------------------------------------------------------

class SlotState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"


_TRANSITIONS = {
    SlotState.PENDING: {SlotState.RUNNING, SlotState.TIMED_OUT},
    SlotState.RUNNING: {SlotState.COMPLETED, SlotState.TIMED_OUT},
    SlotState.COMPLETED: set(),
    SlotState.TIMED_OUT: set(),
}


@dataclass(eq=False)
class TaskSlot:
    """Bookkeeping for one in-flight operation.

    ``dispatch_time`` is taken from :func:`time.monotonic` at submission;
    timeouts are measured from it, not from when a worker picked it up.
    """

    id: int
    target: Target
    dispatch_time: float
    future: Future
    state: SlotState = SlotState.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.state in (SlotState.COMPLETED, SlotState.TIMED_OUT)

    def elapsed(self, now: float) -> float:
        return now - self.dispatch_time

    def advance(self, new_state: SlotState) -> None:
        """Move to *new_state*, enforcing the slot lifecycle.

        Raises:
            SlotStateError: If the transition is not allowed.
        """
        if new_state not in _TRANSITIONS[self.state]:
            raise SlotStateError(
                "Slot %d (%s): illegal transition %s -> %s"
                % (self.id, self.target, self.state.name, new_state.name)
            )
        self.state = new_state

    def dispose(self) -> bool:
        """Stop waiting on the operation; cancels it only if still queued."""
        return self.future.cancel()


class ActiveSlotSet:
    """Slots not yet finalized, keyed by slot id.

    Both the submitting path and the draining path go through this object;
    every access is serialized on its lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._slots: dict[int, TaskSlot] = {}

    def add(self, slot: TaskSlot) -> None:
        with self._lock:
            if slot.id in self._slots:
                raise SlotStateError("Duplicate slot id %d" % slot.id)
            self._slots[slot.id] = slot

    def remove(self, slot: TaskSlot) -> None:
        with self._lock:
            self._slots.pop(slot.id, None)

    def snapshot(self) -> list[TaskSlot]:
        """Return the active slots ordered by id."""
        with self._lock:
            return [self._slots[k] for k in sorted(self._slots)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)

    def __bool__(self) -> bool:
        return len(self) > 0


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TaskSuccess:
    """Structured payload returned by an operation that completed."""

    target: Target
    slot_id: int
    payload: dict[str, Any]
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target.label,
            "ok": True,
            "elapsed": round(self.elapsed, 3),
            "payload": dict(self.payload),
        }


@dataclass(frozen=True)
class TaskFailure:
    """An operation that raised instead of returning a payload."""

    target: Target
    slot_id: int
    error: str
    error_type: str = "OperationError"
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target.label,
            "ok": False,
            "elapsed": round(self.elapsed, 3),
            "error": self.error,
            "error_type": self.error_type,
        }


TaskResult = Union[TaskSuccess, TaskFailure]
