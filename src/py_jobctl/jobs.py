"""Job records, the job table, and the job state machine.

A *job* is one external program the shell launched, plus the
scheduling metadata the shell keeps about it.  Jobs live in a
fixed-size **job table**: an arena of numbered slots, where the slot
index is the job's identity inside the shell and the pid is its
identity to the OS.

Key ideas:
    - **Slots are never reused.**  A free slot is one whose pid is 0.
      A terminated job keeps its pid, so its slot stays occupied for
      the rest of the session.
    - **Owned strings are released on termination.**  The command line
      and priority label become ``None`` exactly when a job enters
      TERMINATED; ``list`` shows ``-`` for them afterwards.
    - **The state machine is a pure function.**  ``transition`` maps
      (current status, event) to (new status, effects).  It never sends
      a signal or touches a counter itself — the scheduler applies the
      effects — so it can be tested without any processes at all.

State machine::

    (none) ──QUEUE──▶ READY ──ADMIT──▶ RUNNING ──STOP──▶ STOPPED
                        ▲                 ▲                 │
                        │                 └─────RESUME──────┤
                        └──────────────DEFER────────────────┘

    READY | RUNNING | STOPPED ──KILL/SHUTDOWN──▶ TERMINATED
    RUNNING ──EXITED──▶ TERMINATED       (TERMINATED is absorbing)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Flag, IntEnum, StrEnum, auto
from typing import TYPE_CHECKING

from py_jobctl.config import DEFAULT_MAX_JOBS
from py_jobctl.errors import (
    AlreadyStopped,
    AlreadyTerminated,
    JobControlError,
    NoSlotAvailable,
    NotFound,
    NotRunning,
    NotStopped,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence


class JobStatus(IntEnum):
    """Lifecycle states of a job.

    The integer values are the status codes ``list`` prints.
    """

    RUNNING = 0
    READY = 1
    STOPPED = 2
    TERMINATED = 3

    @property
    def label(self) -> str:
        """Return the lower-case state name (``"running"``, ...)."""
        return self.name.lower()


class JobEvent(StrEnum):
    """Things that can happen to a job."""

    QUEUE = "queue"  # child forked and suspended
    ADMIT = "admit"  # scheduler picked it
    STOP = "stop"
    RESUME = "resume"  # resume with a free running slot
    DEFER = "defer"  # resume with no free running slot
    KILL = "kill"
    EXITED = "exited"  # reaper saw the process exit
    SHUTDOWN = "shutdown"  # like KILL, but the session is ending


class Effect(Flag):
    """Side effects a transition asks the scheduler to carry out."""

    NONE = 0
    SEND_CONTINUE = auto()
    SEND_SUSPEND = auto()
    SEND_TERMINATE = auto()
    TAKE_SLOT = auto()
    FREE_SLOT = auto()
    RELEASE = auto()
    SCHEDULE = auto()


@dataclass(frozen=True)
class Transition:
    """The outcome of applying one event to one job."""

    status: JobStatus
    effects: Effect = Effect.NONE


_S = JobStatus
_E = JobEvent
_F = Effect

# A suspended process only acts on SIGTERM once continued, so terminating
# a READY or STOPPED job also sends SIGCONT.  It does not take a slot.
_END_SUSPENDED = _F.SEND_TERMINATE | _F.SEND_CONTINUE | _F.RELEASE
_END_RUNNING = _F.SEND_TERMINATE | _F.RELEASE | _F.FREE_SLOT

_TRANSITIONS: dict[tuple[JobStatus | None, JobEvent], Transition | type[JobControlError]] = {
    (None, _E.QUEUE): Transition(_S.READY, _F.SEND_SUSPEND | _F.SCHEDULE),
    # READY
    (_S.READY, _E.ADMIT): Transition(_S.RUNNING, _F.SEND_CONTINUE | _F.TAKE_SLOT),
    (_S.READY, _E.STOP): NotRunning,
    (_S.READY, _E.RESUME): NotStopped,
    (_S.READY, _E.DEFER): NotStopped,
    (_S.READY, _E.KILL): Transition(_S.TERMINATED, _END_SUSPENDED | _F.SCHEDULE),
    (_S.READY, _E.SHUTDOWN): Transition(_S.TERMINATED, _END_SUSPENDED),
    # RUNNING
    (_S.RUNNING, _E.STOP): Transition(_S.STOPPED, _F.SEND_SUSPEND | _F.FREE_SLOT | _F.SCHEDULE),
    (_S.RUNNING, _E.RESUME): NotStopped,
    (_S.RUNNING, _E.DEFER): NotStopped,
    (_S.RUNNING, _E.KILL): Transition(_S.TERMINATED, _END_RUNNING | _F.SCHEDULE),
    (_S.RUNNING, _E.SHUTDOWN): Transition(_S.TERMINATED, _END_RUNNING),
    (_S.RUNNING, _E.EXITED): Transition(_S.TERMINATED, _F.RELEASE | _F.FREE_SLOT | _F.SCHEDULE),
    # STOPPED
    (_S.STOPPED, _E.STOP): AlreadyStopped,
    (_S.STOPPED, _E.RESUME): Transition(_S.RUNNING, _F.SEND_CONTINUE | _F.TAKE_SLOT),
    (_S.STOPPED, _E.DEFER): Transition(_S.READY),
    (_S.STOPPED, _E.KILL): Transition(_S.TERMINATED, _END_SUSPENDED | _F.SCHEDULE),
    (_S.STOPPED, _E.SHUTDOWN): Transition(_S.TERMINATED, _END_SUSPENDED),
    # TERMINATED
    (_S.TERMINATED, _E.STOP): AlreadyTerminated,
    (_S.TERMINATED, _E.RESUME): AlreadyTerminated,
    (_S.TERMINATED, _E.DEFER): AlreadyTerminated,
    (_S.TERMINATED, _E.KILL): AlreadyTerminated,
}


def transition(current: JobStatus | None, event: JobEvent, *, pid: int = 0) -> Transition:
    """Return the transition for *event* on a job in state *current*.

    Args:
        current: The job's status, or None for an unallocated slot.
        event: What is happening to the job.
        pid: The job's pid, used in error messages.

    Returns:
        The new status and the effects the caller must carry out.

    Raises:
        JobControlError: If the event is a user command that the job's
            state does not allow (e.g. ``stop`` on a stopped job).
        RuntimeError: If the event can never happen in this state
            (e.g. the scheduler admitting a job that is not ready).

    """
    outcome = _TRANSITIONS.get((current, event))
    if outcome is None:
        state = "unallocated" if current is None else current.label
        msg = f"Cannot {event}: process {pid} is {state}"
        raise RuntimeError(msg)
    if isinstance(outcome, Transition):
        return outcome
    raise outcome(pid)


@dataclass
class JobRecord:
    """One slot of the job table.

    Attributes:
        index: Position in the table; never changes.
        pid: OS process id, or 0 while the slot is unused.
        status: Current state, or None while the slot is unused.
        command: Program and arguments; None once released.
        priority_num: Numeric priority (smaller runs first).
        priority_label: The ``P<n>`` token as typed; None once released.
        arrival_time: Monotonic admission time, for FCFS tie-breaks.
        exit_code: Exit status reported by the OS, if known.

    """

    index: int
    pid: int = 0
    status: JobStatus | None = None
    command: tuple[str, ...] | None = None
    priority_num: int = 0
    priority_label: str | None = None
    arrival_time: float = 0.0
    exit_code: int | None = field(default=None, compare=False)

    @property
    def allocated(self) -> bool:
        """Return True if this slot has ever held a job."""
        return self.pid != 0

    @property
    def command_line(self) -> str:
        """Return the command as one string, or ``-`` once released."""
        return " ".join(self.command) if self.command is not None else "-"

    def release(self) -> None:
        """Drop the owned command and priority label."""
        self.command = None
        self.priority_label = None

    def __str__(self) -> str:
        """Format as ``[slot] pid status label command``."""
        status = self.status.label if self.status is not None else "unused"
        label = self.priority_label or "-"
        return f"[{self.index}] {self.pid} {status} {label} {self.command_line}"


class JobTable:
    """Fixed-capacity arena of job slots.

    The table only stores records and finds them; all state changes
    are made by the scheduler that owns it.
    """

    def __init__(self, *, capacity: int = DEFAULT_MAX_JOBS) -> None:
        """Create a table of *capacity* unused slots.

        Raises:
            ValueError: If capacity is not positive.

        """
        if capacity <= 0:
            msg = f"Job table capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self._slots: list[JobRecord] = [JobRecord(index=i) for i in range(capacity)]

    @property
    def capacity(self) -> int:
        """Return the number of slots."""
        return len(self._slots)

    @property
    def slots(self) -> Sequence[JobRecord]:
        """Return every slot in index order, used or not."""
        return tuple(self._slots)

    def __iter__(self) -> Iterator[JobRecord]:
        """Iterate over allocated records in slot order."""
        return (r for r in self._slots if r.allocated)

    def __len__(self) -> int:
        """Return the number of allocated slots."""
        return sum(1 for _ in self)

    def find_unused_slot(self) -> JobRecord:
        """Return the first slot whose pid is 0.

        Raises:
            NoSlotAvailable: If every slot has been allocated.

        """
        for record in self._slots:
            if record.pid == 0:
                return record
        raise NoSlotAvailable

    def find_by_pid(self, pid: int) -> JobRecord:
        """Return the allocated record with the given pid.

        Raises:
            NotFound: If no record has this pid.

        """
        if pid > 0:
            for record in self._slots:
                if record.pid == pid:
                    return record
        raise NotFound(pid)

    def with_status(self, status: JobStatus) -> list[JobRecord]:
        """Return the allocated records currently in *status*."""
        return [r for r in self if r.status is status]

    def count(self, status: JobStatus) -> int:
        """Return how many allocated records are in *status*."""
        return len(self.with_status(status))
