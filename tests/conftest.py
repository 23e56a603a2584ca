"""Shared fixtures: a fake OS boundary and shells built on it.

``FakeProcessControl`` stands in for ``OsProcessControl``.  It hands out
pids, records every signal instead of sending it, and lets a test
declare that a process has exited or vanished.  With it, the state
machine, scheduler, reaper and controller run without any children.
"""

from __future__ import annotations

from collections.abc import Sequence
from itertools import count

import pytest

from py_jobctl.config import ShellConfig
from py_jobctl.errors import ForkFailed, SignalDeliveryFailed
from py_jobctl.process import ExitStatus
from py_jobctl.shell import Shell
from py_jobctl.signals import Signal

FIRST_PID = 1000


class FakeProcessControl:
    """Record-only ``ProcessControl`` for tests."""

    def __init__(self, *, first_pid: int = FIRST_PID) -> None:
        """Create a fake whose first child gets *first_pid*."""
        self._pids = count(first_pid)
        self.spawned: dict[int, tuple[str, ...]] = {}
        self.sent: list[tuple[int, Signal]] = []
        self.waited: list[int] = []
        self.gone: set[int] = set()
        self.fail_fork = False
        self._exits: dict[int, int] = {}
        self._reaped: set[int] = set()

    # -- test controls -----------------------------------------------------

    def exit(self, pid: int, code: int = 0) -> None:
        """Pretend *pid* exited with *code*."""
        self._exits[pid] = code

    def signals_for(self, pid: int) -> list[Signal]:
        """Return the signals sent to *pid*, in order."""
        return [sig for p, sig in self.sent if p == pid]

    # -- ProcessControl ----------------------------------------------------

    def spawn(self, argv: Sequence[str]) -> int:
        """Return a fresh pid (or fail, if ``fail_fork`` is set)."""
        if self.fail_fork:
            reason = "Resource temporarily unavailable"
            raise ForkFailed(reason)
        pid = next(self._pids)
        self.spawned[pid] = tuple(argv)
        return pid

    def send(self, pid: int, sig: Signal) -> None:
        """Record the signal, or fail for pids marked as gone."""
        if pid in self.gone:
            reason = "No such process"
            raise SignalDeliveryFailed(pid, sig.name, reason)
        self.sent.append((pid, sig))

    def poll(self, pid: int) -> ExitStatus | None:
        """Report a declared exit once."""
        if pid in self._exits and pid not in self._reaped:
            self._reaped.add(pid)
            return ExitStatus(code=self._exits[pid])
        return None

    def wait(self, pid: int) -> ExitStatus:
        """Record the wait; already-reaped pids report an unknown status."""
        self.waited.append(pid)
        if pid in self._reaped:
            return ExitStatus(code=None)
        self._reaped.add(pid)
        return ExitStatus(code=self._exits.get(pid, -int(Signal.SIGTERM)))


@pytest.fixture
def fake_os() -> FakeProcessControl:
    """Return a fresh fake OS boundary."""
    return FakeProcessControl()


@pytest.fixture
def shell(fake_os: FakeProcessControl) -> Shell:
    """Return a shell with default budgets (20 slots, 3 running) on the fake."""
    return Shell(config=ShellConfig(), process_control=fake_os)
