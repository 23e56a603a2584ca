"""End-to-end tests: a real shell running real ``sleep`` children."""

from __future__ import annotations

import os
import shutil
import time

import pytest

from py_jobctl.config import ShellConfig
from py_jobctl.jobs import JobStatus
from py_jobctl.shell import Shell

pytestmark = [
    pytest.mark.posix,
    pytest.mark.skipif(
        not hasattr(os, "fork") or shutil.which("sleep") is None,
        reason="needs fork() and a sleep binary",
    ),
]

_DEADLINE = 5.0


def _pid(output: str) -> int:
    """Return the pid from a ``Process N queued`` line."""
    return int(output.split()[1])


def _reap_until(shell: Shell, text: str) -> str:
    """Reap until *text* shows up in the reaper output."""
    deadline = time.monotonic() + _DEADLINE
    seen: list[str] = []
    while time.monotonic() < deadline:
        seen.append(shell.reap())
        if text in seen[-1]:
            return "\n".join(seen)
        time.sleep(0.02)
    pytest.fail(f"never saw {text!r}; got {seen!r}")


class TestRealProcesses:
    """Drive the shell against the OS."""

    def test_job_runs_to_completion_and_frees_slot(self) -> None:
        """A short job completes and the waiting job takes its slot."""
        shell = Shell(config=ShellConfig(max_running=1))
        try:
            quick = _pid(shell.execute("run sleep 0 P1"))
            slow = _pid(shell.execute("run sleep 30 P2"))
            table = shell.scheduler.table
            assert table.find_by_pid(slow).status is JobStatus.READY

            output = _reap_until(shell, f"Process {quick} completed")

            assert f"Process {slow} started (Priority: P2)" in output
            assert table.find_by_pid(quick).status is JobStatus.TERMINATED
            assert table.find_by_pid(slow).status is JobStatus.RUNNING
        finally:
            shell.close()

    def test_exec_failure_reported(self) -> None:
        """A program that does not exist is reported by the reaper."""
        shell = Shell()
        try:
            pid = _pid(shell.execute("run py-jobctl-no-such-program P1"))
            _reap_until(shell, f"Process {pid} could not execute its program")
            assert shell.scheduler.table.find_by_pid(pid).exit_code == 127
        finally:
            shell.close()

    def test_stop_resume_kill_and_exit(self) -> None:
        """Every command works on a live child and exit reaps it."""
        shell = Shell()
        pid = _pid(shell.execute("run sleep 30 P1"))
        assert shell.execute(f"stop {pid}") == f"stopping {pid}"
        assert shell.execute(f"resume {pid}") == f"resuming {pid}"
        assert shell.execute(f"kill {pid}") == f"Process {pid} terminated"
        other = _pid(shell.execute("run sleep 30 P2"))

        output = shell.execute("exit")

        assert output.endswith("bye!")
        table = shell.scheduler.table
        assert table.find_by_pid(pid).exit_code == -15
        assert table.find_by_pid(other).exit_code == -15
