"""The boundary between the job shell and the operating system.

Everything the shell does to a real process goes through a
``ProcessControl``: create a suspended child, send it a signal, check
without blocking whether it has exited, and wait for it at shutdown.

``OsProcessControl`` implements this with ``os.fork``/``os.execvp``,
``os.kill`` and ``os.waitpid``.  Tests substitute a fake that records
signals instead of sending them, which is how the state machine is
exercised without any child processes.

Child start-up:
    1. The child moves into its own process group, so terminal Ctrl+C
       and Ctrl+Z reach the shell and not its jobs.
    2. It stops *itself* with SIGSTOP before exec, and the parent waits
       (``WUNTRACED``) until that stop is visible.  No job can execute a
       single instruction of its program before the scheduler sends
       SIGCONT.
    3. On continue it points stdout/stderr at the null device and execs
       the program.  If exec fails it exits with ``EXEC_FAILED_STATUS``;
       the shell process is never affected.
"""

from __future__ import annotations

import os
import signal
from contextlib import suppress
from dataclasses import dataclass
from typing import TYPE_CHECKING, NoReturn, Protocol

from py_jobctl.config import EXEC_FAILED_STATUS
from py_jobctl.errors import ForkFailed, SignalDeliveryFailed

if TYPE_CHECKING:
    from collections.abc import Sequence

    from py_jobctl.signals import Signal


@dataclass(frozen=True)
class ExitStatus:
    """How a child process ended.

    Attributes:
        code: The exit code, ``-N`` if killed by signal N, or None when
            the OS no longer knows the child (it was reaped elsewhere).

    """

    code: int | None

    @property
    def exec_failed(self) -> bool:
        """Return True if the child exited with the exec-failure status."""
        return self.code == EXEC_FAILED_STATUS

    def __str__(self) -> str:
        """Describe the exit for operator messages."""
        if self.code is None:
            return "exit status unknown"
        if self.code < 0:
            return f"killed by signal {-self.code}"
        return f"exit status {self.code}"


class ProcessControl(Protocol):
    """Operations the shell needs from the OS."""

    def spawn(self, argv: Sequence[str]) -> int:
        """Create a suspended child that will exec *argv*; return its pid."""
        ...  # pragma: no cover

    def send(self, pid: int, sig: Signal) -> None:
        """Deliver *sig* to *pid*, raising ``SignalDeliveryFailed`` on refusal."""
        ...  # pragma: no cover

    def poll(self, pid: int) -> ExitStatus | None:
        """Return the exit status if *pid* has exited, else None.  Never blocks."""
        ...  # pragma: no cover

    def wait(self, pid: int) -> ExitStatus:
        """Block until *pid* exits and return its exit status."""
        ...  # pragma: no cover


class OsProcessControl:
    """``ProcessControl`` backed by real POSIX process primitives."""

    def __init__(self, *, null_device: str = os.devnull) -> None:
        """Create a process controller.

        Args:
            null_device: Where children send stdout and stderr.

        """
        self._null_device = null_device

    def spawn(self, argv: Sequence[str]) -> int:
        """Fork a child that stops itself, then execs *argv* once continued.

        Returns:
            The child's pid.  The child is stopped when this returns.

        Raises:
            ForkFailed: If the OS refuses to create the process.
            ValueError: If *argv* is empty.

        """
        if not argv:
            msg = "Cannot spawn an empty command"
            raise ValueError(msg)
        try:
            pid = os.fork()
        except OSError as e:
            raise ForkFailed(e.strerror or str(e)) from e
        if pid == 0:
            self._exec_child(list(argv))
        # Wait for the child's self-stop; if it died instead the status
        # is consumed here and later polls report an unknown exit.
        os.waitpid(pid, os.WUNTRACED)
        return pid

    def _exec_child(self, argv: list[str]) -> NoReturn:
        """Run in the child: suspend, redirect output, exec.  Never returns."""
        try:
            os.setpgid(0, 0)
            os.kill(os.getpid(), signal.SIGSTOP)
            for sig in (signal.SIGPIPE, signal.SIGXFSZ):
                signal.signal(sig, signal.SIG_DFL)
            null_fd = os.open(self._null_device, os.O_WRONLY)
            os.dup2(null_fd, 1)
            os.dup2(null_fd, 2)
            os.execvp(argv[0], argv)
        except OSError as e:
            with suppress(OSError):
                os.write(2, f"Error: cannot execute {argv[0]}: {e.strerror}\n".encode())
        finally:
            os._exit(EXEC_FAILED_STATUS)

    def send(self, pid: int, sig: Signal) -> None:
        """Deliver *sig* to *pid* with ``os.kill``.

        Raises:
            SignalDeliveryFailed: If the process is gone or not ours.

        """
        try:
            os.kill(pid, sig)
        except OSError as e:
            raise SignalDeliveryFailed(pid, sig.name, e.strerror or str(e)) from e

    def poll(self, pid: int) -> ExitStatus | None:
        """Check for exit with ``waitpid(WNOHANG)``."""
        try:
            reaped, status = os.waitpid(pid, os.WNOHANG)
        except ChildProcessError:
            return ExitStatus(code=None)
        if reaped == 0:
            return None
        return ExitStatus(code=os.waitstatus_to_exitcode(status))

    def wait(self, pid: int) -> ExitStatus:
        """Block in ``waitpid`` until *pid* exits.

        A child that was already reaped returns an unknown exit status
        instead of raising.
        """
        try:
            _, status = os.waitpid(pid, 0)
        except ChildProcessError:
            return ExitStatus(code=None)
        return ExitStatus(code=os.waitstatus_to_exitcode(status))
