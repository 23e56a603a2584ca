"""A sample long-running job that honours the shell's signal contract.

``py-jobctl-worker <file> <seconds>`` works for *seconds* one-second
units, writing ``Process ran i out of n secs`` to *file* after each.
It is meant to be launched from the shell::

    jobctl$ run py-jobctl-worker out.txt 30 P2

How it cooperates with the shell:
    - It may be suspended (SIGSTOP) and continued (SIGCONT) any number
      of times; progress simply pauses.
    - SIGTERM (or SIGINT) is a request to finish: the current unit is
      cut short, a final ``terminated early`` line is written, and the
      process exits 0 on its own.
    - Its stdout and stderr go to the null device when run by the
      shell, so the file is the only reliable report.
"""

from __future__ import annotations

import argparse
import os
import signal
import sys
import threading
from typing import TYPE_CHECKING

from py_jobctl.signals import SHUTDOWN_SIGNALS

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

UNIT_SECONDS = 1.0


class Worker:
    """Count through units of work until done or asked to stop."""

    def __init__(self, *, path: str, total: int, unit: float = UNIT_SECONDS) -> None:
        """Create a worker that writes progress for *total* units to *path*."""
        if total <= 0:
            msg = f"Number of seconds must be positive, got {total}"
            raise ValueError(msg)
        self.path = path
        self.total = total
        self.unit = unit
        self.completed = 0
        self._shutdown = threading.Event()

    @property
    def shutdown_requested(self) -> bool:
        """Return True once a shutdown signal has arrived."""
        return self._shutdown.is_set()

    def request_shutdown(self, _signum: int = 0, _frame: FrameType | None = None) -> None:
        """Ask the worker to stop after the current unit (signal handler)."""
        self._shutdown.set()

    def install_handlers(self) -> None:
        """Route the shutdown signals to ``request_shutdown``."""
        for sig in SHUTDOWN_SIGNALS:
            signal.signal(sig, self.request_shutdown)

    def run(self) -> bool:
        """Do the work.

        Returns:
            True if every unit completed, False if stopped early.

        """
        with open(self.path, "w", encoding="utf-8") as out:
            while not self.shutdown_requested and self.completed < self.total:
                self.completed += 1
                out.write(f"Process ran {self.completed} out of {self.total} secs\n")
                out.flush()
                print(f"Process {os.getpid()}: {self.completed}/{self.total} seconds")  # noqa: T201
                if self.completed < self.total:
                    self._shutdown.wait(self.unit)

            finished = self.completed == self.total and not self.shutdown_requested
            outcome = "completed successfully" if finished else "terminated early"
            summary = f"Process {os.getpid()} {outcome}: {self.completed}/{self.total} seconds"
            out.write(summary + "\n")
        print(summary)  # noqa: T201
        return finished


def _build_parser() -> argparse.ArgumentParser:
    """Return the command-line parser for the worker."""
    parser = argparse.ArgumentParser(
        prog="py-jobctl-worker",
        description="Write one progress line per second to FILE for SECONDS seconds.",
        epilog="Example: py-jobctl-worker output.txt 5",
    )
    parser.add_argument("filename", help="file to write progress to")
    parser.add_argument("seconds", type=int, help="number of seconds to run")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the worker; return the process exit status.

    This is the ``py-jobctl-worker`` console entry point.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.seconds <= 0:
        parser.error("Number of seconds must be positive")

    worker = Worker(path=args.filename, total=args.seconds)
    worker.install_handlers()
    print(  # noqa: T201
        f"Process {os.getpid()} starting: writing to '{args.filename}' for {args.seconds} seconds"
    )
    try:
        worker.run()
    except OSError as e:
        msg = f"Error: Cannot open file '{args.filename}' for writing: {e.strerror}"
        print(msg, file=sys.stderr)  # noqa: T201
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
