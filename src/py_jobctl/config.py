"""Shell configuration.

The job shell has very few knobs: how many jobs the table can ever
hold, how many may run at once, and how chatty the terminal is.  The
defaults are module constants; ``ShellConfig`` groups them so the REPL
and the web front end build the same shell, and ``parse_args`` fills
one in from the command line.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_MAX_JOBS = 20
"""Number of job-table slots.  Slots are never reclaimed."""

DEFAULT_MAX_RUNNING = 3
"""Maximum number of jobs in the RUNNING state at once."""

MAX_LINE_LENGTH = 78
"""Input lines are cut to this many characters before tokenising.

A 79-byte read buffer minus its terminating NUL."""

MAX_TOKENS = 19
"""At most this many tokens of a line are considered."""

EXEC_FAILED_STATUS = 127
"""Exit status a child uses when it cannot exec its program."""


@dataclass(frozen=True)
class ShellConfig:
    """Settings for one shell session.

    Attributes:
        max_jobs: Job-table capacity.
        max_running: Running-slot budget.
        debug: Echo DEBUG log entries after each command.
        color: Colour the prompt with ANSI escapes.

    """

    max_jobs: int = DEFAULT_MAX_JOBS
    max_running: int = DEFAULT_MAX_RUNNING
    debug: bool = False
    color: bool = True

    def __post_init__(self) -> None:
        """Reject budgets that cannot work."""
        if self.max_jobs <= 0:
            msg = f"max_jobs must be positive, got {self.max_jobs}"
            raise ValueError(msg)
        if self.max_running <= 0:
            msg = f"max_running must be positive, got {self.max_running}"
            raise ValueError(msg)


def _positive_int(text: str) -> int:
    """Parse a positive integer for argparse."""
    try:
        value = int(text)
    except ValueError:
        msg = f"invalid int value: '{text}'"
        raise argparse.ArgumentTypeError(msg) from None
    if value <= 0:
        msg = f"must be positive: {value}"
        raise argparse.ArgumentTypeError(msg)
    return value


def build_parser() -> argparse.ArgumentParser:
    """Return the command-line parser for ``py-jobctl``."""
    parser = argparse.ArgumentParser(
        prog="py-jobctl",
        description="Interactive job-control shell with a static-priority scheduler.",
    )
    parser.add_argument(
        "--max-jobs",
        type=_positive_int,
        default=DEFAULT_MAX_JOBS,
        help=f"job table capacity (default: {DEFAULT_MAX_JOBS})",
    )
    parser.add_argument(
        "--max-running",
        type=_positive_int,
        default=DEFAULT_MAX_RUNNING,
        help=f"maximum simultaneously running jobs (default: {DEFAULT_MAX_RUNNING})",
    )
    parser.add_argument(
        "--debug", action="store_true", help="print scheduler debug messages after each command"
    )
    parser.add_argument("--no-color", action="store_true", help="plain prompt without ANSI colour")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> ShellConfig:
    """Build a ``ShellConfig`` from command-line arguments."""
    ns = build_parser().parse_args(argv)
    return ShellConfig(
        max_jobs=ns.max_jobs,
        max_running=ns.max_running,
        debug=ns.debug,
        color=not ns.no_color,
    )
