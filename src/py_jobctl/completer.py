"""Context-aware tab completer for the job shell.

The completer separates **what to complete** (pure logic, fully
testable) from **how to wire it** (readline integration in the REPL).

The ``complete(text, state)`` method is the readline callback.  It
delegates to ``completions(text, line)`` which analyses the input
context and returns a list of candidate strings:

- first word → command names;
- after ``stop`` → pids of RUNNING jobs;
- after ``resume`` → pids of STOPPED jobs;
- after ``kill`` → pids of every job not yet terminated;
- after ``log`` → ``debug``;
- last word of a ``run`` line → the next unused ``P<n>`` labels.
"""

from __future__ import annotations

import readline
from typing import TYPE_CHECKING

from py_jobctl.jobs import JobStatus

if TYPE_CHECKING:
    from py_jobctl.shell import Shell

# Which job states each pid-taking command accepts.
_PID_COMMANDS: dict[str, frozenset[JobStatus]] = {
    "stop": frozenset({JobStatus.RUNNING}),
    "resume": frozenset({JobStatus.STOPPED}),
    "kill": frozenset({JobStatus.RUNNING, JobStatus.READY, JobStatus.STOPPED}),
}

# A run line needs a program before a priority makes sense.
_MIN_WORDS_FOR_PRIORITY = 2


class Completer:
    """Context-aware tab completer for the job shell."""

    def __init__(self, shell: Shell) -> None:
        """Create a completer attached to a shell instance."""
        self._shell = shell

    def complete(self, text: str, state: int) -> str | None:
        """Readline callback — return the *state*-th candidate for *text*.

        Args:
            text: The partial word being completed.
            state: Index into the candidate list (0, 1, 2, …).

        Returns:
            The candidate at *state*, or ``None`` when exhausted.

        """
        line = readline.get_line_buffer()
        candidates = self.completions(text, line)
        if state < len(candidates):
            return candidates[state]
        return None

    def completions(self, text: str, line: str) -> list[str]:
        """Return completion candidates based on context.

        Args:
            text: The partial word under the cursor.
            line: The full input line so far.

        Returns:
            Sorted list of matching candidates.

        """
        words = line.lstrip().split()

        # No words yet, or still typing the first word → command completion
        if not words or (len(words) == 1 and not line.endswith(" ")):
            return [cmd for cmd in self._shell.command_names if cmd.startswith(text)]

        cmd = words[0]
        if cmd in _PID_COMMANDS:
            return self._complete_pids(_PID_COMMANDS[cmd], text)
        if cmd == "log":
            return ["debug"] if "debug".startswith(text) else []
        finished_words = len(words) if line.endswith(" ") else len(words) - 1
        if cmd == "run" and finished_words >= _MIN_WORDS_FOR_PRIORITY and "P".startswith(text[:1]):
            return self._complete_priorities(text)
        return []

    def _complete_pids(self, states: frozenset[JobStatus], text: str) -> list[str]:
        """Complete pids of jobs currently in one of *states*."""
        return sorted(
            str(r.pid)
            for r in self._shell.scheduler.table
            if r.status in states and str(r.pid).startswith(text)
        )

    def _complete_priorities(self, text: str) -> list[str]:
        """Offer priority labels already in use, plus the next one."""
        numbers = {r.priority_num for r in self._shell.scheduler.table if r.priority_label}
        numbers.add(max(numbers, default=0) + 1)
        return [f"P{n}" for n in sorted(numbers) if f"P{n}".startswith(text)]
