"""Command processor — the five job-control operations plus shutdown.

``JobController`` is the only writer of job state.  Each operation
validates its arguments and the job's state first, raises a
``JobControlError`` if anything is wrong (leaving the table untouched),
and otherwise applies one state-machine event through the scheduler
and returns the text to show the operator.

Output shape:
    One outcome line (``Process 42 queued (Priority: P1)``,
    ``stopping 42``, ...) followed by any notices produced on the way —
    admissions made by the scheduling pass, or warnings about signals
    that could not be delivered.

Signals are fire-and-forget.  ``kill`` marks a job TERMINATED as soon
as SIGTERM is sent; the process may still be running for a moment.
Only ``shutdown`` waits for processes to actually exit.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from py_jobctl.errors import ForkFailed, InvalidArguments, InvalidPriority
from py_jobctl.jobs import JobEvent, JobRecord, JobStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

    from py_jobctl.process import ProcessControl
    from py_jobctl.scheduler import Scheduler

RUN_USAGE = "Usage: run [program] [arguments] [Priority]"

_SOURCE = "controller"
_PRIORITY_PATTERN = re.compile(r"P([1-9][0-9]*)")
_LIST_HEADER = "PID\t\tSTATE\tPRIORITY"


def parse_priority(token: str) -> int:
    """Return the number in a ``P<n>`` priority token.

    Raises:
        InvalidPriority: If *token* is not ``P`` followed by a positive
            integer without leading zeros.

    """
    match = _PRIORITY_PATTERN.fullmatch(token)
    if match is None:
        raise InvalidPriority(token)
    return int(match.group(1))


def parse_pid(args: Sequence[str], *, command: str) -> int:
    """Return the pid argument of a ``stop``/``kill``/``resume`` command.

    Raises:
        InvalidArguments: If the pid is missing or not a positive integer.

    """
    if not args:
        raise InvalidArguments("missing PID", usage=f"Usage: {command} [PID]")
    try:
        pid = int(args[0])
    except ValueError:
        pid = 0
    if pid <= 0:
        msg = "PID must be a positive integer"
        raise InvalidArguments(msg)
    return pid


def _lines(outcome: str, notices: list[str]) -> str:
    """Join an outcome line and its notices."""
    return "\n".join([outcome, *notices])


class JobController:
    """Run, stop, kill, resume and list jobs."""

    def __init__(self, *, scheduler: Scheduler, process_control: ProcessControl) -> None:
        """Create a controller over the scheduler's job table.

        Args:
            scheduler: Owner of the job table and running budget.
            process_control: Used to spawn children and wait at shutdown.

        """
        self._scheduler = scheduler
        self._control = process_control
        self._logger = scheduler.logger

    @property
    def scheduler(self) -> Scheduler:
        """Return the scheduler."""
        return self._scheduler

    def _find(self, pid: int) -> JobRecord:
        """Return the record for *pid* (``NotFound`` if absent)."""
        return self._scheduler.table.find_by_pid(pid)

    def run(self, args: Sequence[str]) -> str:
        """Launch ``program [args...]`` at the priority given last.

        The child is created suspended, recorded as READY, and then the
        scheduler decides whether it starts right away.

        Args:
            args: ``[program, *program_args, priority_token]``.

        Raises:
            InvalidArguments: If fewer than two tokens were given.
            InvalidPriority: If the last token is not ``P<n>``.
            NoSlotAvailable: If the job table is full.
            ForkFailed: If the OS could not create the child.

        """
        if not args:
            raise InvalidArguments("missing program", usage=RUN_USAGE)
        if len(args) < 2:  # noqa: PLR2004
            msg = "Priority is required"
            raise InvalidArguments(msg)

        *argv, token = args
        priority = parse_priority(token)
        self._scheduler.table.find_unused_slot()

        try:
            pid = self._control.spawn(argv)
        except ForkFailed as e:
            self._logger.error(str(e), source=_SOURCE)
            raise

        self._logger.info(
            f"Process {pid} queued (Priority: {token}): {' '.join(argv)}",
            source=_SOURCE,
            pid=pid,
        )
        _record, notices = self._scheduler.queue(
            pid=pid,
            command=argv,
            priority_num=priority,
            priority_label=token,
        )
        return _lines(f"Process {pid} queued (Priority: {token})", notices)

    def stop(self, pid: int) -> str:
        """Suspend a RUNNING job and give its slot to the next READY job.

        Raises:
            NotFound: If no job has this pid.
            AlreadyTerminated: If the job has terminated.
            AlreadyStopped: If the job is already stopped.
            NotRunning: If the job is READY.

        """
        record = self._find(pid)
        notices = self._scheduler.apply(record, JobEvent.STOP)
        self._logger.info(f"Process {pid} stopped", source=_SOURCE, pid=pid)
        return _lines(f"stopping {pid}", notices)

    def kill(self, pid: int) -> str:
        """Send SIGTERM to a job and mark it TERMINATED immediately.

        Raises:
            NotFound: If no job has this pid.
            AlreadyTerminated: If the job has terminated.

        """
        record = self._find(pid)
        notices = self._scheduler.apply(record, JobEvent.KILL)
        self._logger.info(f"Process {pid} terminated", source=_SOURCE, pid=pid)
        return _lines(f"Process {pid} terminated", notices)

    def resume(self, pid: int) -> str:
        """Continue a STOPPED job if a running slot is free.

        With no free slot the job becomes READY without being signalled,
        and no scheduling pass runs: it starts at the next event that
        frees a slot (a stop, a kill, or a completion).

        Raises:
            NotFound: If no job has this pid.
            AlreadyTerminated: If the job has terminated.
            NotStopped: If the job is READY or RUNNING.

        """
        record = self._find(pid)
        event = JobEvent.RESUME if self._scheduler.has_free_slot else JobEvent.DEFER
        notices = self._scheduler.apply(record, event)
        if event is JobEvent.DEFER:
            self._logger.info(
                f"Process {pid} ready; waiting for a free running slot", source=_SOURCE, pid=pid
            )
        else:
            self._logger.info(f"Process {pid} resumed", source=_SOURCE, pid=pid)
        return _lines(f"resuming {pid}", notices)

    def list_jobs(self) -> str:
        """Return a table of every allocated job: pid, status code, priority.

        Terminated jobs stay listed; their priority shows as ``-`` since
        the label was released.
        """
        rows = [
            f"{r.pid}\t\t{r.status:d}\t\t{r.priority_label or '-'}"
            for r in self._scheduler.table
            if r.status is not None
        ]
        if not rows:
            return f"{_LIST_HEADER}\nNo processes to list"
        return "\n".join([_LIST_HEADER, *rows])

    def snapshot(self) -> list[dict[str, object]]:
        """Return every allocated job as a plain dict (for JSON front ends)."""
        return [
            {
                "slot": r.index,
                "pid": r.pid,
                "status": r.status.label if r.status is not None else None,
                "priority": r.priority_label,
                "command": r.command_line if r.command is not None else None,
                "exit_code": r.exit_code,
            }
            for r in self._scheduler.table
        ]

    def shutdown(self) -> str:
        """Terminate every live job, then wait for every job ever started.

        Every allocated pid gets a blocking wait — including jobs that
        were killed earlier and jobs the reaper already collected — and
        every record's owned strings are released.  This is the only
        operation that blocks on process exit.
        """
        lines = ["Terminating all processes..."]
        for record in self._scheduler.table:
            if record.status is not JobStatus.TERMINATED:
                lines.extend(self._scheduler.apply(record, JobEvent.SHUTDOWN))

        for record in self._scheduler.table:
            exit_status = self._control.wait(record.pid)
            if record.exit_code is None:
                record.exit_code = exit_status.code
            record.release()
            self._logger.debug(
                f"Reaped process {record.pid} ({exit_status})", source=_SOURCE, pid=record.pid
            )

        self._logger.info("All processes reaped", source=_SOURCE)
        lines.append("bye!")
        return "\n".join(lines)
