"""Completion reaper — notice jobs that exited on their own.

The shell never gets told when a child exits.  Instead, once per
command-loop iteration (before the prompt), the reaper asks the OS
about every RUNNING job with a non-blocking ``waitpid``.  Each exit it
finds frees a running slot, so the scheduler runs right after.

Latency:
    A job that finishes while the shell is blocked reading input is
    only noticed after the next line is entered.  ``list`` output is
    therefore a snapshot as of the last reap.

Only RUNNING jobs are polled.  READY and STOPPED jobs are suspended
and cannot exit by themselves; killed jobs are already TERMINATED in
the table and are collected by the blocking waits at shutdown.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from py_jobctl.errors import ExecFailed
from py_jobctl.jobs import JobEvent, JobStatus

if TYPE_CHECKING:
    from py_jobctl.process import ProcessControl
    from py_jobctl.scheduler import Scheduler

_SOURCE = "reaper"


class Reaper:
    """Reconcile the job table with processes that have exited."""

    def __init__(self, *, scheduler: Scheduler, process_control: ProcessControl) -> None:
        """Create a reaper for the scheduler's table."""
        self._scheduler = scheduler
        self._control = process_control

    def reap(self) -> list[str]:
        """Poll every RUNNING job once and retire the ones that exited.

        Returns:
            Operator messages: one per completed job, followed by any
            admissions the freed slots allowed.

        """
        messages: list[str] = []
        logger = self._scheduler.logger
        for record in self._scheduler.table.with_status(JobStatus.RUNNING):
            # An earlier retirement in this pass may have admitted jobs
            # or changed this one; only still-running records are polled.
            if record.status is not JobStatus.RUNNING:
                continue
            exit_status = self._control.poll(record.pid)
            if exit_status is None:
                continue

            record.exit_code = exit_status.code
            if exit_status.exec_failed:
                message = str(ExecFailed(record.pid))
                logger.error(f"{message} ({exit_status})", source=_SOURCE, pid=record.pid)
            else:
                message = f"Process {record.pid} completed"
                logger.info(f"{message} ({exit_status})", source=_SOURCE, pid=record.pid)
            messages.append(message)

            notices = self._scheduler.apply(record, JobEvent.EXITED)
            logger.debug(
                f"Running count after completion: {self._scheduler.running_count}",
                source=_SOURCE,
            )
            messages.extend(notices)
        return messages
