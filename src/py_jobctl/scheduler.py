"""Admission scheduler — decides which READY job gets a running slot.

The shell lets at most ``max_running`` jobs run at once.  Whenever a
slot may have opened up (a job was queued, stopped, killed or seen to
exit) the scheduler fills free slots with READY jobs, best first, by
sending each one SIGCONT.

The scheduler also *owns* the job table and the running counter.
Every state change goes through ``Scheduler.apply``, which runs the
pure ``transition`` function and then carries out its effects in one
place (signal, counter, release, reschedule).  The counter therefore
always equals the number of RUNNING records; no caller does its own
arithmetic on it.

Design: Strategy pattern
    The Scheduler is the *context*; SchedulingPolicy is the *strategy*
    that picks the next job among the READY candidates.
    ``PriorityPolicy`` (static priority, FCFS tie-break) is the policy
    the shell uses.

Not a timer:
    Nothing runs in the background.  Admission happens only at the
    event points above, synchronously, inside the command that caused
    them.  ``resume`` with no free slot deliberately does *not*
    schedule; the job waits for the next event.
"""

from __future__ import annotations

from time import monotonic
from typing import TYPE_CHECKING, Protocol

from py_jobctl.config import DEFAULT_MAX_JOBS, DEFAULT_MAX_RUNNING
from py_jobctl.errors import SignalDeliveryFailed
from py_jobctl.jobs import Effect, JobEvent, JobRecord, JobStatus, JobTable, Transition, transition
from py_jobctl.logging import Logger
from py_jobctl.signals import Signal

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from py_jobctl.process import ProcessControl

_SOURCE = "scheduler"

# Order matters: a terminate must be pending before the continue that
# lets a suspended process act on it.
_SIGNAL_EFFECTS: tuple[tuple[Effect, Signal], ...] = (
    (Effect.SEND_SUSPEND, Signal.SIGSTOP),
    (Effect.SEND_TERMINATE, Signal.SIGTERM),
    (Effect.SEND_CONTINUE, Signal.SIGCONT),
)

# Events whose state change only happens if the signal is delivered.
_SIGNAL_REQUIRED: frozenset[JobEvent] = frozenset({JobEvent.ADMIT})


class SchedulingPolicy(Protocol):
    """Interface for choosing the next job to admit."""

    def select(self, candidates: Sequence[JobRecord]) -> JobRecord | None:
        """Return the candidate to admit next, or None if there are none."""
        ...  # pragma: no cover


class PriorityPolicy:
    """Static priority — the smallest priority number runs first.

    Ties are broken by arrival time (first come, first served), and
    then by slot index, which is arrival order since slots are never
    reused.  No aging: a low-priority job can wait indefinitely while
    higher-priority work keeps arriving.
    """

    def select(self, candidates: Sequence[JobRecord]) -> JobRecord | None:
        """Return the best READY candidate, or None."""
        if not candidates:
            return None
        return min(candidates, key=lambda r: (r.priority_num, r.arrival_time, r.index))


class Scheduler:
    """Owner of the job table and the running-slot budget."""

    def __init__(
        self,
        *,
        process_control: ProcessControl,
        max_jobs: int = DEFAULT_MAX_JOBS,
        max_running: int = DEFAULT_MAX_RUNNING,
        policy: SchedulingPolicy | None = None,
        logger: Logger | None = None,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        """Create a scheduler with an empty job table.

        Args:
            process_control: How signals reach real (or fake) processes.
            max_jobs: Job-table capacity.
            max_running: Maximum number of RUNNING jobs.
            policy: Admission order; defaults to ``PriorityPolicy``.
            logger: Audit log shared with the rest of the shell.
            clock: Source of arrival timestamps.

        """
        if max_running <= 0:
            msg = f"max_running must be positive, got {max_running}"
            raise ValueError(msg)
        self._table = JobTable(capacity=max_jobs)
        self._max_running = max_running
        self._running = 0
        self._control = process_control
        self._policy: SchedulingPolicy = policy if policy is not None else PriorityPolicy()
        self._logger = logger if logger is not None else Logger()
        self._clock = clock

    @property
    def table(self) -> JobTable:
        """Return the job table (read it; change it only via ``apply``)."""
        return self._table

    @property
    def running_count(self) -> int:
        """Return the number of RUNNING jobs."""
        return self._running

    @property
    def max_running(self) -> int:
        """Return the running-slot budget."""
        return self._max_running

    @property
    def has_free_slot(self) -> bool:
        """Return True if another job may start running now."""
        return self._running < self._max_running

    @property
    def policy(self) -> SchedulingPolicy:
        """Return the admission policy."""
        return self._policy

    @property
    def logger(self) -> Logger:
        """Return the audit log."""
        return self._logger

    def queue(
        self,
        *,
        pid: int,
        command: Sequence[str],
        priority_num: int,
        priority_label: str,
    ) -> tuple[JobRecord, list[str]]:
        """Record a freshly spawned child in the first free slot.

        The child is suspended, marked READY, and a scheduling pass runs.

        Returns:
            The new record and any notices produced by the pass.

        Raises:
            NoSlotAvailable: If the table is full.

        """
        record = self._table.find_unused_slot()
        record.pid = pid
        record.command = tuple(command)
        record.priority_num = priority_num
        record.priority_label = priority_label
        record.arrival_time = self._clock()
        return record, self.apply(record, JobEvent.QUEUE)

    def apply(self, record: JobRecord, event: JobEvent) -> list[str]:
        """Apply *event* to *record* and carry out the resulting effects.

        Returns:
            Operator notices: failed deliveries and admissions made by
            any scheduling pass the event triggered.

        Raises:
            JobControlError: If the job's state does not allow *event*;
                nothing is changed.
            SignalDeliveryFailed: For admission only, when SIGCONT could
                not be delivered; nothing is changed.
            RuntimeError: If the event would exceed the running budget.

        """
        change = transition(record.status, event, pid=record.pid)
        if Effect.TAKE_SLOT in change.effects and not self.has_free_slot:
            msg = f"Cannot {event} process {record.pid}: no running slot free"
            raise RuntimeError(msg)

        notices: list[str] = []
        for effect, sig in _SIGNAL_EFFECTS:
            if effect not in change.effects:
                continue
            try:
                self._control.send(record.pid, sig)
            except SignalDeliveryFailed as e:
                if event in _SIGNAL_REQUIRED:
                    raise
                self._logger.warning(str(e), source=_SOURCE, pid=record.pid)
                notices.append(f"Warning: {e}")

        self._commit(record, change)
        self._logger.debug(
            f"{event}: process {record.pid} is now {change.status.label}",
            source=_SOURCE,
            pid=record.pid,
        )
        if Effect.SCHEDULE in change.effects:
            notices.extend(self.schedule())
        return notices

    def _commit(self, record: JobRecord, change: Transition) -> None:
        """Update the counter, owned strings and status for *change*."""
        if Effect.TAKE_SLOT in change.effects:
            self._running += 1
        if Effect.FREE_SLOT in change.effects:
            self._running -= 1
        if Effect.RELEASE in change.effects:
            record.release()
        record.status = change.status

    def schedule(self) -> list[str]:
        """Admit READY jobs in policy order until the running budget is used.

        A job whose SIGCONT cannot be delivered stays as it is; the
        failure is logged and reported, and that job is not retried in
        this pass.

        Returns:
            One notice per admission or failed admission.

        """
        self._logger.debug(
            f"Scheduling processes. Running count: {self._running}/{self._max_running}",
            source=_SOURCE,
        )
        notices: list[str] = []
        failed: set[int] = set()
        while self.has_free_slot:
            candidates = [r for r in self._table.with_status(JobStatus.READY) if r.pid not in failed]
            record = self._policy.select(candidates)
            if record is None:
                self._logger.debug("No ready processes found", source=_SOURCE)
                break

            self._logger.debug(
                f"Found ready process {record.pid} (Priority: {record.priority_label})",
                source=_SOURCE,
                pid=record.pid,
            )
            try:
                self.apply(record, JobEvent.ADMIT)
            except SignalDeliveryFailed as e:
                failed.add(record.pid)
                self._logger.warning(
                    f"Failed to resume process {record.pid}: {e.reason}",
                    source=_SOURCE,
                    pid=record.pid,
                )
                notices.append(f"Warning: failed to resume process {record.pid}")
                continue

            self._logger.info(
                f"Process {record.pid} started (Priority: {record.priority_label})",
                source=_SOURCE,
                pid=record.pid,
            )
            notices.append(f"Process {record.pid} started (Priority: {record.priority_label})")
        return notices
