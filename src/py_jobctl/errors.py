"""Error taxonomy for job control.

Every failure the job shell can report is a ``JobControlError``.  The
controller raises them *before* touching the job table, and the shell
turns each one into a single diagnostic line — none of them ends the
session.

Design choices:
    - **One class per failure kind** so tests (and callers) can assert
      on the exact kind with ``pytest.raises``.
    - **Messages are complete sentences about the job** — the shell
      prints ``Error: {e}`` and nothing else.
"""


class JobControlError(Exception):
    """Base class for every job-control failure."""


class InvalidArguments(JobControlError):
    """A command was missing arguments or given malformed ones.

    When *usage* is set the shell prints it instead of the message.
    """

    def __init__(self, message: str, *, usage: str | None = None) -> None:
        """Create the error, optionally with a usage line to show."""
        super().__init__(message)
        self.usage = usage


class InvalidPriority(JobControlError):
    """A priority token did not look like ``P1``, ``P2``, ..."""

    def __init__(self, token: str) -> None:
        """Create the error for the rejected *token*."""
        super().__init__(f"Invalid priority format '{token}'. Use P1, P2, P3, etc.")
        self.token = token


class NoSlotAvailable(JobControlError):
    """Every job-table slot has been allocated."""

    def __init__(self) -> None:
        """Create the error."""
        super().__init__("No process slots available")


class _JobError(JobControlError):
    """An error about one specific job."""

    template = "Process {pid}"

    def __init__(self, pid: int) -> None:
        """Create the error for job *pid*."""
        super().__init__(self.template.format(pid=pid))
        self.pid = pid


class NotFound(_JobError):
    """No job with the given pid is in the table."""

    template = "Process {pid} not found"


class AlreadyTerminated(_JobError):
    """The job has already terminated."""

    template = "Process {pid} is already terminated"


class AlreadyStopped(_JobError):
    """The job is already stopped."""

    template = "Process {pid} is already stopped"


class NotRunning(_JobError):
    """The job is not currently running."""

    template = "Process {pid} is not running"


class NotStopped(_JobError):
    """The job is not stopped, so there is nothing to resume."""

    template = "Process {pid} is not stopped"


class ExecFailed(_JobError):
    """The child could not replace itself with the requested program.

    Never raised: the failure happens in the child, after ``run`` has
    returned.  The reaper formats one to report an exit status of 127.
    """

    template = "Process {pid} could not execute its program"


class SignalDeliveryFailed(JobControlError):
    """The OS refused to deliver a signal (usually: the process is gone)."""

    def __init__(self, pid: int, signal_name: str, reason: str) -> None:
        """Create the error for a failed *signal_name* delivery to *pid*."""
        super().__init__(f"could not deliver {signal_name} to process {pid}: {reason}")
        self.pid = pid
        self.signal_name = signal_name
        self.reason = reason


class ForkFailed(JobControlError):
    """The OS could not create a child process."""

    def __init__(self, reason: str) -> None:
        """Create the error with the OS *reason*."""
        super().__init__(f"fork failed: {reason}")
        self.reason = reason
