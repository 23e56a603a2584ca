"""py-jobctl — an interactive job-control shell with a priority scheduler.

Re-exports the public pieces so callers can write::

    from py_jobctl import Shell, ShellConfig, JobStatus
"""

from py_jobctl.config import ShellConfig
from py_jobctl.controller import JobController
from py_jobctl.errors import (
    AlreadyStopped,
    AlreadyTerminated,
    ExecFailed,
    ForkFailed,
    InvalidArguments,
    InvalidPriority,
    JobControlError,
    NoSlotAvailable,
    NotFound,
    NotRunning,
    NotStopped,
    SignalDeliveryFailed,
)
from py_jobctl.jobs import JobEvent, JobRecord, JobStatus, JobTable, transition
from py_jobctl.process import ExitStatus, OsProcessControl, ProcessControl
from py_jobctl.reaper import Reaper
from py_jobctl.scheduler import PriorityPolicy, Scheduler, SchedulingPolicy
from py_jobctl.shell import Shell

__version__ = "0.1.0"

__all__ = [
    "AlreadyStopped",
    "AlreadyTerminated",
    "ExecFailed",
    "ExitStatus",
    "ForkFailed",
    "InvalidArguments",
    "InvalidPriority",
    "JobControlError",
    "JobController",
    "JobEvent",
    "JobRecord",
    "JobStatus",
    "JobTable",
    "NoSlotAvailable",
    "NotFound",
    "NotRunning",
    "NotStopped",
    "OsProcessControl",
    "PriorityPolicy",
    "ProcessControl",
    "Reaper",
    "Scheduler",
    "SchedulingPolicy",
    "Shell",
    "ShellConfig",
    "SignalDeliveryFailed",
    "__version__",
]
