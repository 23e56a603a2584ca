"""The three process controls the job shell uses.

The shell never time-slices a process itself.  It only starts, pauses
and ends whole processes, and it does so with exactly three Unix
signals:

    - **SIGCONT** — continue a suspended process.  Used when the
      scheduler admits a job and when ``resume`` finds a free slot.
    - **SIGSTOP** — suspend a process.  Uncatchable, so a job can never
      refuse to be paused.  Sent to every new child and by ``stop``.
    - **SIGTERM** — polite termination request.  Jobs are expected to
      catch it and exit promptly on their own (see ``py_jobctl.worker``).

Design choices:
    - **IntEnum with the host's signal numbers** — the values are the
      real ``signal.SIG*`` numbers, so an enum member can be handed to
      ``os.kill`` directly.
    - **A deliberately small enum** — anything not listed here is
      outside the shell's contract with its jobs.
"""

import signal
from enum import IntEnum


class Signal(IntEnum):
    """Signals the shell sends to its jobs, with host numeric values."""

    SIGTERM = signal.SIGTERM
    SIGCONT = signal.SIGCONT
    SIGSTOP = signal.SIGSTOP


SHUTDOWN_SIGNALS: frozenset[int] = frozenset({signal.SIGTERM, signal.SIGINT})
"""Signals a cooperative job treats as a request to finish early."""
