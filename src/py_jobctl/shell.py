"""The shell — command interpreter for the job controller.

The shell reads one command line, splits it into a command name and
arguments, dispatches to a handler, and returns a string result.  It
also owns the pieces a session needs: the scheduler (with its job
table), the reaper, the controller, and the audit log.

Design choices:
    - **Returns strings, not prints.**  The shell is fully testable and
      the caller (REPL or web app) decides how to display output.
    - **Command dispatch via a dict.**  Adding a command means writing a
      method and adding one dict entry.
    - **Errors become one line.**  Every ``JobControlError`` raised by
      the controller is caught here and rendered as ``Error: ...`` (or
      the usage text); nothing a user types can end the session except
      ``exit``.
"""

from collections.abc import Callable
from typing import TypeAlias

from py_jobctl.config import MAX_LINE_LENGTH, MAX_TOKENS, ShellConfig
from py_jobctl.controller import JobController, parse_pid
from py_jobctl.errors import InvalidArguments, JobControlError
from py_jobctl.logging import Logger, LogLevel
from py_jobctl.process import OsProcessControl, ProcessControl
from py_jobctl.reaper import Reaper
from py_jobctl.scheduler import Scheduler

# Type alias for a command handler: takes a list of args, returns output.
_Handler: TypeAlias = Callable[[list[str]], str]

HALTED_MESSAGE = "Shell has exited."


def tokenize(line: str) -> list[str]:
    """Split a command line into at most ``MAX_TOKENS`` words.

    Lines longer than ``MAX_LINE_LENGTH`` characters are cut first.
    """
    return line[:MAX_LINE_LENGTH].split()[:MAX_TOKENS]


class Shell:
    """Command interpreter for one job-control session."""

    def __init__(
        self,
        *,
        config: ShellConfig | None = None,
        process_control: ProcessControl | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Create a shell with an empty job table.

        Args:
            config: Table size and running budget; defaults apply if None.
            process_control: OS boundary; real processes if None.
            logger: Audit log; a fresh one if None.

        """
        self._config = config if config is not None else ShellConfig()
        control = process_control if process_control is not None else OsProcessControl()
        self._logger = logger if logger is not None else Logger()
        self._scheduler = Scheduler(
            process_control=control,
            max_jobs=self._config.max_jobs,
            max_running=self._config.max_running,
            logger=self._logger,
        )
        self._reaper = Reaper(scheduler=self._scheduler, process_control=control)
        self._controller = JobController(scheduler=self._scheduler, process_control=control)
        self._halted = False

        # Command dispatch table — maps command names to handler methods.
        self._commands: dict[str, _Handler] = {
            "run": self._cmd_run,
            "stop": self._cmd_stop,
            "kill": self._cmd_kill,
            "resume": self._cmd_resume,
            "list": self._cmd_list,
            "exit": self._cmd_exit,
            "help": self._cmd_help,
            "log": self._cmd_log,
        }

    @property
    def config(self) -> ShellConfig:
        """Return the session configuration."""
        return self._config

    @property
    def scheduler(self) -> Scheduler:
        """Return the scheduler (and through it, the job table)."""
        return self._scheduler

    @property
    def controller(self) -> JobController:
        """Return the command processor."""
        return self._controller

    @property
    def logger(self) -> Logger:
        """Return the audit log."""
        return self._logger

    @property
    def halted(self) -> bool:
        """Return True once ``exit`` has run."""
        return self._halted

    @property
    def command_names(self) -> list[str]:
        """Return the sorted list of command names."""
        return sorted(self._commands)

    def reap(self) -> str:
        """Retire jobs that exited since the last check.

        Called by the command loop before each prompt.
        """
        if self._halted:
            return ""
        return "\n".join(self._reaper.reap())

    def execute(self, command: str) -> str:
        """Parse and execute one command line.

        Args:
            command: The raw line (e.g. ``"run sleep 10 P2"``).

        Returns:
            The command output, a one-line diagnostic, or ``""`` for a
            blank line.

        """
        if self._halted:
            return HALTED_MESSAGE
        words = tokenize(command)
        if not words:
            return ""
        name, args = words[0], words[1:]
        handler = self._commands.get(name)
        if handler is None:
            return "invalid command"
        try:
            return handler(args)
        except InvalidArguments as e:
            return e.usage if e.usage is not None else f"Error: {e}"
        except JobControlError as e:
            return f"Error: {e}"

    def close(self) -> str:
        """Shut the session down if ``exit`` has not already done so."""
        if self._halted:
            return ""
        return self._cmd_exit([])

    # -- command handlers --------------------------------------------------

    def _cmd_run(self, args: list[str]) -> str:
        """Launch a program: ``run <program> [arg...] <priority>``."""
        return self._controller.run(args)

    def _cmd_stop(self, args: list[str]) -> str:
        """Suspend a running job."""
        return self._controller.stop(parse_pid(args, command="stop"))

    def _cmd_kill(self, args: list[str]) -> str:
        """Terminate a job."""
        return self._controller.kill(parse_pid(args, command="kill"))

    def _cmd_resume(self, args: list[str]) -> str:
        """Continue a stopped job."""
        return self._controller.resume(parse_pid(args, command="resume"))

    def _cmd_list(self, _args: list[str]) -> str:
        """List every job: pid, status code, priority."""
        return self._controller.list_jobs()

    def _cmd_exit(self, _args: list[str]) -> str:
        """Terminate and reap every job, then end the session."""
        output = self._controller.shutdown()
        self._halted = True
        return output

    def _cmd_help(self, _args: list[str]) -> str:
        """List available commands."""
        return "\n".join(
            [
                "Available commands: " + ", ".join(self.command_names),
                "  run <program> [arg...] <P1|P2|...>  start a job (P1 = highest priority)",
                "  stop <pid> | resume <pid> | kill <pid>",
                "  list                                 pid, state (0 run, 1 ready, 2 stop, 3 done)",
                "  log [debug]                          show the audit log",
            ]
        )

    def _cmd_log(self, args: list[str]) -> str:
        """Show the audit log; ``log debug`` includes DEBUG entries."""
        if args and args[0] != "debug":
            msg = f"unknown log option '{args[0]}'"
            raise InvalidArguments(msg, usage="Usage: log [debug]")
        min_level = LogLevel.DEBUG if args else LogLevel.INFO
        entries = self._logger.filter(min_level=min_level)
        return "\n".join(str(e) for e in entries) if entries else "No log entries."
