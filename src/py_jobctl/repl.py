"""Interactive command loop for the job shell.

The classic loop, with one extra step in front:

    1. **Reap** — retire jobs that exited since the last command.
    2. **Read** — display a prompt and read one line (blocks, no timeout).
    3. **Eval** — pass the line to ``shell.execute()``.
    4. **Print** — display the result.
    5. **Loop** — until ``exit``, Ctrl+D or Ctrl+C.

Because reaping only happens between lines, a job that finishes while
the prompt is waiting shows up after the next Enter.

This module keeps the I/O loop separate from the shell logic.  The
helper functions (``build_prompt``, ``format_banner``) are pure and
testable; ``run()`` is the I/O entrypoint.  The process always exits
with status 0.
"""

import readline
from collections.abc import Sequence

from py_jobctl.completer import Completer
from py_jobctl.config import ShellConfig, parse_args
from py_jobctl.logging import LogLevel
from py_jobctl.shell import Shell

_BANNER_WIDTH = 38
_BLUE = "\x1b[34m"
_RESET = "\x1b[0m"


def format_banner(config: ShellConfig) -> str:
    """Return the start-up banner for a session with *config*."""
    border = "=" * _BANNER_WIDTH
    return (
        f"\n  {border}\n            py-jobctl\n       priority job-control shell\n  {border}\n\n"
        f"  Job slots: {config.max_jobs}   Running slots: {config.max_running}\n"
        "\nType 'help' for commands, 'exit' to quit.\n"
    )


def build_prompt(config: ShellConfig) -> str:
    """Return the prompt string.

    Colour escapes are wrapped in ``\\001``/``\\002`` so readline does
    not count them towards the prompt width.
    """
    if not config.color:
        return "jobctl$ "
    return f"\001{_BLUE}\002jobctl\001{_RESET}\002$ "


def _print(text: str) -> None:
    """Print *text* unless it is empty."""
    if text:
        print(text)  # noqa: T201


def _echo_debug(shell: Shell, mark: int) -> None:
    """Print the DEBUG entries logged since *mark*."""
    for entry in shell.logger.since(mark):
        if entry.level is LogLevel.DEBUG:
            print(f"Debug: {entry.message}")  # noqa: T201


def run(config: ShellConfig | None = None) -> None:
    """Run the interactive loop until the session ends.

    This handles:
    - Tab completion via readline.
    - Reaping before every prompt.
    - Graceful handling of Ctrl+C and Ctrl+D (both clean up like ``exit``).
    """
    config = config if config is not None else ShellConfig()
    shell = Shell(config=config)

    # Wire up tab completion via readline.
    completer = Completer(shell)
    readline.set_completer(completer.complete)
    readline.set_completer_delims(" \t")
    readline.parse_and_bind("tab: complete")

    print(format_banner(config))  # noqa: T201

    try:
        while not shell.halted:
            mark = len(shell.logger)
            _print(shell.reap())
            try:
                line = input(build_prompt(config))
            except EOFError:
                # Ctrl+D — graceful exit
                print()  # noqa: T201
                break

            _print(shell.execute(line))
            if config.debug:
                _echo_debug(shell, mark)

    except KeyboardInterrupt:
        # Ctrl+C — graceful exit
        print("\nInterrupted.")  # noqa: T201

    finally:
        _print(shell.close())


def main(argv: Sequence[str] | None = None) -> None:
    """Parse command-line options and run the shell.

    This is the ``py-jobctl`` console entry point.  A bad option prints
    argparse's usage message and returns without starting a session, so
    the exit status is still 0.
    """
    try:
        config = parse_args(argv)
    except SystemExit:
        return
    run(config)
