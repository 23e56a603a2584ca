"""Tests for the REPL (Read-Eval-Print Loop).

The helpers are pure and tested directly.  The loop itself is driven
with a patched ``input`` and a fake OS boundary, and its output is
captured with ``capsys``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from py_jobctl.config import ShellConfig
from py_jobctl.repl import build_prompt, format_banner, main, run
from py_jobctl.shell import Shell

if TYPE_CHECKING:
    from conftest import FakeProcessControl


def _patched_shell(fake_os: FakeProcessControl):  # noqa: ANN202
    """Patch the REPL to build its shell on *fake_os*."""

    def factory(*, config: ShellConfig) -> Shell:
        return Shell(config=config, process_control=fake_os)

    return patch("py_jobctl.repl.Shell", side_effect=factory)


class TestREPLHelpers:
    """Verify REPL helper functions."""

    def test_plain_prompt(self) -> None:
        """Without colour the prompt is plain text."""
        assert build_prompt(ShellConfig(color=False)) == "jobctl$ "

    def test_colour_prompt_wraps_escapes(self) -> None:
        """Escapes are marked invisible for readline."""
        prompt = build_prompt(ShellConfig())
        assert prompt.startswith("\001\x1b[34m\002")
        assert prompt.endswith("$ ")
        assert "jobctl" in prompt

    def test_banner_shows_budgets(self) -> None:
        """The banner names the program and its limits."""
        banner = format_banner(ShellConfig(max_jobs=8, max_running=2))
        assert "py-jobctl" in banner
        assert "Job slots: 8   Running slots: 2" in banner


class TestREPLLoop:
    """Verify the loop end to end on a fake OS."""

    def test_exit_command(
        self, fake_os: FakeProcessControl, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Commands are echoed and exit ends the loop cleanly."""
        lines = ["run sleep 10 P1", "list", "exit"]
        with _patched_shell(fake_os), patch("builtins.input", side_effect=lines):
            run(ShellConfig(color=False))
        out = capsys.readouterr().out
        assert "Process 1000 queued (Priority: P1)" in out
        assert "1000\t\t0\t\tP1" in out
        assert out.rstrip().endswith("bye!")
        assert out.count("bye!") == 1
        assert fake_os.waited == [1000]

    def test_eof_cleans_up(
        self, fake_os: FakeProcessControl, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Ctrl+D behaves like exit."""
        with _patched_shell(fake_os), patch(
            "builtins.input", side_effect=["run sleep 10 P1", EOFError]
        ):
            run(ShellConfig(color=False))
        assert "bye!" in capsys.readouterr().out
        assert fake_os.waited == [1000]

    def test_interrupt_cleans_up(
        self, fake_os: FakeProcessControl, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Ctrl+C also terminates and reaps every job."""
        with _patched_shell(fake_os), patch(
            "builtins.input", side_effect=["run sleep 10 P1", KeyboardInterrupt]
        ):
            run(ShellConfig(color=False))
        out = capsys.readouterr().out
        assert "Interrupted." in out
        assert "bye!" in out
        assert fake_os.waited == [1000]

    def test_completions_printed_before_prompt(
        self, fake_os: FakeProcessControl, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A job that exits is reported at the next loop iteration."""

        def lines():  # noqa: ANN202
            yield "run sleep 1 P1"
            fake_os.exit(1000)
            yield "list"  # reaped only after this line is read
            yield "list"
            yield "exit"

        feed = lines()
        with _patched_shell(fake_os), patch("builtins.input", side_effect=lambda _p: next(feed)):
            run(ShellConfig(color=False))
        out = capsys.readouterr().out
        assert "Process 1000 completed" in out
        assert "1000\t\t3\t\t-" in out

    def test_debug_echo(
        self, fake_os: FakeProcessControl, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """--debug prints scheduler detail after each command."""
        with _patched_shell(fake_os), patch(
            "builtins.input", side_effect=["run sleep 10 P1", "exit"]
        ):
            run(ShellConfig(color=False, debug=True))
        assert "Debug: Scheduling processes. Running count: 0/3" in capsys.readouterr().out

    def test_main_parses_options(self) -> None:
        """main() hands the parsed config to the loop."""
        with patch("py_jobctl.repl.run") as fake_run:
            main(["--max-running", "2", "--no-color"])
        config = fake_run.call_args.args[0]
        assert config.max_running == 2
        assert not config.color

    @pytest.mark.parametrize("argv", [["--max-jobs", "0"], ["--bogus"], ["--help"]])
    def test_bad_options_do_not_fail_the_process(
        self, argv: list[str], capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Option errors print usage but never raise SystemExit."""
        with patch("py_jobctl.repl.run") as fake_run:
            assert main(argv) is None
        fake_run.assert_not_called()
        captured = capsys.readouterr()
        assert "usage: py-jobctl" in captured.err + captured.out
