"""
CLI Runner Tests — Real Subprocesses

Uses the running Python interpreter as the "binary" so the tests exercise
real pipes, prompts and timeouts without an influxdb3 install.

Tests cover:
- Exit code and output capture
- Confirmation prompt answered exactly when it appears
- Hard timeout kills the child
- Spawn failure and --token redaction
"""

import sys
import time

import pytest

from flightdeck.influx import CliRunner, SubprocessFailed
from flightdeck.influx.cli import DELETE_CONFIRM_PROMPT, redact_args


@pytest.fixture
def runner():
    return CliRunner(sys.executable, timeout=10.0)


class TestRun:
    """Basic execution."""

    def test_captures_stdout_and_exit_code(self, runner):
        result = runner.run(["-c", "print('hello')"])
        assert result.ok
        assert result.stdout.strip() == "hello"

    def test_nonzero_exit_is_reported_not_raised(self, runner):
        result = runner.run(["-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"])
        assert not result.ok
        assert result.returncode == 3
        assert "boom" in result.stderr

    def test_large_output_does_not_deadlock(self, runner):
        result = runner.run(["-c", "print('x' * 500000)"])
        assert result.ok
        assert len(result.stdout.strip()) == 500000

    def test_stdin_closed_without_prompt(self, runner):
        # A child reading stdin sees EOF immediately
        result = runner.run(["-c", "import sys; print(repr(sys.stdin.read()))"])
        assert result.stdout.strip() == "''"


class TestConfirmationPrompt:
    """Interactive `delete token` confirmation."""

    def test_prompt_is_answered(self, runner):
        script = (
            "import sys\n"
            f"sys.stdout.write(\"{DELETE_CONFIRM_PROMPT}: \")\n"
            "sys.stdout.flush()\n"
            "answer = sys.stdin.readline().strip()\n"
            "print('deleted' if answer == 'yes' else 'aborted')\n"
            "sys.exit(0 if answer == 'yes' else 1)\n"
        )
        result = runner.run(["-c", script], confirm_prompt=DELETE_CONFIRM_PROMPT)
        assert result.ok
        assert "deleted" in result.stdout


class TestFailures:
    """Timeouts and spawn errors."""

    def test_timeout_kills_child(self, runner):
        started = time.monotonic()
        with pytest.raises(SubprocessFailed) as exc:
            runner.run(["-c", "import time; time.sleep(30)"], timeout=0.5)
        assert "timed out" in exc.value.message
        assert time.monotonic() - started < 10

    def test_missing_binary(self, tmp_path):
        runner = CliRunner(str(tmp_path / "no-such-influxdb3"))
        with pytest.raises(SubprocessFailed) as exc:
            runner.run(["--version"])
        assert "Failed to start" in exc.value.message


class TestRedaction:

    def test_token_value_masked(self):
        args = ["influxdb3", "create", "token", "--token", "secret", "--host", "h"]
        assert redact_args(args) == ["influxdb3", "create", "token", "--token", "****", "--host", "h"]

    def test_trailing_token_flag_unchanged(self):
        assert redact_args(["--token"]) == ["--token"]
