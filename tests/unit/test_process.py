"""Unit tests for CommandRunner."""

import sys

from ephemeral_containers.utils.process import CommandResult, CommandRunner


class TestCommandRunner:
    """Tests for running external commands."""

    def test_captures_stdout_and_exit_code(self):
        result = CommandRunner().run([sys.executable, "-c", "import sys; print(sys.stdin.read().upper())"], input="abc")

        assert result.ok
        assert result.stdout.strip() == "ABC"

    def test_captures_stderr_and_failure(self):
        result = CommandRunner().run(
            [sys.executable, "-c", "import sys; sys.stderr.write('credentials not found'); sys.exit(1)"]
        )

        assert result.exit_code == 1
        assert not result.ok
        assert result.stderr == "credentials not found"

    def test_injectable_which(self):
        runner = CommandRunner(which=lambda name: None if name == "missing" else f"/bin/{name}")

        assert runner.which("missing") is None
        assert runner.which("sh") == "/bin/sh"


def test_command_result_ok():
    assert CommandResult(0, "", "").ok
    assert not CommandResult(2, "", "").ok
