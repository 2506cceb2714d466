import sys

import pytest

from giteadeploy.errors import DeployError
from giteadeploy.services.command_runner import CommandRunner


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


def test_command_runner_raises_with_stderr():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(DeployError, match="boom"):
        runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(1)"],
            check=True,
            capture_output=True,
        )


def test_command_runner_returns_when_check_disabled():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(
        [sys.executable, "-c", "import sys; sys.exit(1)"],
        check=False,
        capture_output=True,
    )

    assert result.returncode == 1


def test_command_runner_runs_in_requested_directory(tmp_path):
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(
        [sys.executable, "-c", "import os; print(os.getcwd())"],
        capture_output=True,
        cwd=str(tmp_path),
    )

    assert result.stdout.strip() == str(tmp_path)


def test_command_runner_reports_missing_command():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(DeployError, match="Required command not found"):
        runner.run(["giteadeploy-definitely-missing-binary"])


def test_command_runner_timeout_raises_error():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(DeployError, match="timed out"):
        runner.run(
            [sys.executable, "-c", "import time; time.sleep(2)"],
            check=True,
            capture_output=True,
            timeout=0.1,
        )
