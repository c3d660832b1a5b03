import sys

import pytest

from dbfixture.errors import FixtureError
from dbfixture.services.command_runner import CommandRunner


class DummyLogger:
    def __init__(self):
        self.messages = []

    def debug(self, message, *args, **_kwargs):
        self.messages.append(message % args)

    def warning(self, message, *args, **_kwargs):
        self.messages.append(message % args)


def test_command_runner_raises_with_stderr():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(FixtureError, match="boom"):
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


def test_command_runner_timeout_raises_error():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(FixtureError, match="timed out"):
        runner.run(
            [sys.executable, "-c", "import time; time.sleep(2)"],
            check=True,
            capture_output=True,
            timeout=0.1,
        )


def test_command_runner_missing_binary_raises_error():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(FixtureError, match="Required command not found"):
        runner.run(["dbfixture-definitely-missing-binary"])


def test_command_runner_redacts_secrets_in_logs():
    logger = DummyLogger()
    runner = CommandRunner(logger=logger)

    runner.run(
        [sys.executable, "-c", "pass", "--password=hunter2"],
        capture_output=True,
        redact=["hunter2"],
    )

    assert logger.messages
    assert all("hunter2" not in message for message in logger.messages)
    assert "--password=***" in logger.messages[0]


def test_command_runner_runs_failing_command_once(tmp_path, monkeypatch):
    runner = CommandRunner(logger=DummyLogger())
    monkeypatch.chdir(tmp_path)

    command = [
        sys.executable,
        "-c",
        (
            "from pathlib import Path;"
            "p=Path('attempts.txt');"
            "n=int(p.read_text()) if p.exists() else 0;"
            "p.write_text(str(n+1));"
            "import sys; sys.exit(1)"
        ),
    ]

    with pytest.raises(FixtureError, match="Command failed"):
        runner.run(command, capture_output=True)

    assert (tmp_path / "attempts.txt").read_text() == "1"
