"""Tests for the clock and code-hosting adapters."""

import subprocess
from datetime import datetime

import pytest

from phasegate.domain.exceptions import CodeHostError
from phasegate.infrastructure import FixedClock, GitHubCLIClient, SystemClock


class TestClocks:
    def test_system_clock_is_timezone_aware(self) -> None:
        parsed = datetime.fromisoformat(SystemClock().now())

        assert parsed.tzinfo is not None

    def test_fixed_clock_advances(self) -> None:
        clock = FixedClock(start="2025-06-01T12:00:00+00:00", step=5)

        assert clock.now() == "2025-06-01T12:00:00+00:00"
        assert clock.now() == "2025-06-01T12:00:05+00:00"


class TestGitHubCLIClient:
    def test_returns_last_stdout_line(self, monkeypatch) -> None:  # noqa: ANN001
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append((cmd, kwargs))
            return subprocess.CompletedProcess(
                cmd, 0, stdout="Creating pull request\nhttps://github.com/a/b/pull/3\n"
            )

        monkeypatch.setattr(subprocess, "run", fake_run)

        url = GitHubCLIClient(cwd="/repo").create_pull_request("Title", "Body", "feat/x")

        assert url == "https://github.com/a/b/pull/3"
        cmd, kwargs = calls[0]
        assert cmd[:3] == ["gh", "pr", "create"]
        assert cmd[cmd.index("--head") + 1] == "feat/x"
        assert kwargs["cwd"] == "/repo"
        assert kwargs["check"] is True

    def test_missing_executable(self, monkeypatch) -> None:  # noqa: ANN001
        def fake_run(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(subprocess, "run", fake_run)

        with pytest.raises(CodeHostError, match="not installed"):
            GitHubCLIClient().create_pull_request("t", "b", "feat/x")

    def test_command_failure(self, monkeypatch) -> None:  # noqa: ANN001
        def fake_run(cmd, **kwargs):
            raise subprocess.CalledProcessError(1, cmd, stderr="no remote\n")

        monkeypatch.setattr(subprocess, "run", fake_run)

        with pytest.raises(CodeHostError, match="no remote"):
            GitHubCLIClient().create_pull_request("t", "b", "feat/x")

    def test_timeout(self, monkeypatch) -> None:  # noqa: ANN001
        def fake_run(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, 5)

        monkeypatch.setattr(subprocess, "run", fake_run)

        with pytest.raises(CodeHostError, match="timed out"):
            GitHubCLIClient(timeout=5).create_pull_request("t", "b", "feat/x")

    def test_empty_output(self, monkeypatch) -> None:  # noqa: ANN001
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 0, stdout=""),
        )

        with pytest.raises(CodeHostError, match="no pull request URL"):
            GitHubCLIClient().create_pull_request("t", "b", "feat/x")
