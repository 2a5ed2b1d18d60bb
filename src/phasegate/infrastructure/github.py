"""
GitHub adapter backed by the ``gh`` command-line client.
"""

import logging
import subprocess

from phasegate.domain.exceptions import CodeHostError
from phasegate.domain.interfaces import CodeHostInterface

logger = logging.getLogger(__name__)


class GitHubCLIClient(CodeHostInterface):
    """Opens pull requests with ``gh pr create``."""

    def __init__(self, executable: str = "gh", cwd: str | None = None, timeout: int = 60):
        self._executable = executable
        self._cwd = cwd
        self._timeout = timeout

    def create_pull_request(self, title: str, body: str, branch: str) -> str:
        cmd = [
            self._executable,
            "pr",
            "create",
            "--title",
            title,
            "--body",
            body,
            "--head",
            branch,
        ]
        logger.debug("Running %s", " ".join(cmd[:3]))
        try:
            result = subprocess.run(
                cmd,
                cwd=self._cwd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=True,
            )
        except FileNotFoundError as e:
            raise CodeHostError(f"'{self._executable}' is not installed") from e
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
            raise CodeHostError(f"gh pr create failed: {detail}") from e
        except subprocess.TimeoutExpired as e:
            raise CodeHostError(
                f"gh pr create timed out after {self._timeout}s"
            ) from e

        # gh prints the PR URL as the last line of stdout
        lines = result.stdout.strip().splitlines()
        if not lines:
            raise CodeHostError("gh pr create returned no pull request URL")
        return lines[-1].strip()
