"""Subprocess execution service for dbfixture."""

import subprocess
from typing import Iterable, List, Optional

from dbfixture.errors import FixtureError


class CommandRunner:
    """Runs external commands with consistent error handling."""

    def __init__(self, logger, default_timeout: Optional[float] = None):
        self.logger = logger
        self.default_timeout = default_timeout

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        timeout: Optional[float] = None,
        redact: Optional[Iterable[str]] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = self._render(cmd, redact)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout

        try:
            result = subprocess.run(
                cmd,
                text=True,
                capture_output=capture_output,
                timeout=effective_timeout,
            )
        except FileNotFoundError as exc:
            raise FixtureError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise FixtureError(f"Command timed out after {effective_timeout}s: {cmd_str}") from exc
        except Exception as exc:
            raise FixtureError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise FixtureError(message)

        self.logger.debug(message)
        return result

    @staticmethod
    def _render(cmd: List[str], redact: Optional[Iterable[str]]) -> str:
        secrets = [value for value in (redact or []) if value]
        parts = []
        for part in cmd:
            for secret in secrets:
                part = part.replace(secret, "***")
            parts.append(part)
        return " ".join(parts)
