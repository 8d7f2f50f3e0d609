"""Shared async subprocess helper for planflow."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from execution import HostRunner, SubprocessRunner

logger = logging.getLogger("planflow.subprocess")


class CommandFailedError(RuntimeError):
    """Raised when a subprocess exits with a non-zero status."""

    def __init__(self, cmd: tuple[str, ...], returncode: int, stderr: str = "") -> None:
        detail = f": {stderr}" if stderr else ""
        super().__init__(f"Command {cmd!r} failed (rc={returncode}){detail}")
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr


class CommandTimeoutError(RuntimeError):
    """Raised when a subprocess exceeds its allowed execution time."""


def make_plan_env() -> dict[str, str]:
    """Build the subprocess env for plan commands.

    ``TF_IN_AUTOMATION`` drops the interactive "next steps" hints that
    terraform otherwise appends to plan output.
    """
    env = {**os.environ}
    env["TF_IN_AUTOMATION"] = "1"
    return env


async def run_subprocess(
    *cmd: str,
    cwd: Path | None = None,
    timeout: float = 120.0,
    runner: SubprocessRunner | None = None,
) -> str:
    """Run a subprocess and return its stdout unmodified.

    Raises :class:`CommandTimeoutError` if the command exceeds *timeout* seconds.
    Raises :class:`CommandFailedError` on non-zero exit or when the command
    cannot be started (rc 127 for a missing executable, 126 otherwise).
    """
    if runner is None:
        runner = HostRunner()
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = await runner.run_simple(
            list(cmd),
            cwd=str(cwd) if cwd is not None else None,
            env=make_plan_env(),
            timeout=timeout,
        )
    except TimeoutError:
        raise CommandTimeoutError(
            f"Command {cmd!r} timed out after {timeout}s"
        ) from None
    except FileNotFoundError as exc:
        raise CommandFailedError(cmd, 127, str(exc)) from exc
    except OSError as exc:
        raise CommandFailedError(cmd, 126, str(exc)) from exc
    if result.returncode != 0:
        raise CommandFailedError(cmd, result.returncode, result.stderr)
    return result.stdout
