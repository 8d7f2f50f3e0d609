"""Subprocess execution abstraction for plan and discovery commands."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass
class SimpleResult:
    """Result from a captured (non-streaming) subprocess execution."""

    stdout: str = ""
    stderr: str = ""
    returncode: int = 0


@runtime_checkable
class SubprocessRunner(Protocol):
    """Protocol for executing subprocesses.

    ``HostRunner`` is the production implementation; tests substitute
    fakes that return canned plan output.
    """

    async def run_simple(
        self,
        cmd: Sequence[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        timeout: float = 120.0,
    ) -> SimpleResult:
        """Run a command and return its output.

        Raises ``TimeoutError`` if the command exceeds *timeout* seconds
        (the process is killed before re-raising).

        Raises ``FileNotFoundError`` if the executable is not found on the host.
        """
        ...


class HostRunner:
    """Execute subprocesses on the host using ``asyncio.create_subprocess_exec``."""

    async def run_simple(
        self,
        cmd: Sequence[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        timeout: float = 120.0,
    ) -> SimpleResult:
        """Run a command on the host and return its output.

        stdout is returned verbatim because plan text is parsed line by
        line later; stderr is stripped for error messages.

        Raises ``TimeoutError`` if the command exceeds *timeout* seconds.
        """
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=timeout
            )
        except TimeoutError:
            proc.kill()
            await proc.wait()
            raise
        return SimpleResult(
            stdout=stdout_bytes.decode(errors="replace") if stdout_bytes else "",
            stderr=stderr_bytes.decode(errors="replace").strip()
            if stderr_bytes
            else "",
            returncode=proc.returncode if proc.returncode is not None else -1,
        )

