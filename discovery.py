"""Affected-state discovery for targeted planning."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from config import PlanConfig
from execution import SubprocessRunner
from subprocess_util import CommandFailedError, CommandTimeoutError, run_subprocess

logger = logging.getLogger("planflow.discovery")

_PLAN_COMMAND_MARKER = "kitman tg plan"
_HCL_SUFFIX = "/terragrunt.hcl"


class DiscoveryError(RuntimeError):
    """Raised when affected targets cannot be determined."""


def parse_affected_targets(output: str) -> Iterator[str]:
    """Yield target directories from discovery script *output*.

    The script prints ready-to-run commands such as
    ``kitman tg plan -w path/to/state/terragrunt.hcl``; the path after
    ``-w`` (minus the ``terragrunt.hcl`` file name) is the target.
    """
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if _PLAN_COMMAND_MARKER not in line:
            continue
        parts = line.split()
        for i, part in enumerate(parts[:-1]):
            if part == "-w":
                yield parts[i + 1].replace(_HCL_SUFFIX, "", 1)
                break


class TargetDiscovery:
    """Runs the discovery script and returns affected targets in script order."""

    def __init__(
        self, config: PlanConfig, runner: SubprocessRunner | None = None
    ) -> None:
        self._config = config
        self._runner = runner

    def _script_path(self) -> Path:
        return self._config.working_dir / self._config.discovery_script

    async def find_targets(self) -> list[str]:
        """Return affected target identifiers for the configured module.

        Raises :class:`DiscoveryError` if the script is missing, fails or
        times out.  An empty list is a valid answer.
        """
        script = self._script_path()
        if not script.exists():
            raise DiscoveryError(
                f"{self._config.discovery_script} not found in "
                f"{self._config.working_dir}"
            )
        try:
            output = await run_subprocess(
                self._config.discovery_script,
                self._config.module_name,
                ".",
                cwd=self._config.working_dir,
                timeout=self._config.discovery_timeout,
                runner=self._runner,
            )
        except (CommandFailedError, CommandTimeoutError) as exc:
            raise DiscoveryError(
                f"failed to run {self._config.discovery_script}: {exc}"
            ) from exc

        targets = list(parse_affected_targets(output))
        logger.debug(
            "Discovery returned %d targets",
            len(targets),
            extra={"module_name": self._config.module_name},
        )
        return targets
