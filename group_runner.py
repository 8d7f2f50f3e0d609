"""Run the plan executor for one account class and capture its output."""

from __future__ import annotations

import logging

from config import PlanConfig
from execution import SubprocessRunner
from file_util import atomic_write
from log import RunContext
from models import AccountClass, ExecutionGroupResult
from subprocess_util import CommandFailedError, CommandTimeoutError, run_subprocess

logger = logging.getLogger("planflow.group")


class PlanExecutionError(RuntimeError):
    """Raised when a plan invocation for a group fails.

    Attributes
    ----------
    target:
        The target being planned, or the module name in batch mode.
    cause:
        The underlying subprocess error.
    """

    def __init__(self, target: str, cause: Exception) -> None:
        super().__init__(f"failed to run plan for {target}: {cause}")
        self.target = target
        self.cause = cause


def batch_plan_command(config: PlanConfig, account_class: AccountClass) -> list[str]:
    """Build the ``plan_all`` command covering every target of a group."""
    cmd = [config.executor, "tg", "plan_all", "-m", config.module_name]
    if account_class is AccountClass.GOVCLOUD:
        cmd += [
            "--organizations",
            "|".join(config.govcloud_organizations),
            "--regions",
            ",".join(config.govcloud_regions),
        ]
    return [*cmd, "--local", "--pr"]


def targeted_plan_command(config: PlanConfig, target: str) -> list[str]:
    """Build the ``plan`` command for a single target directory."""
    return [config.executor, "tg", "plan", "--wd", target, "--local", "--pr"]


def join_outputs(outputs: list[str]) -> str:
    """Concatenate per-target outputs with one blank line between them."""
    if not outputs:
        return ""
    return "\n\n".join(out.rstrip("\n") for out in outputs) + "\n"


class PlanGroupRunner:
    """Plans every target of one account class, sequentially.

    Invocations stop at the first failure; the captured buffer (partial
    on failure) is always written to the group artifact before
    :meth:`run` returns.
    """

    def __init__(
        self,
        config: PlanConfig,
        account_class: AccountClass,
        runner: SubprocessRunner | None = None,
    ) -> None:
        self._config = config
        self._account_class = account_class
        self._runner = runner
        self._outputs: list[str] = []
        self._batch = True
        self._log = RunContext(
            logger,
            {"module_name": config.module_name, "group": account_class.value},
        )

    @property
    def account_class(self) -> AccountClass:
        return self._account_class

    async def run(self, targets: list[str] | None = None) -> ExecutionGroupResult:
        """Plan the group and return its outcome.

        *targets* is ``None`` in batch mode.  An empty list means the
        group has no work: the "no work" sentinel is written instead.
        Execution failures are reported in the result, never raised.
        """
        self._outputs = []
        self._batch = targets is None
        artifact = self._config.artifact_path(self._account_class)

        if targets is not None and not targets:
            self._log.info("No %s targets to plan", self._account_class.display_name)
            atomic_write(artifact, self._account_class.no_work_sentinel)
            return ExecutionGroupResult(
                account_class=self._account_class,
                raw_output=self._account_class.no_work_sentinel,
                success=True,
                skipped=True,
                artifact_path=artifact,
            )

        try:
            if targets is None:
                await self._run_batch()
            else:
                await self._run_targeted(targets)
        except PlanExecutionError as exc:
            raw = self._captured()
            atomic_write(artifact, raw)
            self._log.error("%s", exc, extra={"target": exc.target})
            return ExecutionGroupResult(
                account_class=self._account_class,
                raw_output=raw,
                success=False,
                error=str(exc),
                failed_target=exc.target,
                artifact_path=artifact,
                invocations=len(self._outputs) + 1,
            )

        raw = self._captured()
        atomic_write(artifact, raw)
        self._log.info(
            "%s plans captured (%d invocation(s))",
            self._account_class.display_name,
            len(self._outputs),
        )
        return ExecutionGroupResult(
            account_class=self._account_class,
            raw_output=raw,
            success=True,
            artifact_path=artifact,
            invocations=len(self._outputs),
        )

    def _captured(self) -> str:
        if self._batch:
            return "".join(self._outputs)
        return join_outputs(self._outputs)

    async def _invoke(self, cmd: list[str], label: str) -> None:
        try:
            output = await run_subprocess(
                *cmd,
                cwd=self._config.working_dir,
                timeout=self._config.plan_timeout,
                runner=self._runner,
            )
        except (CommandFailedError, CommandTimeoutError) as exc:
            raise PlanExecutionError(label, exc) from exc
        self._outputs.append(output)

    async def _run_batch(self) -> None:
        self._log.debug("Running %s plan_all", self._account_class.display_name)
        await self._invoke(
            batch_plan_command(self._config, self._account_class),
            self._config.module_name,
        )

    async def _run_targeted(self, targets: list[str]) -> None:
        self._log.debug(
            "Running %d %s plans", len(targets), self._account_class.display_name
        )
        for target in targets:
            self._log.debug("Planning %s", target, extra={"target": target})
            await self._invoke(targeted_plan_command(self._config, target), target)
