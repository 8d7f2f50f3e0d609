"""Run pipeline: discover targets, plan both account classes, write the report."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from config import PlanConfig
from discovery import DiscoveryError, TargetDiscovery
from execution import HostRunner, SubprocessRunner
from group_runner import PlanGroupRunner
from log import RunContext
from models import AccountClass, ExecutionGroupResult, PlanMode, RunSummary
from partition import partition_targets
from report import GROUP_ORDER, ReportAssembler
from workspace import prepare_output_dir, validate_module

logger = logging.getLogger("planflow.orchestrator")

_PREVIEW_TARGETS = 5


class PlanRunError(RuntimeError):
    """Raised after a run in which at least one account class failed.

    The report for the groups that succeeded has already been written;
    :attr:`summary` holds every group's result.
    """

    def __init__(self, summary: RunSummary) -> None:
        causes = "; ".join(
            f"{r.account_class.display_name} plans failed: {r.error}"
            for r in summary.failures
        )
        super().__init__(causes)
        self.summary = summary


class PlanOrchestrator:
    """Coordinates a planflow run for one module.

    The two account classes are planned concurrently and independently:
    a failure in one never cancels the other.
    """

    def __init__(
        self,
        config: PlanConfig,
        runner: SubprocessRunner | None = None,
        discovery: TargetDiscovery | None = None,
    ) -> None:
        self._config = config
        self._runner = runner or HostRunner()
        self._discovery = discovery or TargetDiscovery(config, self._runner)
        self._log = RunContext(logger, {"module_name": config.module_name})

    async def run(self) -> RunSummary:
        """Run the full pipeline and return its summary.

        Raises :class:`~workspace.ModuleValidationError` before anything
        runs if the module is missing, and :class:`PlanRunError` after
        the report is written if any group failed.
        """
        validate_module(self._config)
        prepare_output_dir(self._config)

        mode, targets = await self.resolve_targets()
        results = await self.run_groups(targets)
        summary = RunSummary(
            module_name=self._config.module_name, mode=mode, results=results
        )
        summary.report_path = self.write_report(summary)

        if summary.failures:
            raise PlanRunError(summary)
        self._log.info("Plan generation complete", extra={"mode": mode.value})
        return summary

    async def resolve_targets(self) -> tuple[PlanMode, list[str] | None]:
        """Return the effective mode and targets (``None`` for batch mode).

        Targeted mode falls back to batch when discovery fails or finds
        nothing to plan.
        """
        if self._config.mode is PlanMode.BATCH:
            return PlanMode.BATCH, None

        self._log.info("Finding affected states with %s", self._config.discovery_script)
        try:
            targets = await self._discovery.find_targets()
        except DiscoveryError as exc:
            self._log.warning("Targeted planning unavailable, using plan_all: %s", exc)
            return PlanMode.BATCH, None
        if not targets:
            self._log.warning("No affected states found, using plan_all")
            return PlanMode.BATCH, None

        self._log.info("Found %d affected terraform states", len(targets))
        for target in targets[:_PREVIEW_TARGETS]:
            self._log.debug("  - %s", target)
        if len(targets) > _PREVIEW_TARGETS:
            self._log.debug("  ... and %d more", len(targets) - _PREVIEW_TARGETS)
        return PlanMode.TARGETED, targets

    async def run_groups(
        self, targets: list[str] | None
    ) -> list[ExecutionGroupResult]:
        """Plan both account classes concurrently and wait for both.

        With *targets* ``None`` each group runs ``plan_all``; otherwise
        the targets are partitioned by account class first.
        """
        per_group: dict[AccountClass, list[str] | None]
        if targets is None:
            per_group = {cls: None for cls in GROUP_ORDER}
        else:
            commercial, govcloud = partition_targets(
                targets, self._config.restricted_marker
            )
            per_group = {
                AccountClass.COMMERCIAL: commercial,
                AccountClass.GOVCLOUD: govcloud,
            }

        runners = [
            PlanGroupRunner(self._config, cls, self._runner) for cls in GROUP_ORDER
        ]
        results = await asyncio.gather(
            *(r.run(per_group[r.account_class]) for r in runners)
        )
        return list(results)

    def write_report(self, summary: RunSummary) -> Path:
        """Write ``pr-ready.md`` from the artifacts of successful groups."""
        artifacts = {
            r.account_class: r.artifact_path
            for r in summary.succeeded
            if r.artifact_path is not None
        }
        assembler = ReportAssembler(
            self._config.module_name,
            self._config.command_label(summary.mode),
            self._config.restricted_marker,
        )
        assembler.assemble_from_artifacts(artifacts, self._config.report_path)
        return self._config.report_path


def regenerate_report(config: PlanConfig) -> str:
    """Rebuild ``pr-ready.md`` from the artifacts already in the output dir.

    Raises :class:`FileNotFoundError` when neither group left an artifact.
    """
    artifacts = {
        cls: config.artifact_path(cls)
        for cls in GROUP_ORDER
        if config.artifact_path(cls).exists()
    }
    if not artifacts:
        raise FileNotFoundError(f"no plan artifacts found in {config.output_dir}")
    for cls in GROUP_ORDER:
        if cls not in artifacts:
            logger.warning(
                "No %s plan artifact in %s",
                cls.display_name,
                config.output_dir,
                extra={"group": cls.value},
            )
    assembler = ReportAssembler(
        config.module_name, config.command_label(), config.restricted_marker
    )
    return assembler.assemble_from_artifacts(artifacts, config.report_path)
