"""Fold scanned plan blocks into the PR-ready markdown report."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from file_util import atomic_write, read_artifact
from models import AccountClass, ActionRecord, EnvironmentGroup, is_no_work_sentinel
from scanner import scan_plan_text

logger = logging.getLogger("planflow.report")

REPORT_TITLE = "**Terraform plan**"

# Commercial sections are scanned first, then GovCloud.
GROUP_ORDER: tuple[AccountClass, ...] = (AccountClass.COMMERCIAL, AccountClass.GOVCLOUD)


def fold_records(records: Iterable[ActionRecord]) -> list[EnvironmentGroup]:
    """Group *records* by environment, sorted by name.

    A repeated (environment, region) pair keeps only the later block.
    """
    environments: dict[str, EnvironmentGroup] = {}
    for record in records:
        group = environments.get(record.environment)
        if group is None:
            group = environments[record.environment] = EnvironmentGroup(
                name=record.environment
            )
        group.plans[record.region] = record.block_text
    return [environments[name] for name in sorted(environments)]


class ReportAssembler:
    """Renders plan blocks for one module as collapsible markdown sections."""

    def __init__(
        self, module_name: str, command_label: str, restricted_marker: str = "govcloud"
    ) -> None:
        self._module_name = module_name
        self._command_label = command_label
        self._marker = restricted_marker

    def records_from_text(
        self, text: str, account_class: AccountClass
    ) -> list[ActionRecord]:
        """Scan one group's captured text; placeholders yield nothing."""
        if not text or is_no_work_sentinel(text):
            return []
        records = scan_plan_text(text, account_class, self._marker)
        logger.debug(
            "Scanned %d plan blocks",
            len(records),
            extra={"group": account_class.value, "module_name": self._module_name},
        )
        return records

    def render(self, groups: Iterable[EnvironmentGroup]) -> str:
        parts = [f"{REPORT_TITLE}\n\n"]
        for env in groups:
            parts.append(
                f"## [environment: {env.name}] - [command: {self._command_label}]"
                f" - [module: {self._module_name}]\n\n"
            )
            for region in env.regions:
                plan = env.plans[region]
                if not plan:
                    continue
                parts.append(
                    f"<details>\n<summary>{region}</summary>\n\n```bash\n"
                    f"{plan}\n```\n\n</details>\n\n"
                )
        return "".join(parts)

    def assemble(self, texts: dict[AccountClass, str]) -> str:
        """Render the report from each group's captured text."""
        records: list[ActionRecord] = []
        for account_class in GROUP_ORDER:
            text = texts.get(account_class)
            if text is not None:
                records.extend(self.records_from_text(text, account_class))
        return self.render(fold_records(records))

    def assemble_from_artifacts(
        self,
        artifacts: dict[AccountClass, Path],
        report_path: Path,
    ) -> str:
        """Render the report from artifact files and write it to *report_path*.

        Missing or empty artifacts contribute nothing.
        """
        texts = {cls: read_artifact(path) for cls, path in artifacts.items()}
        report = self.assemble(texts)
        atomic_write(report_path, report)
        logger.info(
            "PR-ready markdown written to %s",
            report_path,
            extra={"module_name": self._module_name},
        )
        return report
