"""Data models for planflow."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# --- Run configuration enums ---


class AccountClass(StrEnum):
    """Account class a target is planned under."""

    COMMERCIAL = "commercial"
    GOVCLOUD = "govcloud"

    @property
    def display_name(self) -> str:
        """Human-facing name used in log lines and sentinel text."""
        return "GovCloud" if self is AccountClass.GOVCLOUD else "commercial"

    @property
    def no_work_sentinel(self) -> str:
        """Artifact body written when the group has no targets."""
        return f"No {self.display_name} plans needed\n"


class PlanMode(StrEnum):
    """How the executor is invoked for each group."""

    BATCH = "batch"
    TARGETED = "targeted"


NO_WORK_SENTINELS: tuple[str, ...] = tuple(
    cls.no_work_sentinel.strip() for cls in AccountClass
)


def is_no_work_sentinel(text: str) -> bool:
    """Return *True* when *text* is a "no work" placeholder artifact."""
    return any(sentinel in text for sentinel in NO_WORK_SENTINELS)


# --- Execution ---


class ExecutionGroupResult(BaseModel):
    """Outcome of running every plan invocation for one account class."""

    model_config = ConfigDict(frozen=True)

    account_class: AccountClass
    raw_output: str = ""
    success: bool = False
    error: str | None = None
    failed_target: str | None = None
    artifact_path: Path | None = None
    skipped: bool = False
    invocations: int = 0


class RunSummary(BaseModel):
    """Everything a finished (or partially finished) run produced."""

    module_name: str
    mode: PlanMode
    results: list[ExecutionGroupResult] = Field(default_factory=list)
    report_path: Path | None = None

    @property
    def failures(self) -> list[ExecutionGroupResult]:
        """Groups whose executor failed."""
        return [r for r in self.results if not r.success]

    @property
    def succeeded(self) -> list[ExecutionGroupResult]:
        """Groups that finished cleanly, including skipped ones."""
        return [r for r in self.results if r.success]


# --- Parsing / report ---


class ActionRecord(BaseModel):
    """One plan excerpt tagged with the environment and region it belongs to."""

    model_config = ConfigDict(frozen=True)

    environment: str
    region: str
    block_text: str


class EnvironmentGroup(BaseModel):
    """Plan excerpts for one environment, keyed by region."""

    name: str
    plans: dict[str, str] = Field(default_factory=dict)

    @property
    def regions(self) -> list[str]:
        """Region names in report order."""
        return sorted(self.plans)
