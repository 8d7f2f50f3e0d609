"""planflow configuration via Pydantic."""

from __future__ import annotations

import contextlib
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator

from models import AccountClass, PlanMode

logger = logging.getLogger("planflow.config")

_DEFAULT_GOVCLOUD_ORGANIZATIONS = ["govcloud-staging", "govcloud-production"]
_DEFAULT_GOVCLOUD_REGIONS = ["us-gov-west-1"]


class PlanConfig(BaseModel):
    """Configuration for a single planflow run."""

    # Unit of work
    module_name: str = Field(description="Module to plan (terragrunt_<module>)")
    mode: PlanMode = Field(
        default=PlanMode.BATCH,
        description="batch runs plan_all per group; targeted plans each affected state",
    )

    # Paths
    working_dir: Path = Field(
        default=Path("."), description="Modules repository root (auto: cwd)"
    )
    output_dir: Path | None = Field(
        default=None,
        description="Directory for plan artifacts (auto: pr-plans-<timestamp>)",
    )

    # External commands
    executor: str = Field(default="kitman", description="Plan executor binary")
    discovery_script: str = Field(
        default="./affected-modules.sh",
        description="Script listing affected states for targeted mode",
    )
    plan_timeout: float = Field(
        default=3600.0,
        ge=10.0,
        le=86400.0,
        description="Seconds allowed for a single plan invocation",
    )
    discovery_timeout: float = Field(
        default=300.0,
        ge=5.0,
        le=3600.0,
        description="Seconds allowed for target discovery",
    )

    # Account classes
    module_dir_prefix: str = Field(
        default="terragrunt_", description="Prefix of module directories"
    )
    restricted_marker: str = Field(
        default="govcloud",
        description="Substring that marks a target as belonging to GovCloud",
    )
    govcloud_organizations: list[str] = Field(
        default=list(_DEFAULT_GOVCLOUD_ORGANIZATIONS),
        description="Organizations passed to plan_all for the GovCloud group",
    )
    govcloud_regions: list[str] = Field(
        default=list(_DEFAULT_GOVCLOUD_REGIONS),
        description="Regions passed to plan_all for the GovCloud group",
    )

    @property
    def module_dir(self) -> Path:
        """Return the directory that must exist for the module."""
        return self.working_dir / f"{self.module_dir_prefix}{self.module_name}"

    @property
    def report_path(self) -> Path:
        """Return the path of the rendered PR markdown."""
        return self.output_dir / "pr-ready.md"

    def artifact_path(self, account_class: AccountClass) -> Path:
        """Return the raw plan artifact path for *account_class*."""
        return self.output_dir / f"{account_class.value}-plans.txt"

    def command_label(self, mode: PlanMode | None = None) -> str:
        """Return the executor command named in report section headers."""
        if (mode or self.mode) == PlanMode.TARGETED:
            return f"{self.executor} tg plan"
        return f"{self.executor} tg plan_all"

    @model_validator(mode="after")
    def resolve_defaults(self) -> PlanConfig:
        """Resolve paths and apply env var overrides.

        Environment variables (checked when no explicit value is given):
            PLANFLOW_EXECUTOR                → executor
            PLANFLOW_DISCOVERY_SCRIPT        → discovery_script
            PLANFLOW_PLAN_TIMEOUT            → plan_timeout
            PLANFLOW_GOVCLOUD_ORGANIZATIONS  → govcloud_organizations
            PLANFLOW_GOVCLOUD_REGIONS        → govcloud_regions
        """
        if self.working_dir == Path("."):
            self.working_dir = Path.cwd().resolve()
        if self.output_dir is None:
            self.output_dir = self.working_dir / default_output_dir_name()
        elif not self.output_dir.is_absolute():
            self.output_dir = self.working_dir / self.output_dir

        env_executor = os.environ.get("PLANFLOW_EXECUTOR")
        if env_executor and self.executor == "kitman":
            object.__setattr__(self, "executor", env_executor)

        env_script = os.environ.get("PLANFLOW_DISCOVERY_SCRIPT")
        if env_script and self.discovery_script == "./affected-modules.sh":
            object.__setattr__(self, "discovery_script", env_script)

        if self.plan_timeout == 3600.0:  # still at default
            env_timeout = os.environ.get("PLANFLOW_PLAN_TIMEOUT")
            if env_timeout is not None:
                with contextlib.suppress(ValueError):
                    object.__setattr__(self, "plan_timeout", float(env_timeout))

        _ENV_LIST_MAP: dict[str, tuple[str, list[str]]] = {
            "PLANFLOW_GOVCLOUD_ORGANIZATIONS": (
                "govcloud_organizations",
                _DEFAULT_GOVCLOUD_ORGANIZATIONS,
            ),
            "PLANFLOW_GOVCLOUD_REGIONS": (
                "govcloud_regions",
                _DEFAULT_GOVCLOUD_REGIONS,
            ),
        }
        for env_key, (field_name, default_val) in _ENV_LIST_MAP.items():
            env_val = os.environ.get(env_key)
            if env_val and getattr(self, field_name) == default_val:
                parsed = [part.strip() for part in env_val.split(",") if part.strip()]
                if parsed:
                    object.__setattr__(self, field_name, parsed)

        return self


def default_output_dir_name(now: datetime | None = None) -> str:
    """Return the timestamped default output directory name."""
    now = now or datetime.now()
    return f"pr-plans-{now.strftime('%Y%m%d-%H%M%S')}"


def load_config_file(path: Path | None) -> dict[str, Any]:
    """Load a JSON config file and return its contents as a dict.

    Returns an empty dict if the file is missing, unreadable, or invalid.
    """
    if path is None:
        return {}
    try:
        data = json.loads(path.read_text())
        if not isinstance(data, dict):
            return {}
        return data
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        logger.warning("Ignoring unreadable config file %s", path)
        return {}
