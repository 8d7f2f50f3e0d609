"""Shared test helpers for planflow tests."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from execution import SimpleResult

COMMERCIAL_PLAN = """\
Running terragrunt in terragrunt_s3/organizations/staging/eu-west-1/s3/
Initializing the backend...
Terraform will perform the following actions:

  # aws_s3_bucket.this will be created
  + resource "aws_s3_bucket" "this" {
      + bucket = "staging-logs"
    }

Plan: 1 to add, 0 to change, 0 to destroy.
"""

GOVCLOUD_PLAN = """\
Running terragrunt in terragrunt_s3/organizations/govcloud-production/us-gov-west-1/s3/
Terraform will perform the following actions:

  # aws_s3_bucket.this will be updated in-place
  ~ resource "aws_s3_bucket" "this" {
        id = "prod-logs"
    }

Plan: 0 to add, 1 to change, 0 to destroy.
"""


class FakeRunner:
    """SubprocessRunner double returning canned results.

    *responder* receives the command and returns the result; every
    command is recorded in :attr:`calls` in invocation order.
    """

    def __init__(self, responder: Callable[[list[str]], SimpleResult]) -> None:
        self._responder = responder
        self.calls: list[list[str]] = []

    async def run_simple(
        self,
        cmd: Sequence[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        timeout: float = 120.0,
    ) -> SimpleResult:
        self.calls.append(list(cmd))
        return self._responder(list(cmd))


def ok(stdout: str) -> SimpleResult:
    return SimpleResult(stdout=stdout, stderr="", returncode=0)


def fail(stderr: str = "boom", returncode: int = 1) -> SimpleResult:
    return SimpleResult(stdout="", stderr=stderr, returncode=returncode)


def plan_all_responder(
    commercial: SimpleResult, govcloud: SimpleResult
) -> Callable[[list[str]], SimpleResult]:
    """Answer ``plan_all`` calls according to the account class selector."""

    def respond(cmd: list[str]) -> SimpleResult:
        return govcloud if "--organizations" in cmd else commercial

    return respond


class ConfigFactory:
    """Factory for PlanConfig instances."""

    @staticmethod
    def create(
        *,
        working_dir: Path,
        module_name: str = "s3",
        mode: str = "batch",
        output_dir: Path | None = None,
        executor: str = "kitman",
        discovery_script: str = "./affected-modules.sh",
        plan_timeout: float = 60.0,
        make_module_dir: bool = True,
    ):
        """Create a PlanConfig rooted at *working_dir*."""
        from config import PlanConfig

        if make_module_dir:
            (working_dir / f"terragrunt_{module_name}").mkdir(
                parents=True, exist_ok=True
            )
        return PlanConfig(
            module_name=module_name,
            mode=mode,
            working_dir=working_dir,
            output_dir=output_dir or working_dir / "out",
            executor=executor,
            discovery_script=discovery_script,
            plan_timeout=plan_timeout,
        )
