"""CLI entry point for planflow."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from config import PlanConfig, load_config_file
from log import setup_logging
from models import AccountClass, PlanMode
from orchestrator import PlanOrchestrator, PlanRunError, regenerate_report
from workspace import ModuleValidationError

logger = logging.getLogger("planflow")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="planflow",
        description=(
            "Generate terraform plans for every environment and region of a "
            "module, formatted for a GitHub PR."
        ),
    )

    parser.add_argument("module_name", help="Module to plan (terragrunt_<module>)")
    parser.add_argument(
        "-t",
        "--targeted",
        action="store_true",
        help="Plan only the states reported by affected-modules.sh",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output directory (default: pr-plans-TIMESTAMP)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug-level logging",
    )
    parser.add_argument(
        "--report-only",
        action="store_true",
        help="Rebuild pr-ready.md from the plans already in --output",
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        default=None,
        help="JSON file with default settings (CLI flags take precedence)",
    )
    parser.add_argument(
        "--executor",
        default=None,
        help="Plan executor binary (default: kitman)",
    )
    parser.add_argument(
        "--plan-timeout",
        type=float,
        default=None,
        help="Seconds allowed per plan invocation (default: 3600)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Write console logs as JSON lines",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write a JSON debug log to this file",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> PlanConfig:
    """Convert parsed CLI args into a :class:`PlanConfig`.

    Values from ``--config-file`` are applied first; explicitly provided
    CLI values override them and PlanConfig supplies all other defaults.
    """
    kwargs: dict[str, Any] = load_config_file(args.config_file)
    kwargs["module_name"] = args.module_name

    for field in ("executor", "plan_timeout"):
        val = getattr(args, field)
        if val is not None:
            kwargs[field] = val

    if args.output is not None:
        kwargs["output_dir"] = Path(args.output)
    if args.targeted:
        kwargs["mode"] = PlanMode.TARGETED

    return PlanConfig(**kwargs)


def _log_next_steps(config: PlanConfig) -> None:
    logger.info("PR-ready markdown: %s", config.report_path)
    for cls in AccountClass:
        logger.info("Raw %s plans: %s", cls.display_name, config.artifact_path(cls))


async def _run_main(config: PlanConfig) -> int:
    """Run the pipeline and map its outcome to an exit status."""
    orchestrator = PlanOrchestrator(config)
    logger.info(
        "Generating terraform plans for module %s",
        config.module_name,
        extra={"module_name": config.module_name, "mode": config.mode.value},
    )
    try:
        await orchestrator.run()
    except ModuleValidationError as exc:
        logger.error("Error: %s", exc)
        return 1
    except PlanRunError as exc:
        logger.error("Error generating plans: %s", exc)
        if exc.summary.succeeded:
            logger.warning("Report written for the account classes that succeeded")
            _log_next_steps(config)
        return 1
    except OSError as exc:
        logger.error("Error writing plan artifacts: %s", exc)
        return 1
    _log_next_steps(config)
    return 0


def main(argv: list[str] | None = None) -> None:
    """Entry point."""
    args = parse_args(argv)

    setup_logging(
        verbose=args.verbose, json_console=args.json_logs, log_file=args.log_file
    )

    if args.report_only and args.output is None:
        logger.error("Error: --report-only requires --output")
        sys.exit(1)

    try:
        config = build_config(args)
    except ValidationError as exc:
        logger.error("Error: invalid configuration: %s", exc)
        sys.exit(1)

    if args.report_only:
        try:
            regenerate_report(config)
        except OSError as exc:
            logger.error("Error generating PR markdown: %s", exc)
            sys.exit(1)
        logger.info("PR-ready markdown: %s", config.report_path)
        sys.exit(0)

    sys.exit(asyncio.run(_run_main(config)))


if __name__ == "__main__":
    main()
