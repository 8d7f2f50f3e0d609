"""Preconditions on the modules repository a run is launched from."""

from __future__ import annotations

import logging

from config import PlanConfig

logger = logging.getLogger("planflow.workspace")


class ModuleValidationError(RuntimeError):
    """Raised when the requested module is not present in the working directory."""


def validate_module(config: PlanConfig) -> None:
    """Ensure ``<module_dir_prefix><module_name>`` exists under the working dir.

    Raises :class:`ModuleValidationError` otherwise.
    """
    module_dir = config.module_dir
    if not module_dir.is_dir():
        raise ModuleValidationError(
            f"module {module_dir.name} not found in {config.working_dir}. "
            "Make sure you're running this from the modules repository root"
        )
    logger.debug("Module directory %s found", module_dir)


def prepare_output_dir(config: PlanConfig) -> None:
    """Create the artifact directory for this run."""
    config.output_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Plans will be saved to %s", config.output_dir)
