"""Pytest configuration for planflow tests."""

from __future__ import annotations

import logging
from collections.abc import Generator

import pytest


@pytest.fixture(autouse=True)
def _planflow_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer PLANFLOW_* overrides out of the tests."""
    for key in (
        "PLANFLOW_EXECUTOR",
        "PLANFLOW_DISCOVERY_SCRIPT",
        "PLANFLOW_PLAN_TIMEOUT",
        "PLANFLOW_GOVCLOUD_ORGANIZATIONS",
        "PLANFLOW_GOVCLOUD_REGIONS",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _clean_planflow_logger() -> Generator[None, None, None]:
    """Let records reach caplog; setup_logging disables propagation."""
    logger = logging.getLogger("planflow")
    yield
    for handler in logger.handlers[:]:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
