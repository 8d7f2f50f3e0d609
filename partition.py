"""Split plan targets into commercial and GovCloud groups."""

from __future__ import annotations

from collections.abc import Iterable


def is_restricted(target: str, marker: str = "govcloud") -> bool:
    """Return *True* when *target* belongs to the GovCloud account class."""
    return marker in target


def partition_targets(
    targets: Iterable[str], marker: str = "govcloud"
) -> tuple[list[str], list[str]]:
    """Return ``(commercial, govcloud)`` target lists.

    Every target lands in exactly one list and relative input order is
    kept within each.
    """
    commercial: list[str] = []
    govcloud: list[str] = []
    for target in targets:
        if is_restricted(target, marker):
            govcloud.append(target)
        else:
            commercial.append(target)
    return commercial, govcloud
