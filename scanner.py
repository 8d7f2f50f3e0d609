"""Line scanner that pulls per-target action blocks out of plan output.

Plan output is human-oriented: the environment and region of a block
are only known from paths printed somewhere *before* it.  The scanner
therefore latches the most recent environment and region it has seen
and tags each completed action block with them.

Blocks seen before both values are known are dropped, as are blocks
still open when the text ends.  Neither is an error; a malformed
section must never cost the rest of the report.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass

from models import AccountClass, ActionRecord

logger = logging.getLogger("planflow.scanner")

BLOCK_HEADER = "Terraform will perform the following actions:"
SUMMARY_PHRASE = "Plan:"
CHANGE_COUNT_PHRASES = ("to add", "to change", "to destroy")


@dataclass(frozen=True)
class MarkerPatterns:
    """Regexes whose first group captures an environment or region name."""

    environment: re.Pattern[str]
    region: re.Pattern[str]


COMMERCIAL_PATTERNS = MarkerPatterns(
    environment=re.compile(r"/organizations/([^/]+)/"),
    region=re.compile(r"/([a-z]{2}-[a-z]+-[0-9])/"),
)


def govcloud_patterns(marker: str = "govcloud") -> MarkerPatterns:
    """Return the GovCloud patterns; environments are ``<marker>-<name>``."""
    return MarkerPatterns(
        environment=re.compile(rf"({re.escape(marker)}-[^/]+)"),
        region=re.compile(r"(us-gov-[a-z]+-[0-9])"),
    )


def patterns_for(
    account_class: AccountClass, marker: str = "govcloud"
) -> MarkerPatterns:
    if account_class is AccountClass.GOVCLOUD:
        return govcloud_patterns(marker)
    return COMMERCIAL_PATTERNS


def is_block_footer(line: str) -> bool:
    """Return *True* for the ``Plan: N to add, ...`` summary line."""
    return SUMMARY_PHRASE in line and any(p in line for p in CHANGE_COUNT_PHRASES)


class PlanTextScanner:
    """Single-pass state machine over one group's captured plan text.

    Use a fresh instance per buffer.  :meth:`feed` applies the rules to
    one line in order and returns a record when that line closes a
    block with both contexts known.
    """

    def __init__(self, patterns: MarkerPatterns) -> None:
        self._patterns = patterns
        self.environment = ""
        self.region = ""
        self.in_block = False
        self._block: list[str] = []
        self.dropped = 0

    @classmethod
    def for_account_class(
        cls, account_class: AccountClass, marker: str = "govcloud"
    ) -> PlanTextScanner:
        return cls(patterns_for(account_class, marker))

    # --- transition rules ---

    def update_environment(self, line: str) -> None:
        match = self._patterns.environment.search(line)
        if match:
            self.environment = match.group(1)

    def update_region(self, line: str) -> None:
        match = self._patterns.region.search(line)
        if match:
            self.region = match.group(1)

    def open_block(self, line: str) -> bool:
        """Start a block on a header line; return *True* if one was opened."""
        if self.in_block or BLOCK_HEADER not in line:
            return False
        self.in_block = True
        self._block = [line]
        return True

    def accumulate(self, line: str) -> ActionRecord | None:
        """Append *line* to the open block, closing it on the summary line."""
        if not self.in_block:
            return None
        self._block.append(line)
        if not is_block_footer(line):
            return None
        return self._close_block()

    def _close_block(self) -> ActionRecord | None:
        block_text = "\n".join(self._block)
        self.in_block = False
        self._block = []
        if not (self.environment and self.region):
            self.dropped += 1
            logger.debug(
                "Dropping plan block without context (environment=%r region=%r)",
                self.environment,
                self.region,
            )
            return None
        return ActionRecord(
            environment=self.environment, region=self.region, block_text=block_text
        )

    # --- driving ---

    def feed(self, line: str) -> ActionRecord | None:
        self.update_environment(line)
        self.update_region(line)
        if self.open_block(line):
            return None
        return self.accumulate(line)

    def finish(self) -> None:
        """Discard a block still open at end of input."""
        if self.in_block:
            self.dropped += 1
            logger.debug(
                "Dropping unterminated plan block (%d lines)", len(self._block)
            )
        self.in_block = False
        self._block = []

    def scan(self, text: str) -> Iterator[ActionRecord]:
        for line in text.split("\n"):
            record = self.feed(line)
            if record is not None:
                yield record
        self.finish()


def scan_plan_text(
    text: str, account_class: AccountClass, marker: str = "govcloud"
) -> list[ActionRecord]:
    """Return every action record in *text*, in order of appearance."""
    scanner = PlanTextScanner.for_account_class(account_class, marker)
    return list(scanner.scan(text))
