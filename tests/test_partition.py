"""Tests for partition.py."""

from __future__ import annotations

from collections import Counter

import pytest

from partition import is_restricted, partition_targets


class TestPartitionTargets:
    def test_splits_by_marker_preserving_order(self) -> None:
        targets = [
            "terragrunt_s3/organizations/staging/eu-west-1/s3",
            "terragrunt_s3/organizations/govcloud-staging/us-gov-west-1/s3",
            "terragrunt_s3/organizations/production/us-east-1/s3",
            "terragrunt_s3/organizations/govcloud-production/us-gov-west-1/s3",
        ]
        commercial, govcloud = partition_targets(targets)
        assert commercial == [targets[0], targets[2]]
        assert govcloud == [targets[1], targets[3]]

    def test_empty_input(self) -> None:
        assert partition_targets([]) == ([], [])

    def test_accepts_any_iterable(self) -> None:
        commercial, govcloud = partition_targets(iter(["a", "govcloud-b"]))
        assert (commercial, govcloud) == (["a"], ["govcloud-b"])

    def test_custom_marker(self) -> None:
        commercial, govcloud = partition_targets(["x/gov/y", "x/com/y"], marker="gov")
        assert govcloud == ["x/gov/y"]
        assert commercial == ["x/com/y"]

    @pytest.mark.parametrize(
        "targets",
        [
            ["a", "a", "govcloud", "govcloud", "b"],
            ["only/commercial"],
            ["govcloud-only"],
            ["x-govcloud-y", "GOVCLOUD-upper", "z"],
        ],
    )
    def test_outputs_partition_the_input(self, targets: list[str]) -> None:
        commercial, govcloud = partition_targets(targets)
        assert Counter(commercial) + Counter(govcloud) == Counter(targets)
        assert all(is_restricted(t) for t in govcloud)
        assert not any(is_restricted(t) for t in commercial)

    def test_marker_match_is_case_sensitive(self) -> None:
        assert is_restricted("GOVCLOUD-prod") is False
