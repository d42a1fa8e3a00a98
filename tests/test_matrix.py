"""Tests for distribution matrix composition."""

import pytest

from relpack.exceptions import ValidationError
from relpack.matrix import DEFAULT_EXTRAS, DEFAULT_GROUPS, compose, group_from_config
from relpack.models import DistributionGroup, DistributionMatrix


def test_compose_release_groups_in_order() -> None:
    groups = [
        DistributionGroup("Debian", ["ubuntu20.04", "debian11"]),
        DistributionGroup("RedhatFull", ["fedora36"]),
        DistributionGroup("RedhatFdd", ["rhel8-fdd"]),
    ]

    matrix = compose(groups, ["macOS"])

    assert list(matrix) == ["ubuntu20.04", "debian11", "fedora36", "rhel8-fdd", "macOS"]


def test_compose_preserves_group_then_extras_order() -> None:
    g1 = ["a", "b", "c"]
    g2 = ["d"]
    extras = ["e", "f"]

    matrix = compose([g1, g2], extras)

    assert matrix.names == ("a", "b", "c", "d", "e", "f")
    assert len(matrix) == len(g1) + len(g2) + len(extras)


def test_compose_empty_inputs() -> None:
    assert compose([], []) == DistributionMatrix()
    assert list(compose([[], DistributionGroup("Empty")], ["macOS"])) == ["macOS"]


def test_compose_keeps_duplicates_by_default() -> None:
    matrix = compose([["debian11"], ["debian11", "fedora36"]], ["debian11"])
    assert matrix.names == ("debian11", "debian11", "fedora36", "debian11")


def test_compose_deduplicate_keeps_first_occurrence() -> None:
    matrix = compose(
        [["debian11", "ubuntu22.04"], ["fedora36", "debian11"]],
        ["ubuntu22.04", "macOS"],
        deduplicate=True,
    )
    assert matrix.names == ("debian11", "ubuntu22.04", "fedora36", "macOS")


def test_compose_does_not_mutate_inputs() -> None:
    group = ["debian11"]
    extras = ["macOS"]
    compose([group], extras)
    assert group == ["debian11"]
    assert extras == ["macOS"]


def test_default_groups_compose_to_release_matrix() -> None:
    matrix = compose(DEFAULT_GROUPS, DEFAULT_EXTRAS)
    assert matrix[0] == "ubuntu20.04"
    assert matrix[-1] == "macOS"
    assert "rhel8-fdd" in matrix


@pytest.mark.parametrize("members", ["debian11", ["debian11", ""], ["ok", 3]])
def test_group_from_config_rejects_bad_members(members) -> None:
    with pytest.raises(ValidationError, match="Distribution group 'Debian'"):
        group_from_config("Debian", members)


def test_group_from_config() -> None:
    group = group_from_config("RedhatFull", ["fedora36", "rhel8"])
    assert group == DistributionGroup("RedhatFull", ("fedora36", "rhel8"))


def test_compose_rejects_string_extras() -> None:
    with pytest.raises(ValidationError, match="Extras must be a list of names"):
        compose([["debian11"]], "macOS")


def test_compose_rejects_string_group() -> None:
    with pytest.raises(ValidationError, match="not a string: 'debian11'"):
        compose(["debian11"], ["macOS"])
