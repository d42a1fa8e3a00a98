"""Composition of the ordered list of distributions a release is packaged for."""

from collections.abc import Iterable, Sequence

from pyvider.telemetry import logger

from .exceptions import ValidationError
from .models import DistributionGroup, DistributionMatrix

DEFAULT_GROUPS: tuple[DistributionGroup, ...] = (
    DistributionGroup("Debian", ("ubuntu20.04", "debian11")),
    DistributionGroup("RedhatFull", ("fedora36",)),
    DistributionGroup("RedhatFdd", ("rhel8-fdd",)),
)
DEFAULT_EXTRAS: tuple[str, ...] = ("macOS",)


def group_from_config(name: str, members: Sequence[str]) -> DistributionGroup:
    """Builds a DistributionGroup from raw configuration values."""
    if isinstance(members, str):
        raise ValidationError(
            f"Distribution group '{name}' must be a list of names, not a string."
        )
    for member in members:
        if not isinstance(member, str) or not member.strip():
            raise ValidationError(
                f"Distribution group '{name}' contains an invalid name: {member!r}."
            )
    return DistributionGroup(name, tuple(members))


def compose(
    groups: Iterable[DistributionGroup | Sequence[str]],
    extras: Sequence[str] = (),
    *,
    deduplicate: bool = False,
) -> DistributionMatrix:
    """
    Concatenates every group's members in order, then appends `extras`.

    No name is dropped or reordered. With `deduplicate=True` only the first
    occurrence of a repeated name is kept.
    """
    if isinstance(extras, str):
        raise ValidationError(f"Extras must be a list of names, not a string: {extras!r}.")
    groups = tuple(groups)
    for group in groups:
        if isinstance(group, str):
            raise ValidationError(
                f"Distribution groups must be lists of names, not a string: {group!r}."
            )

    names = [
        name
        for group in groups
        for name in (group.members if isinstance(group, DistributionGroup) else group)
    ]
    names.extend(extras)

    if deduplicate:
        names = list(dict.fromkeys(names))

    logger.debug("Composed distribution matrix", count=len(names), names=names)
    return DistributionMatrix(names)
