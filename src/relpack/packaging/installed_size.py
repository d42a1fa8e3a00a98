"""Installed-size metadata for a staged package payload."""

from collections.abc import Iterable, Sequence
from pathlib import Path

from pyvider.telemetry import logger

from ..exceptions import ValidationError
from ..models import FileSizeFact, InstalledSize


def total_size_bytes(
    primary_facts: Iterable[FileSizeFact], auxiliary: Sequence[int] = ()
) -> int:
    """Sums the primary file sizes and the auxiliary byte counts."""
    for count in auxiliary:
        if count < 0:
            raise ValidationError(f"Auxiliary size cannot be negative ({count}).")
    return sum(fact.size for fact in primary_facts) + sum(auxiliary)


def to_kilobytes(size_bytes: int) -> int:
    """Rounds up to whole kilobytes, so package metadata never under-reports."""
    return InstalledSize(size_bytes).size_kb


def compute_installed_size(
    primary_facts: Iterable[FileSizeFact], auxiliary: Sequence[int] = ()
) -> InstalledSize:
    return InstalledSize(total_size_bytes(primary_facts, auxiliary))


def scan_staging_dir(root: Path) -> tuple[FileSizeFact, ...]:
    """Lists every regular file below `root` with its size, in path order."""
    if not root.is_dir():
        raise ValidationError(f"Staging directory not found at: {root}")

    facts = tuple(
        FileSizeFact(path.relative_to(root).as_posix(), path.stat().st_size)
        for path in sorted(root.rglob("*"))
        if path.is_file() and not path.is_symlink()
    )
    logger.debug("Scanned staging directory", root=str(root), files=len(facts))
    return facts


def auxiliary_sizes(paths: Iterable[Path]) -> tuple[int, ...]:
    paths = tuple(paths)
    for path in paths:
        if not path.is_file():
            raise ValidationError(f"Auxiliary file not found at: {path}")
    return tuple(path.stat().st_size for path in paths)
