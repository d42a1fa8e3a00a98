"""
This package contains the logic for turning a staged build tree into release
packaging inputs: the distribution matrix, RPM spec documents, installed-size
metadata and the code-signing file manifest.
"""

from .exceptions import DerivationFailure, PackagingError, ValidationError
from .matrix import compose
from .models import (
    DistributionGroup,
    DistributionMatrix,
    FileSizeFact,
    FragmentKind,
    InstalledSize,
    SigningCategory,
    SigningEntry,
    SigningManifest,
    SpecFragment,
)
from .packaging.installed_size import to_kilobytes, total_size_bytes
from .packaging.signing import build_manifest, suffix_rule
from .packaging.spec_document import SpecDocument, assemble

# NOTE: The CLI is NOT imported here so that library users do not pull in click.

__all__ = [
    "DerivationFailure",
    "DistributionGroup",
    "DistributionMatrix",
    "FileSizeFact",
    "FragmentKind",
    "InstalledSize",
    "PackagingError",
    "SigningCategory",
    "SigningEntry",
    "SigningManifest",
    "SpecDocument",
    "SpecFragment",
    "ValidationError",
    "assemble",
    "build_manifest",
    "compose",
    "suffix_rule",
    "to_kilobytes",
    "total_size_bytes",
]
