import enum
import json
from collections.abc import Iterator
from typing import Any

from attrs import define, field

from .exceptions import ValidationError

KILOBYTE: int = 1024


@define(frozen=True, slots=True)
class DistributionGroup:
    name: str
    members: tuple[str, ...] = field(converter=tuple, default=())


@define(frozen=True, slots=True)
class DistributionMatrix:
    names: tuple[str, ...] = field(converter=tuple, default=())

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)

    def __getitem__(self, index: int | slice) -> str | tuple[str, ...]:
        return self.names[index]

    def __contains__(self, name: object) -> bool:
        return name in self.names


class FragmentKind(enum.Enum):
    HEADER = "header"
    BUILD_ARCH = "build-arch"
    MACROS = "macros"
    DEPENDENCIES = "dependencies"
    DESCRIPTION = "description"
    SCRIPTLET = "scriptlet"
    FILES = "files"
    CHANGELOG = "changelog"
    OTHER = "other"


@define(frozen=True, slots=True)
class SpecFragment:
    kind: FragmentKind
    text: str

    def __attrs_post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise ValidationError(
                f"Spec fragment text must be a string, got {type(self.text).__name__}."
            )


@define(frozen=True, slots=True)
class FileSizeFact:
    path: str
    size: int

    def __attrs_post_init__(self) -> None:
        if self.size < 0:
            raise ValidationError(
                f"File size for '{self.path}' cannot be negative ({self.size})."
            )


@define(frozen=True, slots=True)
class InstalledSize:
    """Total payload size of a package; `size_kb` never under-reports."""

    size_bytes: int
    size_kb: int = field(init=False)

    def __attrs_post_init__(self) -> None:
        if self.size_bytes < 0:
            raise ValidationError(
                f"Installed size cannot be negative ({self.size_bytes})."
            )
        object.__setattr__(self, "size_kb", -(-self.size_bytes // KILOBYTE))


class SigningCategory(enum.Enum):
    PRIMARY = "primary"
    DERIVED = "derived"


@define(frozen=True, slots=True)
class SigningEntry:
    path: str
    category: SigningCategory


@define(frozen=True, slots=True)
class DerivationFailureRecord:
    path: str
    reason: str


@define(frozen=True, slots=True)
class SigningManifest:
    entries: tuple[SigningEntry, ...] = field(converter=tuple, default=())
    failures: tuple[DerivationFailureRecord, ...] = field(converter=tuple, default=())

    @property
    def primary(self) -> tuple[SigningEntry, ...]:
        return tuple(e for e in self.entries if e.category is SigningCategory.PRIMARY)

    @property
    def derived(self) -> tuple[SigningEntry, ...]:
        return tuple(e for e in self.entries if e.category is SigningCategory.DERIVED)

    @property
    def paths(self) -> frozenset[str]:
        return frozenset(e.path for e in self.entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": [
                {"path": e.path, "category": e.category.value} for e in self.entries
            ],
            "failures": [
                {"path": f.path, "reason": f.reason} for f in self.failures
            ],
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)
