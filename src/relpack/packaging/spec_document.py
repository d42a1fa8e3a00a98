"""
Assembly of RPM spec documents from discrete, fully formed fragments.

The assembler itself only joins fragment text; the `*_fragment` helpers
produce the individual sections the release pipeline puts into a spec file.
"""

from collections.abc import Iterable, Mapping, Sequence

from attrs import define, field

from pyvider.telemetry import logger

from ..exceptions import ValidationError
from ..models import FragmentKind, SpecFragment

RPM_ARCH_ALIASES: dict[str, str] = {
    "x64": "x86_64",
    "amd64": "x86_64",
    "arm64": "aarch64",
    "arm32": "armv7hl",
}
SCRIPTLET_SECTIONS = frozenset({"pre", "post", "preun", "postun", "posttrans"})


def _fragment_text(fragment: SpecFragment | str | None, position: int) -> str:
    if fragment is None:
        raise ValidationError(f"Spec fragment at position {position} is missing.")
    if isinstance(fragment, SpecFragment):
        return fragment.text
    if isinstance(fragment, str):
        return fragment
    raise ValidationError(
        f"Spec fragment at position {position} has unsupported type "
        f"{type(fragment).__name__}."
    )


def assemble(fragments: Iterable[SpecFragment | str | None]) -> str:
    """Joins fragment texts in the given order, one newline per boundary."""
    return "\n".join(
        _fragment_text(fragment, position)
        for position, fragment in enumerate(fragments)
    )


@define(frozen=True, slots=True)
class SpecDocument:
    fragments: tuple[SpecFragment, ...] = field(converter=tuple, default=())

    def render(self) -> str:
        return assemble(self.fragments)

    def kinds(self) -> tuple[FragmentKind, ...]:
        return tuple(fragment.kind for fragment in self.fragments)


def _single_line(field_name: str, value: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"RPM field '{field_name}' must be a non-empty string.")
    if "\n" in value or "\r" in value:
        raise ValidationError(f"RPM field '{field_name}' must not contain newlines.")
    return value.strip()


def normalize_rpm_arch(arch: str) -> str:
    return RPM_ARCH_ALIASES.get(arch, arch)


def rpm_version(version: str) -> str:
    """RPM forbids '-' in Version; prerelease labels use '_' instead."""
    return _single_line("Version", version).replace("-", "_")


def header_fragment(
    name: str,
    version: str,
    release: str = "1",
    summary: str | None = None,
    license: str | None = None,
    url: str | None = None,
    vendor: str | None = None,
    group: str | None = None,
) -> SpecFragment:
    optional = (
        ("Summary", summary),
        ("License", license),
        ("URL", url),
        ("Vendor", vendor),
        ("Group", group),
    )
    lines = [
        f"Name: {_single_line('Name', name)}",
        f"Version: {rpm_version(version)}",
        f"Release: {_single_line('Release', release)}",
        *(f"{tag}: {_single_line(tag, value)}" for tag, value in optional if value),
    ]
    return SpecFragment(FragmentKind.HEADER, "\n".join(lines))


def build_arch_fragment(arch: str) -> SpecFragment:
    return SpecFragment(
        FragmentKind.BUILD_ARCH,
        f"BuildArch: {normalize_rpm_arch(_single_line('BuildArch', arch))}",
    )


def macro_fragment(
    defines: Mapping[str, str] | None = None,
    undefines: Sequence[str] = (),
    installed_size_kb: int | None = None,
) -> SpecFragment:
    lines = [f"%define {name} {value}" for name, value in (defines or {}).items()]
    lines.extend(f"%undefine {name}" for name in undefines)
    if installed_size_kb is not None:
        if installed_size_kb < 0:
            raise ValidationError("Installed size cannot be negative.")
        lines.append(f"%global installed_size_kb {installed_size_kb}")
    return SpecFragment(FragmentKind.MACROS, "\n".join(lines))


def dependencies_fragment(
    requires: Sequence[str],
    provides: Sequence[str] = (),
    conflicts: Sequence[str] = (),
) -> SpecFragment:
    lines = [
        *(f"Requires: {_single_line('Requires', dep)}" for dep in requires),
        *(f"Provides: {_single_line('Provides', dep)}" for dep in provides),
        *(f"Conflicts: {_single_line('Conflicts', dep)}" for dep in conflicts),
    ]
    return SpecFragment(FragmentKind.DEPENDENCIES, "\n".join(lines))


def description_fragment(text: str) -> SpecFragment:
    return SpecFragment(FragmentKind.DESCRIPTION, f"%description\n{text.strip()}")


def scriptlet_fragment(section: str, body: str) -> SpecFragment:
    if section not in SCRIPTLET_SECTIONS:
        raise ValidationError(
            f"Unknown scriptlet section '%{section}'. "
            f"Expected one of: {', '.join(sorted(SCRIPTLET_SECTIONS))}."
        )
    return SpecFragment(FragmentKind.SCRIPTLET, f"%{section}\n{body.strip()}")


def _files_entry(path: str) -> str:
    if not path or any(c in path for c in "\n\r\""):
        raise ValidationError(f"Invalid path for %files section: {path!r}.")
    escaped = path.replace("%", "%%")
    if any(c.isspace() for c in escaped):
        return f'"{escaped}"'
    return escaped


def files_fragment(
    paths: Sequence[str],
    directories: Sequence[str] = (),
    attributes: str = "-,root,root,-",
) -> SpecFragment:
    lines = [
        "%files",
        f"%defattr({attributes})",
        *(f"%dir {_files_entry(directory)}" for directory in directories),
        *(_files_entry(path) for path in paths),
    ]
    return SpecFragment(FragmentKind.FILES, "\n".join(lines))


def changelog_fragment(entries: Sequence[str]) -> SpecFragment:
    return SpecFragment(FragmentKind.CHANGELOG, "\n".join(["%changelog", *entries]))


@define(frozen=True, slots=True)
class RpmPackageInfo:
    name: str
    version: str
    arch: str
    files: tuple[str, ...] = field(converter=tuple)
    release: str = "1"
    summary: str | None = None
    license: str | None = None
    url: str | None = None
    vendor: str | None = None
    group: str | None = None
    description: str | None = None
    requires: tuple[str, ...] = field(converter=tuple, default=())
    provides: tuple[str, ...] = field(converter=tuple, default=())
    conflicts: tuple[str, ...] = field(converter=tuple, default=())
    directories: tuple[str, ...] = field(converter=tuple, default=())
    defines: tuple[tuple[str, str], ...] = field(converter=tuple, default=())
    undefines: tuple[str, ...] = field(converter=tuple, default=())
    scriptlets: tuple[tuple[str, str], ...] = field(converter=tuple, default=())
    changelog: tuple[str, ...] = field(converter=tuple, default=())
    installed_size_kb: int | None = None


def build_rpm_spec(package: RpmPackageInfo) -> SpecDocument:
    """Builds the fragments of an RPM spec in canonical section order."""
    fragments = [
        header_fragment(
            package.name,
            package.version,
            package.release,
            summary=package.summary,
            license=package.license,
            url=package.url,
            vendor=package.vendor,
            group=package.group,
        ),
        build_arch_fragment(package.arch),
    ]
    if package.defines or package.undefines or package.installed_size_kb is not None:
        fragments.append(
            macro_fragment(
                dict(package.defines),
                package.undefines,
                package.installed_size_kb,
            )
        )
    if package.requires or package.provides or package.conflicts:
        fragments.append(
            dependencies_fragment(package.requires, package.provides, package.conflicts)
        )
    fragments.append(
        description_fragment(package.description or package.summary or package.name)
    )
    fragments.extend(
        scriptlet_fragment(section, body) for section, body in package.scriptlets
    )
    fragments.append(files_fragment(package.files, package.directories))
    if package.changelog:
        fragments.append(changelog_fragment(package.changelog))

    logger.debug(
        "Built RPM spec fragments",
        package=package.name,
        fragments=[fragment.kind.value for fragment in fragments],
    )
    return SpecDocument(fragments)
