"""Loading of the `[tool.relpack]` table from a TOML manifest."""

from pathlib import Path
import tomllib
from typing import Any

from attrs import define, field

from .exceptions import ConfigurationError, ValidationError
from .matrix import DEFAULT_EXTRAS, DEFAULT_GROUPS, group_from_config
from .models import DistributionGroup
from .packaging.signing import DEFAULT_BINARY_EXTENSIONS


@define(frozen=True, slots=True)
class SigningConfig:
    from_suffix: str = ".dll"
    to_suffix: str = ".pdb"
    extensions: tuple[str, ...] = field(converter=tuple, default=DEFAULT_BINARY_EXTENSIONS)
    strict: bool = False


@define(frozen=True, slots=True)
class PackagingConfig:
    name: str
    version: str
    config_dir: Path
    release: str = "1"
    summary: str | None = None
    license: str | None = None
    url: str | None = None
    vendor: str | None = None
    description: str | None = None
    arch: str = "x64"
    staging_dir: Path | None = None
    install_prefix: str = "/opt"
    aux_files: tuple[Path, ...] = field(converter=tuple, default=())
    requires: tuple[str, ...] = field(converter=tuple, default=())
    groups: tuple[DistributionGroup, ...] = field(converter=tuple, default=DEFAULT_GROUPS)
    extras: tuple[str, ...] = field(converter=tuple, default=DEFAULT_EXTRAS)
    signing: SigningConfig = field(factory=SigningConfig)


def _string_list(
    conf: dict[str, Any], key: str, table: str = "[tool.relpack]"
) -> list[str]:
    value = conf.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"'{key}' in {table} must be a list of strings.")
    return value


def _table(conf: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = conf.get(key)
    if value is not None and not isinstance(value, dict):
        raise ConfigurationError(f"[tool.relpack.{key}] must be a table.")
    return value


def _load_distributions(
    conf: dict[str, Any],
) -> tuple[tuple[DistributionGroup, ...], tuple[str, ...]]:
    dist_conf = _table(conf, "distributions")
    if dist_conf is None:
        return DEFAULT_GROUPS, DEFAULT_EXTRAS
    groups_conf = dist_conf.get("groups", {})
    if not isinstance(groups_conf, dict):
        raise ConfigurationError("[tool.relpack.distributions] 'groups' must be a table.")
    try:
        groups = tuple(
            group_from_config(name, members) for name, members in groups_conf.items()
        )
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
    return groups, tuple(
        _string_list(dist_conf, "extras", "[tool.relpack.distributions]")
    )


def _load_signing(conf: dict[str, Any]) -> SigningConfig:
    signing_conf = _table(conf, "signing") or {}
    from_suffix = signing_conf.get("from_suffix", ".dll")
    to_suffix = signing_conf.get("to_suffix", ".pdb")
    strict = signing_conf.get("strict", False)
    if not isinstance(from_suffix, str) or not isinstance(to_suffix, str):
        raise ConfigurationError(
            "'from_suffix' and 'to_suffix' in [tool.relpack.signing] must be strings."
        )
    if not isinstance(strict, bool):
        raise ConfigurationError("'strict' in [tool.relpack.signing] must be a boolean.")
    extensions = (
        _string_list(signing_conf, "extensions", "[tool.relpack.signing]")
        if "extensions" in signing_conf
        else DEFAULT_BINARY_EXTENSIONS
    )
    return SigningConfig(from_suffix, to_suffix, extensions, strict)


def load_config(manifest_path: Path) -> PackagingConfig:
    """Reads `[tool.relpack]` and resolves its paths against the manifest's directory."""
    if not manifest_path.is_file():
        raise ConfigurationError(f"Configuration file not found at: {manifest_path}")
    try:
        with manifest_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {manifest_path}: {e}") from e

    conf = data.get("tool", {}).get("relpack", {})
    if not conf:
        raise ConfigurationError(
            f"A [tool.relpack] section was not found in {manifest_path.name}."
        )

    name = conf.get("name") or data.get("project", {}).get("name")
    version = conf.get("version") or data.get("project", {}).get("version")
    if not name or not version:
        raise ConfigurationError(
            "Missing 'name' or 'version' in [tool.relpack] (or [project])."
        )

    config_dir = manifest_path.parent
    staging_dir = conf.get("staging_dir")
    groups, extras = _load_distributions(conf)

    return PackagingConfig(
        name=name,
        version=version,
        config_dir=config_dir,
        release=str(conf.get("release", "1")),
        summary=conf.get("summary"),
        license=conf.get("license"),
        url=conf.get("url"),
        vendor=conf.get("vendor"),
        description=conf.get("description"),
        arch=conf.get("arch", "x64"),
        staging_dir=config_dir / staging_dir if staging_dir else None,
        install_prefix=conf.get("install_prefix", "/opt"),
        aux_files=[config_dir / p for p in _string_list(conf, "aux_files")],
        requires=_string_list(conf, "requires"),
        groups=groups,
        extras=extras,
        signing=_load_signing(conf),
    )
