"""The `relpack` command-line interface."""

import importlib.metadata
from pathlib import Path

import click
from cryptography.hazmat.primitives import serialization

from pyvider.telemetry import logger

from .config import SigningConfig, load_config
from .crypto import generate_keys, load_private_key, sign_manifest
from .exceptions import PackagingError
from .matrix import DEFAULT_EXTRAS, DEFAULT_GROUPS, compose
from .packaging.installed_size import (
    auxiliary_sizes,
    compute_installed_size,
    scan_staging_dir,
)
from .packaging.signing import (
    build_manifest,
    select_primary_sources,
    suffix_rule,
)
from .packaging.spec_document import RpmPackageInfo, build_rpm_spec

try:
    __version__ = importlib.metadata.version("relpack")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(
    __version__,
    "-V",
    "--version",
    prog_name="relpack",
    message="%(prog)s version %(version)s",
)
def cli() -> None:
    """Release package descriptor and signing manifest generator."""
    pass


def _fail(prefix: str, error: Exception) -> click.Abort:
    click.secho(f"❌ {prefix}:\n{error}", fg="red", err=True)
    return click.Abort()


@cli.command("matrix")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to a TOML file with a [tool.relpack] section.",
)
@click.option("--dedupe", is_flag=True, help="Drop repeated distribution names.")
def matrix_command(config_path: str | None, dedupe: bool) -> None:
    """Prints the distributions to package for, one per line."""
    try:
        if config_path:
            config = load_config(Path(config_path))
            matrix = compose(config.groups, config.extras, deduplicate=dedupe)
        else:
            matrix = compose(DEFAULT_GROUPS, DEFAULT_EXTRAS, deduplicate=dedupe)
    except PackagingError as e:
        raise _fail("Matrix composition failed", e) from e

    for name in matrix:
        click.echo(name)


@cli.command("installed-size")
@click.argument(
    "staging_dir",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
)
@click.option(
    "--aux",
    "aux_files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Auxiliary file counted toward the installed size (repeatable).",
)
def installed_size_command(staging_dir: str, aux_files: tuple[str, ...]) -> None:
    """Computes the installed size of a staging directory."""
    try:
        facts = scan_staging_dir(Path(staging_dir))
        size = compute_installed_size(facts, auxiliary_sizes(Path(p) for p in aux_files))
    except PackagingError as e:
        raise _fail("Size calculation failed", e) from e

    click.echo(f"Installed-Size-Bytes: {size.size_bytes}")
    click.echo(f"Installed-Size: {size.size_kb}")


@cli.command("rpm-spec")
@click.option(
    "--config",
    "config_path",
    default="pyproject.toml",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to a TOML file with a [tool.relpack] section.",
)
@click.option("--arch", help="Override the architecture from the configuration.")
@click.option(
    "--out",
    type=click.Path(dir_okay=False, writable=True, resolve_path=True),
    help="Write the spec file here instead of stdout.",
)
def rpm_spec_command(config_path: str, arch: str | None, out: str | None) -> None:
    """Generates the RPM spec file for the staged payload."""
    try:
        config = load_config(Path(config_path))
        if config.staging_dir is None:
            raise click.UsageError(
                "'staging_dir' must be set in [tool.relpack] to generate a spec."
            )
        facts = scan_staging_dir(config.staging_dir)
        size = compute_installed_size(facts, auxiliary_sizes(config.aux_files))

        prefix = f"{config.install_prefix.rstrip('/')}/{config.name}"
        package = RpmPackageInfo(
            name=config.name,
            version=config.version,
            arch=arch or config.arch,
            files=[f"{prefix}/{fact.path}" for fact in facts],
            release=config.release,
            summary=config.summary,
            license=config.license,
            url=config.url,
            vendor=config.vendor,
            description=config.description,
            requires=config.requires,
            directories=[prefix],
            undefines=["__brp_mangle_shebangs"],
            defines=[("_build_id_links", "none")],
            installed_size_kb=size.size_kb,
        )
        rendered = build_rpm_spec(package).render()
    except (PackagingError, click.UsageError) as e:
        raise _fail("Spec generation failed", e) from e

    if out:
        Path(out).write_text(rendered + "\n", encoding="utf-8")
        logger.info("Wrote RPM spec", path=out, files=len(facts), size_kb=size.size_kb)
        click.secho(f"✅ RPM spec written: {out}", fg="green")
    else:
        click.echo(rendered)


@cli.command("signing-manifest")
@click.argument(
    "signing_config",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="TOML file whose [tool.relpack.signing] table supplies the defaults.",
)
@click.option("--from", "from_suffix", help="Binary suffix to replace. Default: .dll")
@click.option("--to", "to_suffix", help="Companion suffix. Default: .pdb")
@click.option(
    "--extension",
    "extensions",
    multiple=True,
    help="Extension marking a primary binary (repeatable). Defaults to .dll and .exe.",
)
@click.option("--strict", is_flag=True, help="Fail on the first derivation error.")
@click.option(
    "--out",
    type=click.Path(dir_okay=False, writable=True, resolve_path=True),
    help="Write the manifest JSON here instead of stdout.",
)
@click.option(
    "--key",
    "key_path",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="PEM private key; writes a detached '<out>.sig' signature.",
)
def signing_manifest_command(
    signing_config: str,
    config_path: str | None,
    from_suffix: str | None,
    to_suffix: str | None,
    extensions: tuple[str, ...],
    strict: bool,
    out: str | None,
    key_path: str | None,
) -> None:
    """Builds the manifest of files to sign, including debug-symbol companions."""
    if key_path and not out:
        raise click.UsageError("--key requires --out to place the signature file.")
    try:
        signing = (
            load_config(Path(config_path)).signing if config_path else SigningConfig()
        )
        selected = select_primary_sources(
            Path(signing_config), extensions or signing.extensions
        )
        rule = suffix_rule(
            from_suffix or signing.from_suffix, to_suffix or signing.to_suffix
        )
        manifest = build_manifest(selected, rule, strict=strict or signing.strict)
        signature = (
            sign_manifest(manifest, load_private_key(Path(key_path).read_bytes()))
            if key_path
            else None
        )
    except PackagingError as e:
        raise _fail("Signing manifest failed", e) from e

    for failure in manifest.failures:
        click.secho(f"⚠️  No companion for {failure.path}: {failure.reason}", fg="yellow")

    if not out:
        click.echo(manifest.to_json())
        return

    out_path = Path(out)
    out_path.write_text(manifest.to_json() + "\n", encoding="utf-8")
    if signature is not None:
        out_path.with_name(out_path.name + ".sig").write_bytes(signature)
    click.secho(
        f"✅ Signing manifest written: {out} ({len(manifest.entries)} files)", fg="green"
    )


@cli.command()
@click.option(
    "--out-dir",
    default="keys",
    type=click.Path(file_okay=False, writable=True, resolve_path=True),
    help="Directory to save the RSA key pair.",
)
def keygen(out_dir: str) -> None:
    """Generates an RSA key pair for signing manifests."""
    out_path = Path(out_dir)
    private_path = out_path / "manifest-private.key"
    public_path = out_path / "manifest-public.key"
    if private_path.exists() or public_path.exists():
        click.secho(
            "⚠️  Keys already exist. To regenerate, please delete them first.",
            fg="yellow",
        )
        return

    out_path.mkdir(parents=True, exist_ok=True)
    private_key, public_key = generate_keys()
    private_path.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    public_path.write_bytes(
        public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    click.secho(f"✅ Manifest signing key pair generated in '{out_dir}'.", fg="green")


main = cli
