"""Pytest fixtures for the entire relpack test suite."""

from pathlib import Path
from typing import Callable

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
import pytest

from relpack.crypto import generate_keys


@pytest.fixture(scope="session")
def key_pair() -> tuple[rsa.RSAPrivateKey, rsa.RSAPublicKey]:
    """Generates a single RSA key pair for the entire test session."""
    return generate_keys()


@pytest.fixture(scope="session")
def private_key(key_pair: tuple[rsa.RSAPrivateKey, rsa.RSAPublicKey]) -> rsa.RSAPrivateKey:
    """Returns the private key object from the session-scoped key pair."""
    return key_pair[0]


@pytest.fixture(scope="session")
def public_key(key_pair: tuple[rsa.RSAPrivateKey, rsa.RSAPublicKey]) -> rsa.RSAPublicKey:
    """Returns the public key object from the session-scoped key pair."""
    return key_pair[1]


@pytest.fixture(scope="session")
def private_key_pem(private_key: rsa.RSAPrivateKey) -> bytes:
    """Provides the private key serialized in PEM format."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture
def make_staging_tree() -> Callable[[Path, dict[str, int]], Path]:
    """
    A factory fixture that writes a staging directory whose files have the
    given sizes, keyed by POSIX-style relative path.
    """

    def _make(root_dir: Path, files: dict[str, int]) -> Path:
        staging = root_dir / "staging"
        staging.mkdir()
        for rel_path, size in files.items():
            path = staging / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"x" * size)
        return staging

    return _make


SIGNING_XML = """<?xml version="1.0" encoding="utf-8"?>
<SignConfigXML>
  <job platform="" configuration="" dest="__OUTPATHROOT__" jobname="Release">
    <file src="__INPATHROOT__/bin/app.dll" signType="AuthenticodeFormer" />
    <file src="__INPATHROOT__/bin/app.exe" signType="AuthenticodeFormer" />
    <file src="__INPATHROOT__/modules/Tools.psd1" signType="AuthenticodeFormer" />
    <file src="__INPATHROOT__/bin/Engine.DLL" signType="AuthenticodeFormer" />
  </job>
</SignConfigXML>
"""


@pytest.fixture
def signing_xml(tmp_path: Path) -> Path:
    """Writes a sample XML signing configuration and returns its path."""
    path = tmp_path / "FilesToSign.xml"
    path.write_text(SIGNING_XML)
    return path
