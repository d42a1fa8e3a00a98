"""
Integrity signing for signing manifests handed to the external signing tool.
"""

import hashlib
import json

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .exceptions import SignatureVerificationError, SigningError
from .models import SigningManifest

_PSS_PADDING = padding.PSS(
    mgf=padding.MGF1(hashes.SHA256()), salt_length=hashes.SHA256.digest_size
)


def generate_keys() -> tuple[rsa.RSAPrivateKey, rsa.RSAPublicKey]:
    """Generates a new 4096-bit RSA key pair."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=4096)
    return private_key, private_key.public_key()


def load_private_key(pem: bytes) -> rsa.RSAPrivateKey:
    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError) as e:
        raise SigningError(f"Could not load private key: {e}") from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise SigningError("Manifest signing requires an RSA private key.")
    return key


def manifest_digest(manifest: SigningManifest) -> bytes:
    """SHA-256 over the canonical JSON form of the manifest."""
    canonical = json.dumps(manifest.to_dict(), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).digest()


def sign_payload_hash(payload_hash: bytes, private_key: rsa.RSAPrivateKey) -> bytes:
    """Signs a 32-byte hash using RSA-PSS."""
    if not isinstance(payload_hash, bytes) or len(payload_hash) != 32:
        raise SigningError("Payload hash must be a 32-byte SHA-256 hash.")

    return private_key.sign(payload_hash, _PSS_PADDING, hashes.SHA256())


def sign_manifest(manifest: SigningManifest, private_key: rsa.RSAPrivateKey) -> bytes:
    return sign_payload_hash(manifest_digest(manifest), private_key)


def verify_manifest_signature(
    manifest: SigningManifest, signature: bytes, public_key: rsa.RSAPublicKey
) -> None:
    try:
        public_key.verify(
            signature, manifest_digest(manifest), _PSS_PADDING, hashes.SHA256()
        )
    except InvalidSignature as e:
        raise SignatureVerificationError(
            "Signing manifest signature does not match its contents."
        ) from e
