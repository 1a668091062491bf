"""Key pairs, key derivation and identity handling."""

import re
from dataclasses import dataclass

from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from .types import (
    KEY_DERIVATION_SALT,
    KEY_DERIVATION_INFO,
    PRIVATE_KEY_SIZE,
    PUBLIC_KEY_SIZE,
    InvalidIdentityError,
    InvalidKeyLengthError,
)


# Regular identities are 8 uppercase alphanumerics, gateway identities start with '*'
_IDENTITY_RE = re.compile(r"^[A-Z0-9*][A-Z0-9]{7}$")


@dataclass(frozen=True)
class KeyPair:
    """An X25519 key pair as raw bytes."""
    public_key: bytes  # 32 bytes
    private_key: bytes  # 32 bytes

    def __post_init__(self) -> None:
        check_key_length(self.public_key, PUBLIC_KEY_SIZE, "Public key")
        check_key_length(self.private_key, PRIVATE_KEY_SIZE, "Private key")

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self.public_key.hex()}, private_key=<redacted>)"


def check_key_length(key: bytes, expected: int, name: str = "Key") -> bytes:
    """
    Ensure a key is a byte string of the expected length.

    Raises:
        InvalidKeyLengthError: If the length does not match
    """
    if not isinstance(key, (bytes, bytearray)):
        raise TypeError(f"{name} must be bytes, got {type(key).__name__}")
    if len(key) != expected:
        raise InvalidKeyLengthError(name, expected, len(key))
    return bytes(key)


def _keypair_from_x25519(private_key: X25519PrivateKey) -> KeyPair:
    return KeyPair(
        public_key=private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw),
        private_key=private_key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption()),
    )


def generate_keypair() -> KeyPair:
    """
    Generate a random X25519 key pair.

    Returns:
        A new KeyPair
    """
    return _keypair_from_x25519(X25519PrivateKey.generate())


def keypair_from_private_key(private_key: bytes) -> KeyPair:
    """Rebuild a key pair from a 32-byte private key."""
    check_key_length(private_key, PRIVATE_KEY_SIZE, "Private key")
    return _keypair_from_x25519(X25519PrivateKey.from_private_bytes(bytes(private_key)))


def derive_keys_from_seed(seed: bytes) -> KeyPair:
    """
    Derive an X25519 key pair from a 32-byte seed using HKDF-SHA256.

    Args:
        seed: 32-byte seed

    Returns:
        The derived KeyPair
    """
    if len(seed) != 32:
        raise ValueError(f"Seed must be 32 bytes, got {len(seed)}")

    hkdf = HKDF(
        algorithm=SHA256(),
        length=32,
        salt=KEY_DERIVATION_SALT,
        info=KEY_DERIVATION_INFO,
    )
    derived_key = hkdf.derive(seed)

    return _keypair_from_x25519(X25519PrivateKey.from_private_bytes(derived_key))


def public_key_from_hex(data: str) -> bytes:
    """Parse a hex encoded public key (as returned by the key directory)."""
    try:
        key = bytes.fromhex(data.strip())
    except ValueError as e:
        raise ValueError(f"Public key is not valid hex: {data!r}") from e
    return check_key_length(key, PUBLIC_KEY_SIZE, "Public key")


def validate_identity(identity: str) -> str:
    """
    Check that an identity has the 8-character gateway format.

    Returns:
        The identity, unchanged

    Raises:
        InvalidIdentityError: If the identity is malformed
    """
    if not isinstance(identity, str) or not _IDENTITY_RE.match(identity):
        raise InvalidIdentityError(identity)
    return identity
