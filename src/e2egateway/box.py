"""
Authenticated encryption primitives.

Wraps NaCl crypto_box (X25519 + XSalsa20-Poly1305) for public-key sealing and
crypto_secretbox (XSalsa20-Poly1305) for symmetric sealing. Key and nonce
lengths are checked before any primitive is called, and every decryption
failure is reported as AuthenticationFailedError.
"""

from typing import Tuple

import nacl.utils
from nacl.exceptions import CryptoError
from nacl.public import Box, PrivateKey, PublicKey
from nacl.secret import SecretBox

from .envelope import CiphertextEnvelope
from .keys import check_key_length
from .types import (
    NONCE_SIZE,
    PRIVATE_KEY_SIZE,
    PUBLIC_KEY_SIZE,
    SYMMETRIC_KEY_SIZE,
    AuthenticationFailedError,
    EncryptionError,
    InvalidNonceLengthError,
    RandomSource,
)


def _check_nonce(nonce: bytes) -> bytes:
    if len(nonce) != NONCE_SIZE:
        raise InvalidNonceLengthError(len(nonce))
    return bytes(nonce)


def _fresh_nonce(random_source: RandomSource) -> bytes:
    return _check_nonce(random_source(NONCE_SIZE))


def generate_symmetric_key(random_source: RandomSource = nacl.utils.random) -> bytes:
    """Generate a fresh 32-byte symmetric key."""
    return check_key_length(random_source(SYMMETRIC_KEY_SIZE), SYMMETRIC_KEY_SIZE, "Symmetric key")


def seal(
    plaintext: bytes,
    recipient_public_key: bytes,
    sender_private_key: bytes,
    random_source: RandomSource = nacl.utils.random,
) -> CiphertextEnvelope:
    """
    Encrypt and authenticate plaintext for a recipient.

    Args:
        plaintext: Bytes to seal
        recipient_public_key: Recipient's public key (32 bytes)
        sender_private_key: Sender's private key (32 bytes)
        random_source: Source of the nonce

    Returns:
        CiphertextEnvelope with a fresh nonce

    Raises:
        InvalidKeyLengthError: If a key has the wrong length
        EncryptionError: If the primitive rejects the keys
    """
    recipient_public_key = check_key_length(recipient_public_key, PUBLIC_KEY_SIZE, "Recipient public key")
    sender_private_key = check_key_length(sender_private_key, PRIVATE_KEY_SIZE, "Sender private key")
    nonce = _fresh_nonce(random_source)

    try:
        box = Box(PrivateKey(sender_private_key), PublicKey(recipient_public_key))
        encrypted = box.encrypt(bytes(plaintext), nonce)
    except CryptoError as e:
        raise EncryptionError(f"Encryption failed: {e}") from e

    return CiphertextEnvelope(nonce=nonce, box=encrypted.ciphertext)


def open(
    envelope: CiphertextEnvelope,
    sender_public_key: bytes,
    recipient_private_key: bytes,
) -> bytes:
    """
    Verify and decrypt an envelope.

    Args:
        envelope: The sealed envelope
        sender_public_key: Sender's public key (32 bytes)
        recipient_private_key: Recipient's private key (32 bytes)

    Returns:
        The plaintext

    Raises:
        InvalidKeyLengthError: If a key has the wrong length
        InvalidNonceLengthError: If the nonce has the wrong length
        AuthenticationFailedError: If the box was modified or the keys do not match
    """
    sender_public_key = check_key_length(sender_public_key, PUBLIC_KEY_SIZE, "Sender public key")
    recipient_private_key = check_key_length(recipient_private_key, PRIVATE_KEY_SIZE, "Recipient private key")
    nonce = _check_nonce(envelope.nonce)

    try:
        box = Box(PrivateKey(recipient_private_key), PublicKey(sender_public_key))
        return box.decrypt(envelope.box, nonce)
    except CryptoError:
        raise AuthenticationFailedError() from None


def seal_symmetric(
    plaintext: bytes,
    key: bytes,
    random_source: RandomSource = nacl.utils.random,
) -> Tuple[bytes, bytes]:
    """
    Encrypt and authenticate plaintext with a shared symmetric key.

    Returns:
        Tuple of (nonce, box)
    """
    key = check_key_length(key, SYMMETRIC_KEY_SIZE, "Symmetric key")
    nonce = _fresh_nonce(random_source)

    encrypted = SecretBox(key).encrypt(bytes(plaintext), nonce)
    return nonce, encrypted.ciphertext


def open_symmetric(nonce: bytes, box: bytes, key: bytes) -> bytes:
    """
    Verify and decrypt a symmetric box.

    Raises:
        InvalidKeyLengthError: If the key has the wrong length
        InvalidNonceLengthError: If the nonce has the wrong length
        AuthenticationFailedError: If the box was modified or the key is wrong
    """
    key = check_key_length(key, SYMMETRIC_KEY_SIZE, "Symmetric key")
    nonce = _check_nonce(nonce)

    try:
        return SecretBox(key).decrypt(bytes(box), nonce)
    except CryptoError:
        raise AuthenticationFailedError() from None
