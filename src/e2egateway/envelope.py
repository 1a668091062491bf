"""Ciphertext envelope encoding and decoding."""

from dataclasses import dataclass

from .types import MAC_SIZE, NONCE_SIZE, InvalidNonceLengthError, MalformedFrameError


@dataclass(frozen=True)
class CiphertextEnvelope:
    """Sealed message: the nonce and the authenticated ciphertext."""
    nonce: bytes  # 24 bytes
    box: bytes  # variable (plaintext + 16-byte MAC)

    def __post_init__(self) -> None:
        if len(self.nonce) != NONCE_SIZE:
            raise InvalidNonceLengthError(len(self.nonce))

    def to_hex(self) -> tuple[str, str]:
        """Hex encoded (nonce, box) as used by the gateway API."""
        return self.nonce.hex(), self.box.hex()

    @classmethod
    def from_hex(cls, nonce_hex: str, box_hex: str) -> "CiphertextEnvelope":
        """Create an envelope from hex encoded nonce and box."""
        try:
            nonce = bytes.fromhex(nonce_hex)
            box = bytes.fromhex(box_hex)
        except ValueError as e:
            raise MalformedFrameError(f"Invalid hex in envelope: {e}") from e
        return cls(nonce=nonce, box=box)


def encode_envelope(envelope: CiphertextEnvelope) -> bytes:
    """
    Encode an envelope to bytes.

    Format:
        [0-23]   nonce (24 bytes)
        [24+]    box (variable)

    Args:
        envelope: CiphertextEnvelope to encode

    Returns:
        Encoded bytes
    """
    return envelope.nonce + envelope.box


def decode_envelope(data: bytes) -> CiphertextEnvelope:
    """
    Decode bytes into an envelope.

    Args:
        data: Encoded envelope bytes

    Returns:
        Decoded CiphertextEnvelope

    Raises:
        MalformedFrameError: If data is too short to hold a nonce and a MAC
    """
    minimum = NONCE_SIZE + MAC_SIZE
    if len(data) < minimum:
        raise MalformedFrameError(f"Data too short: {len(data)} bytes (minimum {minimum})")

    return CiphertextEnvelope(nonce=bytes(data[:NONCE_SIZE]), box=bytes(data[NONCE_SIZE:]))
