"""
Plaintext framing for E2E messages.

Every message kind is framed the same way before sealing:

    [0]        type tag (1 byte)
    [1..n]     kind-specific payload
    [n+1..]    padding (N bytes): N-1 random bytes, then one byte holding N

N is at least 1 and at most 255, and is chosen so the frame reaches the
configured minimum length.
"""

from typing import Tuple

import nacl.utils

from .types import (
    MAX_MIN_FRAME_LENGTH,
    MalformedFrameError,
    RandomSource,
)


def padding_length(payload_length: int, min_total_len: int) -> int:
    """Number of padding bytes for a payload under the given frame floor."""
    if not 0 <= min_total_len <= MAX_MIN_FRAME_LENGTH:
        raise ValueError(
            f"Minimum frame length must be between 0 and {MAX_MIN_FRAME_LENGTH}, "
            f"got {min_total_len}"
        )
    return max(1, min_total_len - 1 - payload_length)


def encode_frame(
    type_tag: int,
    payload: bytes,
    min_total_len: int,
    random_source: RandomSource = nacl.utils.random,
) -> bytes:
    """
    Build a padded frame.

    Args:
        type_tag: Message type tag (0-255)
        payload: Kind-specific payload bytes
        min_total_len: Minimum length of the resulting frame (0-256)
        random_source: Source of random padding bytes

    Returns:
        The frame bytes, never shorter than min_total_len
    """
    if not 0 <= type_tag <= 0xFF:
        raise ValueError(f"Type tag must fit in one byte, got {type_tag}")

    pad_len = padding_length(len(payload), min_total_len)

    filler = random_source(pad_len - 1) if pad_len > 1 else b""
    return bytes([type_tag]) + payload + filler + bytes([pad_len])


def decode_frame(data: bytes) -> Tuple[int, bytes]:
    """
    Parse a padded frame.

    Args:
        data: Frame bytes

    Returns:
        Tuple of (type_tag, payload) with the padding removed

    Raises:
        MalformedFrameError: If the frame is truncated or the padding is invalid
    """
    if len(data) < 2:
        raise MalformedFrameError(f"Frame too short: {len(data)} bytes (minimum 2)")

    type_tag = data[0]
    pad_len = data[-1]

    if pad_len == 0:
        raise MalformedFrameError("Invalid padding length: 0")
    if pad_len > len(data) - 1:
        raise MalformedFrameError(
            f"Padding length {pad_len} exceeds frame body of {len(data) - 1} bytes"
        )

    return type_tag, bytes(data[1 : len(data) - pad_len])
