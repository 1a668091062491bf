"""Tests for plaintext framing."""

import pytest

from e2egateway.framing import decode_frame, encode_frame, padding_length
from e2egateway.types import MalformedFrameError
from .test_vectors import fixed_random


class TestEncodeFrame:
    """Test frame construction and padding."""

    def test_text_hi_scenario(self) -> None:
        """Tag + 2-byte payload + 97 bytes of padding = 100 bytes."""
        frame = encode_frame(0x01, b"hi", 100)

        assert len(frame) == 100
        assert frame[0] == 0x01
        assert frame[1:3] == b"hi"
        assert frame[-1] == 97

    def test_padding_content_comes_from_random_source(self) -> None:
        frame = encode_frame(0x01, b"hi", 10, random_source=fixed_random(0xAA))
        assert frame == b"\x01hi" + b"\xaa" * 6 + b"\x07"

    def test_payload_above_floor_gets_one_byte(self) -> None:
        payload = b"x" * 50
        frame = encode_frame(0x01, payload, 32)

        assert len(frame) == 1 + 50 + 1
        assert frame[-1] == 1

    def test_exact_floor(self) -> None:
        """Payload filling the floor still gets one padding byte."""
        frame = encode_frame(0x01, b"x" * 31, 32)
        assert len(frame) == 33

    @pytest.mark.parametrize("min_len", [0, 1, 2, 32, 100, 256])
    @pytest.mark.parametrize("payload_len", [0, 1, 31, 200, 4000])
    def test_floor_and_recovery(self, min_len: int, payload_len: int) -> None:
        payload = bytes(range(256)) * (payload_len // 256) + bytes(range(payload_len % 256))

        frame = encode_frame(0x17, payload, min_len)
        assert len(frame) >= min_len
        assert len(frame) >= len(payload) + 2

        assert decode_frame(frame) == (0x17, payload)

    @pytest.mark.parametrize("min_len", [-1, 257, 1000])
    def test_rejects_unrepresentable_floor(self, min_len: int) -> None:
        with pytest.raises(ValueError, match="Minimum frame length"):
            encode_frame(0x01, b"hi", min_len)

    def test_rejects_large_tag(self) -> None:
        with pytest.raises(ValueError, match="one byte"):
            encode_frame(0x100, b"hi", 32)

    def test_padding_length(self) -> None:
        assert padding_length(2, 100) == 97
        assert padding_length(0, 256) == 255
        assert padding_length(500, 32) == 1

    def test_largest_floor_fits_count_byte(self) -> None:
        frame = encode_frame(0x01, b"", 256)
        assert len(frame) == 256
        assert frame[-1] == 0xFF

        with pytest.raises(ValueError):
            encode_frame(0x01, b"", 257)


class TestDecodeFrame:
    """Test frame parsing."""

    def test_empty_payload(self) -> None:
        assert decode_frame(b"\x01\x01") == (0x01, b"")

    @pytest.mark.parametrize(
        "data",
        [
            b"",
            b"\x01",
            b"\x01hi\x00",
            b"\x01\x05",
            b"\x01hi\x04",
        ],
    )
    def test_malformed(self, data: bytes) -> None:
        with pytest.raises(MalformedFrameError):
            decode_frame(data)
