"""Tests for message encryption and decryption."""

from unittest import mock

import pytest

from e2egateway import box
from e2egateway.crypto import decrypt_message, encrypt_message
from e2egateway.envelope import CiphertextEnvelope, decode_envelope, encode_envelope
from e2egateway.framing import decode_frame, encode_frame
from e2egateway.keys import derive_keys_from_seed
from e2egateway.messages import (
    BlobId,
    DeliveryReceipt,
    FileMessage,
    ImageMessage,
    ReceiptType,
    TextMessage,
)
from e2egateway.transport import BlobTransport, InMemoryBlobStore
from e2egateway.types import (
    AuthenticationFailedError,
    BlobUploadFailedError,
    InvalidKeyLengthError,
    MalformedFrameError,
)
from .test_vectors import ALICE_SEED_HEX, BOB_SEED_HEX, TEST_MESSAGES, fixed_random


@pytest.fixture
def alice_keys():
    """Alice's key pair."""
    return derive_keys_from_seed(bytes.fromhex(ALICE_SEED_HEX))


@pytest.fixture
def bob_keys():
    """Bob's key pair."""
    return derive_keys_from_seed(bytes.fromhex(BOB_SEED_HEX))


@pytest.fixture
def store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


ALL_KINDS = {
    "text": TextMessage("Hello, Bob!"),
    "image": ImageMessage(data=b"\xff\xd8\xff\xe0 not really a jpeg"),
    "file": FileMessage(data=b"%PDF-1.4", mime_type="application/pdf", filename="report.pdf"),
    "receipt": DeliveryReceipt(ReceiptType.READ, [b"\x01\x02\x03\x04\x05\x06\x07\x08"]),
}


class TestTextMessages:
    """Test text message encryption."""

    def test_hi_scenario(self, alice_keys, bob_keys) -> None:
        """'hi' with a 100 byte floor seals a 100 byte frame."""
        envelope = encrypt_message(TextMessage("hi"), alice_keys, bob_keys.public_key, min_frame_len=100)

        frame = box.open(envelope, alice_keys.public_key, bob_keys.private_key)
        assert len(frame) == 100
        assert frame[:3] == b"\x01hi"
        assert frame[-1] == 97

        result = decrypt_message(envelope, alice_keys.public_key, bob_keys.private_key)
        assert result == TextMessage("hi")

    @pytest.mark.parametrize("message_key,message", TEST_MESSAGES.items())
    def test_message_round_trip(self, alice_keys, bob_keys, message_key: str, message: str) -> None:
        """Each test message encrypts and decrypts correctly."""
        envelope = encrypt_message(TextMessage(message), alice_keys, bob_keys.public_key)

        result = decrypt_message(envelope, alice_keys.public_key, bob_keys.private_key)
        assert result == TextMessage(message), f"Message mismatch for {message_key}"

    def test_full_round_trip_through_bytes(self, alice_keys, bob_keys) -> None:
        """Full round trip: encrypt -> encode -> decode -> decrypt."""
        envelope = encrypt_message(TextMessage("Round trip test!"), alice_keys, bob_keys.public_key)
        decoded = decode_envelope(encode_envelope(envelope))

        result = decrypt_message(decoded, alice_keys.public_key, bob_keys.private_key)
        assert result == TextMessage("Round trip test!")

    def test_nonce_freshness(self, alice_keys, bob_keys) -> None:
        first = encrypt_message(TextMessage("same"), alice_keys, bob_keys.public_key)
        second = encrypt_message(TextMessage("same"), alice_keys, bob_keys.public_key)

        assert first.nonce != second.nonce
        assert first.box != second.box

    def test_deterministic_with_fixed_random(self, alice_keys, bob_keys) -> None:
        first = encrypt_message(TextMessage("same"), alice_keys, bob_keys.public_key, random_source=fixed_random())
        second = encrypt_message(TextMessage("same"), alice_keys, bob_keys.public_key, random_source=fixed_random())
        assert first == second

    def test_frame_floor_hides_length(self, alice_keys, bob_keys) -> None:
        short = encrypt_message(TextMessage("a"), alice_keys, bob_keys.public_key, min_frame_len=64)
        longer = encrypt_message(TextMessage("a" * 40), alice_keys, bob_keys.public_key, min_frame_len=64)
        assert len(short.box) == len(longer.box)

    def test_wrong_recipient_key(self, alice_keys, bob_keys) -> None:
        envelope = encrypt_message(TextMessage("secret"), alice_keys, bob_keys.public_key)
        with pytest.raises(AuthenticationFailedError):
            decrypt_message(envelope, alice_keys.public_key, alice_keys.private_key)

    def test_invalid_key_length(self, alice_keys, bob_keys) -> None:
        with pytest.raises(InvalidKeyLengthError):
            encrypt_message(TextMessage("hi"), alice_keys, bob_keys.public_key[:16])

        envelope = encrypt_message(TextMessage("hi"), alice_keys, bob_keys.public_key)
        with pytest.raises(InvalidKeyLengthError):
            decrypt_message(envelope, alice_keys.public_key, bob_keys.private_key[:16])

    def test_unknown_message_type(self, alice_keys, bob_keys) -> None:
        frame = encode_frame(0x99, b"", 32)
        envelope = box.seal(frame, bob_keys.public_key, alice_keys.private_key)

        with pytest.raises(MalformedFrameError):
            decrypt_message(envelope, alice_keys.public_key, bob_keys.private_key)


class TestAllKinds:
    """Round trip and tamper checks across every message kind."""

    @pytest.mark.parametrize("kind", ALL_KINDS)
    def test_round_trip(self, alice_keys, bob_keys, store, kind: str) -> None:
        message = ALL_KINDS[kind]
        envelope = encrypt_message(message, alice_keys, bob_keys.public_key, transport=store)

        result = decrypt_message(envelope, alice_keys.public_key, bob_keys.private_key, transport=store)
        assert result == message

    @pytest.mark.parametrize("kind", ALL_KINDS)
    def test_tamper_sensitivity(self, alice_keys, bob_keys, store, kind: str) -> None:
        envelope = encrypt_message(ALL_KINDS[kind], alice_keys, bob_keys.public_key, transport=store)

        for i in (0, len(envelope.box) // 2, len(envelope.box) - 1):
            corrupted = bytearray(envelope.box)
            corrupted[i] ^= 0x80
            with pytest.raises(AuthenticationFailedError):
                decrypt_message(
                    CiphertextEnvelope(nonce=envelope.nonce, box=bytes(corrupted)),
                    alice_keys.public_key,
                    bob_keys.private_key,
                    transport=store,
                )

        for i in (0, 12, 23):
            corrupted = bytearray(envelope.nonce)
            corrupted[i] ^= 0x01
            with pytest.raises(AuthenticationFailedError):
                decrypt_message(
                    CiphertextEnvelope(nonce=bytes(corrupted), box=envelope.box),
                    alice_keys.public_key,
                    bob_keys.private_key,
                    transport=store,
                )

        assert store.downloads == 0


class TestAttachments:
    """Test the upload-then-reference flow."""

    def test_one_upload_one_download(self, alice_keys, bob_keys, store) -> None:
        message = ImageMessage(data=b"image bytes")
        envelope = encrypt_message(message, alice_keys, bob_keys.public_key, transport=store)
        assert store.uploads == 1
        assert store.downloads == 0

        result = decrypt_message(envelope, alice_keys.public_key, bob_keys.private_key, transport=store)
        assert store.uploads == 1
        assert store.downloads == 1
        assert result.data == b"image bytes"
        assert result.reference.blob_id in store

    def test_bad_recipient_key_uploads_nothing(self, alice_keys, bob_keys, store) -> None:
        with pytest.raises(InvalidKeyLengthError):
            encrypt_message(
                ImageMessage(data=b"x" * 10),
                alice_keys,
                bob_keys.public_key[:16],
                transport=store,
            )
        assert store.uploads == 0
        assert len(store) == 0

    def test_file_metadata(self, alice_keys, bob_keys, store) -> None:
        message = FileMessage(data=b"col1,col2\n", mime_type="text/csv", filename="data.csv")
        envelope = encrypt_message(message, alice_keys, bob_keys.public_key, transport=store)

        result = decrypt_message(envelope, alice_keys.public_key, bob_keys.private_key, transport=store)
        assert result.mime_type == "text/csv"
        assert result.filename == "data.csv"
        assert result.data == b"col1,col2\n"

    def test_no_download_means_no_plaintext(self, alice_keys, bob_keys) -> None:
        """Decrypting without a transport yields only the blob reference."""
        binary = bytes(range(10))
        blob_id = BlobId(b"abc123".ljust(16, b"\x00"))
        uploaded = []

        transport = mock.Mock(spec=BlobTransport)
        transport.upload_blob.side_effect = lambda data: uploaded.append(data) or blob_id

        envelope = encrypt_message(ImageMessage(data=binary), alice_keys, bob_keys.public_key, transport=transport)
        result = decrypt_message(envelope, alice_keys.public_key, bob_keys.private_key)

        assert result.data is None
        assert result.reference.blob_id == blob_id
        assert binary not in uploaded[0]
        transport.download_blob.assert_not_called()

    def test_blob_double_wrap(self, alice_keys, bob_keys, store) -> None:
        """The key from the outer frame opens the uploaded blob; other keys do not."""
        envelope = encrypt_message(ImageMessage(data=b"payload"), alice_keys, bob_keys.public_key, transport=store)
        reference = decrypt_message(envelope, alice_keys.public_key, bob_keys.private_key).reference

        encrypted = store.download_blob(reference.blob_id)
        assert box.open_symmetric(reference.nonce, encrypted, reference.key) == b"payload"

        with pytest.raises(AuthenticationFailedError):
            box.open_symmetric(reference.nonce, encrypted, box.generate_symmetric_key())

    def test_fresh_blob_key_per_message(self, alice_keys, bob_keys, store) -> None:
        refs = []
        for _ in range(2):
            envelope = encrypt_message(ImageMessage(data=b"same"), alice_keys, bob_keys.public_key, transport=store)
            refs.append(decrypt_message(envelope, alice_keys.public_key, bob_keys.private_key).reference)

        assert refs[0].key != refs[1].key
        assert refs[0].blob_id != refs[1].blob_id

    def test_requires_transport(self, alice_keys, bob_keys) -> None:
        with pytest.raises(ValueError, match="blob transport"):
            encrypt_message(ImageMessage(data=b"x"), alice_keys, bob_keys.public_key)

    def test_upload_failure_seals_nothing(self, alice_keys, bob_keys) -> None:
        transport = mock.Mock(spec=BlobTransport)
        transport.upload_blob.side_effect = OSError("connection refused")

        with mock.patch("e2egateway.box.seal") as seal:
            with pytest.raises(BlobUploadFailedError):
                encrypt_message(ImageMessage(data=b"x"), alice_keys, bob_keys.public_key, transport=transport)
            seal.assert_not_called()

    def test_frame_contains_reference_not_data(self, alice_keys, bob_keys, store) -> None:
        binary = b"A distinctive attachment body"
        envelope = encrypt_message(ImageMessage(data=binary), alice_keys, bob_keys.public_key, transport=store)

        _, payload = decode_frame(box.open(envelope, alice_keys.public_key, bob_keys.private_key))
        assert len(payload) == 72
        assert binary not in payload
