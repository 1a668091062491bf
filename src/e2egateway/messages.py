"""
Message types and their payload encodings.

Each message kind is a standalone dataclass owning its payload encoding. The
set of kinds is closed: MESSAGE_KINDS maps every MessageType tag to the class
that decodes it.
"""

import struct
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import List, Optional, Union

from .types import (
    BLOB_ID_SIZE,
    MAX_TEXT_LENGTH,
    MESSAGE_ID_SIZE,
    NONCE_SIZE,
    SYMMETRIC_KEY_SIZE,
    BadBlobIdError,
    MalformedFrameError,
    MalformedPayloadError,
    MessageTooLongError,
)


class MessageType(IntEnum):
    """Message type tag, the first byte of every frame."""
    TEXT = 0x01
    IMAGE = 0x02
    FILE = 0x17
    DELIVERY_RECEIPT = 0x80


class ReceiptType(IntEnum):
    """Kind of delivery receipt."""
    RECEIVED = 0x01
    READ = 0x02
    USER_ACK = 0x03
    USER_DECLINE = 0x04


@dataclass(frozen=True)
class BlobId:
    """Server-assigned blob identifier (16 bytes, 32 hex characters)."""
    value: bytes

    def __post_init__(self) -> None:
        if len(self.value) != BLOB_ID_SIZE:
            raise BadBlobIdError(f"Blob ID must be {BLOB_ID_SIZE} bytes, got {len(self.value)}")

    @classmethod
    def from_str(cls, blob_id: str) -> "BlobId":
        """Parse a 32 character hexadecimal blob ID (case-insensitive)."""
        if len(blob_id) != 2 * BLOB_ID_SIZE:
            raise BadBlobIdError(f"Invalid blob ID: {blob_id!r}")
        try:
            value = bytes.fromhex(blob_id)
        except ValueError:
            raise BadBlobIdError(f"Invalid blob ID: {blob_id!r}") from None
        return cls(value)

    def __str__(self) -> str:
        return self.value.hex()


@dataclass(frozen=True)
class BlobReference:
    """Everything needed to fetch and decrypt an uploaded blob."""
    key: bytes  # 32 bytes
    nonce: bytes  # 24 bytes
    blob_id: Optional[BlobId] = None

    def __repr__(self) -> str:
        return f"BlobReference(blob_id={self.blob_id}, key=<redacted>)"

    def with_blob_id(self, blob_id: BlobId) -> "BlobReference":
        """Returns a copy that points at an uploaded blob."""
        return replace(self, blob_id=blob_id)

    def encode(self) -> bytes:
        if self.blob_id is None:
            raise ValueError("Blob has not been uploaded yet")
        return self.blob_id.value + self.key + self.nonce

    @classmethod
    def decode(cls, data: bytes) -> "BlobReference":
        if len(data) != BLOB_REFERENCE_SIZE:
            raise MalformedPayloadError(
                f"Blob reference must be {BLOB_REFERENCE_SIZE} bytes, got {len(data)}"
            )
        key_end = BLOB_ID_SIZE + SYMMETRIC_KEY_SIZE
        return cls(
            blob_id=BlobId(bytes(data[:BLOB_ID_SIZE])),
            key=bytes(data[BLOB_ID_SIZE:key_end]),
            nonce=bytes(data[key_end:]),
        )


BLOB_REFERENCE_SIZE = BLOB_ID_SIZE + SYMMETRIC_KEY_SIZE + NONCE_SIZE


@dataclass
class TextMessage:
    """Plain text message."""
    text: str

    message_type = MessageType.TEXT
    min_payload_size = 0

    def encode_payload(self) -> bytes:
        data = self.text.encode("utf-8")
        if len(data) > MAX_TEXT_LENGTH:
            raise MessageTooLongError(
                f"Text is {len(data)} bytes (max {MAX_TEXT_LENGTH})"
            )
        return data

    @classmethod
    def decode_payload(cls, data: bytes) -> "TextMessage":
        try:
            return cls(text=data.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise MalformedPayloadError(f"Text is not valid UTF-8: {e}") from e


@dataclass
class ImageMessage:
    """Image attachment. Only the blob reference travels in the frame."""
    data: Optional[bytes] = None
    reference: Optional[BlobReference] = field(default=None, compare=False)

    message_type = MessageType.IMAGE
    min_payload_size = BLOB_REFERENCE_SIZE

    def encode_payload(self) -> bytes:
        if self.reference is None:
            raise ValueError("Image must be uploaded before it can be framed")
        return self.reference.encode()

    @classmethod
    def decode_payload(cls, data: bytes) -> "ImageMessage":
        return cls(reference=BlobReference.decode(data))


@dataclass
class FileMessage:
    """File attachment with its mime type and original filename."""
    data: Optional[bytes] = None
    mime_type: str = "application/octet-stream"
    filename: str = ""
    reference: Optional[BlobReference] = field(default=None, compare=False)

    message_type = MessageType.FILE
    min_payload_size = BLOB_REFERENCE_SIZE + 4

    def encode_payload(self) -> bytes:
        if self.reference is None:
            raise ValueError("File must be uploaded before it can be framed")
        return (
            self.reference.encode()
            + _pack_string(self.mime_type, "Mime type")
            + _pack_string(self.filename, "Filename")
        )

    @classmethod
    def decode_payload(cls, data: bytes) -> "FileMessage":
        if len(data) < cls.min_payload_size:
            raise MalformedPayloadError(f"File payload too short: {len(data)} bytes")

        reference = BlobReference.decode(data[:BLOB_REFERENCE_SIZE])
        offset = BLOB_REFERENCE_SIZE
        mime_type, offset = _unpack_string(data, offset)
        filename, offset = _unpack_string(data, offset)

        if offset != len(data):
            raise MalformedPayloadError(f"{len(data) - offset} trailing bytes in file payload")

        return cls(mime_type=mime_type, filename=filename, reference=reference)


@dataclass
class DeliveryReceipt:
    """Receipt for one or more previously received messages."""
    receipt_type: ReceiptType
    message_ids: List[bytes]  # 8 bytes each

    message_type = MessageType.DELIVERY_RECEIPT
    min_payload_size = 1 + MESSAGE_ID_SIZE

    def encode_payload(self) -> bytes:
        if not self.message_ids:
            raise ValueError("Delivery receipt needs at least one message ID")
        for message_id in self.message_ids:
            if len(message_id) != MESSAGE_ID_SIZE:
                raise ValueError(
                    f"Message ID must be {MESSAGE_ID_SIZE} bytes, got {len(message_id)}"
                )
        return bytes([self.receipt_type]) + b"".join(self.message_ids)

    @classmethod
    def decode_payload(cls, data: bytes) -> "DeliveryReceipt":
        if len(data) < cls.min_payload_size:
            raise MalformedPayloadError(f"Delivery receipt too short: {len(data)} bytes")

        ids = data[1:]
        if len(ids) % MESSAGE_ID_SIZE != 0:
            raise MalformedPayloadError(
                f"Message ID list length {len(ids)} is not a multiple of {MESSAGE_ID_SIZE}"
            )
        try:
            receipt_type = ReceiptType(data[0])
        except ValueError:
            raise MalformedPayloadError(f"Unknown receipt type: {data[0]}") from None

        return cls(
            receipt_type=receipt_type,
            message_ids=[bytes(ids[i : i + MESSAGE_ID_SIZE]) for i in range(0, len(ids), MESSAGE_ID_SIZE)],
        )


TypedMessage = Union[TextMessage, ImageMessage, FileMessage, DeliveryReceipt]

MESSAGE_KINDS = {
    MessageType.TEXT: TextMessage,
    MessageType.IMAGE: ImageMessage,
    MessageType.FILE: FileMessage,
    MessageType.DELIVERY_RECEIPT: DeliveryReceipt,
}

ATTACHMENT_TYPES = (MessageType.IMAGE, MessageType.FILE)


def is_attachment(message: TypedMessage) -> bool:
    """Whether the message carries its content in a separate blob."""
    return message.message_type in ATTACHMENT_TYPES


def decode_payload(type_tag: int, payload: bytes) -> TypedMessage:
    """
    Decode a payload for the given type tag.

    Raises:
        MalformedFrameError: If the tag is unknown or the payload is shorter
            than the kind's minimum size
        MalformedPayloadError: If the payload fields are invalid
    """
    try:
        kind = MESSAGE_KINDS[MessageType(type_tag)]
    except ValueError:
        raise MalformedFrameError(f"Unknown message type: 0x{type_tag:02x}") from None

    if len(payload) < kind.min_payload_size:
        raise MalformedFrameError(
            f"Payload too short for {kind.__name__}: {len(payload)} bytes "
            f"(minimum {kind.min_payload_size})"
        )

    return kind.decode_payload(payload)


def _pack_string(value: str, name: str) -> bytes:
    data = value.encode("utf-8")
    if len(data) > 0xFFFF:
        raise ValueError(f"{name} too long: {len(data)} bytes")
    return struct.pack(">H", len(data)) + data


def _unpack_string(data: bytes, offset: int) -> tuple[str, int]:
    if offset + 2 > len(data):
        raise MalformedPayloadError("Truncated length prefix")
    (length,) = struct.unpack_from(">H", data, offset)
    offset += 2
    if offset + length > len(data):
        raise MalformedPayloadError(
            f"String of {length} bytes exceeds remaining {len(data) - offset} bytes"
        )
    try:
        value = bytes(data[offset : offset + length]).decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPayloadError(f"String is not valid UTF-8: {e}") from e
    return value, offset + length
