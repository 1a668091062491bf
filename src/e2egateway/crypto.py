"""Encryption and decryption of typed gateway messages."""

import logging
from dataclasses import replace
from typing import Optional

import nacl.utils

from . import box
from .blob import AttachmentSend, fetch_blob
from .buffers import SecretBuffer
from .envelope import CiphertextEnvelope
from .framing import decode_frame, encode_frame
from .keys import KeyPair, check_key_length
from .messages import TypedMessage, decode_payload, is_attachment
from .transport import BlobTransport
from .types import DEFAULT_MIN_FRAME_LENGTH, PUBLIC_KEY_SIZE, RandomSource

logger = logging.getLogger(__name__)


def encrypt_message(
    message: TypedMessage,
    sender_keys: KeyPair,
    recipient_public_key: bytes,
    min_frame_len: int = DEFAULT_MIN_FRAME_LENGTH,
    transport: Optional[BlobTransport] = None,
    random_source: RandomSource = nacl.utils.random,
) -> CiphertextEnvelope:
    """
    Encrypt a message for a recipient.

    Image and file messages are uploaded first (exactly one upload_blob call);
    the frame is only sealed once the upload succeeded.

    Args:
        message: Message to encrypt
        sender_keys: Sender's key pair
        recipient_public_key: Recipient's public key (32 bytes)
        min_frame_len: Minimum plaintext frame length
        transport: Blob transport, required for attachments
        random_source: Source of nonces, padding and blob keys

    Returns:
        CiphertextEnvelope containing the sealed frame

    Raises:
        InvalidKeyLengthError: If the recipient key is not 32 bytes (before any upload)
    """
    check_key_length(recipient_public_key, PUBLIC_KEY_SIZE, "Recipient public key")

    if is_attachment(message):
        if transport is None:
            raise ValueError(f"{type(message).__name__} requires a blob transport")
        send = AttachmentSend(message, random_source)
        send.encrypt_blob()
        send.upload(transport)
        send.build_frame(min_frame_len)
        return send.seal(recipient_public_key, sender_keys.private_key)

    frame = encode_frame(message.message_type, message.encode_payload(), min_frame_len, random_source)
    with SecretBuffer(frame) as buf:
        return box.seal(bytes(buf), recipient_public_key, sender_keys.private_key, random_source)


def decrypt_message(
    envelope: CiphertextEnvelope,
    sender_public_key: bytes,
    recipient_private_key: bytes,
    transport: Optional[BlobTransport] = None,
) -> TypedMessage:
    """
    Decrypt a message from an envelope.

    With a transport, attachments are downloaded and decrypted (exactly one
    download_blob call) and returned with their data. Without one, only the
    blob reference is returned and data is None.

    Args:
        envelope: The sealed envelope
        sender_public_key: Sender's public key (32 bytes)
        recipient_private_key: Our private key (32 bytes)
        transport: Blob transport for resolving attachments

    Returns:
        The decoded message

    Raises:
        AuthenticationFailedError: If the envelope was modified or the keys are wrong
        MalformedFrameError: If the frame is invalid
        MalformedPayloadError: If the message fields are invalid
    """
    with SecretBuffer(box.open(envelope, sender_public_key, recipient_private_key)) as buf:
        type_tag, payload = decode_frame(bytes(buf))
    message = decode_payload(type_tag, payload)

    if is_attachment(message) and transport is not None:
        data = fetch_blob(message.reference, transport)
        message = replace(message, data=data)
    elif is_attachment(message):
        logger.debug("Leaving blob %s unresolved", message.reference.blob_id)

    return message
