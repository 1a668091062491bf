"""
Blob coordination for attachment messages.

Attachments are encrypted with a fresh symmetric key and uploaded separately;
the message frame only carries the blob ID, key and nonce, and is itself
sealed with the sender/recipient key pair.
"""

import logging
from dataclasses import replace
from enum import Enum
from typing import Optional, Tuple, Union

import nacl.utils

from . import box
from .buffers import SecretBuffer
from .envelope import CiphertextEnvelope
from .framing import encode_frame
from .messages import BlobId, BlobReference, FileMessage, ImageMessage
from .transport import BlobTransport
from .types import (
    DEFAULT_MIN_FRAME_LENGTH,
    BlobFetchFailedError,
    BlobUploadFailedError,
    InvalidStateError,
    RandomSource,
)

logger = logging.getLogger(__name__)


def encrypt_and_prepare_blob(
    binary: bytes,
    random_source: RandomSource = nacl.utils.random,
) -> Tuple[bytes, BlobReference]:
    """
    Encrypt an attachment with a fresh symmetric key.

    Args:
        binary: Plain attachment bytes
        random_source: Source of the key and nonce

    Returns:
        Tuple of (encrypted bytes to upload, reference without a blob ID)
    """
    key = box.generate_symmetric_key(random_source)
    nonce, encrypted = box.seal_symmetric(binary, key, random_source)
    return encrypted, BlobReference(key=key, nonce=nonce)


def resolve_blob_reference(reference: BlobReference, downloaded: Optional[bytes]) -> bytes:
    """
    Decrypt downloaded blob bytes with the key from the reference.

    Raises:
        BlobFetchFailedError: If nothing was downloaded for the blob
        AuthenticationFailedError: If the blob was modified or the key is wrong
    """
    if downloaded is None:
        raise BlobFetchFailedError(f"No data for blob {reference.blob_id}")
    return box.open_symmetric(reference.nonce, downloaded, reference.key)


def fetch_blob(reference: BlobReference, transport: BlobTransport) -> bytes:
    """Download a referenced blob and decrypt it."""
    if reference.blob_id is None:
        raise BlobFetchFailedError("Blob reference has no blob ID")

    logger.debug("Downloading blob %s", reference.blob_id)
    try:
        downloaded = transport.download_blob(reference.blob_id)
    except BlobFetchFailedError:
        raise
    except Exception as e:
        raise BlobFetchFailedError(f"Download of blob {reference.blob_id} failed: {e}") from e

    return resolve_blob_reference(reference, downloaded)


class SendState(Enum):
    """Progress of an outbound attachment message."""
    COMPOSED = "composed"
    BLOB_ENCRYPTED = "blob_encrypted"
    BLOB_UPLOADED = "blob_uploaded"
    FRAME_BUILT = "frame_built"
    SEALED = "sealed"
    SENT = "sent"
    ABORTED = "aborted"


class AttachmentSend:
    """
    One outbound attachment message, driven step by step.

    The steps must run in order:
        COMPOSED -> BLOB_ENCRYPTED -> BLOB_UPLOADED -> FRAME_BUILT -> SEALED -> SENT

    A failing step moves the send to ABORTED and re-raises; an aborted send
    cannot be resumed. The frame is only built once the upload succeeded, so a
    sealed message never references a missing blob.

    Example usage:
        ```python
        send = AttachmentSend(ImageMessage(data=jpeg))
        send.encrypt_blob()
        send.upload(transport)
        send.build_frame(min_frame_len=32)
        envelope = send.seal(recipient_pk, sender_sk)
        connection.send_e2e("ECHOECHO", envelope)
        send.mark_sent()
        ```
    """

    def __init__(
        self,
        message: Union[ImageMessage, FileMessage],
        random_source: RandomSource = nacl.utils.random,
    ) -> None:
        if message.data is None:
            raise ValueError("Attachment message has no data")
        self.message = message
        self.state = SendState.COMPOSED
        self.blob_id: Optional[BlobId] = None
        self.envelope: Optional[CiphertextEnvelope] = None
        self._random_source = random_source
        self._encrypted: Optional[bytes] = None
        self._reference: Optional[BlobReference] = None
        self._frame: Optional[SecretBuffer] = None

    @property
    def reference(self) -> Optional[BlobReference]:
        """The blob reference, once the blob has been encrypted."""
        return self._reference

    def _require(self, expected: SendState, target: SendState) -> None:
        if self.state != expected:
            raise InvalidStateError(
                f"Cannot move to {target.value} from {self.state.value} (expected {expected.value})"
            )

    def _advance(self, expected: SendState, target: SendState) -> None:
        self._require(expected, target)
        logger.debug("Attachment send %s -> %s", self.state.value, target.value)
        self.state = target

    def abort(self) -> None:
        """Abandon the send; any built frame is wiped."""
        if self.state == SendState.SENT:
            raise InvalidStateError("Message has already been sent")
        if self._frame is not None:
            self._frame.wipe()
            self._frame = None
        self._encrypted = None
        if self.state != SendState.ABORTED:
            logger.info("Attachment send aborted in state %s", self.state.value)
        self.state = SendState.ABORTED

    def encrypt_blob(self) -> bytes:
        """Encrypt the attachment data. Returns the bytes to upload."""
        self._require(SendState.COMPOSED, SendState.BLOB_ENCRYPTED)
        try:
            encrypted, reference = encrypt_and_prepare_blob(self.message.data, self._random_source)
        except Exception:
            self.abort()
            raise
        self._encrypted = encrypted
        self._reference = reference
        self._advance(SendState.COMPOSED, SendState.BLOB_ENCRYPTED)
        return encrypted

    def upload(self, transport: BlobTransport) -> BlobId:
        """Upload the encrypted blob. Returns the assigned blob ID."""
        self._require(SendState.BLOB_ENCRYPTED, SendState.BLOB_UPLOADED)
        try:
            blob_id = transport.upload_blob(self._encrypted)
        except BlobUploadFailedError:
            self.abort()
            raise
        except Exception as e:
            self.abort()
            raise BlobUploadFailedError(f"Blob upload failed: {e}") from e

        self.blob_id = blob_id
        self._reference = self._reference.with_blob_id(blob_id)
        self._encrypted = None
        self._advance(SendState.BLOB_ENCRYPTED, SendState.BLOB_UPLOADED)
        logger.info("Uploaded blob %s", blob_id)
        return blob_id

    def build_frame(self, min_frame_len: int = DEFAULT_MIN_FRAME_LENGTH) -> int:
        """Frame the message with its blob reference. Returns the frame length."""
        self._require(SendState.BLOB_UPLOADED, SendState.FRAME_BUILT)
        try:
            self.message = replace(self.message, reference=self._reference)
            frame = encode_frame(
                self.message.message_type,
                self.message.encode_payload(),
                min_frame_len,
                self._random_source,
            )
        except Exception:
            self.abort()
            raise
        self._frame = SecretBuffer(frame)
        self._advance(SendState.BLOB_UPLOADED, SendState.FRAME_BUILT)
        return len(self._frame)

    def seal(self, recipient_public_key: bytes, sender_private_key: bytes) -> CiphertextEnvelope:
        """Seal the frame for the recipient. The plaintext frame is wiped afterwards."""
        self._require(SendState.FRAME_BUILT, SendState.SEALED)
        try:
            with self._frame as frame:
                envelope = box.seal(bytes(frame), recipient_public_key, sender_private_key, self._random_source)
        except Exception:
            self.abort()
            raise
        self._frame = None
        self.envelope = envelope
        self._advance(SendState.FRAME_BUILT, SendState.SEALED)
        return envelope

    def mark_sent(self) -> None:
        """Record that the sealed envelope was handed to the transport."""
        self._advance(SendState.SEALED, SendState.SENT)
