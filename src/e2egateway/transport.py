"""
Collaborator interfaces.

The E2E layer never talks to the network itself. Blob upload/download,
message delivery and public key lookups go through these abstract base
classes; GatewayConnection implements all three against the HTTP API.
"""

import secrets
from abc import ABC, abstractmethod

from .envelope import CiphertextEnvelope
from .messages import BlobId
from .types import BLOB_ID_SIZE, BlobFetchFailedError


class BlobTransport(ABC):
    """Abstract base class for storing encrypted blobs."""

    @abstractmethod
    def upload_blob(self, data: bytes) -> BlobId:
        """Upload encrypted blob bytes and return the assigned blob ID."""
        pass

    @abstractmethod
    def download_blob(self, blob_id: BlobId) -> bytes:
        """Download the encrypted bytes of a blob."""
        pass


class MessageTransport(ABC):
    """Abstract base class for delivering sealed messages."""

    @abstractmethod
    def send_e2e(self, to: str, envelope: CiphertextEnvelope) -> str:
        """Deliver an envelope to an identity and return the message ID."""
        pass


class PublicKeyDirectory(ABC):
    """Abstract base class for looking up public keys by identity."""

    @abstractmethod
    def public_key_for(self, identity: str) -> bytes:
        """Return the 32-byte public key of an identity."""
        pass


class InMemoryBlobStore(BlobTransport):
    """Blob storage held in a dict (for local use and testing)."""

    def __init__(self) -> None:
        self._blobs: dict[BlobId, bytes] = {}
        self.uploads = 0
        self.downloads = 0

    def upload_blob(self, data: bytes) -> BlobId:
        self.uploads += 1
        blob_id = BlobId(secrets.token_bytes(BLOB_ID_SIZE))
        self._blobs[blob_id] = bytes(data)
        return blob_id

    def download_blob(self, blob_id: BlobId) -> bytes:
        self.downloads += 1
        try:
            return self._blobs[blob_id]
        except KeyError:
            raise BlobFetchFailedError(f"Blob not found: {blob_id}") from None

    def __contains__(self, blob_id: BlobId) -> bool:
        return blob_id in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)
