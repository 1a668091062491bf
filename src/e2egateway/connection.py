"""
HTTP connection to the gateway message API.

GatewayConnection implements the collaborator interfaces (blob transport,
message transport, public key directory) on top of a requests Session. It
places no retry policy on any call; every failure is raised to the caller.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests

from .config import GatewayConfig
from .envelope import CiphertextEnvelope
from .keys import public_key_from_hex, validate_identity
from .messages import BlobId
from .transport import BlobTransport, MessageTransport, PublicKeyDirectory
from .types import (
    MAX_TEXT_LENGTH,
    BadCredentialsError,
    BadSenderOrRecipientError,
    BlobFetchFailedError,
    BlobUploadFailedError,
    GatewayApiError,
    GatewayError,
    IdNotFoundError,
    MessageTooLongError,
    NoCreditsError,
    ServerError,
)

logger = logging.getLogger(__name__)


def map_response_code(
    status_code: int,
    bad_request_error: Optional[GatewayApiError] = None,
) -> None:
    """
    Map an HTTP status code to an error if it isn't 200.

    Args:
        status_code: HTTP response status code
        bad_request_error: What a 400 response means for this endpoint

    Raises:
        GatewayApiError: Or one of its subclasses for known status codes
    """
    if status_code == 200:
        return
    if status_code == 400:
        if bad_request_error is not None:
            raise bad_request_error
        raise GatewayApiError(f"Bad response status code: {status_code}")
    if status_code == 401:
        raise BadCredentialsError("API identity or secret incorrect")
    if status_code == 402:
        raise NoCreditsError("No credits remain")
    if status_code == 404:
        raise IdNotFoundError("Not found")
    if status_code == 413:
        raise MessageTooLongError("Message too long")
    if status_code == 500:
        raise ServerError("Temporary internal server error")
    raise GatewayApiError(f"Bad response status code: {status_code}")


class RecipientKind(Enum):
    """How a recipient is addressed in basic mode."""
    ID = "to"
    PHONE = "phone"
    EMAIL = "email"


@dataclass(frozen=True)
class Recipient:
    """A basic mode message recipient."""
    kind: RecipientKind
    value: str

    @classmethod
    def id(cls, identity: str) -> "Recipient":
        """Recipient identity (8 characters)."""
        return cls(RecipientKind.ID, identity)

    @classmethod
    def phone(cls, phone: str) -> "Recipient":
        """Recipient phone number (E.164), without leading +."""
        return cls(RecipientKind.PHONE, phone)

    @classmethod
    def email(cls, email: str) -> "Recipient":
        """Recipient e-mail address."""
        return cls(RecipientKind.EMAIL, email)


class LookupCriterion(Enum):
    """Ways to look up an identity."""
    PHONE = "phone"
    PHONE_HASH = "phone_hash"
    EMAIL = "email"
    EMAIL_HASH = "email_hash"


class GatewayConnection(BlobTransport, MessageTransport, PublicKeyDirectory):
    """
    Client for the gateway REST API.

    Example usage:
        ```python
        config = GatewayConfig.from_env()
        connection = GatewayConnection(config)

        public_key = connection.lookup_pubkey("ECHOECHO")
        envelope = encrypt_message(TextMessage("hi"), keys, public_key)
        message_id = connection.send_e2e("ECHOECHO", envelope)
        ```
    """

    def __init__(self, config: GatewayConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session if session is not None else requests.Session()

    @property
    def identity(self) -> str:
        return self.config.identity

    def _credentials(self) -> dict[str, str]:
        return {"from": self.config.identity, "secret": self.config.secret}

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.config.api_url}{path}"
        logger.debug("%s %s", method, path)
        try:
            return self.session.request(method, url, timeout=self.config.timeout, **kwargs)
        except requests.RequestException as e:
            raise GatewayApiError(f"Request to {path} failed: {e}") from e

    # MARK: - Sending

    def send_simple(self, to: Recipient, text: str) -> str:
        """
        Send a message in basic mode (server-side encryption).

        Returns:
            The message ID assigned by the gateway
        """
        if len(text.encode("utf-8")) > MAX_TEXT_LENGTH:
            raise MessageTooLongError(f"Text exceeds {MAX_TEXT_LENGTH} bytes")

        data = self._credentials()
        data["text"] = text
        data[to.kind.value] = to.value

        response = self._request("POST", "/send_simple", data=data, headers={"Accept": "application/json"})
        map_response_code(response.status_code, BadSenderOrRecipientError("Bad sender or recipient"))
        return response.text.strip()

    def send_e2e(self, to: str, envelope: CiphertextEnvelope, **additional_params: str) -> str:
        """
        Send an end-to-end encrypted message.

        Returns:
            The message ID assigned by the gateway
        """
        validate_identity(to)
        nonce_hex, box_hex = envelope.to_hex()

        data = dict(additional_params)
        data.update(self._credentials())
        data.update({"to": to, "nonce": nonce_hex, "box": box_hex})

        response = self._request("POST", "/send_e2e", data=data, headers={"Accept": "application/json"})
        map_response_code(response.status_code, BadSenderOrRecipientError("Bad sender or recipient"))

        message_id = response.text.strip()
        logger.info("Sent E2E message %s to %s", message_id, to)
        return message_id

    # MARK: - Blobs

    def upload_blob(self, data: bytes) -> BlobId:
        """Upload an encrypted blob and return its ID."""
        try:
            response = self._request(
                "POST",
                "/upload_blob",
                params=self._credentials(),
                files={"blob": ("blob", bytes(data), "application/octet-stream")},
                headers={"Accept": "text/plain"},
            )
            map_response_code(response.status_code, GatewayApiError("Blob is empty or too big"))
            return BlobId.from_str(response.text.strip())
        except GatewayError as e:
            raise BlobUploadFailedError(f"Blob upload failed: {e}") from e

    def download_blob(self, blob_id: BlobId) -> bytes:
        """Download the encrypted bytes of a blob."""
        try:
            response = self._request("GET", f"/blobs/{blob_id}", params=self._credentials())
            map_response_code(response.status_code)
        except GatewayError as e:
            raise BlobFetchFailedError(f"Download of blob {blob_id} failed: {e}") from e
        return response.content

    # MARK: - Lookups

    def lookup_pubkey(self, identity: str) -> bytes:
        """Fetch the public key of an identity."""
        validate_identity(identity)
        response = self._request("GET", f"/pubkeys/{identity}", params=self._credentials())
        map_response_code(response.status_code)
        return public_key_from_hex(response.text)

    def public_key_for(self, identity: str) -> bytes:
        return self.lookup_pubkey(identity)

    def lookup_id(self, criterion: LookupCriterion, value: str) -> str:
        """Look up the identity linked to a phone number, e-mail or hash."""
        response = self._request("GET", f"/lookup/{criterion.value}/{value}", params=self._credentials())
        map_response_code(response.status_code, GatewayApiError(f"Invalid {criterion.value}"))
        return response.text.strip()

    def credits(self) -> int:
        """Remaining credits on the gateway account."""
        response = self._request("GET", "/credits", params=self._credentials())
        map_response_code(response.status_code)
        try:
            return int(response.text.strip())
        except ValueError as e:
            raise GatewayApiError(f"Invalid credits response: {response.text!r}") from e
