"""
Gateway client for sending and receiving end-to-end encrypted messages.

E2EGateway ties together key lookup, message encryption and delivery for a
single gateway identity.
"""

import logging
from typing import List, Optional

from .config import GatewayConfig
from .connection import GatewayConnection
from .crypto import decrypt_message, encrypt_message
from .envelope import CiphertextEnvelope
from .keys import KeyPair
from .messages import (
    DeliveryReceipt,
    FileMessage,
    ImageMessage,
    ReceiptType,
    TextMessage,
    TypedMessage,
)
from .models import IncomingMessage, SendResult
from .storage import PublicKeyCache

logger = logging.getLogger(__name__)


class E2EGateway:
    """
    High-level client for end-to-end encrypted gateway messaging.

    Example usage:
        ```python
        gateway = E2EGateway(GatewayConfig.from_env(), keys)

        # Send a message
        result = gateway.send_text("ECHOECHO", "Hello!")

        # Handle an incoming message callback
        incoming = gateway.receive(form["from"], form["nonce"], form["box"])
        print(incoming.message)
        ```
    """

    def __init__(
        self,
        config: GatewayConfig,
        keys: KeyPair,
        connection: Optional[GatewayConnection] = None,
        public_key_cache: Optional[PublicKeyCache] = None,
    ) -> None:
        """
        Initialize the gateway client.

        Args:
            config: Gateway identity and API configuration.
            keys: The identity's key pair.
            connection: Connection to the gateway API (default: built from config).
            public_key_cache: Key directory used for lookups (default: a 24h cache
                in front of the connection).
        """
        self.config = config
        self.keys = keys
        self.connection = connection if connection is not None else GatewayConnection(config)
        if public_key_cache is None:
            public_key_cache = PublicKeyCache(self.connection)
        self.public_key_cache = public_key_cache

    @property
    def identity(self) -> str:
        return self.config.identity

    def public_key_for(self, identity: str) -> bytes:
        """Look up an identity's public key, consulting the cache first."""
        return self.public_key_cache.public_key_for(identity)

    # MARK: - Sending

    def send(self, to: str, message: TypedMessage) -> SendResult:
        """
        Encrypt and send a message.

        Attachments are uploaded before the message is sealed; if the upload
        fails nothing is sent.
        """
        recipient_key = self.public_key_for(to)
        envelope = encrypt_message(
            message,
            self.keys,
            recipient_key,
            min_frame_len=self.config.min_frame_len,
            transport=self.connection,
        )
        message_id = self.connection.send_e2e(to, envelope)
        return SendResult(message_id=message_id, recipient=to, message=message)

    def send_text(self, to: str, text: str) -> SendResult:
        """Send a text message."""
        return self.send(to, TextMessage(text))

    def send_image(self, to: str, data: bytes) -> SendResult:
        """Send an image."""
        return self.send(to, ImageMessage(data=data))

    def send_file(
        self,
        to: str,
        data: bytes,
        mime_type: str = "application/octet-stream",
        filename: str = "",
    ) -> SendResult:
        """Send a file."""
        return self.send(to, FileMessage(data=data, mime_type=mime_type, filename=filename))

    def send_delivery_receipt(
        self,
        to: str,
        receipt_type: ReceiptType,
        message_ids: List[bytes],
    ) -> SendResult:
        """Acknowledge one or more received messages."""
        return self.send(to, DeliveryReceipt(receipt_type=receipt_type, message_ids=list(message_ids)))

    # MARK: - Receiving

    def receive(
        self,
        sender: str,
        nonce_hex: str,
        box_hex: str,
        message_id: Optional[str] = None,
        resolve_blobs: bool = True,
    ) -> IncomingMessage:
        """
        Decrypt an incoming message as delivered to the callback URL.

        Args:
            sender: Sender identity.
            nonce_hex: Hex encoded nonce.
            box_hex: Hex encoded box.
            message_id: Message ID assigned by the gateway.
            resolve_blobs: Download attachment data (one download per attachment).

        Returns:
            The decrypted message.
        """
        envelope = CiphertextEnvelope.from_hex(nonce_hex, box_hex)
        message = decrypt_message(
            envelope,
            self.public_key_for(sender),
            self.keys.private_key,
            transport=self.connection if resolve_blobs else None,
        )
        logger.info("Received %s from %s", type(message).__name__, sender)
        return IncomingMessage(sender=sender, message=message, message_id=message_id)
