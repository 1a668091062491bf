"""
e2egateway - End-to-end encrypted messaging through an HTTP gateway

Frames typed messages (text, image, file, delivery receipt), seals them with
NaCl crypto_box (X25519 + XSalsa20-Poly1305) and coordinates attachment
blobs encrypted with crypto_secretbox.
"""

from .keys import (
    KeyPair,
    generate_keypair,
    keypair_from_private_key,
    derive_keys_from_seed,
    public_key_from_hex,
    validate_identity,
)
from .buffers import SecretBuffer
from .framing import encode_frame, decode_frame
from .messages import (
    MessageType,
    ReceiptType,
    BlobId,
    BlobReference,
    TextMessage,
    ImageMessage,
    FileMessage,
    DeliveryReceipt,
    TypedMessage,
)
from .envelope import CiphertextEnvelope, encode_envelope, decode_envelope
from . import box
from .blob import (
    encrypt_and_prepare_blob,
    resolve_blob_reference,
    fetch_blob,
    SendState,
    AttachmentSend,
)
from .transport import (
    BlobTransport,
    MessageTransport,
    PublicKeyDirectory,
    InMemoryBlobStore,
)
from .crypto import encrypt_message, decrypt_message
from .config import GatewayConfig
from .connection import (
    GatewayConnection,
    Recipient,
    RecipientKind,
    LookupCriterion,
    map_response_code,
)
from .storage import PublicKeyCache
from .models import SendResult, IncomingMessage
from .client import E2EGateway
from .types import (
    DEFAULT_MIN_FRAME_LENGTH,
    NONCE_SIZE,
    PUBLIC_KEY_SIZE,
    SYMMETRIC_KEY_SIZE,
    GatewayError,
    InvalidKeyLengthError,
    InvalidNonceLengthError,
    MalformedFrameError,
    MalformedPayloadError,
    AuthenticationFailedError,
    EncryptionError,
    BlobFetchFailedError,
    BlobUploadFailedError,
    BadBlobIdError,
    InvalidIdentityError,
    InvalidStateError,
    MessageTooLongError,
    GatewayApiError,
    BadSenderOrRecipientError,
    BadCredentialsError,
    NoCreditsError,
    IdNotFoundError,
    ServerError,
)

__version__ = "0.1.0"

__all__ = [
    # Keys
    "KeyPair",
    "generate_keypair",
    "keypair_from_private_key",
    "derive_keys_from_seed",
    "public_key_from_hex",
    "validate_identity",
    "SecretBuffer",
    # Framing
    "encode_frame",
    "decode_frame",
    # Messages
    "MessageType",
    "ReceiptType",
    "BlobId",
    "BlobReference",
    "TextMessage",
    "ImageMessage",
    "FileMessage",
    "DeliveryReceipt",
    "TypedMessage",
    # Envelope
    "CiphertextEnvelope",
    "encode_envelope",
    "decode_envelope",
    # Box
    "box",
    # Blobs
    "encrypt_and_prepare_blob",
    "resolve_blob_reference",
    "fetch_blob",
    "SendState",
    "AttachmentSend",
    # Transport
    "BlobTransport",
    "MessageTransport",
    "PublicKeyDirectory",
    "InMemoryBlobStore",
    # Crypto
    "encrypt_message",
    "decrypt_message",
    # Config
    "GatewayConfig",
    # Connection
    "GatewayConnection",
    "Recipient",
    "RecipientKind",
    "LookupCriterion",
    "map_response_code",
    # Storage
    "PublicKeyCache",
    # Models
    "SendResult",
    "IncomingMessage",
    # Client
    "E2EGateway",
    # Constants
    "DEFAULT_MIN_FRAME_LENGTH",
    "NONCE_SIZE",
    "PUBLIC_KEY_SIZE",
    "SYMMETRIC_KEY_SIZE",
    # Errors
    "GatewayError",
    "InvalidKeyLengthError",
    "InvalidNonceLengthError",
    "MalformedFrameError",
    "MalformedPayloadError",
    "AuthenticationFailedError",
    "EncryptionError",
    "BlobFetchFailedError",
    "BlobUploadFailedError",
    "BadBlobIdError",
    "InvalidIdentityError",
    "InvalidStateError",
    "MessageTooLongError",
    "GatewayApiError",
    "BadSenderOrRecipientError",
    "BadCredentialsError",
    "NoCreditsError",
    "IdNotFoundError",
    "ServerError",
]
