"""Type definitions and constants for the gateway E2E layer."""

from typing import Callable


# Size constants
PUBLIC_KEY_SIZE = 32
PRIVATE_KEY_SIZE = 32
SYMMETRIC_KEY_SIZE = 32
NONCE_SIZE = 24
MAC_SIZE = 16
BLOB_ID_SIZE = 16
MESSAGE_ID_SIZE = 8
IDENTITY_LENGTH = 8

# Frame constants
DEFAULT_MIN_FRAME_LENGTH = 32
MAX_PADDING_LENGTH = 255
MAX_MIN_FRAME_LENGTH = MAX_PADDING_LENGTH + 1

# Gateway constants
MAX_TEXT_LENGTH = 3500
DEFAULT_API_URL = "https://msgapi.threema.ch"

# Key derivation constants
KEY_DERIVATION_SALT = b"E2EGateway-v1-encryption"
KEY_DERIVATION_INFO = b"x25519-key"

# A source of cryptographically secure random bytes: n -> n random bytes
RandomSource = Callable[[int], bytes]


# Exception types
class GatewayError(Exception):
    """Base exception for gateway errors."""
    pass


class InvalidKeyLengthError(GatewayError):
    """Key has the wrong length."""

    def __init__(self, name: str, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"{name} must be {expected} bytes, got {actual}")


class InvalidNonceLengthError(GatewayError):
    """Nonce has the wrong length."""

    def __init__(self, actual: int) -> None:
        self.actual = actual
        super().__init__(f"Nonce must be {NONCE_SIZE} bytes, got {actual}")


class MalformedFrameError(GatewayError):
    """Plaintext frame could not be parsed."""
    pass


class MalformedPayloadError(GatewayError):
    """Message payload could not be parsed."""
    pass


class AuthenticationFailedError(GatewayError):
    """Decryption failed (tampered data or wrong key)."""

    def __init__(self) -> None:
        super().__init__("Authentication failed")


class EncryptionError(GatewayError):
    """Encryption failed."""
    pass


class BlobFetchFailedError(GatewayError):
    """Blob could not be downloaded."""
    pass


class BlobUploadFailedError(GatewayError):
    """Blob could not be uploaded."""
    pass


class BadBlobIdError(GatewayError):
    """Invalid blob ID format."""
    pass


class InvalidIdentityError(GatewayError):
    """Invalid identity format."""

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"Invalid identity: {identity!r}")


class InvalidStateError(GatewayError):
    """Attachment send step called out of order."""
    pass


class MessageTooLongError(GatewayError):
    """Message exceeds the maximum size."""
    pass


class GatewayApiError(GatewayError):
    """Gateway API returned an error."""
    pass


class BadSenderOrRecipientError(GatewayApiError):
    """Invalid sender or recipient."""
    pass


class BadCredentialsError(GatewayApiError):
    """API identity or secret incorrect."""
    pass


class NoCreditsError(GatewayApiError):
    """No credits remain on the gateway account."""
    pass


class IdNotFoundError(GatewayApiError):
    """Identity or blob not found."""
    pass


class ServerError(GatewayApiError):
    """Temporary internal server error."""
    pass
