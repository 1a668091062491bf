"""
Cached public key lookups.

PublicKeyCache is itself a PublicKeyDirectory. It answers from memory while
an entry is fresh and falls through to the wrapped directory otherwise, so
repeated sends to the same identity cost one lookup per TTL.
"""

import logging
import time
from typing import Callable, Dict, NamedTuple, Optional

from .keys import check_key_length, validate_identity
from .transport import PublicKeyDirectory
from .types import PUBLIC_KEY_SIZE

logger = logging.getLogger(__name__)

# 24 hours, in seconds
DEFAULT_TTL = 24 * 60 * 60.0


class _Entry(NamedTuple):
    key: bytes
    expires_at: Optional[float]  # None for pinned keys


class PublicKeyCache(PublicKeyDirectory):
    """
    Caching wrapper around a public key directory.

    Example usage:
        ```python
        cache = PublicKeyCache(GatewayConnection(config), ttl=3600)
        cache.pin("ECHOECHO", verified_key)

        key = cache.public_key_for("ECHOECHO")   # never hits the network
        key = cache.public_key_for("BOBBOB42")   # looked up once, then cached
        ```
    """

    def __init__(
        self,
        directory: PublicKeyDirectory,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            directory: Where to look up identities that are not cached.
            ttl: Seconds a looked up key stays valid.
            clock: Monotonic time source in seconds.
        """
        if ttl < 0:
            raise ValueError(f"TTL must not be negative, got {ttl}")
        self.directory = directory
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}

    def public_key_for(self, identity: str) -> bytes:
        """
        Return the public key of an identity.

        Raises:
            InvalidIdentityError: If the identity is malformed (nothing is looked up)
            InvalidKeyLengthError: If the directory returns a key of the wrong size
        """
        validate_identity(identity)

        entry = self._entries.get(identity)
        if entry is not None and not self._expired(entry):
            return entry.key

        key = check_key_length(self.directory.public_key_for(identity), PUBLIC_KEY_SIZE, "Public key")
        self._entries[identity] = _Entry(key, self._clock() + self.ttl)
        logger.debug("Cached public key of %s", identity)
        return key

    def pin(self, identity: str, public_key: bytes) -> None:
        """Store a key verified out of band. Pinned keys do not expire."""
        validate_identity(identity)
        self._entries[identity] = _Entry(check_key_length(public_key, PUBLIC_KEY_SIZE, "Public key"), None)

    def invalidate(self, identity: str) -> None:
        """Forget an identity so the next lookup goes to the directory."""
        self._entries.pop(identity, None)

    def clear(self) -> None:
        self._entries.clear()

    def prune_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        expired = [identity for identity, entry in self._entries.items() if self._expired(entry)]
        for identity in expired:
            del self._entries[identity]
        return len(expired)

    def _expired(self, entry: _Entry) -> bool:
        return entry.expires_at is not None and entry.expires_at <= self._clock()

    def __contains__(self, identity: str) -> bool:
        entry = self._entries.get(identity)
        return entry is not None and not self._expired(entry)

    def __len__(self) -> int:
        return len(self._entries)
