"""Configuration for gateway connections."""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from .framing import padding_length
from .keys import validate_identity
from .types import DEFAULT_API_URL, DEFAULT_MIN_FRAME_LENGTH


@dataclass
class GatewayConfig:
    """Configuration for a gateway identity."""

    identity: str
    """Gateway identity (e.g. "*ABCDEFG")."""

    secret: str
    """API secret for the identity."""

    api_url: str = DEFAULT_API_URL
    """Base URL of the message API."""

    min_frame_len: int = DEFAULT_MIN_FRAME_LENGTH
    """Minimum plaintext frame length before sealing."""

    timeout: Optional[float] = 30.0
    """HTTP timeout in seconds (None to wait forever)."""

    def __post_init__(self) -> None:
        validate_identity(self.identity)
        # Rejects floors whose padding would not fit the count byte
        padding_length(0, self.min_frame_len)
        self.api_url = self.api_url.rstrip("/")

    def __repr__(self) -> str:
        return (
            f"GatewayConfig(identity={self.identity!r}, secret=<redacted>, "
            f"api_url={self.api_url!r}, min_frame_len={self.min_frame_len}, timeout={self.timeout})"
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GatewayConfig":
        """
        Creates configuration from environment variables.

        Reads GATEWAY_IDENTITY and GATEWAY_SECRET (required) and
        GATEWAY_API_URL, GATEWAY_MIN_FRAME_LENGTH, GATEWAY_TIMEOUT (optional).
        """
        env = os.environ if environ is None else environ

        missing = [name for name in ("GATEWAY_IDENTITY", "GATEWAY_SECRET") if not env.get(name)]
        if missing:
            raise ValueError(f"Missing environment variables: {', '.join(missing)}")

        timeout = env.get("GATEWAY_TIMEOUT")
        return cls(
            identity=env["GATEWAY_IDENTITY"],
            secret=env["GATEWAY_SECRET"],
            api_url=env.get("GATEWAY_API_URL", DEFAULT_API_URL),
            min_frame_len=int(env.get("GATEWAY_MIN_FRAME_LENGTH", DEFAULT_MIN_FRAME_LENGTH)),
            timeout=float(timeout) if timeout else 30.0,
        )

    def with_api_url(self, url: str) -> "GatewayConfig":
        """Sets the API base URL."""
        return replace(self, api_url=url)

    def with_min_frame_len(self, min_frame_len: int) -> "GatewayConfig":
        """Sets the minimum frame length."""
        return replace(self, min_frame_len=min_frame_len)
