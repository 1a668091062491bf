"""Models for sent and received gateway messages."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .messages import TypedMessage


@dataclass
class SendResult:
    """Result of a successful send operation."""
    message_id: str
    recipient: str
    message: TypedMessage
    sent_at: datetime = field(default_factory=datetime.now)


@dataclass
class IncomingMessage:
    """A decrypted message delivered to the gateway callback."""
    sender: str
    message: TypedMessage
    message_id: Optional[str] = None
    received_at: datetime = field(default_factory=datetime.now)

    def is_attachment_resolved(self) -> bool:
        """Whether an attachment's data has been downloaded (always True for other kinds)."""
        return getattr(self.message, "data", True) is not None
