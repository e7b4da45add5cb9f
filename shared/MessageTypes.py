from __future__ import annotations

from enum import Enum
from typing import Set


class MessageType(str, Enum):
    """Chat relay message types (the ``type`` tag of every frame)."""

    # Relay-to-client
    WELCOME = "welcome"                          # Relay assigns our clientId
    USER_STOPPED_TYPING = "user_stopped_typing"  # Peer abandoned its draft

    # Both directions
    TYPING = "typing"                            # Ephemeral draft text
    MESSAGE = "message"                          # Committed message

    # Client-to-relay
    USERNAME_CHANGE = "username_change"          # Display name committed

    @classmethod
    def from_string(cls, value: str) -> MessageType:
        """Convert string to MessageType enum, raise ValueError if unknown."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown message type: {value}")

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check if string is a valid message type."""
        try:
            cls(value)
            return True
        except ValueError:
            return False


# Message types the relay may send us
INBOUND_MESSAGES: Set[MessageType] = {
    MessageType.WELCOME,
    MessageType.TYPING,
    MessageType.MESSAGE,
    MessageType.USER_STOPPED_TYPING,
}

# Message types we send to the relay
OUTBOUND_MESSAGES: Set[MessageType] = {
    MessageType.TYPING,
    MessageType.MESSAGE,
    MessageType.USERNAME_CHANGE,
}
