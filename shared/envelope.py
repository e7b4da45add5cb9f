from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
import json

from shared.MessageTypes import INBOUND_MESSAGES, MessageType
from shared.log import get_logger
from shared.utils import is_number

logger = get_logger(__name__)


class DecodeError(Exception):
    """Raised when an inbound frame is not a well-formed chat event."""
    pass


# ========================================
#           INBOUND EVENTS (relay -> client)
# ========================================

@dataclass(frozen=True)
class Welcome:
    """{"type": "welcome", "clientId": "..."}"""
    client_id: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Welcome':
        return cls(client_id=_require_str(data, 'clientId'))


@dataclass(frozen=True)
class TypingUpdate:
    """
    Ephemeral draft from a peer:
    {"type": "typing", "username": "...", "text": "...", "clientId": "..."?}

    clientId is optional; the relay tags it so we can drop our own echo.
    """
    username: str
    text: str
    client_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TypingUpdate':
        client_id = data.get('clientId')
        if client_id is not None and not isinstance(client_id, str):
            raise DecodeError("'clientId' must be a string")
        return cls(
            username=_require_str(data, 'username'),
            text=_require_str(data, 'text'),
            client_id=client_id,
        )


@dataclass(frozen=True)
class ChatMessage:
    """{"type": "message", "username": "...", "text": "...", "timestamp": 1700000000000}"""
    username: str
    text: str
    timestamp: Union[int, float]  # sender clock, unix ms

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChatMessage':
        if 'timestamp' not in data:
            raise DecodeError("Missing required field: 'timestamp'")
        if not is_number(data['timestamp']):
            raise DecodeError("'timestamp' must be a number")
        return cls(
            username=_require_str(data, 'username'),
            text=_require_str(data, 'text'),
            timestamp=data['timestamp'],
        )


@dataclass(frozen=True)
class StoppedTyping:
    """{"type": "user_stopped_typing", "username": "..."}"""
    username: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StoppedTyping':
        return cls(username=_require_str(data, 'username'))


InboundEvent = Union[Welcome, TypingUpdate, ChatMessage, StoppedTyping]

_DECODERS = {
    MessageType.WELCOME: Welcome.from_dict,
    MessageType.TYPING: TypingUpdate.from_dict,
    MessageType.MESSAGE: ChatMessage.from_dict,
    MessageType.USER_STOPPED_TYPING: StoppedTyping.from_dict,
}


# ========================================
#           OUTBOUND INTENTS (client -> relay)
# ========================================

@dataclass(frozen=True)
class UsernameChange:
    username: str

    type = MessageType.USERNAME_CHANGE

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type.value, 'username': self.username}


@dataclass(frozen=True)
class TypingIntent:
    username: str
    text: str
    timestamp: int

    type = MessageType.TYPING

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'username': self.username,
            'text': self.text,
            'timestamp': self.timestamp,
        }


@dataclass(frozen=True)
class MessageIntent:
    username: str
    text: str
    timestamp: int

    type = MessageType.MESSAGE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'username': self.username,
            'text': self.text,
            'timestamp': self.timestamp,
        }


OutboundIntent = Union[UsernameChange, TypingIntent, MessageIntent]


# ========================================
#           CODEC
# ========================================

def encode(intent: OutboundIntent) -> str:
    """Serialize an outbound intent to a single JSON frame"""
    return json.dumps(intent.to_dict(), separators=(',', ':'))


def decode(frame: Union[str, bytes]) -> Optional[InboundEvent]:
    """
    Parse one inbound frame.

    Returns None for a well-formed frame whose type we don't know (newer
    relays may send more), raises DecodeError for anything malformed.
    """
    if isinstance(frame, bytes):
        try:
            frame = frame.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecodeError(f"Frame is not valid UTF-8: {e}")
    try:
        data = json.loads(frame)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON: {e}")

    if not isinstance(data, dict):
        raise DecodeError("Frame must be a JSON object")
    msg_type = data.get('type')
    if not isinstance(msg_type, str):
        raise DecodeError("'type' must be a string")

    if not MessageType.is_valid(msg_type):
        logger.debug("Ignoring unknown frame type %r", msg_type)
        return None
    message_type = MessageType.from_string(msg_type)
    if message_type not in INBOUND_MESSAGES:
        # Known type that only flows client -> relay (username_change)
        logger.debug("Ignoring outbound-only frame type %r", msg_type)
        return None
    return _DECODERS[message_type](data)


def _require_str(data: Dict[str, Any], key: str) -> str:
    if key not in data:
        raise DecodeError(f"Missing required field: '{key}'")
    value = data[key]
    if not isinstance(value, str):
        raise DecodeError(f"'{key}' must be a string")
    return value
