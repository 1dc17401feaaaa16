"""
Protocol definitions for the chat relay.

This module defines the envelope format, the inbound payload shapes and the
outbound message builders exchanged between clients and the relay server.

Every frame on the wire is a JSON object ``{"event": str, "data": ...}``.
"""

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from common.constants import EventTypes


class ProtocolError(ValueError):
    """Raised when a frame or payload does not match the expected shape."""


@dataclass
class Envelope:
    """Tagged wire message: an event name plus its event-specific payload."""
    event: str
    data: Any = None


@dataclass
class Message:
    """Chat message as stored by the relay."""
    id: int
    sender: str
    recipient: str
    text: str
    read: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def copy(self) -> 'Message':
        """Return a detached copy, unaffected by later read-flag changes."""
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "from": self.sender,
            "to": self.recipient,
            "message": self.text,
            "read": self.read,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ChatPayload:
    """Inbound chat payload."""
    sender: str
    recipient: str
    message: str


@dataclass
class ReadPayload:
    """Inbound read-receipt payload."""
    sender: str
    recipient: str

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.sender, "to": self.recipient}


@dataclass
class TypingPayload:
    """Inbound typing-indicator payload."""
    sender: str
    recipient: str


@dataclass
class GetChatsPayload:
    """Inbound history request payload."""
    user1: str
    user2: str


def _string_fields(data: Any, *names: str) -> List[str]:
    """
    Pull string fields out of a payload object.

    A missing (or null) payload counts as an empty object and a missing field
    reads as an empty string. Anything else that is not a string is rejected.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ProtocolError(f"payload must be an object, got {type(data).__name__}")

    values = []
    for name in names:
        value = data.get(name, "")
        if not isinstance(value, str):
            raise ProtocolError(f"field '{name}' must be a string")
        values.append(scrub_surrogates(value))
    return values


def scrub_surrogates(text: str) -> str:
    """
    Replace unpaired UTF-16 surrogates (valid as JSON escapes, invalid in
    UTF-8) with U+FFFD so the text can always be sent back out.
    """
    try:
        text.encode('utf-8')
        return text
    except UnicodeEncodeError:
        return text.encode('utf-16', 'surrogatepass').decode('utf-16', 'replace')


def parse_chat_payload(data: Any) -> ChatPayload:
    sender, recipient, message = _string_fields(data, "from", "to", "message")
    return ChatPayload(sender, recipient, message)


def parse_read_payload(data: Any) -> ReadPayload:
    sender, recipient = _string_fields(data, "from", "to")
    return ReadPayload(sender, recipient)


def parse_typing_payload(data: Any) -> TypingPayload:
    sender, recipient = _string_fields(data, "from", "to")
    return TypingPayload(sender, recipient)


def parse_get_chats_payload(data: Any) -> GetChatsPayload:
    user1, user2 = _string_fields(data, "user1", "user2")
    return GetChatsPayload(user1, user2)


def decode_envelope(raw: Union[str, bytes]) -> Envelope:
    """
    Decode one inbound frame into an Envelope.

    Raises:
        ProtocolError: if the frame is not a JSON object with a string event.
    """
    try:
        obj = json.loads(raw)
    except (ValueError, RecursionError) as e:
        # ValueError covers JSONDecodeError and UnicodeDecodeError; deeply
        # nested arrays or objects exhaust the decoder's recursion limit
        raise ProtocolError(f"malformed JSON: {type(e).__name__}") from e

    if not isinstance(obj, dict):
        raise ProtocolError("envelope must be a JSON object")

    event = obj.get("event")
    if not isinstance(event, str) or not event:
        raise ProtocolError("envelope is missing a string 'event'")

    return Envelope(event=scrub_surrogates(event), data=obj.get("data"))


def encode_envelope(envelope: Envelope) -> str:
    """Serialize an Envelope to an ASCII-only JSON text frame."""
    return json.dumps({"event": envelope.event, "data": envelope.data})


def create_chat_message(message: Message) -> Envelope:
    """Create a chat delivery message carrying the stored Message."""
    return Envelope(EventTypes.CHAT, message.to_dict())


def create_read_message(payload: ReadPayload) -> Envelope:
    """Create a read-receipt confirmation echoing the request."""
    return Envelope(EventTypes.READ, payload.to_dict())


def create_typing_message(sender: str) -> Envelope:
    """Create a typing indicator."""
    return Envelope(EventTypes.TYPING, {"from": sender})


def create_history_message(messages: List[Message]) -> Envelope:
    """Create a conversation history response."""
    return Envelope(EventTypes.GET_CHATS, [m.to_dict() for m in messages])


def create_notif_message(messages: List[Message]) -> Envelope:
    """Create an unread-notification response."""
    return Envelope(EventTypes.GET_NOTIF, [m.to_dict() for m in messages])


def create_online_users_message(users: List[str]) -> Envelope:
    """Create an online user list response."""
    return Envelope(EventTypes.ONLINE_USERS, list(users))


def create_envelope(event: str, payload: Optional[Any] = None) -> Envelope:
    """Create an arbitrary envelope (used by broadcast)."""
    return Envelope(event, payload)
