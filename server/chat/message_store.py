"""
Message store module.

This module keeps the append-only in-memory log of chat messages.
"""

import asyncio
from datetime import datetime, timezone
from typing import List

from common.constants import FIRST_MESSAGE_ID
from common.protocol_definitions import Message


class MessageStore:
    """Append-only log of chat messages with mutable read flags."""

    def __init__(self, first_id: int = FIRST_MESSAGE_ID):
        self.messages: List[Message] = []  # append order == ascending id
        self.next_id = first_id
        self.lock = asyncio.Lock()  # Protect shared state

    def __len__(self) -> int:
        return len(self.messages)

    async def append(self, sender: str, recipient: str, text: str) -> Message:
        """Store a new unread message and return a copy of it."""
        async with self.lock:
            message = Message(
                id=self.next_id,
                sender=sender,
                recipient=recipient,
                text=text,
                read=False,
                timestamp=datetime.now(timezone.utc),
            )
            self.next_id += 1
            self.messages.append(message)
            return message.copy()

    async def mark_read(self, sender: str, recipient: str) -> int:
        """
        Mark every message sent by ``sender`` to ``recipient`` as read.

        Only that direction is touched. Returns the number of messages whose
        flag changed.
        """
        changed = 0
        async with self.lock:
            for message in self.messages:
                if message.sender == sender and message.recipient == recipient and not message.read:
                    message.read = True
                    changed += 1
        return changed

    async def history(self, user_a: str, user_b: str) -> List[Message]:
        """Return the conversation between two users in both directions."""
        async with self.lock:
            return [
                m.copy() for m in self.messages
                if (m.sender == user_a and m.recipient == user_b)
                or (m.sender == user_b and m.recipient == user_a)
            ]

    async def unread_for(self, user: str) -> List[Message]:
        """Return unread messages addressed to ``user``."""
        async with self.lock:
            return [m.copy() for m in self.messages if m.recipient == user and not m.read]
