"""
Chat server module.

This module routes decoded client events to their handlers. Handlers read and
mutate the shared message store and presence registry and write directly to
the target connections.
"""

from typing import Any

from common.constants import EventTypes
from common.protocol_definitions import (
    Envelope, ProtocolError,
    parse_chat_payload, parse_read_payload, parse_typing_payload, parse_get_chats_payload,
    create_chat_message, create_read_message, create_typing_message,
    create_history_message, create_notif_message, create_online_users_message
)
from server.chat.message_store import MessageStore
from server.chat.presence_registry import PresenceRegistry
from server.utils.logger import logger


class ChatServer:
    """Server-side event routing."""

    def __init__(self, store: MessageStore, registry: PresenceRegistry):
        self.store = store
        self.registry = registry
        self.handlers = {
            EventTypes.CHAT: self.handle_chat,
            EventTypes.READ: self.handle_read,
            EventTypes.TYPING: self.handle_typing,
            EventTypes.GET_CHATS: self.handle_get_chats,
            EventTypes.GET_NOTIF: self.handle_get_notif,
            EventTypes.ONLINE_USERS: self.handle_get_online,
        }

    async def dispatch(self, session, envelope: Envelope) -> bool:
        """
        Run the handler for one envelope.

        Returns True if a handler ran to completion. Unknown events and bad
        payloads are dropped without telling the client.
        """
        handler = self.handlers.get(envelope.event)
        if handler is None:
            logger.debug(f"Ignoring '{envelope.event}' event from {session.user_id}")
            return False

        try:
            await handler(session, envelope.data)
        except ProtocolError as e:
            logger.debug(f"Dropping '{envelope.event}' from {session.user_id}: {e}")
            return False
        return True

    async def handle_chat(self, session, data: Any):
        """Store a chat message and deliver it if the recipient is online."""
        payload = parse_chat_payload(data)

        message = await self.store.append(payload.sender, payload.recipient, payload.message)
        delivered = await self.registry.send_to(payload.recipient, create_chat_message(message))

        logger.log_chat(message.id, message.sender, message.recipient, delivered)

    async def handle_read(self, session, data: Any):
        """Mark sender->recipient messages read and confirm to the sender."""
        payload = parse_read_payload(data)

        changed = await self.store.mark_read(payload.sender, payload.recipient)
        logger.debug(f"Read receipt {payload.sender} -> {payload.recipient}: {changed} marked")

        # The confirmation goes to the message sender, not to the reader
        await self.registry.send_to(payload.sender, create_read_message(payload))

    async def handle_typing(self, session, data: Any):
        """Forward a typing indicator to the recipient."""
        payload = parse_typing_payload(data)
        await self.registry.send_to(payload.recipient, create_typing_message(payload.sender))

    async def handle_get_chats(self, session, data: Any):
        """Send the conversation between two users back to the requester."""
        payload = parse_get_chats_payload(data)

        messages = await self.store.history(payload.user1, payload.user2)
        await self.registry.send(session.websocket, create_history_message(messages), session.user_id)

    async def handle_get_notif(self, session, data: Any):
        """Send the requester's unread messages back to it."""
        messages = await self.store.unread_for(session.user_id)
        await self.registry.send(session.websocket, create_notif_message(messages), session.user_id)

    async def handle_get_online(self, session, data: Any):
        """Send the list of online users back to the requester."""
        users = await self.registry.online_users()
        await self.registry.send(session.websocket, create_online_users_message(users), session.user_id)
