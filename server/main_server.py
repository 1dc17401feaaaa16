#!/usr/bin/env python3
"""
Chat Relay Server - Server Wiring

This module binds the websocket transport to the chat components: it owns
the shared message store and presence registry and spawns one session per
accepted connection.
"""

from http import HTTPStatus
from typing import Optional
from urllib.parse import parse_qs, urlsplit

from websockets.asyncio.server import serve

from server.chat.chat_server import ChatServer
from server.chat.message_store import MessageStore
from server.chat.presence_registry import PresenceRegistry
from server.chat.session import ChatSession
from server.utils.config import ServerConfig
from server.utils.logger import logger


class RelayServer:
    """Main server class that integrates all functionality."""

    def __init__(self, config: Optional[ServerConfig] = None,
                 store: Optional[MessageStore] = None,
                 registry: Optional[PresenceRegistry] = None):
        self.config = config or ServerConfig()
        self.store = store if store is not None else MessageStore()
        self.registry = registry if registry is not None else PresenceRegistry(self.config.send_timeout)
        self.chat_server = ChatServer(self.store, self.registry)

    def get_user_id(self, request_path: str) -> str:
        """Extract the user id from the upgrade request's query string."""
        query = parse_qs(urlsplit(request_path).query)
        values = query.get(self.config.user_param)
        return values[0] if values else ""

    def process_request(self, connection, request):
        """Reject bad upgrade requests before the handshake completes."""
        path = urlsplit(request.path).path
        if path != self.config.path:
            logger.log_rejected(connection.remote_address, f"unknown path {path}")
            return connection.respond(HTTPStatus.NOT_FOUND, "Not Found\n")

        if not self.get_user_id(request.path):
            logger.log_rejected(connection.remote_address, "missing userId")
            return connection.respond(HTTPStatus.BAD_REQUEST, "Missing userId\n")

        return None

    async def handle_client(self, websocket):
        """Handle individual client connection."""
        user_id = self.get_user_id(websocket.request.path)
        session = ChatSession(websocket, user_id, self.chat_server)
        await session.run()

    async def start(self):
        """Start the server."""
        async with serve(
            self.handle_client,
            self.config.host,
            self.config.port,
            process_request=self.process_request,
            max_size=self.config.max_message_size,
        ) as server:
            info = self.config.get_connection_info()
            logger.info(f"Server listening on {info['url']}")
            await server.serve_forever()
