"""
Connection session module.

One ChatSession drives one client connection from registration to cleanup.
"""

import enum

from websockets.exceptions import ConnectionClosed

from common.constants import EventTypes
from common.protocol_definitions import ProtocolError, decode_envelope
from server.utils.logger import logger


class SessionState(enum.Enum):
    CONNECTING = 'connecting'
    ACTIVE = 'active'
    CLOSED = 'closed'


class ChatSession:
    """Live state of one connected user for the duration of one connection."""

    def __init__(self, websocket, user_id: str, chat_server):
        self.websocket = websocket
        self.user_id = user_id
        self.chat_server = chat_server
        self.registry = chat_server.registry
        self.state = SessionState.CONNECTING

    @property
    def addr(self):
        return getattr(self.websocket, 'remote_address', None)

    async def run(self):
        """
        Register, announce presence, then process frames until the peer goes away.

        Frames are handled one at a time in arrival order.
        """
        if not self.user_id:
            logger.log_rejected(self.addr, "missing user id")
            self.state = SessionState.CLOSED
            await self.websocket.close(code=1008, reason="Missing userId")
            return

        # Registration must precede the announcement
        await self.registry.register(self.user_id, self.websocket)
        self.state = SessionState.ACTIVE
        logger.log_connection(self.addr, self.user_id)

        try:
            await self.registry.broadcast(EventTypes.ONLINE, {"userId": self.user_id})

            async for frame in self.websocket:
                try:
                    envelope = decode_envelope(frame)
                except ProtocolError as e:
                    logger.debug(f"Discarding frame from {self.user_id}: {e}")
                    continue

                logger.debug(f"Received from {self.user_id}: {envelope.event}")

                try:
                    await self.chat_server.dispatch(self, envelope)
                except Exception as e:
                    logger.log_error(f"'{envelope.event}' handler for {self.user_id}", e)

        except ConnectionClosed as e:
            logger.info(f"Connection for {self.user_id} closed: {e}")
        finally:
            await self._cleanup()

    async def close(self):
        """Close the connection locally; the read loop then exits and cleans up."""
        if self.state is SessionState.CLOSED:
            return
        await self.websocket.close()

    async def _cleanup(self):
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED

        removed = await self.registry.deregister(self.user_id, self.websocket)
        try:
            await self.websocket.close()
        except Exception as e:
            logger.debug(f"Error closing connection for {self.user_id}: {e}")

        logger.log_disconnect(self.user_id)

        # A newer connection for the same user still holds the entry
        if removed:
            await self.registry.broadcast(EventTypes.OFFLINE, {"userId": self.user_id})
