"""
Presence registry module.

This module tracks which users currently hold a live connection and owns
the outbound write path to those connections.
"""

import asyncio
from typing import Any, Dict, List, Optional

from websockets.exceptions import ConnectionClosed

from common.constants import SEND_TIMEOUT
from common.protocol_definitions import Envelope, create_envelope, encode_envelope
from server.utils.logger import logger


class PresenceRegistry:
    """
    Mapping of user id to its outbound channel.

    A user is online exactly when it is a key of ``channels``. The registry
    only holds channel handles; closing them is the session's job.
    """

    def __init__(self, send_timeout: float = SEND_TIMEOUT):
        self.channels: Dict[str, Any] = {}  # user_id -> websocket connection
        self.send_timeout = send_timeout
        self.lock = asyncio.Lock()  # Protect shared state

    async def register(self, user_id: str, channel) -> Optional[Any]:
        """Map ``user_id`` to ``channel``, returning the channel it replaced, if any."""
        async with self.lock:
            previous = self.channels.get(user_id)
            self.channels[user_id] = channel
        if previous is not None and previous is not channel:
            logger.info(f"User {user_id} reconnected, replacing previous connection")
        return previous

    async def deregister(self, user_id: str, channel=None) -> bool:
        """
        Remove ``user_id`` from the registry.

        When ``channel`` is given the entry is only removed if it still maps to
        that exact channel, so a stale connection cannot evict a newer one.
        Returns True if an entry was removed.
        """
        async with self.lock:
            current = self.channels.get(user_id)
            if current is None:
                return False
            if channel is not None and current is not channel:
                logger.debug(f"Skipping deregister of {user_id}: entry owned by a newer connection")
                return False
            del self.channels[user_id]
            return True

    async def lookup(self, user_id: str) -> Optional[Any]:
        async with self.lock:
            return self.channels.get(user_id)

    async def online_users(self) -> List[str]:
        async with self.lock:
            return sorted(self.channels)

    async def send(self, channel, envelope: Envelope, user_id: Optional[str] = None) -> bool:
        """
        Write one envelope to one channel.

        Failures (closed peer, timeout, socket error or anything unexpected)
        are logged and reported through the return value only.
        """
        target = user_id or 'connection'
        try:
            frame = encode_envelope(envelope)
            await asyncio.wait_for(channel.send(frame), timeout=self.send_timeout)
            return True
        except ConnectionClosed:
            logger.warning(f"Failed to send '{envelope.event}' to {target}: connection closed")
        except asyncio.TimeoutError:
            logger.warning(f"Failed to send '{envelope.event}' to {target}: "
                           f"timed out after {self.send_timeout}s")
        except OSError as e:
            logger.warning(f"Failed to send '{envelope.event}' to {target}: {e}")
        except Exception as e:
            logger.error(f"Failed to send '{envelope.event}' to {target}: {e!r}")
        return False

    async def send_to(self, user_id: str, envelope: Envelope) -> bool:
        """Look up ``user_id`` and write to it. Returns False if offline or the write failed."""
        channel = await self.lookup(user_id)
        if channel is None:
            return False
        return await self.send(channel, envelope, user_id)

    async def broadcast(self, event: str, payload: Any = None) -> List[str]:
        """
        Send an envelope to every registered connection.

        The channel set is snapshotted under the lock and written outside it,
        concurrently, so one slow peer does not hold up the others.
        Returns the user ids whose write failed.
        """
        envelope = create_envelope(event, payload)

        async with self.lock:
            targets = list(self.channels.items())

        if not targets:
            return []

        results = await asyncio.gather(
            *(self.send(channel, envelope, user_id) for user_id, channel in targets),
            return_exceptions=True
        )
        failed = [user_id for (user_id, _), ok in zip(targets, results) if ok is not True]
        logger.debug(f"[BROADCAST] '{event}' to {len(targets)} clients, {len(failed)} failed")
        return failed

    def __len__(self) -> int:
        return len(self.channels)
