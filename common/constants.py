"""
Shared constants for the chat relay.

This module contains the wire event names and server defaults used across
the protocol and server components.
"""

# Network Configuration
DEFAULT_SERVER_HOST = '0.0.0.0'
DEFAULT_PORT = 8080
DEFAULT_PATH = '/ws'
USER_ID_PARAM = 'userId'

# Limits
MAX_MESSAGE_SIZE = 1024 * 1024  # 1MB per inbound frame
SEND_TIMEOUT = 5.0  # seconds allowed for one outbound write

# Message ids
FIRST_MESSAGE_ID = 1

# Logging
LOG_NAME = 'chat_relay_server'
CHAT_LOG_FILE = 'chat_history.log'

# Event Types
class EventTypes:
    # Client to Server
    CHAT = 'chat'
    READ = 'read'
    TYPING = 'typing'
    GET_CHATS = 'getChats'
    GET_NOTIF = 'getNotif'
    ONLINE_USERS = 'onlineUsers'

    # Server to Client (chat, read, typing, getChats, getNotif and
    # onlineUsers are echoed back under the same names)
    ONLINE = 'online'
    OFFLINE = 'offline'
