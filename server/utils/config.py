"""
Server configuration module.

This module handles server-side configuration settings.
"""

import logging
from typing import Optional

from common.constants import (
    DEFAULT_SERVER_HOST, DEFAULT_PORT, DEFAULT_PATH, USER_ID_PARAM,
    MAX_MESSAGE_SIZE, SEND_TIMEOUT
)


class ServerConfig:
    """Server configuration class."""

    def __init__(self, host: str = DEFAULT_SERVER_HOST, port: int = DEFAULT_PORT,
                 path: str = DEFAULT_PATH, send_timeout: float = SEND_TIMEOUT,
                 logs_dir: Optional[str] = None, log_level: int = logging.INFO):
        self.host = host
        self.port = port
        self.path = path if path.startswith('/') else '/' + path

        # Identity is read from this query parameter on the upgrade request
        self.user_param = USER_ID_PARAM

        # Connection settings
        self.send_timeout = send_timeout
        self.max_message_size = MAX_MESSAGE_SIZE

        # Logging configuration
        self.logs_dir = logs_dir
        self.log_level = log_level

        if self.send_timeout <= 0:
            raise ValueError(f"send_timeout must be positive, got {send_timeout}")

    def get_connection_info(self):
        """Get connection information."""
        return {
            'host': self.host,
            'port': self.port,
            'path': self.path,
            'url': f"ws://{self.host}:{self.port}{self.path}?{self.user_param}=<id>"
        }

    def get_log_settings(self):
        """Get logging settings."""
        return {
            'logs_dir': self.logs_dir,
            'log_level': self.log_level
        }
