"""
Server logging module.

This module handles server-side logging functionality.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from common.constants import LOG_NAME, CHAT_LOG_FILE


class ServerLogger:
    """Server logging class."""

    def __init__(self, logs_dir: Optional[str] = None, log_level: int = logging.INFO):
        self.logger = logging.getLogger(LOG_NAME)
        self.reconfigure(logs_dir, log_level)

    def reconfigure(self, logs_dir: Optional[str] = None, log_level: int = logging.INFO):
        """(Re)build handlers, level and transcript path on the shared logger."""
        self.logger.setLevel(log_level)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        # Create console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)

        # Create formatter
        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_handler.setFormatter(formatter)

        # Add handler to logger
        self.logger.addHandler(console_handler)

        # Chat transcript is only written when a logs directory is configured
        self.logs_dir = Path(logs_dir) if logs_dir else None
        self.chat_log_path = None
        if self.logs_dir is not None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            self.chat_log_path = self.logs_dir / CHAT_LOG_FILE

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def log_connection(self, addr, user_id: str):
        """Log client connection."""
        self.info(f"User connected: {user_id} from {addr}")

    def log_rejected(self, addr, reason: str):
        """Log a connection attempt refused before the upgrade."""
        self.warning(f"Rejected connection from {addr}: {reason}")

    def log_disconnect(self, user_id: str):
        """Log user disconnect."""
        self.info(f"User disconnected: {user_id}")

    def log_chat(self, message_id: int, sender: str, recipient: str, delivered: bool):
        """Log chat message."""
        state = "delivered" if delivered else "stored (recipient offline)"
        self.info(f"Chat #{message_id} {sender} -> {recipient}: {state}")
        if self.chat_log_path is not None:
            self._write_to_file(
                self.chat_log_path,
                f"{datetime.now().isoformat()} | #{message_id} | {sender} -> {recipient} | {state}"
            )

    def log_error(self, operation: str, error: Exception):
        """Log error with operation context."""
        self.error(f"Error in {operation}: {error}")

    def _write_to_file(self, file_path: Path, content: str):
        """Write content to log file."""
        try:
            with open(file_path, 'a', encoding='utf-8') as f:
                f.write(content + '\n')
        except OSError as e:
            self.error(f"Failed to write to log file {file_path}: {e}")


# Global logger instance
logger = ServerLogger()


def configure_logger(logs_dir: Optional[str] = None, log_level: int = logging.INFO) -> ServerLogger:
    """Reconfigure the global logger in place so existing imports see the change."""
    logger.reconfigure(logs_dir=logs_dir, log_level=log_level)
    return logger
