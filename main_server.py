#!/usr/bin/env python3
"""
Chat Relay Server - Main Entry Point

Unified entry point for the relay server that provides:
- Direct chat messaging with history
- Read receipts and typing indicators
- Online/offline presence

Usage:
    python main_server.py

Optional arguments:
    --host HOST           Bind address (default: 0.0.0.0)
    --port PORT           Listening port (default: 8080)
    --path PATH           Websocket endpoint path (default: /ws)
    --send-timeout SECS   Per-write timeout for outbound frames (default: 5)
    --logs-dir DIR        Write a chat transcript log to this directory
    --debug               Enable debug logging
"""

import argparse
import asyncio
import logging

from common.constants import DEFAULT_SERVER_HOST, DEFAULT_PORT, DEFAULT_PATH, SEND_TIMEOUT


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Chat Relay Server')
    parser.add_argument('--host', type=str, default=DEFAULT_SERVER_HOST,
                        help=f'Host to bind to (default: {DEFAULT_SERVER_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help=f'Port to listen on (default: {DEFAULT_PORT})')
    parser.add_argument('--path', type=str, default=DEFAULT_PATH,
                        help=f'Websocket endpoint path (default: {DEFAULT_PATH})')
    parser.add_argument('--send-timeout', type=float, default=SEND_TIMEOUT,
                        help=f'Seconds allowed for one outbound write (default: {SEND_TIMEOUT})')
    parser.add_argument('--logs-dir', type=str, default=None,
                        help='Directory for the chat transcript log (default: disabled)')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    from server.main_server import RelayServer
    from server.utils.config import ServerConfig
    from server.utils.logger import configure_logger

    log_level = logging.DEBUG if args.debug else logging.INFO
    logger = configure_logger(logs_dir=args.logs_dir, log_level=log_level)

    try:
        config = ServerConfig(
            host=args.host,
            port=args.port,
            path=args.path,
            send_timeout=args.send_timeout,
            logs_dir=args.logs_dir,
            log_level=log_level
        )
        server = RelayServer(config)
        asyncio.run(server.start())
    except KeyboardInterrupt:
        logger.info("Server shutting down...")
    except Exception as e:
        logger.log_error("server", e)
        raise


if __name__ == "__main__":
    main()
