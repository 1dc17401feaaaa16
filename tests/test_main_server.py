#!/usr/bin/env python3
"""
Unit tests for server wiring, configuration, logging and the CLI entry point.
"""

import logging
import tempfile
import unittest
from http import HTTPStatus
from types import SimpleNamespace

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

import main_server
from common.constants import DEFAULT_PORT, DEFAULT_PATH
from server.main_server import RelayServer
from server.utils.config import ServerConfig
from server.utils.logger import configure_logger, logger
from fake_connection import FakeConnection, FakeWebSocket


class TestProcessRequest(unittest.TestCase):
    """Test cases for the pre-upgrade request check."""

    def setUp(self):
        self.server = RelayServer()
        self.connection = FakeConnection()

    def check(self, path):
        return self.server.process_request(self.connection, SimpleNamespace(path=path))

    def test_accepts_user_id(self):
        self.assertIsNone(self.check("/ws?userId=alice"))

    def test_missing_user_id_is_bad_request(self):
        for path in ("/ws", "/ws?userId=", "/ws?user=alice"):
            status, text = self.check(path)
            self.assertEqual(status, HTTPStatus.BAD_REQUEST, msg=path)
            self.assertIn("Missing userId", text)

    def test_unknown_path_is_not_found(self):
        status, _ = self.check("/other?userId=alice")
        self.assertEqual(status, HTTPStatus.NOT_FOUND)

    def test_custom_path(self):
        server = RelayServer(ServerConfig(path="chat"))
        self.assertIsNone(server.process_request(self.connection, SimpleNamespace(path="/chat?userId=a")))

    def test_get_user_id_takes_first_value(self):
        self.assertEqual(self.server.get_user_id("/ws?userId=a&userId=b"), "a")
        self.assertEqual(self.server.get_user_id("/ws?userId=a%20b"), "a b")


class TestHandleClient(unittest.IsolatedAsyncioTestCase):
    """Test cases for RelayServer.handle_client."""

    async def test_session_runs_with_query_identity(self):
        server = RelayServer()
        websocket = FakeWebSocket(user_id="bob", frames=[{"event": "onlineUsers"}])
        websocket.disconnect()

        await server.handle_client(websocket)

        self.assertEqual(websocket.sent, [
            {"event": "online", "data": {"userId": "bob"}},
            {"event": "onlineUsers", "data": ["bob"]},
        ])
        self.assertEqual(len(server.registry), 0)

    async def test_servers_do_not_share_state(self):
        first, second = RelayServer(), RelayServer()
        await first.store.append("a", "b", "hi")

        self.assertEqual(len(first.store), 1)
        self.assertEqual(len(second.store), 0)
        self.assertIsNot(first.registry, second.registry)


class TestServerConfig(unittest.TestCase):
    """Test cases for ServerConfig."""

    def test_defaults(self):
        config = ServerConfig()
        self.assertEqual(config.port, DEFAULT_PORT)
        self.assertEqual(config.path, DEFAULT_PATH)
        self.assertEqual(config.user_param, "userId")
        self.assertIsNone(config.get_log_settings()['logs_dir'])

    def test_path_gets_leading_slash(self):
        self.assertEqual(ServerConfig(path="chat").path, "/chat")

    def test_rejects_non_positive_timeout(self):
        with self.assertRaises(ValueError):
            ServerConfig(send_timeout=0)

    def test_connection_info(self):
        info = ServerConfig(host="127.0.0.1", port=9999).get_connection_info()
        self.assertEqual(info['url'], "ws://127.0.0.1:9999/ws?userId=<id>")


class TestLogger(unittest.TestCase):
    """Test cases for the server logger."""

    def tearDown(self):
        configure_logger()

    def test_chat_transcript_written_when_logs_dir_set(self):
        with tempfile.TemporaryDirectory() as tmp:
            configure_logger(logs_dir=tmp, log_level=logging.DEBUG)
            logger.log_chat(3, "alice", "bob", delivered=True)

            content = (Path(tmp) / "chat_history.log").read_text(encoding='utf-8')
            self.assertIn("#3 | alice -> bob | delivered", content)
            self.assertEqual(logger.logger.level, logging.DEBUG)

    def test_reconfigure_replaces_handlers_on_same_logger(self):
        """Repeated reconfiguration keeps one console handler on the shared logger."""
        underlying = logger.logger
        logger.reconfigure(log_level=logging.WARNING)
        logger.reconfigure(log_level=logging.DEBUG)

        self.assertIs(logger.logger, underlying)
        self.assertEqual(len(underlying.handlers), 1)
        self.assertEqual(underlying.level, logging.DEBUG)

    def test_no_transcript_by_default(self):
        configure_logger()
        self.assertIsNone(logger.chat_log_path)
        self.assertEqual(len(logger.logger.handlers), 1)


class TestCommandLine(unittest.TestCase):
    """Test cases for the main_server argument parser."""

    def test_defaults(self):
        args = main_server.build_parser().parse_args([])
        self.assertEqual(args.port, DEFAULT_PORT)
        self.assertEqual(args.path, DEFAULT_PATH)
        self.assertIsNone(args.logs_dir)
        self.assertFalse(args.debug)

    def test_overrides(self):
        args = main_server.build_parser().parse_args(
            ['--host', '127.0.0.1', '--port', '9000', '--send-timeout', '1.5', '--debug'])
        self.assertEqual((args.host, args.port, args.send_timeout, args.debug),
                         ('127.0.0.1', 9000, 1.5, True))


if __name__ == '__main__':
    unittest.main()
