#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import json
import os
import tempfile
import unittest

from lorachat.core.config import Config, apply_to_session
from lorachat.core.sync import LoRaChat
from lorachat.core.transport import DEFAULT_GATEWAY_URL

from tests.fakes import FakeConnector


class ConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "sub", "lorachat.json")

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_missing_file_gives_defaults(self) -> None:
        cfg = Config.load(self.path)
        self.assertEqual(cfg, Config())
        self.assertEqual(cfg.gateway_url, DEFAULT_GATEWAY_URL)
        self.assertEqual(cfg.retry_delay, 1.0)

    def test_save_and_load(self) -> None:
        Config(gateway_url="ws://10.0.0.2:81", retry_delay=2.5, heartbeat=15, last_chat=42).save(self.path)
        cfg = Config.load(self.path)
        self.assertEqual(cfg.gateway_url, "ws://10.0.0.2:81")
        self.assertEqual(cfg.retry_delay, 2.5)
        self.assertEqual(cfg.heartbeat, 15.0)
        self.assertEqual(cfg.last_chat, 42)

    def test_corrupt_or_foreign_file_gives_defaults(self) -> None:
        os.makedirs(os.path.dirname(self.path))
        for content in ("{not json", json.dumps([1, 2])):
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(content)
            self.assertEqual(Config.load(self.path), Config())

    def test_partial_file_keeps_other_defaults(self) -> None:
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"retry_delay": 3}, f)
        cfg = Config.load(self.path)
        self.assertEqual(cfg.retry_delay, 3.0)
        self.assertEqual(cfg.gateway_url, DEFAULT_GATEWAY_URL)
        self.assertIsNone(cfg.last_chat)

    def test_apply_reopens_last_chat_if_present(self) -> None:
        client = LoRaChat(connector=FakeConnector())
        apply_to_session(Config(last_chat=42), client)
        self.assertIsNone(client.active_chat)
        client.db.add_chat(42, "Bob", "k")
        client.db.set_unread(42, 2)
        apply_to_session(Config(last_chat=42), client)
        self.assertEqual(client.active_chat, 42)
        self.assertEqual(client.db.unread(42), 0)


if __name__ == "__main__":
    unittest.main()
