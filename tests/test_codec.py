#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import json
import unittest

from lorachat.core import codec, events
from lorachat.core.codec import Op
from lorachat.core.errors import DecodeError, SnapshotError
from lorachat.model import Chat, Snapshot

from tests.fakes import BOB_DB


class EncodeTests(unittest.TestCase):
    def test_send_message_packet(self) -> None:
        self.assertEqual(codec.send_message(42, 4, 7, "hi there"), "0|42|4|7|hi there")

    def test_fieldless_commands_keep_trailing_delimiter(self) -> None:
        self.assertEqual(codec.db_request(), "4|")
        self.assertEqual(codec.buffered_request(), "13|")

    def test_chat_and_wifi_commands(self) -> None:
        self.assertEqual(codec.add_chat(42, "secret"), "8|42|secret")
        self.assertEqual(codec.del_chat(42), "9|42")
        self.assertEqual(codec.set_chat_key(42, "k2"), "10|42|k2")
        self.assertEqual(codec.set_wifi_ssid("Mesh"), "11|Mesh")
        self.assertEqual(codec.set_wifi_key("pw"), "12|pw")

    def test_db_send_carries_snapshot_json(self) -> None:
        snap = Snapshot(user_id=7, chats=[Chat(id=42, title="Bob | friends", key="k")])
        op, fields = codec.split_command(codec.db_send(snap), maxsplit=0)
        self.assertEqual(op, Op.DB_SEND)
        self.assertEqual(json.loads(fields[0]), snap.to_dict())

    def test_split_command(self) -> None:
        self.assertEqual(codec.split_command("4|"), (4, []))
        self.assertEqual(codec.split_command("0|42|4|7|a|b", maxsplit=3), (0, ["42", "4", "7", "a|b"]))
        with self.assertRaises(DecodeError):
            codec.split_command("x|1")


class DecodeTests(unittest.TestCase):
    def test_new_message(self) -> None:
        p = codec.decode(json.dumps({"type": 1, "chatId": 42, "author": 1, "msgId": 7, "text": "hi"}))
        self.assertEqual(p, events.NewMsg(chat_id=42, author=1, msg_id=7, text="hi"))

    def test_ack_and_sent_confirmation(self) -> None:
        ack = codec.decode('{"type": 2, "chatId": 42, "author": 7, "msgId": 4}')
        sent = codec.decode('{"type": 3, "chatId": 42, "author": 7, "msgId": 4}')
        self.assertEqual(ack, events.Ack(42, 7, 4))
        self.assertEqual(sent, events.MsgSent(42, 7, 4))

    def test_db_deliver_object(self) -> None:
        p = codec.decode(json.dumps({"type": 6, "db": BOB_DB}))
        self.assertIsInstance(p, events.DbDeliver)
        self.assertEqual(p.snapshot.chats[0].title, "Bob")
        self.assertEqual(p.snapshot.contacts[0].name, "Bob")

    def test_db_deliver_embedded_string_and_null(self) -> None:
        p = codec.decode(json.dumps({"type": 6, "db": json.dumps(BOB_DB)}))
        self.assertEqual(p.snapshot.chats[0].id, 42)
        empty = codec.decode('{"type": 6, "db": null}')
        self.assertEqual(empty.snapshot, Snapshot())

    def test_db_saved(self) -> None:
        self.assertIsInstance(codec.decode('{"type": 7}'), events.DbSaved)

    def test_unknown_and_outbound_opcodes_are_ignored(self) -> None:
        self.assertIsNone(codec.decode('{"type": 99, "whatever": true}'))
        self.assertIsNone(codec.decode('{"type": 4}'))
        for raw in ('{"chatId": 1}', '{"type": "1", "chatId": 42}', '{"type": null}', '{"type": true}'):
            with self.subTest(raw=raw):
                self.assertIsNone(codec.decode(raw))

    def test_malformed_packets_raise(self) -> None:
        for raw in ("not json", "[1, 2]",
                    '{"type": 1, "chatId": 42, "author": 1, "msgId": 7}',
                    '{"type": 2, "chatId": 42, "author": true, "msgId": 7}',
                    '{"type": 6}', '{"type": 6, "db": "{broken"}'):
            with self.subTest(raw=raw):
                with self.assertRaises(DecodeError) as cm:
                    codec.decode(raw)
                self.assertEqual(cm.exception.raw, raw)

    def test_invalid_snapshot_is_rejected(self) -> None:
        bad = {"type": 6, "db": {"chats": [{"id": 1}]}}
        with self.assertRaises(SnapshotError):
            codec.decode(json.dumps(bad))


if __name__ == "__main__":
    unittest.main()
