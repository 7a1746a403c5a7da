#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import asyncio
import json
import unittest

from aiohttp import WSMsgType, web
from aiohttp.test_utils import TestServer

from lorachat.core import events
from lorachat.core.errors import NotConnectedError
from lorachat.core.supervisor import ConnState
from lorachat.core.sync import LoRaChat
from lorachat.core.transport import WebSocketConnector

from tests.fakes import BOB_DB, of_type


async def eventually(predicate, timeout=5.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


class GatewayEmulatorTests(unittest.IsolatedAsyncioTestCase):
    """Runs the engine against a minimal WebSocket gateway on localhost."""

    async def asyncSetUp(self) -> None:
        self.received = []
        self.pushed = asyncio.Event()
        app = web.Application()
        app.router.add_get("/", self.gateway)
        self.server = TestServer(app)
        await self.server.start_server()
        self.url = str(self.server.make_url("/").with_scheme("ws"))

    async def asyncTearDown(self) -> None:
        await self.server.close()

    async def gateway(self, request):
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        async for msg in ws:
            if msg.type != WSMsgType.TEXT:
                continue
            self.received.append(msg.data)
            op = msg.data.partition("|")[0]
            if op == "4":
                await ws.send_str(json.dumps({"type": 6, "db": BOB_DB}))
            elif op == "13":
                await ws.send_str(json.dumps(
                    {"type": 1, "chatId": 42, "author": 1, "msgId": 7, "text": "hi"}))
            elif op == "5":
                self.pushed.set()
                await ws.send_str(json.dumps({"type": 7}))
        return ws

    async def test_session_against_gateway(self) -> None:
        client = LoRaChat(connector=WebSocketConnector(self.url, timeout=5.0))
        client.start()
        await eventually(lambda: client.db.chat_messages(42))
        self.assertEqual(self.received[:2], ["4|", "13|"])
        self.assertEqual(client.db.chat_messages(42)[0].text, "hi")
        self.assertEqual(client.db.unread(42), 1)
        self.assertEqual(client.supervisor.conn_state, ConnState.CONNECTED)

        await client.close()
        await asyncio.wait_for(self.pushed.wait(), 5.0)
        pushes = [p for p in self.received if p.startswith("5|")]
        self.assertEqual(len(pushes), 1)
        self.assertEqual(json.loads(pushes[0][2:])["chats"][0]["unread"], 1)
        self.assertEqual(client.supervisor.conn_state, ConnState.DISCONNECTED)

    async def test_link_rejects_sends_after_close(self) -> None:
        link = await WebSocketConnector(self.url)()
        link.send("4|")
        frames = link.frames()
        first = await asyncio.wait_for(frames.__anext__(), 5.0)
        self.assertEqual(json.loads(first)["type"], 6)
        await frames.aclose()
        await link.close()
        self.assertTrue(link.closed)
        with self.assertRaises(NotConnectedError):
            link.send("13|")

    async def test_unreachable_gateway_keeps_retrying(self) -> None:
        url = self.url
        await self.server.close()
        delays = []

        async def sleep(delay):
            delays.append(delay)
            await asyncio.sleep(0)

        client = LoRaChat(connector=WebSocketConnector(url, timeout=1.0), retry_delay=0.5, sleep=sleep)
        client.start()
        await eventually(lambda: len(delays) >= 2)
        await client.close()
        states = [e.state for e in of_type(client.state.bus.drain(), events.Connection)]
        self.assertNotIn("CONNECTED", states)
        self.assertEqual(delays[:2], [0.5, 0.5])


if __name__ == "__main__":
    unittest.main()
