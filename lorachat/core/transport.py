# lorachat/core/transport.py
import asyncio
import logging
from typing import AsyncIterator, Optional

import aiohttp

from lorachat.core.errors import NotConnectedError

DEFAULT_GATEWAY_URL = "ws://192.168.4.1:81"


class WebSocketLink:
    """
    One live WebSocket to the gateway. send() is synchronous and only
    enqueues; a writer task puts frames on the wire in send order. Nothing
    outlives the link: packets still queued when it drops are lost.
    """

    def __init__(self, session: aiohttp.ClientSession, ws: aiohttp.ClientWebSocketResponse):
        self.session = session
        self.ws = ws
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._writer = asyncio.get_running_loop().create_task(self._write_loop())

    @property
    def closed(self) -> bool:
        return self._closed or self.ws.closed

    def send(self, packet: str) -> None:
        if self.closed:
            raise NotConnectedError(packet.partition("|")[0])
        self._queue.put_nowait(packet)

    async def _write_loop(self) -> None:
        while True:
            packet = await self._queue.get()
            try:
                await self.ws.send_str(packet)
            except Exception as e:
                logging.error(f"WebSocket write failed: {e!r}")
                await self.ws.close()
                return
            finally:
                self._queue.task_done()

    async def frames(self) -> AsyncIterator[str]:
        async for msg in self.ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                yield msg.data
            elif msg.type == aiohttp.WSMsgType.ERROR:
                logging.warning(f"WebSocket error frame: {self.ws.exception()!r}")
                break
            # binary frames are not part of the protocol

    async def close(self, flush_timeout: float = 2.0) -> None:
        if self._closed:
            return
        self._closed = True
        if not self._writer.done() and not self.ws.closed:
            try:
                await asyncio.wait_for(self._queue.join(), flush_timeout)
            except asyncio.TimeoutError:
                logging.warning(f"Dropped {self._queue.qsize()} unsent packet(s) on close")
        self._writer.cancel()
        await asyncio.gather(self._writer, return_exceptions=True)
        try:
            await self.ws.close()
        finally:
            await self.session.close()


class WebSocketConnector:
    """Callable that opens a fresh WebSocketLink to the gateway."""

    def __init__(self, url: str = DEFAULT_GATEWAY_URL, timeout: float = 5.0,
                 heartbeat: Optional[float] = None):
        self.url = url
        self.timeout = timeout
        self.heartbeat = heartbeat

    async def __call__(self) -> WebSocketLink:
        session = aiohttp.ClientSession()
        try:
            ws = await asyncio.wait_for(
                session.ws_connect(self.url, heartbeat=self.heartbeat), self.timeout)
        except BaseException:
            await session.close()
            raise
        logging.info(f"WebSocket open: {self.url}")
        return WebSocketLink(session, ws)
