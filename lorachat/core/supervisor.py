# lorachat/core/supervisor.py
import asyncio
import logging
from enum import Enum, auto
from typing import Awaitable, Callable, Optional

from lorachat.core import codec
from lorachat.core.errors import DecodeError, NotConnectedError
from lorachat.core.events import Connection, ProtocolError
from lorachat.core.state import SessionState

DEFAULT_RETRY_DELAY = 1.0


class ConnState(Enum):
    """Lifecycle of the gateway connection."""
    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()


class Supervisor:
    """
    Owns the single logical connection to the gateway.

    run() loops forever: connect, handshake, pump inbound frames to
    `on_packet` in arrival order, and after any drop wait `retry_delay`
    seconds and try again. There is no backoff and no retry limit; only
    stop() ends the loop. `connector` is an async callable returning a link
    with send(), frames() and close(); `sleep` can be replaced in tests.
    """

    def __init__(self, state: SessionState, connector: Callable[[], Awaitable],
                 on_packet: Callable, retry_delay: float = DEFAULT_RETRY_DELAY,
                 sleep: Callable[[float], Awaitable] = asyncio.sleep):
        self.state = state
        self.connector = connector
        self.on_packet = on_packet
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._link = None
        self._task: Optional[asyncio.Task] = None
        self._stopping = False
        self._conn_state = ConnState.DISCONNECTED
        self.connections = 0

    @property
    def conn_state(self) -> ConnState:
        return self._conn_state

    @property
    def connected(self) -> bool:
        return self._conn_state == ConnState.CONNECTED and self._link is not None

    def _set_state(self, new: ConnState, detail: str = "") -> None:
        if new == self._conn_state:
            return
        logging.info(f"Connection {self._conn_state.name} -> {new.name} {detail}".rstrip())
        self._conn_state = new
        self.state.conn_state = new.name
        self.state.publish(Connection(state=new.name, detail=detail))

    # ---------- outbound ----------
    def send(self, packet: str) -> None:
        """Transmit now or raise NotConnectedError; nothing is queued for later."""
        if not self.connected:
            raise NotConnectedError(packet.partition(codec.DELIM)[0])
        self._link.send(packet)

    def _handshake(self) -> None:
        if not self.state.db_loaded:
            self.send(codec.db_request())
        # peers' messages sent while we were away wait at the gateway
        self.send(codec.buffered_request())

    # ---------- inbound ----------
    def _on_frame(self, raw: str) -> None:
        try:
            packet = codec.decode(raw)
        except DecodeError as e:
            self.state.add_log(f"Discarded packet: {e}", logging.WARNING)
            self.state.publish(ProtocolError(error=str(e), raw=e.raw))
            return
        if packet is None:
            return
        try:
            self.on_packet(packet)
        except Exception as e:
            logging.error(f"Packet handler failed on {packet!r}: {e!r}", exc_info=True)
            self.state.add_log(f"Handler error: {e!r}", logging.ERROR)

    async def _serve(self, link) -> None:
        self._link = link
        self.connections += 1
        self._set_state(ConnState.CONNECTED)
        try:
            self._handshake()
            async for raw in link.frames():
                self._on_frame(raw)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.state.add_log(f"Connection lost: {e!r}", logging.WARNING)
        finally:
            self._link = None
            try:
                await link.close()
            except Exception as e:
                logging.warning(f"Error closing link: {e!r}")

    async def run(self) -> None:
        while not self._stopping:
            self._set_state(ConnState.CONNECTING)
            try:
                link = await self.connector()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._set_state(ConnState.DISCONNECTED, f"connect failed: {e!r}")
            else:
                try:
                    await self._serve(link)
                finally:
                    self._set_state(ConnState.DISCONNECTED, "link closed")
            if self._stopping:
                break
            await self._sleep(self.retry_delay)

    # ---------- lifecycle ----------
    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._stopping = False
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def stop(self) -> None:
        self._stopping = True
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        self._set_state(ConnState.DISCONNECTED, "stopped")
