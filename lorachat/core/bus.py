# lorachat/core/bus.py
import asyncio
from typing import Any, AsyncGenerator, List

class Bus:
    """
    Event channel from the engine to its collaborators, in emit order.
    Bounded: when nobody drains it, the oldest events are dropped.
    """

    def __init__(self, maxsize: int = 10000):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def emit_nowait(self, event: Any):
        # engine code is synchronous; it never waits on a slow listener
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(event)

    def drain(self) -> List[Any]:
        out = []
        while not self._queue.empty():
            out.append(self._queue.get_nowait())
        return out

    async def listen(self) -> AsyncGenerator[Any, None]:
        while True:
            ev = await self._queue.get()
            yield ev
