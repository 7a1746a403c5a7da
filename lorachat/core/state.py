# lorachat/core/state.py
import logging
import time
from collections import deque
from typing import Optional

from lorachat.core.bus import Bus
from lorachat.core.database import Database
from lorachat.core.events import Log
from lorachat.ui_ptk.text_sanitize import sanitize_text


class SessionState:
    """
    Everything one client session shares: the database, the active chat,
    whether a snapshot was ever loaded, the connection state, the event bus
    and the in-memory log. Passed by reference to the supervisor and the
    sync layer.
    """

    def __init__(self, db: Optional[Database] = None, bus: Optional[Bus] = None):
        self.db = db if db is not None else Database()
        self.bus = bus if bus is not None else Bus()
        self.active_chat: Optional[int] = None
        self.db_loaded = False
        self.conn_state = "DISCONNECTED"
        self.log = deque(maxlen=2000)

    @property
    def connected(self) -> bool:
        return self.conn_state == "CONNECTED"

    def publish(self, ev) -> None:
        self.bus.emit_nowait(ev)

    def add_log(self, text: str, level: int = logging.INFO) -> None:
        line = sanitize_text(text, single_line=True)
        logging.log(level, line)
        t = time.strftime("%H:%M:%S")
        self.log.append(f"[{t}] {line}")
        self.publish(Log(text=line))
