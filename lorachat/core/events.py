# lorachat/core/events.py
from dataclasses import dataclass
from typing import Optional, Union

from lorachat.model import Message, MsgStatus, Snapshot

# ---------- inbound packets (gateway -> client) ----------

@dataclass(frozen=True)
class NewMsg:
    chat_id: int
    author: int
    msg_id: int
    text: str

@dataclass(frozen=True)
class Ack:
    chat_id: int
    author: int
    msg_id: int

@dataclass(frozen=True)
class MsgSent:
    chat_id: int
    author: int
    msg_id: int

@dataclass(frozen=True)
class DbDeliver:
    snapshot: Snapshot

@dataclass(frozen=True)
class DbSaved:
    pass

Packet = Union[NewMsg, Ack, MsgSent, DbDeliver, DbSaved]

# ---------- engine events (published to collaborators) ----------

@dataclass(frozen=True)
class MessageReceived:
    message: Message

@dataclass(frozen=True)
class MessageStatusChanged:
    message: Message
    old: MsgStatus
    new: MsgStatus

@dataclass(frozen=True)
class ChatAttention:
    chat_id: int
    unread: int
    title: Optional[str] = None

@dataclass(frozen=True)
class SnapshotLoaded:
    snapshot: Snapshot

@dataclass(frozen=True)
class SnapshotSaved:
    pass

@dataclass(frozen=True)
class Connection:
    state: str
    detail: str = ""

    @property
    def up(self) -> bool:
        return self.state == "CONNECTED"

@dataclass(frozen=True)
class ProtocolError:
    error: str
    raw: str = ""

@dataclass(frozen=True)
class Log:
    text: str

Event = Union[MessageReceived, MessageStatusChanged, ChatAttention, SnapshotLoaded,
              SnapshotSaved, Connection, ProtocolError, Log]

