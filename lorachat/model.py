# lorachat/model.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional

from lorachat.core.errors import SnapshotError

MSG_ID_SEP = "-"
DEFAULT_WIFI_SSID = "LoRaChat"


class MsgStatus(IntEnum):
    PENDING  = 0   # queued locally, not yet on air
    SENT     = 1   # gateway confirmed radio transmission
    RECEIVED = 2   # peer acked


STATUS_SYMBOL: Dict[MsgStatus, str] = {
    MsgStatus.PENDING:  "…",
    MsgStatus.SENT:     "→",
    MsgStatus.RECEIVED: "✓",
}


def make_msg_id(chat_id: int, author: int, seq: int) -> str:
    return f"{chat_id}{MSG_ID_SEP}{author}{MSG_ID_SEP}{seq}"


def parse_msg_id(msg_id: str) -> tuple[int, int, int]:
    """Split a composite id back into (chat_id, author, seq)."""
    parts = str(msg_id).split(MSG_ID_SEP)
    if len(parts) != 3 or not all(p.isascii() and p.isdigit() for p in parts):
        raise ValueError(f"not a composite message id: {msg_id!r}")
    chat_id, author, seq = (int(p, 10) for p in parts)
    return chat_id, author, seq


def _req(data: Dict[str, Any], key: str, kind, what: str):
    if key not in data:
        raise SnapshotError(f"{what}: missing '{key}'")
    value = data[key]
    # bool is an int subclass; never accept it where a number is expected
    if kind is int and isinstance(value, bool):
        raise SnapshotError(f"{what}: '{key}' must be int")
    if not isinstance(value, kind):
        raise SnapshotError(f"{what}: '{key}' must be {kind.__name__}")
    return value


def _opt(data: Dict[str, Any], key: str, kind, default, what: str):
    value = data.get(key)
    if value is None:
        return default
    if kind is int and isinstance(value, bool):
        raise SnapshotError(f"{what}: '{key}' must be int")
    if not isinstance(value, kind):
        raise SnapshotError(f"{what}: '{key}' must be {kind.__name__}")
    return value


@dataclass
class Contact:
    id: int
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Contact":
        if not isinstance(data, dict):
            raise SnapshotError("contact must be an object")
        return Contact(id=_req(data, "id", int, "contact"), name=_req(data, "name", str, "contact"))


@dataclass
class Message:
    id: str
    chat_id: int
    author: int
    text: str
    mine: bool = False
    status: MsgStatus = MsgStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "mine": self.mine,
            "author": self.author,
            "text": self.text,
            "status": int(self.status),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any], chat_id: int) -> "Message":
        if not isinstance(data, dict):
            raise SnapshotError(f"message in chat {chat_id} must be an object")
        what = f"message in chat {chat_id}"
        status = _opt(data, "status", int, int(MsgStatus.PENDING), what)
        try:
            status = MsgStatus(status)
        except ValueError:
            raise SnapshotError(f"{what}: unknown status {status}") from None
        msg_id = _req(data, "id", str, what)
        author = _req(data, "author", int, what)
        try:
            id_chat, id_author, _ = parse_msg_id(msg_id)
        except ValueError as e:
            raise SnapshotError(f"{what}: {e}") from None
        if (id_chat, id_author) != (chat_id, author):
            raise SnapshotError(f"{what}: id {msg_id!r} does not match chat {chat_id} and author {author}")
        return Message(
            id=msg_id,
            chat_id=chat_id,
            author=author,
            text=_req(data, "text", str, what),
            mine=bool(data.get("mine", False)),
            status=status,
        )


@dataclass
class Chat:
    id: int
    title: str
    key: str = ""
    unread: int = 0
    id_counter: int = 0          # last local sequence number handed out
    messages: List[Message] = field(default_factory=list)

    def find_message(self, msg_id: str) -> Optional[Message]:
        for m in self.messages:
            if m.id == msg_id:
                return m
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "key": self.key,
            "unread": self.unread,
            "id_counter": self.id_counter,
            "messages": [m.to_dict() for m in self.messages],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Chat":
        if not isinstance(data, dict):
            raise SnapshotError("chat must be an object")
        chat_id = _req(data, "id", int, "chat")
        what = f"chat {chat_id}"
        unread = _opt(data, "unread", int, 0, what)
        counter = _opt(data, "id_counter", int, 0, what)
        if unread < 0 or counter < 0:
            raise SnapshotError(f"{what}: counters must be non-negative")
        raw_msgs = _opt(data, "messages", list, [], what)
        return Chat(
            id=chat_id,
            title=_req(data, "title", str, what),
            key=_opt(data, "key", str, "", what),
            unread=unread,
            id_counter=counter,
            messages=[Message.from_dict(m, chat_id) for m in raw_msgs],
        )


@dataclass
class Snapshot:
    user_id: Optional[int] = None
    username: Optional[str] = None
    wifi_ssid: str = DEFAULT_WIFI_SSID
    wifi_key: str = ""
    contacts: List[Contact] = field(default_factory=list)
    chats: List[Chat] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "wifi_ssid": self.wifi_ssid,
            "wifi_key": self.wifi_key,
            "contacts": [c.to_dict() for c in self.contacts],
            "chats": [c.to_dict() for c in self.chats],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Snapshot":
        if not isinstance(data, dict):
            raise SnapshotError("snapshot must be an object")
        what = "snapshot"
        contacts = [Contact.from_dict(c) for c in _opt(data, "contacts", list, [], what)]
        chats = [Chat.from_dict(c) for c in _opt(data, "chats", list, [], what)]
        for kind, items in (("contact", contacts), ("chat", chats)):
            ids = [it.id for it in items]
            if len(ids) != len(set(ids)):
                raise SnapshotError(f"{what}: duplicate {kind} id")
        return Snapshot(
            user_id=_opt(data, "user_id", int, None, what),
            username=_opt(data, "username", str, None, what),
            wifi_ssid=_opt(data, "wifi_ssid", str, DEFAULT_WIFI_SSID, what),
            wifi_key=_opt(data, "wifi_key", str, "", what),
            contacts=contacts,
            chats=chats,
        )
