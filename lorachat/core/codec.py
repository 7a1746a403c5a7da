# lorachat/core/codec.py
"""
Wire codec for the gateway WebSocket.

Outbound packets use the command format ``<opcode>|<field>|<field>...``.
The delimiter is never escaped, so free-text fields (message text, chat
titles, keys) must not contain ``|``. Inbound packets are JSON objects whose
``type`` key carries the opcode.
"""
import json
from enum import IntEnum
from typing import Any, Dict, Optional

from lorachat.core import events
from lorachat.core.errors import DecodeError, SnapshotError
from lorachat.model import Snapshot

DELIM = "|"


class Op(IntEnum):
    SEND_MSG      = 0
    NEW_MSG       = 1
    ACK           = 2
    MSG_SENT      = 3
    DB_REQ        = 4
    DB_SEND       = 5
    DB_DELIVER    = 6
    DB_SAVED      = 7
    ADD_CHAT      = 8
    DEL_CHAT      = 9
    SET_CHAT_KEY  = 10
    SET_WIFI_SSID = 11
    SET_WIFI_KEY  = 12
    BUFFERED_REQ  = 13


def encode(op: int, *fields: Any) -> str:
    # field-less commands keep the trailing delimiter, e.g. "4|"
    return f"{int(op)}{DELIM}" + DELIM.join(str(f) for f in fields)


def split_command(raw: str, maxsplit: int = -1) -> tuple[int, list[str]]:
    """Parse the command format back into (opcode, fields)."""
    head, sep, rest = raw.partition(DELIM)
    try:
        op = int(head, 10)
    except ValueError:
        raise DecodeError(f"bad opcode {head!r}", raw) from None
    if not sep or rest == "":
        return op, []
    return op, rest.split(DELIM, maxsplit)


# ---------- outbound packets ----------

def send_message(chat_id: int, seq: int, user_id: int, text: str) -> str:
    return encode(Op.SEND_MSG, chat_id, seq, user_id, text)

def db_request() -> str:
    return encode(Op.DB_REQ)

def db_send(snapshot: Snapshot) -> str:
    return encode(Op.DB_SEND, json.dumps(snapshot.to_dict(), ensure_ascii=False, separators=(",", ":")))

def buffered_request() -> str:
    return encode(Op.BUFFERED_REQ)

def add_chat(chat_id: int, key: str) -> str:
    return encode(Op.ADD_CHAT, chat_id, key)

def del_chat(chat_id: int) -> str:
    return encode(Op.DEL_CHAT, chat_id)

def set_chat_key(chat_id: int, key: str) -> str:
    return encode(Op.SET_CHAT_KEY, chat_id, key)

def set_wifi_ssid(ssid: str) -> str:
    return encode(Op.SET_WIFI_SSID, ssid)

def set_wifi_key(key: str) -> str:
    return encode(Op.SET_WIFI_KEY, key)


# ---------- inbound packets ----------

def _int_field(obj: Dict[str, Any], key: str, raw: str) -> int:
    v = obj.get(key)
    if isinstance(v, bool) or not isinstance(v, int):
        raise DecodeError(f"'{key}' missing or not an integer", raw)
    return v


def _msg_ref(obj: Dict[str, Any], raw: str) -> tuple[int, int, int]:
    return _int_field(obj, "chatId", raw), _int_field(obj, "author", raw), _int_field(obj, "msgId", raw)


def _snapshot(obj: Dict[str, Any], raw: str) -> Snapshot:
    if "db" not in obj:
        raise DecodeError("'db' missing", raw)
    db = obj["db"]
    if db is None:
        # gateway has nothing stored for us yet
        return Snapshot()
    if isinstance(db, str):
        try:
            db = json.loads(db)
        except ValueError as e:
            raise DecodeError(f"embedded db is not JSON: {e}", raw) from None
    try:
        return Snapshot.from_dict(db)
    except SnapshotError as e:
        raise SnapshotError(str(e), raw) from None


def decode(raw: str) -> Optional[events.Packet]:
    """
    Decode one inbound frame. Returns None when `type` is absent, not an
    integer, or an opcode this client does not handle; raises DecodeError if
    the frame is malformed.
    """
    try:
        obj = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"malformed JSON: {e}", str(raw)) from None
    if not isinstance(obj, dict):
        raise DecodeError("packet is not a JSON object", raw)
    kind = obj.get("type")
    if isinstance(kind, bool) or not isinstance(kind, int):
        return None

    if kind == Op.NEW_MSG:
        chat_id, author, msg_id = _msg_ref(obj, raw)
        text = obj.get("text")
        if not isinstance(text, str):
            raise DecodeError("'text' missing or not a string", raw)
        return events.NewMsg(chat_id=chat_id, author=author, msg_id=msg_id, text=text)
    if kind == Op.ACK:
        return events.Ack(*_msg_ref(obj, raw))
    if kind == Op.MSG_SENT:
        return events.MsgSent(*_msg_ref(obj, raw))
    if kind == Op.DB_DELIVER:
        return events.DbDeliver(snapshot=_snapshot(obj, raw))
    if kind == Op.DB_SAVED:
        return events.DbSaved()
    return None
