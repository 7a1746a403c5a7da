# lorachat/core/delivery.py
# Delivery tracking for own messages: PENDING -> SENT -> RECEIVED, forward only.
from typing import Optional, Tuple

from lorachat.core.database import Database
from lorachat.model import Message, MsgStatus, make_msg_id


def can_advance(current: MsgStatus, new: MsgStatus) -> bool:
    return MsgStatus(new) > MsgStatus(current)


def advance(db: Database, chat_id: int, author: int, seq: int,
            status: MsgStatus) -> Optional[Tuple[Message, MsgStatus]]:
    """
    Move an own message forward to `status`.

    Returns (message, previous_status) when the transition applied, None
    otherwise: unknown chat or message (the chat may have been removed),
    a peer's message, or a status that is not ahead of the current one
    (a sent confirmation arriving after the ack).
    """
    msg = db.find_message(chat_id, make_msg_id(chat_id, author, seq))
    if msg is None or not msg.mine:
        return None
    old = msg.status
    if not can_advance(old, status):
        return None
    db.set_message_status(chat_id, msg.id, status)
    return msg, old


def mark_sent(db: Database, chat_id: int, author: int, seq: int):
    return advance(db, chat_id, author, seq, MsgStatus.SENT)


def mark_received(db: Database, chat_id: int, author: int, seq: int):
    return advance(db, chat_id, author, seq, MsgStatus.RECEIVED)
