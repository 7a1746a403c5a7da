# lorachat/core/reducer.py
from collections import deque
from typing import List

from lorachat.core import events
from lorachat.model import STATUS_SYMBOL
from lorachat.ui_ptk.text_sanitize import sanitize_text, shorten


class ChatView:
    """What the terminal shows: chat order (latest activity first) and printable lines."""

    def __init__(self):
        self.order: List[int] = []
        self.online = False
        self.lines = deque(maxlen=500)

    def sync_chats(self, chat_ids) -> None:
        keep = [c for c in self.order if c in chat_ids]
        self.order = keep + [c for c in chat_ids if c not in keep]

    def move_first(self, chat_id: int) -> None:
        if chat_id in self.order:
            self.order.remove(chat_id)
        self.order.insert(0, chat_id)

    def drop_chat(self, chat_id: int) -> None:
        if chat_id in self.order:
            self.order.remove(chat_id)

    def say(self, text: str) -> None:
        self.lines.append(text)


def apply_event(view: ChatView, ev, names=None) -> None:
    """`names` maps an author id to a display name (LoRaChat.contact_name)."""
    name_of = names or str
    if isinstance(ev, events.MessageReceived):
        m = ev.message
        view.move_first(m.chat_id)
        who = shorten(sanitize_text(name_of(m.author), single_line=True))
        view.say(f"[{m.chat_id}] {who}: {sanitize_text(m.text)}")
    elif isinstance(ev, events.ChatAttention):
        # only the chat that got the message moves; the active chat stays put
        view.move_first(ev.chat_id)
        view.say(f"New message on {ev.title or ev.chat_id} ({ev.unread} unread)")
    elif isinstance(ev, events.MessageStatusChanged):
        m = ev.message
        view.say(f"[{m.chat_id}] {STATUS_SYMBOL[m.status]} {m.status.name.lower()}: {shorten(m.text, 30)}")
    elif isinstance(ev, events.SnapshotLoaded):
        view.order = [c.id for c in ev.snapshot.chats]
        view.say(f"Database loaded ({len(ev.snapshot.chats)} chats)")
    elif isinstance(ev, events.SnapshotSaved):
        view.say("Database saved!")
    elif isinstance(ev, events.Connection):
        was_online, view.online = view.online, ev.up
        if ev.up and not was_online:
            view.say("Connected to gateway")
        elif was_online and not ev.up:
            view.say("Gateway connection lost, retrying...")
    elif isinstance(ev, events.ProtocolError):
        view.say(f"Bad packet: {ev.error}")
