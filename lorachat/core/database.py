# lorachat/core/database.py
from typing import List, Optional

from lorachat.model import Chat, Contact, Message, MsgStatus, Snapshot, make_msg_id


class Database:
    """
    In-memory chat database. Pure mutations over a Snapshot: no I/O, no
    events. Mutations that reference an unknown id do nothing and return
    False; queries return None (or the documented fallback).
    """

    def __init__(self, snapshot: Optional[Snapshot] = None):
        self.snap = snapshot if snapshot is not None else Snapshot()

    def replace(self, snapshot: Snapshot) -> None:
        self.snap = snapshot

    # ---------- identity / wifi ----------
    @property
    def user_id(self) -> Optional[int]:
        return self.snap.user_id

    def set_user_id(self, user_id: Optional[int]) -> None:
        self.snap.user_id = user_id

    @property
    def username(self) -> Optional[str]:
        return self.snap.username

    def set_username(self, username: Optional[str]) -> None:
        self.snap.username = username

    @property
    def wifi_ssid(self) -> str:
        return self.snap.wifi_ssid

    def set_wifi_ssid(self, ssid: str) -> None:
        self.snap.wifi_ssid = ssid

    @property
    def wifi_key(self) -> str:
        return self.snap.wifi_key

    def set_wifi_key(self, key: str) -> None:
        self.snap.wifi_key = key

    # ---------- contacts ----------
    def get_contact(self, contact_id: int) -> Optional[Contact]:
        for c in self.snap.contacts:
            if c.id == contact_id:
                return c
        return None

    def exists_contact(self, contact_id: int) -> bool:
        return self.get_contact(contact_id) is not None

    def add_contact(self, contact_id: int, name: str) -> bool:
        if self.exists_contact(contact_id):
            return False
        self.snap.contacts.append(Contact(id=contact_id, name=name))
        return True

    def set_contact_name(self, contact_id: int, name: str) -> bool:
        c = self.get_contact(contact_id)
        if c is None:
            return False
        c.name = name
        return True

    def set_contact_id(self, old_id: int, new_id: int) -> bool:
        c = self.get_contact(old_id)
        if c is None or (new_id != old_id and self.exists_contact(new_id)):
            return False
        c.id = new_id
        return True

    def contact_name(self, contact_id: int) -> str:
        # unknown authors are shown by their numeric address
        c = self.get_contact(contact_id)
        return c.name if c is not None else str(contact_id)

    def remove_contact(self, contact_id: int) -> bool:
        c = self.get_contact(contact_id)
        if c is None:
            return False
        self.snap.contacts.remove(c)
        return True

    # ---------- chats ----------
    @property
    def chats(self) -> List[Chat]:
        return self.snap.chats

    def get_chat(self, chat_id: int) -> Optional[Chat]:
        for c in self.snap.chats:
            if c.id == chat_id:
                return c
        return None

    def add_chat(self, chat_id: int, title: str, key: str) -> bool:
        if self.get_chat(chat_id) is not None:
            return False
        self.snap.chats.append(Chat(id=chat_id, title=title, key=key))
        return True

    def remove_chat(self, chat_id: int) -> bool:
        c = self.get_chat(chat_id)
        if c is None:
            return False
        self.snap.chats.remove(c)
        return True

    def chat_messages(self, chat_id: int) -> Optional[List[Message]]:
        c = self.get_chat(chat_id)
        return c.messages if c is not None else None

    def chat_title(self, chat_id: int) -> Optional[str]:
        c = self.get_chat(chat_id)
        return c.title if c is not None else None

    def set_chat_title(self, chat_id: int, title: str) -> bool:
        c = self.get_chat(chat_id)
        if c is None:
            return False
        c.title = title
        return True

    def chat_key(self, chat_id: int) -> Optional[str]:
        c = self.get_chat(chat_id)
        return c.key if c is not None else None

    def set_chat_key(self, chat_id: int, key: str) -> bool:
        c = self.get_chat(chat_id)
        if c is None:
            return False
        c.key = key
        return True

    def unread(self, chat_id: int) -> int:
        c = self.get_chat(chat_id)
        return c.unread if c is not None else 0

    def set_unread(self, chat_id: int, n: int) -> bool:
        c = self.get_chat(chat_id)
        if c is None:
            return False
        c.unread = max(0, int(n))
        return True

    def id_counter(self, chat_id: int) -> Optional[int]:
        c = self.get_chat(chat_id)
        return c.id_counter if c is not None else None

    def set_id_counter(self, chat_id: int, n: int) -> bool:
        c = self.get_chat(chat_id)
        # the counter never goes back, a sequence number is never reused
        if c is None or n < c.id_counter:
            return False
        c.id_counter = n
        return True

    def next_seq(self, chat_id: int) -> Optional[int]:
        """Allocate and store the next local sequence number of a chat."""
        c = self.get_chat(chat_id)
        if c is None:
            return None
        c.id_counter += 1
        return c.id_counter

    # ---------- messages ----------
    def find_message(self, chat_id: int, msg_id: str) -> Optional[Message]:
        c = self.get_chat(chat_id)
        return c.find_message(msg_id) if c is not None else None

    def add_remote_message(self, chat_id: int, seq: int, author: int, text: str) -> Optional[Message]:
        """
        Append an inbound message. None if the chat is unknown or the message is
        already stored. It counts as mine when its author is our own user id
        (sent from another device with the same identity).
        """
        c = self.get_chat(chat_id)
        if c is None:
            return None
        msg_id = make_msg_id(chat_id, author, seq)
        if c.find_message(msg_id) is not None:
            return None
        m = Message(id=msg_id, chat_id=chat_id, author=author, text=text,
                    mine=self.user_id is not None and author == self.user_id,
                    status=MsgStatus.RECEIVED)
        c.messages.append(m)
        return m

    def add_own_message(self, chat_id: int, seq: int, text: str) -> Optional[Message]:
        c = self.get_chat(chat_id)
        if c is None or self.user_id is None:
            return None
        m = Message(id=make_msg_id(chat_id, self.user_id, seq), chat_id=chat_id,
                    author=self.user_id, text=text, mine=True, status=MsgStatus.PENDING)
        c.messages.append(m)
        return m

    def set_message_status(self, chat_id: int, msg_id: str, status: MsgStatus) -> bool:
        m = self.find_message(chat_id, msg_id)
        if m is None:
            return False
        m.status = MsgStatus(status)
        return True
