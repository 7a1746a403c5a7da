# lorachat/core/sync.py
import logging
from typing import Callable, Optional

from lorachat.core import codec, delivery, events
from lorachat.core.errors import NotConnectedError, PreconditionError
from lorachat.core.state import SessionState
from lorachat.core.supervisor import DEFAULT_RETRY_DELAY, Supervisor
from lorachat.core.transport import WebSocketConnector
from lorachat.model import Chat, Message


class LoRaChat:
    """
    Collaborator-facing API of the client.

    Owns the session state and the supervisor. Local mutations go to the
    database first; the ones the gateway also stores (chats, chat keys,
    titles, WiFi settings) are followed by their command packet and one full
    snapshot push. Inbound packets arrive through handle_packet().
    """

    def __init__(self, connector: Optional[Callable] = None, state: Optional[SessionState] = None,
                 retry_delay: float = DEFAULT_RETRY_DELAY, sleep=None):
        self.state = state if state is not None else SessionState()
        kwargs = {"sleep": sleep} if sleep is not None else {}
        self.supervisor = Supervisor(
            self.state,
            connector if connector is not None else WebSocketConnector(),
            self.handle_packet,
            retry_delay=retry_delay,
            **kwargs,
        )

    @property
    def db(self):
        return self.state.db

    @property
    def active_chat(self) -> Optional[int]:
        return self.state.active_chat

    # ---------- lifecycle ----------
    def start(self):
        return self.supervisor.start()

    async def close(self) -> None:
        """Session teardown: push the snapshot once, best effort, then stop supervising."""
        if not self._push_snapshot():
            logging.warning("Snapshot not saved on shutdown: gateway not connected")
        await self.supervisor.stop()

    # ---------- transmission helpers ----------
    def _transmit(self, *packets: str) -> bool:
        try:
            for p in packets:
                self.supervisor.send(p)
        except NotConnectedError as e:
            self.state.add_log(f"Not connected: {e}", logging.WARNING)
            return False
        return True

    def _push_snapshot(self) -> bool:
        return self._transmit(codec.db_send(self.db.snap))

    def _sync(self, command: Optional[str] = None) -> bool:
        # command first so the gateway knows the chat before the snapshot lists it
        packets = [command] if command is not None else []
        packets.append(codec.db_send(self.db.snap))
        return self._transmit(*packets)

    # ---------- messages ----------
    def send_message(self, chat_id: int, text: str) -> Optional[Message]:
        """
        Send `text` on a chat. Returns the new PENDING message, or None when
        the gateway is not connected (nothing is stored in that case).
        Raises PreconditionError if no user id is set, the chat is unknown
        or the text is empty.
        """
        user_id = self.db.user_id
        if user_id is None:
            raise PreconditionError("set your user ID before sending messages")
        if self.db.get_chat(chat_id) is None:
            raise PreconditionError(f"no chat with id {chat_id}")
        if not text:
            raise PreconditionError("message text is empty")
        # the counter and the message are committed only once the packet is on the link
        seq = self.db.id_counter(chat_id) + 1
        if not self._transmit(codec.send_message(chat_id, seq, user_id, text)):
            self.state.add_log(f"Message to chat {chat_id} not sent: gateway not connected",
                               logging.WARNING)
            return None
        self.db.next_seq(chat_id)
        return self.db.add_own_message(chat_id, seq, text)

    # ---------- chats ----------
    def open_chat(self, chat_id: int) -> Optional[Chat]:
        chat = self.db.get_chat(chat_id)
        if chat is None:
            return None
        self.state.active_chat = chat_id
        self.db.set_unread(chat_id, 0)
        return chat

    def close_chat(self) -> None:
        self.state.active_chat = None

    def add_chat(self, chat_id: int, title: str, key: str) -> bool:
        if not self.db.add_chat(chat_id, title, key):
            return False
        return self._sync(codec.add_chat(chat_id, key))

    def remove_chat(self, chat_id: int) -> bool:
        if not self.db.remove_chat(chat_id):
            return False
        if self.state.active_chat == chat_id:
            self.state.active_chat = None
        return self._sync(codec.del_chat(chat_id))

    def set_chat_title(self, chat_id: int, title: str) -> bool:
        if not self.db.set_chat_title(chat_id, title):
            return False
        return self._sync()

    def set_chat_key(self, chat_id: int, key: str) -> bool:
        if not self.db.set_chat_key(chat_id, key):
            return False
        return self._sync(codec.set_chat_key(chat_id, key))

    def chat_title(self, chat_id: int) -> Optional[str]:
        return self.db.chat_title(chat_id)

    # ---------- identity / wifi ----------
    def set_user_id(self, user_id: int) -> None:
        self.db.set_user_id(user_id)

    def set_username(self, username: str) -> None:
        self.db.set_username(username)

    def set_wifi_ssid(self, ssid: str) -> bool:
        self.db.set_wifi_ssid(ssid)
        return self._sync(codec.set_wifi_ssid(ssid))

    def set_wifi_key(self, key: str) -> bool:
        self.db.set_wifi_key(key)
        return self._sync(codec.set_wifi_key(key))

    # ---------- contacts (local only, saved with the next snapshot) ----------
    def add_contact(self, contact_id: int, name: str) -> bool:
        return self.db.add_contact(contact_id, name)

    def set_contact_name(self, contact_id: int, name: str) -> bool:
        return self.db.set_contact_name(contact_id, name)

    def set_contact_id(self, old_id: int, new_id: int) -> bool:
        return self.db.set_contact_id(old_id, new_id)

    def remove_contact(self, contact_id: int) -> bool:
        return self.db.remove_contact(contact_id)

    def contact_name(self, contact_id: int) -> str:
        return self.db.contact_name(contact_id)

    # ---------- snapshots ----------
    def request_snapshot(self) -> bool:
        return self._transmit(codec.db_request())

    def request_snapshot_save(self) -> bool:
        return self._push_snapshot()

    # ---------- inbound ----------
    def handle_packet(self, packet) -> None:
        if isinstance(packet, events.NewMsg):
            self._on_new_message(packet)
        elif isinstance(packet, events.Ack):
            self._on_status(delivery.mark_received(self.db, packet.chat_id, packet.author, packet.msg_id))
        elif isinstance(packet, events.MsgSent):
            self._on_status(delivery.mark_sent(self.db, packet.chat_id, packet.author, packet.msg_id))
        elif isinstance(packet, events.DbDeliver):
            self._on_snapshot(packet)
        elif isinstance(packet, events.DbSaved):
            self.state.add_log("Database saved on gateway")
            self.state.publish(events.SnapshotSaved())

    def _on_new_message(self, p: events.NewMsg) -> None:
        msg = self.db.add_remote_message(p.chat_id, p.msg_id, p.author, p.text)
        if msg is None:
            logging.info(f"Ignored message {p.chat_id}-{p.author}-{p.msg_id}: unknown chat or duplicate")
            return
        self.state.publish(events.MessageReceived(message=msg))
        # re-evaluated for every message: the active chat can change at any time
        if self.state.active_chat == p.chat_id:
            return
        unread = self.db.unread(p.chat_id) + 1
        self.db.set_unread(p.chat_id, unread)
        self.state.publish(events.ChatAttention(chat_id=p.chat_id, unread=unread,
                                                title=self.db.chat_title(p.chat_id)))

    def _on_status(self, result) -> None:
        if result is None:
            return
        msg, old = result
        self.state.publish(events.MessageStatusChanged(message=msg, old=old, new=msg.status))

    def _on_snapshot(self, p: events.DbDeliver) -> None:
        self.db.replace(p.snapshot)
        self.state.db_loaded = True
        if self.state.active_chat is not None:
            if self.db.get_chat(self.state.active_chat) is None:
                self.state.active_chat = None
            else:
                self.db.set_unread(self.state.active_chat, 0)
        self.state.add_log(f"Database loaded: {len(p.snapshot.chats)} chat(s), "
                           f"{len(p.snapshot.contacts)} contact(s)")
        self.state.publish(events.SnapshotLoaded(snapshot=p.snapshot))
