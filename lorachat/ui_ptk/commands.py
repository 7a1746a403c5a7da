# lorachat/ui_ptk/commands.py
# Slash commands of the terminal front end, one per collaborator API call.
from typing import Optional

from lorachat.core.errors import PreconditionError
from lorachat.core.reducer import ChatView
from lorachat.model import STATUS_SYMBOL

QUIT = object()

HELP = """\
/chat ID               open a chat (resets its unread counter)
/chats                 list chats, latest activity first
/add ID TITLE KEY      create a chat
/del                   remove the open chat
/title TITLE           rename the open chat
/key KEY               change the open chat's key
/id N | /name NAME     set your user id / username
/ssid SSID | /wifikey K  reconfigure the gateway WiFi
/contact ID NAME       add or rename a contact
/uncontact ID          remove a contact
/save | /load          push / fetch the database
/log [N]               show the last N session log lines (default 20)
/quit                  save and exit
anything else is sent to the open chat"""

COMMANDS = ["/chat", "/chats", "/add", "/del", "/title", "/key", "/id", "/name", "/ssid",
            "/wifikey", "/contact", "/uncontact", "/save", "/load", "/log", "/help", "/quit"]


def _int(s: str) -> Optional[int]:
    try:
        return int(s, 10)
    except (TypeError, ValueError):
        return None


def _gateway(ok: bool, what: str) -> str:
    return f"{what}." if ok else f"{what} locally; gateway not updated."


def render_chat(client, chat_id: int) -> str:
    chat = client.db.get_chat(chat_id)
    out = [f"== {chat.title} ({chat.id}) =="]
    for m in chat.messages:
        if m.mine:
            out.append(f"  You: {m.text}  {STATUS_SYMBOL[m.status]}")
        else:
            out.append(f"  {client.contact_name(m.author)}: {m.text}")
    return "\n".join(out)


def run_command(client, view: ChatView, line: str):
    """Execute one input line. Returns text to print, None, or QUIT."""
    line = line.strip()
    if not line:
        return None
    if not line.startswith("/"):
        if client.active_chat is None:
            return "Open a chat first (/chat ID)."
        try:
            msg = client.send_message(client.active_chat, line)
        except PreconditionError as e:
            return f"Cannot send: {e}"
        if msg is None:
            return "Not connected to the gateway; message not sent."
        view.move_first(client.active_chat)
        return None

    cmd, _, rest = line.partition(" ")
    args = rest.split()
    active = client.active_chat

    if cmd == "/quit":
        return QUIT
    if cmd == "/help":
        return HELP
    if cmd == "/log":
        n = _int(rest.strip()) if rest.strip() else 20
        if n is None or n <= 0:
            return "Usage: /log [N]"
        return "\n".join(list(client.state.log)[-n:]) or "Log is empty."
    if cmd == "/chats":
        view.sync_chats([c.id for c in client.db.chats])
        rows = []
        for cid in view.order:
            title = client.chat_title(cid)
            badge = client.db.unread(cid)
            mark = "*" if cid == active else " "
            rows.append(f"{mark} {cid:>6}  {title}" + (f"  ({badge})" if badge else ""))
        return "\n".join(rows) or "No chats."
    if cmd == "/chat":
        cid = _int(rest.strip())
        if cid is None or client.open_chat(cid) is None:
            return "No such chat."
        return render_chat(client, cid)
    if cmd == "/add":
        cid = _int(args[0]) if args else None
        if cid is None or len(args) < 3:
            return "Usage: /add ID TITLE KEY"
        title, key = " ".join(args[1:-1]), args[-1]
        if client.db.get_chat(cid) is not None:
            return "Chat already exists."
        ok = client.add_chat(cid, title, key)
        client.open_chat(cid)
        view.move_first(cid)
        return _gateway(ok, "Chat created")
    if cmd in ("/del", "/title", "/key") and active is None:
        return "Open a chat first (/chat ID)."
    if cmd == "/del":
        ok = client.remove_chat(active)
        view.drop_chat(active)
        return _gateway(ok, "Chat removed")
    if cmd == "/title":
        if not rest.strip():
            return "Usage: /title TITLE"
        return _gateway(client.set_chat_title(active, rest.strip()), "Chat title changed")
    if cmd == "/key":
        if not rest.strip():
            return "Usage: /key KEY"
        return _gateway(client.set_chat_key(active, rest.strip()), "Chat key changed")
    if cmd == "/id":
        uid = _int(rest.strip())
        if uid is None:
            return "Usage: /id N"
        client.set_user_id(uid)
        return "User ID changed."
    if cmd == "/name":
        if not rest.strip():
            return "Usage: /name NAME"
        client.set_username(rest.strip())
        return "Username changed."
    if cmd == "/ssid":
        if not rest.strip():
            return "Usage: /ssid SSID"
        return _gateway(client.set_wifi_ssid(rest.strip()), "Wifi SSID changed")
    if cmd == "/wifikey":
        if not rest.strip():
            return "Usage: /wifikey KEY"
        return _gateway(client.set_wifi_key(rest.strip()), "Wifi key changed")
    if cmd == "/contact":
        cid = _int(args[0]) if args else None
        if cid is None or len(args) < 2:
            return "Usage: /contact ID NAME"
        name = " ".join(args[1:])
        if client.add_contact(cid, name):
            return "Contact added!"
        client.set_contact_name(cid, name)
        return "Contact changed!"
    if cmd == "/uncontact":
        cid = _int(rest.strip())
        return "Contact removed!" if cid is not None and client.remove_contact(cid) else "No such contact."
    if cmd == "/save":
        return "Saving database..." if client.request_snapshot_save() else "Not connected."
    if cmd == "/load":
        return "Database requested." if client.request_snapshot() else "Not connected."
    return f"Unknown command {cmd}; /help lists them."
