# lorachat/main.py
import argparse
import asyncio
import logging

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.patch_stdout import patch_stdout

from lorachat.core.bus import Bus
from lorachat.core.config import DEFAULT_PATH, Config, apply_to_session, setup_logging
from lorachat.core.events import SnapshotLoaded
from lorachat.core.reducer import ChatView, apply_event
from lorachat.core.sync import LoRaChat
from lorachat.core.transport import WebSocketConnector
from lorachat.ui_ptk.commands import COMMANDS, QUIT, run_command


def status_line(client: LoRaChat, view: ChatView) -> str:
    gw = "online" if view.online else "offline"
    cid = client.active_chat
    chat = f"{client.chat_title(cid)} ({cid})" if cid is not None else "-"
    uid = client.db.user_id
    return f"Gateway: {gw}   Chat: {chat}   User: {uid if uid is not None else 'unset'}"


async def bus_listener(view: ChatView, bus: Bus, client: LoRaChat, cfg: Config):
    restored = False
    try:
        async for ev in bus.listen():
            try:
                apply_event(view, ev, names=client.contact_name)
            except Exception as e:
                logging.error(f"[reducer] error: {e!r}", exc_info=True)
            if isinstance(ev, SnapshotLoaded) and not restored:
                restored = True
                apply_to_session(cfg, client)
            while view.lines:
                print(view.lines.popleft())
    except asyncio.CancelledError:
        return


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="lorachat", description="LoRaChat terminal client")
    p.add_argument("--config", default=DEFAULT_PATH, help="config file (default: %(default)s)")
    p.add_argument("--gateway", help="gateway WebSocket URL, e.g. ws://192.168.4.1:81")
    p.add_argument("--retry-delay", type=float, help="seconds between reconnect attempts")
    return p.parse_args(argv)


async def main(argv=None):
    args = parse_args(argv)
    try:
        cfg = Config.load(args.config)
    except (TypeError, ValueError) as e:
        print(f"Ignoring bad config {args.config}: {e}")
        cfg = Config()
    if args.gateway:
        cfg.gateway_url = args.gateway
    if args.retry_delay is not None:
        cfg.retry_delay = args.retry_delay
    setup_logging(cfg)
    logging.info("LoRaChat starting up.")

    client = LoRaChat(
        WebSocketConnector(cfg.gateway_url, timeout=cfg.connect_timeout, heartbeat=cfg.heartbeat),
        retry_delay=cfg.retry_delay,
    )
    view = ChatView()
    listener_task = asyncio.create_task(bus_listener(view, client.state.bus, client, cfg))
    client.start()

    session = PromptSession(
        completer=WordCompleter(COMMANDS, sentence=True),
        bottom_toolbar=lambda: status_line(client, view),
    )
    print(f"Connecting to {cfg.gateway_url} ... (/help for commands)")
    try:
        with patch_stdout():
            while True:
                try:
                    line = await session.prompt_async("> ")
                except (EOFError, KeyboardInterrupt):
                    break
                reply = run_command(client, view, line)
                if reply is QUIT:
                    break
                if reply:
                    print(reply)
    finally:
        cfg.last_chat = client.active_chat
        try:
            cfg.save(args.config)
        except OSError as e:
            logging.warning(f"Could not save config: {e!r}")
        await client.close()
        listener_task.cancel()
        await asyncio.gather(listener_task, return_exceptions=True)
        logging.info("LoRaChat shut down.")


def run():
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass


if __name__ == "__main__":
    run()
