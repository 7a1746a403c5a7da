# lorachat/core/config.py
import os, json, logging
from dataclasses import dataclass, asdict

from lorachat.core.transport import DEFAULT_GATEWAY_URL

DEFAULT_PATH = os.path.join(os.path.expanduser("~"), ".lorachat.json")

@dataclass
class Config:
    gateway_url: str = DEFAULT_GATEWAY_URL
    retry_delay: float = 1.0           # seconds between reconnect attempts, fixed
    connect_timeout: float = 5.0
    heartbeat: float | None = None     # WebSocket ping interval, None = off
    last_chat: int | None = None
    log_file: str = "lorachat.log"

    @staticmethod
    def load(path: str = DEFAULT_PATH) -> "Config":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            data = {}
        if not isinstance(data, dict):
            data = {}
        hb = data.get("heartbeat")
        last = data.get("last_chat")
        return Config(
            gateway_url=str(data.get("gateway_url", DEFAULT_GATEWAY_URL)),
            retry_delay=float(data.get("retry_delay", 1.0)),
            connect_timeout=float(data.get("connect_timeout", 5.0)),
            heartbeat=float(hb) if hb is not None else None,
            last_chat=int(last) if last is not None else None,
            log_file=str(data.get("log_file", "lorachat.log")),
        )

    def save(self, path: str = DEFAULT_PATH) -> None:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2)

def setup_logging(cfg: Config) -> None:
    """Configures application-wide logging."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s %(levelname)s %(message)s',
        filename=cfg.log_file,
        filemode='a'
    )

def apply_to_session(cfg: "Config", client) -> None:
    """Reopen the last active chat, if the loaded database still has it."""
    if cfg.last_chat is not None:
        client.open_chat(cfg.last_chat)
