# lorachat/core/errors.py


class LoRaChatError(Exception):
    pass


class TransportError(LoRaChatError):
    """Connection to the gateway failed or dropped."""


class NotConnectedError(TransportError):
    def __init__(self, what: str = "packet") -> None:
        super().__init__(f"cannot send {what}: gateway not connected")
        self.what = what


class DecodeError(LoRaChatError):
    """A single inbound packet could not be decoded."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class SnapshotError(DecodeError):
    """A database snapshot failed validation."""


class PreconditionError(LoRaChatError):
    """Operation needs state that is not configured yet."""
