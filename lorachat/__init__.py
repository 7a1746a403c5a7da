# lorachat/__init__.py
"""LoRaChat client: local chat database kept in sync with a LoRa gateway."""

__version__ = "0.3.0"
